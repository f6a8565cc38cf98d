"""Pytest configuration and shared fixtures for waitfordir tests."""

import logging
import os
import time
from typing import Callable, Dict, List, Optional

import pytest
from watchdog.events import FileCreatedEvent

from waitfordir.monitoring.watcher import Subscription


class FakeObserver:
    """Stand-in for a watchdog observer that records its lifecycle."""

    def __init__(self, fail_on_start: Optional[Exception] = None, auto_create: bool = False):
        self.fail_on_start = fail_on_start
        self.auto_create = auto_create
        self.handler = None
        self.scheduled: List[tuple] = []
        self.started = False
        self.stop_calls = 0
        self.join_calls = 0
        self.alive = True
        self.emitters = ()

    def schedule(self, handler, path, recursive=False):
        self.handler = handler
        self.scheduled.append((path, recursive))

    def start(self):
        if self.fail_on_start is not None:
            raise self.fail_on_start
        self.started = True
        if self.auto_create:
            path = self.scheduled[-1][0]
            self.handler.dispatch(FileCreatedEvent(os.path.join(path, "output.txt")))

    def stop(self):
        self.stop_calls += 1

    def join(self, timeout=None):
        self.join_calls += 1

    def is_alive(self):
        return self.started and self.alive and self.stop_calls == 0


class FakeSubscriptionFactory:
    """Builds Subscriptions backed by FakeObservers, keyed by path."""

    def __init__(self, fail_paths=(), auto_create: bool = False):
        self.fail_paths = set(fail_paths)
        self.auto_create = auto_create
        self.observers: Dict[str, List[FakeObserver]] = {}
        self.subscriptions: List[Subscription] = []

    def __call__(self, path, handler):
        fail = None
        if path in self.fail_paths:
            fail = FileNotFoundError(2, "No such file or directory", path)
        observer = FakeObserver(fail_on_start=fail, auto_create=self.auto_create)
        self.observers.setdefault(path, []).append(observer)
        subscription = Subscription(path, handler, observer_factory=lambda: observer)
        self.subscriptions.append(subscription)
        return subscription

    def observer(self, path) -> FakeObserver:
        return self.observers[path][0]


def wait_until(condition: Callable[[], bool], timeout: float = 5.0, interval: float = 0.02) -> bool:
    """Poll ``condition`` until it holds or ``timeout`` elapses."""
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if condition():
            return True
        time.sleep(interval)
    return condition()


def keep_writing(directory, done: Callable[[], bool], timeout: float = 5.0) -> None:
    """Create files in ``directory`` until ``done()`` holds.

    A real observer may attach a moment after the task starts; writing
    repeatedly makes sure one of the writes lands after it is attached.
    """
    deadline = time.monotonic() + timeout
    index = 0
    while not done() and time.monotonic() < deadline:
        (directory / f"file{index}.txt").write_text("content")
        index += 1
        time.sleep(0.1)


@pytest.fixture
def fake_subscriptions():
    """Subscription factory that never touches the filesystem."""
    return FakeSubscriptionFactory()


@pytest.fixture
def empty_dir(tmp_path):
    """An empty directory."""
    path = tmp_path / "empty"
    path.mkdir()
    return path


@pytest.fixture
def populated_dir(tmp_path):
    """A directory that already holds a file."""
    path = tmp_path / "populated"
    path.mkdir()
    (path / "existing.txt").write_text("already here")
    return path


@pytest.fixture(autouse=True)
def reset_app_logger():
    """Undo setup_logging() so later tests see default logging."""
    yield
    root = logging.getLogger("waitfordir")
    for handler in list(root.handlers):
        root.removeHandler(handler)
    root.propagate = True
    root.setLevel(logging.NOTSET)
