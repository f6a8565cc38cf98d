"""
Directory Watcher
=================

Watches a single directory until it receives a qualifying filesystem event.
Each WatchTask owns one watchdog observer and resolves to exactly one
terminal outcome: fulfilled, failed or cancelled.
"""

import os
import threading
from enum import Enum
from queue import Empty, Full, Queue
from typing import Callable, Dict, Optional, Tuple, Any

from watchdog.observers import Observer
from watchdog.events import (
    FileSystemEvent,
    FileSystemEventHandler,
    EVENT_TYPE_CREATED,
    EVENT_TYPE_MODIFIED,
    EVENT_TYPE_DELETED,
    EVENT_TYPE_MOVED,
)

from waitfordir.monitoring.cancellation import CancelSignal
from waitfordir.utils.exceptions import (
    ConfigurationError,
    ErrorCode,
    SubscriptionError,
    WaitForDirError,
)
from waitfordir.utils.logging_config import get_logger

logger = get_logger(__name__)

EventPredicate = Callable[[FileSystemEvent], bool]


def create_or_write(event: FileSystemEvent) -> bool:
    """Accept entry creation and file writes.

    Modifications reported for directories are metadata changes (or the
    parent side of a creation that is reported on its own) and do not count.
    """
    if event.event_type == EVENT_TYPE_CREATED:
        return True
    return event.event_type == EVENT_TYPE_MODIFIED and not event.is_directory


def any_event(event: FileSystemEvent) -> bool:
    """Accept every event."""
    return True


EVENT_FILTERS: Dict[str, EventPredicate] = {
    "create-write": create_or_write,
    "any": any_event,
}

DEFAULT_EVENT_FILTER = "create-write"


def get_event_filter(name: str) -> EventPredicate:
    """Resolve an event filter by name.

    Args:
        name: One of the keys of EVENT_FILTERS.

    Returns:
        The predicate.

    Raises:
        ConfigurationError: If the name is unknown.
    """
    try:
        return EVENT_FILTERS[name]
    except KeyError:
        raise ConfigurationError(
            f"Unknown event filter: {name!r} (choose from {', '.join(sorted(EVENT_FILTERS))})",
            config_key="event_filter",
        ) from None


def _decode(path: Any) -> str:
    if isinstance(path, bytes):
        return os.fsdecode(path)
    return path


def describe_event(event: FileSystemEvent) -> str:
    """Short human-readable description of an event."""
    kind = "dir" if event.is_directory else "file"
    return f"{event.event_type} {kind} {_decode(event.src_path)}"


class TaskOutcome(Enum):
    """Lifecycle state of a WatchTask."""

    PENDING = "pending"
    FULFILLED = "fulfilled"
    FAILED = "failed"
    CANCELLED = "cancelled"


class DirectoryEventHandler(FileSystemEventHandler):
    """Forwards every raw event into a task's inbox."""

    def __init__(self, inbox: Queue):
        super().__init__()
        self.inbox = inbox

    def on_any_event(self, event: FileSystemEvent) -> None:
        self.inbox.put(event)


class Subscription:
    """One watchdog observer scheduled on one directory.

    ``close()`` is idempotent and releases the observer exactly once,
    whether or not ``open()`` succeeded.
    """

    def __init__(
        self,
        path: str,
        handler: FileSystemEventHandler,
        observer_factory: Callable[[], Any] = Observer,
        join_timeout: float = 5.0,
    ):
        """Initialize the subscription.

        Args:
            path: Directory to watch (non-recursively).
            handler: Handler receiving the observer's events.
            observer_factory: Creates the underlying observer.
            join_timeout: Seconds to wait for the observer thread on close.
        """
        self.path = path
        self.handler = handler
        self.join_timeout = join_timeout
        self._observer_factory = observer_factory
        self._observer = None
        self._started = False
        self._closed = False
        self._lock = threading.Lock()

    @property
    def closed(self) -> bool:
        """Whether the subscription has been released."""
        return self._closed

    def is_alive(self) -> bool:
        """Whether the observer and all of its emitters are still running."""
        observer = self._observer
        if observer is None or not self._started or self._closed:
            return False
        if not observer.is_alive():
            return False
        return all(emitter.is_alive() for emitter in observer.emitters)

    def open(self) -> None:
        """Attach the observer to the directory.

        Raises:
            SubscriptionError: If the watch cannot be attached.
        """
        with self._lock:
            if self._closed:
                raise SubscriptionError(
                    f"subscription already closed: {self.path}",
                    directory=self.path,
                )
            self._observer = self._observer_factory()
        try:
            self._observer.schedule(self.handler, self.path, recursive=False)
            self._observer.start()
            self._started = True
        except (OSError, RuntimeError) as e:
            self.close()
            raise SubscriptionError(
                f"cannot watch directory: {self.path}",
                directory=self.path,
                cause=e,
            ) from e

    def close(self) -> None:
        """Stop and join the observer. Safe to call more than once."""
        with self._lock:
            if self._closed:
                return
            self._closed = True
            observer = self._observer
        if observer is None:
            return
        observer.stop()
        if self._started:
            observer.join(timeout=self.join_timeout)


# Placed in a task's inbox when cancellation fires
_CANCELLED = object()


class WatchTask:
    """Waits on one directory for a qualifying event.

    The task thread blocks on a private inbox fed by the observer's event
    handler and by the cancellation signal, and reacts to whichever arrives
    first. The subscription is released before the outcome is recorded.
    """

    def __init__(
        self,
        path: str,
        cancel_signal: CancelSignal,
        error_sink: Queue,
        predicate: EventPredicate = create_or_write,
        subscription_factory: Callable[..., Subscription] = Subscription,
        liveness_interval: float = 1.0,
    ):
        """Initialize the task.

        Args:
            path: Directory to watch.
            cancel_signal: Shared cancellation signal.
            error_sink: Shared queue receiving this task's error, if any.
            predicate: Decides whether a raw event fulfills the task.
            subscription_factory: Called as ``factory(path, handler)``.
            liveness_interval: Seconds without events after which the
                subscription is checked for a silently stopped observer.
        """
        self.path = path
        self.cancel_signal = cancel_signal
        self.error_sink = error_sink
        self.predicate = predicate
        self.liveness_interval = liveness_interval
        self._inbox: Queue = Queue()
        self.subscription = subscription_factory(path, DirectoryEventHandler(self._inbox))
        self.outcome = TaskOutcome.PENDING
        self.error: Optional[WaitForDirError] = None
        self.event: Optional[FileSystemEvent] = None
        self._thread: Optional[threading.Thread] = None

    @property
    def done(self) -> bool:
        """Whether the task has reached a terminal outcome."""
        return self.outcome is not TaskOutcome.PENDING

    def start(self) -> None:
        """Run the task on its own daemon thread."""
        if self._thread is not None:
            raise RuntimeError(f"Watch task already started: {self.path}")
        self._thread = threading.Thread(
            target=self.run, daemon=True, name=f"watch:{self.path}"
        )
        self._thread.start()

    def join(self, timeout: Optional[float] = None) -> None:
        """Wait for the task thread to finish."""
        if self._thread is not None:
            self._thread.join(timeout)

    def is_alive(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def _wake(self) -> None:
        self._inbox.put(_CANCELLED)

    def run(self) -> None:
        """Watch until fulfilled, failed or cancelled."""
        self.cancel_signal.add_callback(self._wake)
        try:
            outcome, detail = self._watch()
        except Exception as e:
            logger.exception(f"Unexpected error watching {self.path}")
            outcome, detail = TaskOutcome.FAILED, SubscriptionError(
                f"watch failed unexpectedly: {self.path}",
                directory=self.path,
                error_code=ErrorCode.SUBSCRIPTION_BROKEN,
                cause=e,
            )
        finally:
            self.cancel_signal.remove_callback(self._wake)
            self.subscription.close()
        self._finish(outcome, detail)

    def _watch(self) -> Tuple[TaskOutcome, Any]:
        if self.cancel_signal.is_cancelled():
            return TaskOutcome.CANCELLED, None

        try:
            self.subscription.open()
        except SubscriptionError as e:
            return TaskOutcome.FAILED, e

        logger.debug(f"Watching directory: {self.path}", extra={"directory": self.path})

        while True:
            try:
                item = self._inbox.get(timeout=self.liveness_interval)
            except Empty:
                if not self.subscription.is_alive():
                    return TaskOutcome.FAILED, SubscriptionError(
                        f"event stream stopped unexpectedly: {self.path}",
                        directory=self.path,
                        error_code=ErrorCode.SUBSCRIPTION_BROKEN,
                    )
                continue

            if item is _CANCELLED:
                return TaskOutcome.CANCELLED, None

            if self._breaks_subscription(item):
                return TaskOutcome.FAILED, SubscriptionError(
                    f"watched directory went away: {self.path}",
                    directory=self.path,
                    error_code=ErrorCode.SUBSCRIPTION_BROKEN,
                    details={"event": describe_event(item)},
                )

            if not self.predicate(item):
                logger.debug(
                    "Skipped event",
                    extra={"directory": self.path, "event": describe_event(item)},
                )
                continue

            return TaskOutcome.FULFILLED, item

    def _breaks_subscription(self, event: FileSystemEvent) -> bool:
        """Whether the event reports the watched directory itself vanishing."""
        if event.event_type not in (EVENT_TYPE_DELETED, EVENT_TYPE_MOVED):
            return False
        src = os.path.abspath(_decode(event.src_path))
        return src == os.path.abspath(self.path)

    def _finish(self, outcome: TaskOutcome, detail: Any) -> None:
        self.outcome = outcome
        extra = {"directory": self.path, "outcome": outcome.value}

        if outcome is TaskOutcome.FULFILLED:
            self.event = detail
            extra["event"] = describe_event(detail)
            logger.info("Event fulfilled, directory has content", extra=extra)
            return

        if outcome is TaskOutcome.CANCELLED:
            logger.info("Watch cancelled", extra=extra)
            return

        self.error = detail
        extra["error_code"] = detail.error_code.name
        logger.warning(f"Watch failed: {detail.message}", extra=extra)

        if self.cancel_signal.is_cancelled():
            logger.debug(f"Not reporting error after cancellation: {detail}")
            return
        try:
            self.error_sink.put_nowait(detail)
        except Full:
            logger.error(f"Error stream full, dropping watch error: {detail}", extra=extra)
