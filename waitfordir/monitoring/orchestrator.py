"""
Watch Orchestrator
==================

Probes every requested directory, starts a WatchTask for each one that is
still empty, funnels task errors into one queue and exposes a single
completion event that fires once every task has terminated.
"""

import threading
from queue import Queue
from typing import Callable, List, Optional, Sequence, Tuple

from waitfordir.monitoring.cancellation import CancelSignal
from waitfordir.monitoring.prober import dir_is_empty
from waitfordir.monitoring.watcher import (
    EventPredicate,
    Subscription,
    TaskOutcome,
    WatchTask,
    create_or_write,
)
from waitfordir.utils.exceptions import NoDirectoriesError
from waitfordir.utils.logging_config import get_logger

logger = get_logger(__name__)


class WatchOrchestrator:
    """Runs one WatchTask per empty directory and tracks their completion.

    Duplicate paths are not collapsed; each occurrence gets its own watch.
    """

    def __init__(
        self,
        subscription_factory: Callable[..., Subscription] = Subscription,
        prober: Callable[[str], bool] = dir_is_empty,
    ):
        """Initialize the orchestrator.

        Args:
            subscription_factory: Passed through to every WatchTask.
            prober: Returns True if a directory is empty, raises ProbeError
                if it cannot be listed.
        """
        self.subscription_factory = subscription_factory
        self.prober = prober
        self.paths: Tuple[str, ...] = ()
        self._tasks: List[WatchTask] = []
        self._skipped: List[str] = []
        self._entries: List[Tuple[str, Optional[WatchTask]]] = []
        self._errors: Optional[Queue] = None
        self._done: Optional[threading.Event] = None
        self._lock = threading.Lock()

    @property
    def tasks(self) -> Tuple[WatchTask, ...]:
        """Watch tasks spawned so far, in input order."""
        return tuple(self._tasks)

    @property
    def started(self) -> bool:
        """Whether ``start`` got as far as creating the error stream."""
        return self._errors is not None

    @property
    def skipped(self) -> Tuple[str, ...]:
        """Paths that already had content when probed."""
        return tuple(self._skipped)

    def start(
        self,
        paths: Sequence[str],
        cancel_signal: CancelSignal,
        event_predicate: EventPredicate = create_or_write,
    ) -> Queue:
        """Probe each path and start watching the empty ones.

        Paths are handled in order. If probing a path fails the error is
        raised at once; tasks already started for earlier paths keep running
        until ``cancel_signal`` fires.

        Args:
            paths: Directories to wait on.
            cancel_signal: Shared cancellation signal for all tasks.
            event_predicate: Decides which events fulfill a task.

        Returns:
            The shared error stream. Each task puts at most one error on it.

        Raises:
            NoDirectoriesError: If ``paths`` is empty.
            ProbeError: If a directory cannot be listed.
            RuntimeError: If the orchestrator was already started.
        """
        if not paths:
            raise NoDirectoriesError()
        if self._errors is not None:
            raise RuntimeError("Watch orchestrator already started")

        self.paths = tuple(paths)
        # One slot per possible task, so a failing task never blocks on put
        self._errors = Queue(maxsize=max(1, len(self.paths)))

        for path in self.paths:
            if not self.prober(path):
                logger.warning("Directory has content, skipping", extra={"directory": path})
                self._skipped.append(path)
                self._entries.append((path, None))
                continue

            task = WatchTask(
                path,
                cancel_signal,
                self._errors,
                predicate=event_predicate,
                subscription_factory=self.subscription_factory,
            )
            self._tasks.append(task)
            self._entries.append((path, task))
            task.start()
            logger.info("Watching directory", extra={"directory": path})

        logger.info(
            f"Started {len(self._tasks)} watch(es), {len(self._skipped)} directory(ies) already have content"
        )
        return self._errors

    def wait(self) -> threading.Event:
        """Get the event that fires once every spawned task has terminated.

        The first call starts a joiner thread; later calls return the same
        event. With no tasks the event is already set.

        Raises:
            RuntimeError: If called before ``start``.
        """
        with self._lock:
            if self._done is not None:
                return self._done
            if self._errors is None:
                raise RuntimeError("Watch orchestrator not started")

            self._done = threading.Event()
            tasks = list(self._tasks)
            if not tasks:
                self._done.set()
                return self._done

            done = self._done

        def join_all() -> None:
            for task in tasks:
                task.join()
            done.set()

        threading.Thread(target=join_all, daemon=True, name="WatchOrchestrator-Join").start()
        return done

    def outcomes(self) -> List[Tuple[str, TaskOutcome]]:
        """Per-path outcomes; skipped paths count as fulfilled."""
        return [
            (path, task.outcome if task is not None else TaskOutcome.FULFILLED)
            for path, task in self._entries
        ]

    def summary(self) -> dict:
        """Count of paths per outcome, for end-of-run reporting.

        The outcome counts add up to the number of paths. Paths that already
        had content count as fulfilled; ``skipped`` reports how many of the
        fulfilled ones needed no watch, so it is not added to the total.
        """
        counts = {outcome.value: 0 for outcome in TaskOutcome}
        for _, outcome in self.outcomes():
            counts[outcome.value] += 1
        counts["skipped"] = len(self._skipped)
        return counts
