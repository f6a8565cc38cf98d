"""
Cancellation Signal
===================

A broadcast cancellation flag shared by the driver and every watch task.
Raising it is idempotent: the first reason wins, later calls are no-ops.
"""

import threading
from enum import Enum
from typing import Callable, List, Optional

from waitfordir.utils.logging_config import get_logger

logger = get_logger(__name__)


class CancelReason(Enum):
    """Why a cancellation signal was raised."""

    SHUTDOWN = "shutdown"
    TIMEOUT = "timeout"
    WATCH_FAILURE = "watch_failure"
    ABORTED = "aborted"


class CancelSignal:
    """Idempotent, thread-safe broadcast cancellation.

    Watch tasks register callbacks to be woken when the signal fires, so
    they never have to poll it. An optional deadline raises the signal
    with ``CancelReason.TIMEOUT``.
    """

    def __init__(self):
        self._event = threading.Event()
        self._lock = threading.Lock()
        self._callbacks: List[Callable[[], None]] = []
        self._reason: Optional[CancelReason] = None
        self._timer: Optional[threading.Timer] = None
        self.timeout: Optional[float] = None

    @classmethod
    def with_timeout(cls, seconds: float) -> "CancelSignal":
        """Create a signal that raises itself after ``seconds``.

        Args:
            seconds: Deadline relative to now. Must be positive.

        Returns:
            An armed CancelSignal.
        """
        if seconds <= 0:
            raise ValueError("timeout must be positive")
        signal = cls()
        signal.timeout = seconds
        timer = threading.Timer(seconds, signal.cancel, args=(CancelReason.TIMEOUT,))
        timer.daemon = True
        timer.name = "CancelSignal-Deadline"
        signal._timer = timer
        timer.start()
        return signal

    @property
    def reason(self) -> Optional[CancelReason]:
        """The reason the signal fired, or None while it has not."""
        with self._lock:
            return self._reason

    def is_cancelled(self) -> bool:
        """Check whether the signal has fired."""
        return self._event.is_set()

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Block until the signal fires or ``timeout`` elapses."""
        return self._event.wait(timeout)

    def cancel(self, reason: CancelReason = CancelReason.SHUTDOWN) -> bool:
        """Raise the signal.

        Args:
            reason: Recorded only if this call is the one that fires it.

        Returns:
            True if this call fired the signal, False if it had already fired.
        """
        with self._lock:
            if self._event.is_set():
                return False
            self._reason = reason
            self._event.set()
            callbacks = self._callbacks
            self._callbacks = []
            timer = self._timer
            self._timer = None

        if timer is not None and reason is not CancelReason.TIMEOUT:
            timer.cancel()

        logger.debug(f"Cancellation raised ({reason.value})", extra={"reason": reason.value})
        for callback in callbacks:
            callback()
        return True

    def add_callback(self, callback: Callable[[], None]) -> None:
        """Register a callback run once when the signal fires.

        If the signal has already fired the callback runs immediately.
        """
        with self._lock:
            if not self._event.is_set():
                self._callbacks.append(callback)
                return
        callback()

    def remove_callback(self, callback: Callable[[], None]) -> None:
        """Unregister a callback; unknown callbacks are ignored."""
        with self._lock:
            try:
                self._callbacks.remove(callback)
            except ValueError:
                pass

    def close(self) -> None:
        """Disarm the deadline timer without raising the signal."""
        with self._lock:
            timer = self._timer
            self._timer = None
        if timer is not None:
            timer.cancel()
