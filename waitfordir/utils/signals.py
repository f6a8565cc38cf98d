"""OS signal registration feeding a cancellation signal."""

import signal
import threading
from queue import SimpleQueue
from typing import Callable, List

from waitfordir.monitoring.cancellation import CancelReason, CancelSignal
from waitfordir.utils.logging_config import get_logger

logger = get_logger(__name__)


def shutdown_signals() -> List[signal.Signals]:
    """Signals that request a graceful shutdown on this platform."""
    names = ("SIGINT", "SIGTERM", "SIGQUIT")
    return [getattr(signal, name) for name in names if hasattr(signal, name)]


def install_signal_handlers(cancel_signal: CancelSignal) -> Callable[[], None]:
    """Route shutdown signals to ``cancel_signal``.

    The handler itself only records the signal; a dispatcher thread logs it
    and raises the cancellation. The main thread may be holding the signal's
    lock (or a logging handler's) when the handler runs, so the handler
    must not take either.

    Must be called from the main thread.

    Args:
        cancel_signal: Raised with CancelReason.SHUTDOWN on the first signal.

    Returns:
        A function that restores the previous handlers and stops the
        dispatcher.
    """
    pending: SimpleQueue = SimpleQueue()

    def dispatch() -> None:
        while True:
            name = pending.get()
            if name is None:
                return
            logger.info("Got signal, exiting", extra={"signal": name})
            cancel_signal.cancel(CancelReason.SHUTDOWN)

    dispatcher = threading.Thread(target=dispatch, daemon=True, name="SignalDispatcher")
    dispatcher.start()

    def handler(signum, frame):
        # SimpleQueue.put is reentrant
        pending.put(signal.Signals(signum).name)

    previous = {}
    for sig in shutdown_signals():
        previous[sig] = signal.signal(sig, handler)

    def restore() -> None:
        for sig, old in previous.items():
            signal.signal(sig, old if old is not None else signal.SIG_DFL)
        pending.put(None)
        dispatcher.join(timeout=5.0)

    return restore
