"""
waitfordir - Main Application
=============================

Command-line entry point and driver loop. Resolves the directories to wait
on, runs the watch orchestrator and turns its error stream, completion
event and cancellation signal into an exit code.
"""

import argparse
import sys
import threading
from queue import Queue, Empty
from typing import List, Optional, Dict

import waitfordir
from waitfordir.config import Config, WaiterConfig, parse_duration, split_directory_args
from waitfordir.monitoring import (
    CancelReason,
    CancelSignal,
    TaskOutcome,
    WatchOrchestrator,
    get_event_filter,
)
from waitfordir.monitoring.watcher import EVENT_FILTERS
from waitfordir.utils.exceptions import (
    Cancelled,
    ConfigurationError,
    TimeoutExceeded,
    WaitForDirError,
    WaitInterrupted,
)
from waitfordir.utils.logging_config import setup_logging, get_logger, LoggingConfig
from waitfordir.utils.paths import verify_dirs
from waitfordir.utils.signals import install_signal_handlers

logger = get_logger(__name__)


class DirectoryWaiter:
    """Waits until every configured directory has content.

    Owns the driver loop: drains watch errors, honours the completion
    event and reacts to cancellation (timeout, shutdown, fatal watch error).
    """

    def __init__(
        self,
        config: WaiterConfig,
        orchestrator: Optional[WatchOrchestrator] = None,
        environ: Optional[Dict[str, str]] = None,
    ):
        """Initialize the waiter.

        Args:
            config: Waiter configuration.
            orchestrator: Orchestrator to drive; a default one is created.
            environ: Environment used to resolve ``config.env_var``.
        """
        self.config = config
        self.orchestrator = orchestrator or WatchOrchestrator()
        self.environ = environ
        self.watch_errors: List[WaitForDirError] = []

    def make_cancel_signal(self) -> CancelSignal:
        """Create the run's cancellation signal, armed with the timeout if any."""
        if self.config.timeout > 0:
            return CancelSignal.with_timeout(self.config.timeout)
        return CancelSignal()

    def run(self, cancel_signal: Optional[CancelSignal] = None) -> Dict[str, int]:
        """Block until all directories have content.

        Args:
            cancel_signal: Cancellation shared with signal handlers. Created
                from the config when omitted.

        Returns:
            Count of directories per outcome.

        Raises:
            NoDirectoriesError: If no directories were configured.
            InvalidDirectoryError: If a path is missing or not a directory.
            ProbeError: If a directory cannot be listed.
            SubscriptionError: On a watch error with exit_on_watch_failure.
            TimeoutExceeded: If the deadline passed first.
            Cancelled: If a shutdown was requested first.
        """
        paths = self.config.resolve_paths(self.environ)
        logger.info("Directories to watch", extra={"dirs": paths})
        verify_dirs(paths)
        predicate = get_event_filter(self.config.event_filter)

        if cancel_signal is None:
            cancel_signal = self.make_cancel_signal()

        try:
            errors = self.orchestrator.start(paths, cancel_signal, predicate)
            done = self.orchestrator.wait()
            self._drive(errors, done, cancel_signal)
        finally:
            self._release(cancel_signal)

        summary = self.orchestrator.summary()
        if self.watch_errors:
            failed = [path for path, outcome in self.orchestrator.outcomes()
                      if outcome is TaskOutcome.FAILED]
            logger.warning(f"Finished with {len(failed)} failed watch(es): {failed}")
        logger.info(f"All done: {summary}")
        return summary

    def _drive(self, errors: Queue, done: threading.Event, cancel_signal: CancelSignal) -> None:
        """Multiplex the error stream, completion and cancellation."""
        while True:
            try:
                error = errors.get(timeout=self.config.poll_interval)
            except Empty:
                error = None

            if error is not None:
                self._on_watch_error(error, done, cancel_signal)
                continue

            if done.is_set():
                self._drain(errors, done, cancel_signal)
                if self._was_interrupted():
                    raise self._interruption(cancel_signal)
                return

            if cancel_signal.is_cancelled():
                done.wait()
                self._drain(errors, done, cancel_signal)
                if self._was_interrupted():
                    raise self._interruption(cancel_signal)
                return

    def _drain(self, errors: Queue, done: threading.Event, cancel_signal: CancelSignal) -> None:
        while True:
            try:
                error = errors.get_nowait()
            except Empty:
                return
            self._on_watch_error(error, done, cancel_signal)

    def _on_watch_error(
        self,
        error: WaitForDirError,
        done: threading.Event,
        cancel_signal: CancelSignal,
    ) -> None:
        self.watch_errors.append(error)
        logger.error(
            f"Watch error: {error}",
            extra={
                "directory": getattr(error, "directory", None),
                "error_code": error.error_code.name,
            },
        )
        if self.config.exit_on_watch_failure:
            logger.warning("Set to exit on watch failure, bailing out")
            cancel_signal.cancel(CancelReason.WATCH_FAILURE)
            done.wait()
            raise error

    def _was_interrupted(self) -> bool:
        return any(task.outcome is TaskOutcome.CANCELLED for task in self.orchestrator.tasks)

    def _interruption(self, cancel_signal: CancelSignal) -> WaitInterrupted:
        if cancel_signal.reason is CancelReason.TIMEOUT:
            timeout = cancel_signal.timeout or self.config.timeout
            logger.warning(f"Timed out after {timeout:g}s", extra={"reason": "timeout"})
            return TimeoutExceeded(timeout)
        return Cancelled()

    def _release(self, cancel_signal: CancelSignal) -> None:
        """Make sure no watch task outlives the run."""
        cancel_signal.close()
        if not self.orchestrator.started:
            return
        done = self.orchestrator.wait()
        if not done.is_set():
            cancel_signal.cancel(CancelReason.ABORTED)
            done.wait()


def build_parser() -> argparse.ArgumentParser:
    """Build the command-line parser."""
    parser = argparse.ArgumentParser(
        prog="waitfordir",
        description="Wait until given directories are not empty",
    )
    parser.add_argument(
        '--directories', '-d',
        action='append',
        metavar='PATH',
        help='Directories to watch. Separate by commas, or specify multiple times.'
    )
    parser.add_argument(
        '--env-var', '-e',
        metavar='VARIABLE',
        help='Environment variable to get paths from. Values should be colon separated.'
    )
    parser.add_argument(
        '--timeout', '-t',
        metavar='DURATION',
        help='How long to wait before giving up (e.g. 30s, 1m30s). 0 means wait forever.'
    )
    parser.add_argument(
        '--exit-on-watch-failure', '-x',
        action='store_true',
        default=None,
        help='Exit with error if a watch failure happens'
    )
    parser.add_argument(
        '--event-filter', '-f',
        choices=sorted(EVENT_FILTERS),
        help='Which filesystem events count as content appearing (default: create-write)'
    )
    parser.add_argument(
        '--config', '-c',
        metavar='FILE',
        help='YAML config file with defaults'
    )
    parser.add_argument(
        '--log-level',
        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
        type=str.upper,
        help='Log level (default: INFO)'
    )
    parser.add_argument(
        '--log-json',
        action='store_true',
        default=None,
        help='Emit JSON log lines'
    )
    parser.add_argument(
        '--version',
        action='version',
        version=f"%(prog)s {waitfordir.__version__}"
    )
    return parser


def load_config(args: argparse.Namespace) -> Config:
    """Load the config file and apply command-line overrides.

    Raises:
        ConfigurationError: If the file or a flag value is invalid.
    """
    config = Config.load(args.config)
    waiter = config.waiter

    if args.directories:
        waiter.directories = split_directory_args(args.directories)
    if args.env_var is not None:
        waiter.env_var = args.env_var
    if args.timeout is not None:
        waiter.timeout = parse_duration(args.timeout)
    if args.exit_on_watch_failure:
        waiter.exit_on_watch_failure = True
    if args.event_filter:
        waiter.event_filter = args.event_filter

    if args.log_level:
        config.logging.level = args.log_level
    if args.log_json:
        config.logging.json_format = True
    return config


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point with CLI support.

    Returns:
        Process exit code.
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        config = load_config(args)
    except ConfigurationError as e:
        setup_logging(LoggingConfig(level=args.log_level or "INFO", json_format=bool(args.log_json)))
        logger.critical(str(e), extra={"error_code": e.error_code.name})
        return 1

    setup_logging(config.logging)

    waiter = DirectoryWaiter(config.waiter)
    cancel_signal = waiter.make_cancel_signal()
    restore_signals = install_signal_handlers(cancel_signal)
    try:
        waiter.run(cancel_signal)
    except Cancelled as e:
        logger.info(f"Stopped before all directories had content: {e.message}")
        return 0
    except WaitForDirError as e:
        logger.critical(str(e), extra={"error_code": e.error_code.name})
        return 1
    finally:
        restore_signals()
    return 0


if __name__ == "__main__":
    sys.exit(main())
