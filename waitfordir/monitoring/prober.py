"""Synchronous emptiness check for a single directory."""

import os

from waitfordir.utils.exceptions import ProbeError


def dir_is_empty(path: str) -> bool:
    """Check whether a directory currently has no entries.

    Only the first entry is read. The answer is advisory: the directory may
    gain content right after this returns.

    Args:
        path: Directory to inspect.

    Returns:
        True if the directory has zero entries, False otherwise.

    Raises:
        ProbeError: If the directory cannot be opened or listed.
    """
    try:
        with os.scandir(path) as entries:
            return next(entries, None) is None
    except OSError as e:
        raise ProbeError(path, cause=e) from e
