"""Pre-flight checks for the directories handed to waitfordir."""

import os
import stat
from typing import Sequence

from waitfordir.utils.exceptions import InvalidDirectoryError, NoDirectoriesError


def dir_exists(path: str) -> bool:
    """Check whether a path names an existing directory.

    A stat failure other than "not found" (e.g. permission denied on a
    parent) counts as existing, so that probing reports the real error.

    Args:
        path: Path to check.

    Returns:
        True if the path should be treated as an existing directory.
    """
    path = path.strip()
    if not path:
        return False
    try:
        info = os.stat(path)
    except FileNotFoundError:
        return False
    except OSError:
        return True
    return stat.S_ISDIR(info.st_mode)


def verify_dirs(paths: Sequence[str]) -> None:
    """Validate the directory set before any watching begins.

    Args:
        paths: Directories to watch.

    Raises:
        NoDirectoriesError: If no directories were given.
        InvalidDirectoryError: If any path is missing or not a directory.
    """
    if not paths:
        raise NoDirectoriesError()
    for path in paths:
        if not dir_exists(path):
            raise InvalidDirectoryError(path)
