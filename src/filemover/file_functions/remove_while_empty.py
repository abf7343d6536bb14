import logging
from pathlib import Path

from filemover.file_functions.fs_mock import FS

logger = logging.getLogger(__name__)


def remove_while_empty(directory: Path, fs: FS) -> int:
    """
    Removes `directory` if it is empty, then each parent in turn while that
    parent has become empty too.

    The walk stops at the first ancestor that still has entries, at the
    filesystem root, or at the first error. Errors are logged and swallowed:
    leaving an empty directory behind does not affect the move that
    triggered the cleanup.

    Args:
        directory: The directory to start from, normally the parent of a
                   file that was just moved away.
        fs: The filesystem abstraction instance.

    Returns:
        The number of directories removed.
    """
    removed = 0
    current = directory
    while True:
        try:
            if not fs.is_dir(current):
                break
            if fs.listdir(current):
                logger.debug("Directory '%s' is not empty; stopping cleanup.", current)
                break
            fs.rmdir(current)
        except OSError as e:
            logger.debug("Could not remove directory '%s': %s", current, e)
            break

        logger.info("Removed emptied directory '%s'", current)
        removed += 1

        parent = current.parent
        if parent == current:
            break
        current = parent

    return removed
