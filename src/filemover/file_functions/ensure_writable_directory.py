import logging
import os
from pathlib import Path

from filemover.file_functions.fs_mock import FS

logger = logging.getLogger(__name__)


def ensure_writable_directory(path: Path, fs: FS) -> bool:
    """
    Makes sure `path` is an existing directory this process can write into.

    Creates the directory, along with any missing ancestors, if it does not
    exist. A path that exists but is not a directory is rejected.

    Args:
        path: The directory path to ensure.
        fs: The filesystem abstraction instance.

    Returns:
        True if the directory exists (or was created) and is writable.
        False otherwise; the reason is logged.
    """
    try:
        if fs.exists(path):
            if not fs.is_dir(path):
                logger.warning(
                    "Destination '%s' exists but is not a directory.", path
                )
                return False
        else:
            logger.info("Creating destination directory '%s'", path)
            fs.mkdir(path, parents=True, exist_ok=True)

        if not fs.access(path, os.W_OK):
            logger.warning("Destination directory '%s' is not writable.", path)
            return False

        return True

    except PermissionError as e:
        logger.warning("Permission denied ensuring directory '%s': %s", path, e)
        return False
    except OSError as e:
        logger.warning("OSError ensuring directory '%s': %s", path, e)
        return False
    except Exception:
        logger.exception("Unexpected error ensuring directory '%s'", path)
        return False
