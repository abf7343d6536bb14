import logging
import stat
from pathlib import Path

from filemover.file_functions.fs_mock import FS

logger = logging.getLogger(__name__)


def delete_file(path: Path, fs: FS) -> bool:
    """
    Deletes a regular file and reports whether it is gone afterwards.

    The entry is checked with `fs.lstat()` first, so symlinks, directories
    and other special files are refused rather than removed or followed.
    A file that is already missing counts as deleted.

    Args:
        path: The file to delete.
        fs: An FS object providing `lstat` and `unlink`.

    Returns:
        True if the file no longer exists, False if it could not be removed.
    """
    try:
        st = fs.lstat(path)
    except FileNotFoundError:
        logger.debug("delete_file: '%s' already absent.", path)
        return True
    except OSError as e:
        logger.warning("delete_file: cannot lstat '%s': %s", path, e)
        return False

    if not stat.S_ISREG(st.st_mode):
        logger.warning(
            "delete_file: refusing to delete '%s', not a regular file (%s).",
            path,
            stat.filemode(st.st_mode),
        )
        return False

    try:
        fs.unlink(path, missing_ok=True)
    except OSError as e:
        logger.warning("delete_file: could not unlink '%s': %s", path, e)
        return False
    except Exception:
        logger.exception("delete_file: unexpected error unlinking '%s'", path)
        return False

    return True
