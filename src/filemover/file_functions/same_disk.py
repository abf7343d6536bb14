import logging
import os
from pathlib import Path

from filemover.file_functions.fs_mock import FS

logger = logging.getLogger(__name__)


def get_device(path: Path, fs: FS) -> int:
    """
    Gets the device ID for the given path using the injected FS object.

    Args:
        path: The path to check. It is followed if it is a symlink.
        fs: The filesystem interface object.

    Returns:
        The device ID (st_dev) as an integer.

    Raises:
        OSError: Propagates errors from fs.stat (FileNotFoundError,
                 PermissionError, ...).
    """
    stat_result: os.stat_result = fs.stat(path)
    return stat_result.st_dev


def are_same_disk(path_a: Path, path_b: Path, fs: FS) -> bool:
    """
    Reports whether two paths live on the same storage volume.

    The comparison uses the device identifier of each path rather than any
    string prefix, so symlinks and mount points are handled correctly.
    If either device cannot be determined the paths are reported as being
    on different disks, which routes the caller to copy-and-delete instead
    of an unsupported rename.

    Args:
        path_a: First path (file or directory).
        path_b: Second path (file or directory).
        fs: The filesystem interface object.

    Returns:
        True only if both devices were read and are equal.
    """
    try:
        dev_a = get_device(path_a, fs=fs)
        dev_b = get_device(path_b, fs=fs)
    except FileNotFoundError:
        logger.debug(
            "Cannot compare devices, path missing ('%s', '%s'); assuming different disks.",
            path_a,
            path_b,
        )
        return False
    except OSError as e:
        logger.warning(
            "OSError comparing devices of '%s' and '%s': %s. Assuming different disks.",
            path_a,
            path_b,
            e,
        )
        return False
    except Exception:
        logger.exception(
            "Unexpected error comparing devices of '%s' and '%s'. Assuming different disks.",
            path_a,
            path_b,
        )
        return False

    same = dev_a == dev_b
    logger.debug(
        "Device check: '%s' (dev %d) vs '%s' (dev %d) -> same=%s",
        path_a,
        dev_a,
        path_b,
        dev_b,
        same,
    )
    return same
