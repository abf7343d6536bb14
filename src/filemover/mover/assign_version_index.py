import logging
from typing import Optional

from filemover.file_functions.find_available_version import find_available_version
from filemover.file_functions.fs_mock import FS
from filemover.mover.file_mover import FileMover

logger = logging.getLogger(__name__)


def assign_version_index(mover: FileMover, fs: FS) -> Optional[int]:
    """
    Gives `mover` a version index when its plain destination name is taken
    by a different file.

    Nothing is changed if the mover already has an index, if the plain name
    is free, or if the plain destination already is the source file (the
    move will then finish as ALREADY_IN_PLACE).

    Args:
        mover: The task about to run.
        fs: Filesystem abstraction used for the existence checks.

    Returns:
        The index now set on the mover, or None if it still has none.
    """
    if mover.dest_index is not None:
        return mover.dest_index

    plain_dest = mover.get_plain_destination()
    try:
        if not fs.exists(plain_dest):
            return None
        if fs.resolve(plain_dest, strict=False) == fs.resolve(
            mover.get_current_path(), strict=False
        ):
            return None
    except OSError as e:
        logger.warning(
            "Could not check destination '%s' for a collision: %s", plain_dest, e
        )
        return None

    dest_dir = mover.dest_root
    if mover.preferences.move_enabled:
        dest_dir = dest_dir / mover.preferences.duplicates_dir_name

    index = find_available_version(
        dest_dir=dest_dir,
        basename=mover.dest_basename,
        suffix=mover.dest_suffix,
        fs=fs,
    )
    if index is None:
        logger.error(
            "No free version for '%s' in '%s'; the move will fail on the collision.",
            mover.get_desired_dest_name(),
            dest_dir,
        )
        return None

    logger.info(
        "'%s' is taken; using version %d in '%s'",
        plain_dest,
        index,
        dest_dir,
    )
    mover.dest_index = index
    return index
