import logging
from pathlib import Path
from typing import Optional

from filemover.file_functions.fs_mock import FS

logger = logging.getLogger(__name__)


def versioned_filename(basename: str, index: int, suffix: str) -> str:
    """Returns the filename used for the `index`-th duplicate, e.g. 'Show (2).mkv'."""
    return f"{basename} ({index}){suffix}"


def find_available_version(
    *,
    dest_dir: Path,
    basename: str,
    suffix: str,
    fs: FS,
    limit: int = 100,
) -> Optional[int]:
    """
    Finds the lowest version index whose versioned filename is free.

    Candidates 'basename (1)suffix', 'basename (2)suffix', ... are checked
    with fs.exists() inside `dest_dir`. A `dest_dir` that does not exist yet
    makes index 1 available.

    Args:
        dest_dir: Directory the versioned file will be placed in.
        basename: Desired filename without suffix.
        suffix: Filename suffix including its dot (may be empty).
        fs: The FS object providing .exists().
        limit: Max number of indices to try before giving up.

    Returns:
        The first free index, or None if the limit was reached or an
        OS/other error occurred during an existence check.
    """
    index = 1
    while index <= limit:
        candidate = dest_dir / versioned_filename(basename, index, suffix)
        try:
            if not fs.exists(candidate):
                logger.debug(
                    "Version %d is free for '%s%s' in '%s'.",
                    index,
                    basename,
                    suffix,
                    dest_dir,
                )
                return index
        except OSError as e_os:
            logger.error(
                "OSError checking existence of candidate '%s': %s. Aborting search.",
                candidate,
                e_os,
            )
            return None
        except Exception:
            logger.exception(
                "Unexpected error checking existence of candidate '%s'. Aborting search.",
                candidate,
            )
            return None

        index += 1

    logger.error(
        "Could not find a free version for '%s%s' in '%s' within %d attempts.",
        basename,
        suffix,
        dest_dir,
        limit,
    )
    return None
