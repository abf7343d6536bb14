import logging
import threading
from enum import Enum
from pathlib import Path
from typing import Optional

from filemover.file_functions.fs_mock import FS

logger = logging.getLogger(__name__)


class FileStatus(Enum):
    """Lifecycle of a file as seen by observers of a FileEpisode."""

    PENDING = "pending"
    MOVING = "moving"
    RENAMED = "renamed"
    DOES_NOT_EXIST = "does_not_exist"
    FAIL_TO_MOVE = "fail_to_move"


class FileEpisode:
    """
    Thread-safe record of one file to relocate.

    A single mover thread writes the path and lifecycle state; any number
    of other threads may read them. Every access goes through a lock so a
    reader never observes a half-published value.
    """

    def __init__(
        self,
        path: Path,
        *,
        move_to_path: Path,
        destination_basename: Optional[str] = None,
        filename_suffix: Optional[str] = None,
        fs: Optional[FS] = None,
    ):
        """
        Args:
            path: Where the file currently is.
            move_to_path: Directory the file should be moved into.
            destination_basename: Desired filename without suffix; defaults
                                  to the current stem.
            filename_suffix: Suffix including its dot; defaults to the
                             current suffix.
            fs: Filesystem abstraction used to read the file size.
        """
        self._lock = threading.Lock()
        self._fs = fs if fs is not None else FS()
        self._path = Path(path)
        self._state = FileStatus.PENDING
        self._move_to_path = Path(move_to_path)
        self._destination_basename = (
            destination_basename
            if destination_basename is not None
            else self._path.stem
        )
        self._filename_suffix = (
            filename_suffix if filename_suffix is not None else self._path.suffix
        )
        self._file_size = 0
        self._refresh_size(self._path)

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}(path={self.get_path()!s}, "
            f"state={self.get_state().name})"
        )

    def _refresh_size(self, path: Path) -> int:
        try:
            size = self._fs.stat(path).st_size
        except OSError as e:
            logger.debug("Could not stat '%s' for size: %s", path, e)
            with self._lock:
                return self._file_size
        with self._lock:
            self._file_size = size
            return size

    # --- Read side ---

    def get_path(self) -> Path:
        with self._lock:
            return self._path

    def get_state(self) -> FileStatus:
        with self._lock:
            return self._state

    def get_file_size(self) -> int:
        """Size of the file at its current path; last known size if unreadable."""
        return self._refresh_size(self.get_path())

    def get_destination_basename(self) -> str:
        return self._destination_basename

    def get_filename_suffix(self) -> str:
        return self._filename_suffix

    def get_move_to_path(self) -> Path:
        return self._move_to_path

    # --- Write side ---

    def set_path(self, path: Path) -> None:
        with self._lock:
            self._path = Path(path)

    def _set_state(self, state: FileStatus) -> None:
        with self._lock:
            self._state = state

    def set_moving(self) -> None:
        self._set_state(FileStatus.MOVING)

    def set_renamed(self) -> None:
        self._set_state(FileStatus.RENAMED)

    def set_does_not_exist(self) -> None:
        self._set_state(FileStatus.DOES_NOT_EXIST)

    def set_fail_to_move(self) -> None:
        self._set_state(FileStatus.FAIL_TO_MOVE)
