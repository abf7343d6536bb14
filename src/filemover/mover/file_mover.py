import logging
import threading
import time
from pathlib import Path
from typing import Optional

from filemover.file_functions.ensure_writable_directory import (
    ensure_writable_directory,
)
from filemover.file_functions.find_available_version import versioned_filename
from filemover.file_functions.fs_mock import FS
from filemover.file_functions.remove_while_empty import remove_while_empty
from filemover.file_functions.same_disk import are_same_disk
from filemover.file_functions.stream_copy import DEFAULT_CHUNK_SIZE, copy_and_delete
from filemover.mover.move_audit_event import create_move_audit_event
from filemover.mover.move_status import MoveStatus
from filemover.mover.preferences import MovePreferences
from filemover.protocols import EpisodeRecord, ProgressSink

logger = logging.getLogger(__name__)


class MoveAbortedError(Exception):
    """
    Raised by the steps of a move to end it early. Carries the terminal
    status the move should finish with and a message describing the cause.
    """

    def __init__(self, status: MoveStatus, message: str):
        super().__init__(message)
        self.status = status


class FileMover:
    """
    Moves the file of one episode record to its destination.

    Calling the instance runs the whole operation and returns True on
    success. No exception escapes the call: each failure is logged,
    mapped to a terminal MoveStatus (available afterwards as `status`)
    and reflected in the episode record's lifecycle state.

    A FileMover is meant to be called once, typically from a worker
    thread; it holds no locks of its own.
    """

    def __init__(
        self,
        episode: EpisodeRecord,
        *,
        preferences: MovePreferences,
        fs: FS,
        cancel_event: Optional[threading.Event] = None,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
    ):
        """
        Args:
            episode: The record of the file to move. Its destination
                     directory, basename and suffix are read here; its
                     current path is read when the move runs.
            preferences: The move preferences in effect for this move.
            fs: Filesystem abstraction used for every operation.
            cancel_event: Optional signal that aborts a cross-volume copy
                          at the next chunk boundary.
            chunk_size: Copy buffer size in bytes.
        """
        self.episode = episode
        self.preferences = preferences
        self.fs = fs
        self.cancel_event = cancel_event
        self.chunk_size = chunk_size

        self.dest_root: Path = episode.get_move_to_path()
        self.dest_basename: str = episode.get_destination_basename()
        self.dest_suffix: str = episode.get_filename_suffix()
        self.dest_index: Optional[int] = None

        self.status = MoveStatus.UNCHECKED
        self.progress_sink: Optional[ProgressSink] = None
        self.final_path: Optional[Path] = None
        self._intended_dest: Optional[Path] = None

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"source={self.get_current_path()!s}, "
            f"dest_dir={self.get_move_to_directory()}, "
            f"dest_name={self.get_desired_dest_name()}, "
            f"dest_index={self.dest_index}, "
            f"status={self.status.name})"
        )

    # --- Accessors used for display before the move runs ---

    def add_observer(self, sink: Optional[ProgressSink]) -> None:
        self.progress_sink = sink

    def get_current_path(self) -> Path:
        return self.episode.get_path()

    def get_file_size(self) -> int:
        return self.episode.get_file_size()

    def get_desired_dest_name(self) -> str:
        """
        The filename we want the file to end up with. A version index may
        still be added if this name is taken.
        """
        return self.dest_basename + self.dest_suffix

    def get_plain_destination(self) -> Path:
        """The destination path before any version index is applied."""
        return self.dest_root / self.get_desired_dest_name()

    def get_move_to_directory(self) -> str:
        return str(self.dest_root)

    # --- Steps ---

    def _destination_dir_and_name(self) -> tuple[Path, str]:
        if self.dest_index is None:
            return self.dest_root, self.get_desired_dest_name()

        dest_dir = self.dest_root
        if self.preferences.move_enabled:
            dest_dir = self.dest_root / self.preferences.duplicates_dir_name
        filename = versioned_filename(
            self.dest_basename, self.dest_index, self.dest_suffix
        )
        return dest_dir, filename

    def _real_source(self, src_path: Path) -> Path:
        if not self.fs.exists(src_path):
            raise MoveAbortedError(
                MoveStatus.FILE_MISSING, f"Path no longer exists: '{src_path}'"
            )
        try:
            return self.fs.resolve(src_path, strict=True)
        except OSError as e:
            raise MoveAbortedError(
                MoveStatus.FAIL_TO_MOVE,
                f"Could not get real path of '{src_path}': {e}",
            ) from e

    def _real_destination_dir(self, dest_dir: Path) -> Path:
        if not ensure_writable_directory(dest_dir, self.fs):
            raise MoveAbortedError(
                MoveStatus.FAIL_TO_MOVE,
                f"Destination directory '{dest_dir}' is not usable.",
            )
        try:
            return self.fs.resolve(dest_dir, strict=True)
        except OSError as e:
            raise MoveAbortedError(
                MoveStatus.FAIL_TO_MOVE,
                f"Could not get real path of '{dest_dir}': {e}",
            ) from e

    def _rename(self, real_src: Path, dest_path: Path) -> tuple[MoveStatus, Path]:
        ok = False
        try:
            # A file may have appeared since the collision check; rename
            # would silently replace it.
            if self.fs.exists(dest_path):
                raise MoveAbortedError(
                    MoveStatus.FAIL_TO_MOVE,
                    f"Destination '{dest_path}' appeared before rename.",
                )
            actual_dest = self.fs.rename(real_src, dest_path)
            ok = True
        except OSError as e:
            raise MoveAbortedError(
                MoveStatus.FAIL_TO_MOVE,
                f"Unable to rename '{real_src}' to '{dest_path}': {e}",
            ) from e
        finally:
            if self.progress_sink is not None:
                self.progress_sink.finish_progress(ok)

        if actual_dest == dest_path:
            return MoveStatus.RENAMED, actual_dest

        logger.warning(
            "Actual destination did not match intended:\n  %s\n  %s",
            actual_dest,
            dest_path,
        )
        return MoveStatus.MISNAMED, actual_dest

    def _copy(self, real_src: Path, dest_path: Path) -> tuple[MoveStatus, Path]:
        logger.info("Different disks: '%s' and '%s'", real_src, dest_path)
        copied = copy_and_delete(
            source_path=real_src,
            dest_path=dest_path,
            total_bytes=self.episode.get_file_size(),
            fs=self.fs,
            progress_sink=self.progress_sink,
            cancel_event=self.cancel_event,
            chunk_size=self.chunk_size,
        )
        if not copied:
            raise MoveAbortedError(
                MoveStatus.FAIL_TO_MOVE,
                f"Copy-and-delete of '{real_src}' to '{dest_path}' failed.",
            )
        return MoveStatus.COPIED, dest_path

    def _do_actual_move(
        self, real_src: Path, dest_path: Path, try_rename: bool
    ) -> MoveStatus:
        """
        Performs the physical move, then records the new path on the episode
        and stamps the file's modification time with the current time.
        """
        logger.debug("Going to move\n  '%s'\n  '%s'", real_src, dest_path)
        if try_rename:
            status, actual_dest = self._rename(real_src, dest_path)
        else:
            status, actual_dest = self._copy(real_src, dest_path)

        self.final_path = actual_dest
        self.episode.set_path(actual_dest)

        # Downstream consumers key freshness off mtime, so a moved file is
        # always stamped "now".
        try:
            self.fs.utime(actual_dest, None)
        except OSError as e:
            raise MoveAbortedError(
                MoveStatus.FAIL_TO_MOVE,
                f"Moved to '{actual_dest}' but unable to set modification time: {e}",
            ) from e

        return status

    def _try_to_move_file(self) -> MoveStatus:
        src_path = self.episode.get_path()
        real_src = self._real_source(src_path)
        self.status = MoveStatus.UNMOVED

        dest_dir, filename = self._destination_dir_and_name()
        # Audited as-is if the directory cannot be prepared; replaced by the
        # canonical path once it exists.
        self._intended_dest = dest_dir / filename
        real_dest_dir = self._real_destination_dir(dest_dir)

        dest_path = real_dest_dir / filename
        self._intended_dest = dest_path
        if self.fs.exists(dest_path):
            if dest_path == real_src:
                logger.info("Nothing to be done to '%s'", src_path)
                self.final_path = dest_path
                return MoveStatus.ALREADY_IN_PLACE
            raise MoveAbortedError(
                MoveStatus.FAIL_TO_MOVE,
                f"Cannot move; destination exists: '{dest_path}'",
            )

        self.episode.set_moving()
        src_dir = real_src.parent
        try_rename = are_same_disk(src_dir, real_dest_dir, self.fs)

        status = self._do_actual_move(real_src, dest_path, try_rename)

        logger.info("Successful:\n  %s\n  %s", real_src, self.final_path)
        if self.preferences.remove_emptied_directories:
            remove_while_empty(src_dir, self.fs)
        return status

    # --- Entry point ---

    def __call__(self) -> bool:
        """
        Runs the move.

        Returns:
            True if the file is at its destination (ALREADY_IN_PLACE,
            RENAMED, MISNAMED or COPIED), False otherwise.
        """
        if self.status is not MoveStatus.UNCHECKED:
            logger.warning("FileMover already ran (status %s): %r", self.status.name, self)
            return self.status.is_success

        src_path = self.episode.get_path()
        started = time.monotonic()
        failure_detail: Optional[str] = None
        try:
            status = self._try_to_move_file()
        except MoveAbortedError as e:
            status = e.status
            failure_detail = str(e)
            if status is MoveStatus.FILE_MISSING:
                logger.info("%s", e)
            else:
                logger.warning("Failed to move '%s': %s", src_path, e)
        except Exception as e:
            logger.exception("Unexpected error moving '%s'", src_path)
            status = MoveStatus.FAIL_TO_MOVE
            failure_detail = f"{type(e).__name__}: {e}"

        self.status = status

        if status is MoveStatus.FILE_MISSING:
            self.episode.set_does_not_exist()
        elif status.is_success:
            self.episode.set_renamed()
        else:
            self.episode.set_fail_to_move()

        try:
            size: Optional[int] = self.episode.get_file_size()
        except Exception as e:
            logger.debug("File size unavailable for audit of '%s': %s", src_path, e)
            size = None
        create_move_audit_event(
            status=status,
            source=src_path,
            destination=self.final_path or self._intended_dest,
            file_size_bytes=size,
            duration_ms=(time.monotonic() - started) * 1000,
            failure_detail=failure_detail,
        )

        return status.is_success
