from typing import Protocol, Callable, runtime_checkable
from pathlib import Path

from filemover.file_functions.fs_mock import FS

__all__ = ["FS", "EpisodeRecord", "ProgressSink", "SleepCallable"]


# --- Move Collaborator Protocols ---


@runtime_checkable
class EpisodeRecord(Protocol):
    """
    The record of one file being relocated.

    It holds where the file currently is, where it should go, and a
    lifecycle state that observers (UI, reporting) may read from other
    threads while a move is in progress.
    """

    def get_path(self) -> Path:
        """Current location of the file."""
        ...

    def set_path(self, path: Path) -> None:
        """Records the file's new location after a physical move."""
        ...

    def get_file_size(self) -> int: ...

    def get_destination_basename(self) -> str:
        """Desired filename without suffix, e.g. 'Show S01E01'."""
        ...

    def get_filename_suffix(self) -> str:
        """Filename suffix including its dot, e.g. '.mkv'."""
        ...

    def get_move_to_path(self) -> Path:
        """Directory the file should be placed in."""
        ...

    def set_moving(self) -> None: ...

    def set_renamed(self) -> None: ...

    def set_does_not_exist(self) -> None: ...

    def set_fail_to_move(self) -> None: ...


@runtime_checkable
class ProgressSink(Protocol):
    """
    Receives progress of a single move. Any object with these four methods
    can be bound to a FileMover; binding one is optional.
    """

    def initialize_progress(self, total_bytes: int) -> None: ...

    def set_progress_status(self, status: str) -> None:
        """Human-readable amount copied so far, e.g. '12.50 MB'."""
        ...

    def set_progress_value(self, value: int) -> None:
        """Cumulative bytes copied so far."""
        ...

    def finish_progress(self, success: bool) -> None: ...


# --- Timing/Concurrency Related Type Aliases ---

SleepCallable = Callable[[float], None]
"""Type alias for a callable matching the signature of time.sleep."""
