import logging
import threading
from pathlib import Path
from typing import Optional

from filemover.file_functions.delete_file import delete_file
from filemover.file_functions.format_size_human_readable import (
    format_size_human_readable,
)
from filemover.file_functions.fs_mock import FS
from filemover.protocols import ProgressSink

logger = logging.getLogger(__name__)

DEFAULT_CHUNK_SIZE = 32768


def _discard_partial_copy(dest_path: Path, fs: FS) -> None:
    try:
        fs.unlink(dest_path, missing_ok=True)
        logger.info("Removed incomplete copy '%s'", dest_path)
    except OSError as e:
        logger.warning("Could not remove incomplete copy '%s': %s", dest_path, e)


def copy_file_contents(
    *,
    source_path: Path,
    dest_path: Path,
    fs: FS,
    progress_sink: Optional[ProgressSink] = None,
    cancel_event: Optional[threading.Event] = None,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
) -> bool:
    """
    Streams the bytes of `source_path` into a new file at `dest_path`.

    The destination is opened in exclusive-create mode, so an existing file
    is never overwritten. After each chunk the cumulative byte count is
    reported to `progress_sink` (if bound) and `cancel_event` is checked;
    a set event stops the copy, which then counts as failed.

    When the copy does not complete, the destination file created by this
    call is removed again. The source is never modified.

    Args:
        source_path: File to read.
        dest_path: File to create.
        fs: Filesystem abstraction providing `open` and `unlink`.
        progress_sink: Optional receiver of per-chunk progress.
        cancel_event: Optional cooperative cancellation signal.
        chunk_size: Bytes read per iteration.

    Returns:
        True only if end of input was reached and every byte was written.
    """
    created_dest = False
    completed = False
    copied = 0
    try:
        with fs.open(source_path, "rb") as src:
            with fs.open(dest_path, "xb") as dst:
                created_dest = True
                while True:
                    chunk = src.read(chunk_size)
                    if not chunk:
                        completed = True
                        break
                    dst.write(chunk)
                    copied += len(chunk)
                    if progress_sink is not None:
                        progress_sink.set_progress_status(
                            format_size_human_readable(copied)
                        )
                        progress_sink.set_progress_value(copied)
                    if cancel_event is not None and cancel_event.is_set():
                        logger.warning(
                            "Copy of '%s' cancelled after %d bytes.",
                            source_path,
                            copied,
                        )
                        break
    except FileExistsError:
        logger.error(
            "Destination '%s' appeared before copy of '%s' could start.",
            dest_path,
            source_path,
        )
        completed = False
    except OSError as e:
        logger.error(
            "OSError copying '%s' to '%s' after %d bytes: %s",
            source_path,
            dest_path,
            copied,
            e,
        )
        completed = False
    except Exception:
        logger.exception(
            "Unexpected error copying '%s' to '%s' after %d bytes",
            source_path,
            dest_path,
            copied,
        )
        completed = False

    if completed:
        logger.debug("Copied %d bytes '%s' -> '%s'", copied, source_path, dest_path)
    elif created_dest:
        _discard_partial_copy(dest_path, fs)

    return completed


def copy_and_delete(
    *,
    source_path: Path,
    dest_path: Path,
    total_bytes: int,
    fs: FS,
    progress_sink: Optional[ProgressSink] = None,
    cancel_event: Optional[threading.Event] = None,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
) -> bool:
    """
    Moves a file across volumes: copies it, then deletes the original.

    The original is deleted only after a complete copy. If that deletion
    fails the whole operation is a failure even though the copy exists.
    `progress_sink.finish_progress` is called exactly once, whatever the
    outcome.

    Returns:
        True if the copy completed and the original was deleted.
    """
    if progress_sink is not None:
        progress_sink.initialize_progress(total_bytes)

    ok = False
    try:
        ok = copy_file_contents(
            source_path=source_path,
            dest_path=dest_path,
            fs=fs,
            progress_sink=progress_sink,
            cancel_event=cancel_event,
            chunk_size=chunk_size,
        )
        if ok:
            ok = delete_file(source_path, fs)
            if not ok:
                logger.error(
                    "Copied '%s' to '%s' but failed to delete original.",
                    source_path,
                    dest_path,
                )
        else:
            logger.warning("Failed to copy '%s' to '%s'", source_path, dest_path)
    finally:
        if progress_sink is not None:
            progress_sink.finish_progress(ok)

    return ok
