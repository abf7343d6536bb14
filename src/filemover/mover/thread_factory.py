import logging
import threading
import time
from queue import Queue
from typing import Callable, Optional

from filemover.file_functions.fs_mock import FS
from filemover.mover.assign_version_index import assign_version_index
from filemover.mover.destination_locks import DestinationLocks
from filemover.mover.file_mover import FileMover
from filemover.mover.move_report import MoveReport
from filemover.mover.mover_thread import FileMoveThread
from filemover.protocols import ProgressSink, SleepCallable

logger = logging.getLogger(__name__)

ProgressSinkFactory = Callable[[FileMover], Optional[ProgressSink]]


def create_file_move_thread(
    *,
    index: int,
    poll_interval_seconds: float,
    source_queue: "Queue[FileMover]",
    stop_event: threading.Event,
    fs: FS,
    report: MoveReport,
    progress_sink_factory: Optional[ProgressSinkFactory] = None,
    destination_locks: Optional[DestinationLocks] = None,
    sleep_func: Optional[SleepCallable] = None,
) -> FileMoveThread:
    """
    Construct a FileMoveThread with its per-task callback.

    For each FileMover taken from the queue the callback binds a progress
    sink from `progress_sink_factory` (if given). Then, holding the lock of
    the mover's plain destination, it assigns a version index if that name
    is taken and runs the move. Finally it records the terminal status in
    `report`.

    Args:
        index: Worker number, used in the thread name.
        poll_interval_seconds: How often the thread re-checks stop_event
                               while the queue is empty.
        source_queue: Shared queue of FileMover tasks.
        stop_event: Shared event that stops the worker.
        fs: Filesystem abstraction used for version assignment.
        report: Shared tally the outcome of every task is added to.
        progress_sink_factory: Optional callable building a sink per task.
        destination_locks: Per-destination locks shared with the other
                           workers of the run. A private set is created
                           if omitted.
        sleep_func: Sleep used by the thread after queue errors.

    Returns:
        A configured FileMoveThread instance (daemon, not yet started).
    """
    thread_name = f"FileMover-{index}"
    final_sleep_func = time.sleep if sleep_func is None else sleep_func
    locks = DestinationLocks() if destination_locks is None else destination_locks

    def process_single_item(mover: FileMover) -> None:
        try:
            if progress_sink_factory is not None:
                mover.add_observer(progress_sink_factory(mover))

            with locks.lock_for(mover.get_plain_destination()):
                assign_version_index(mover, fs)
                ok = mover()

            if ok:
                logger.debug(
                    "%s: '%s' finished as %s",
                    thread_name,
                    mover.get_desired_dest_name(),
                    mover.status.name,
                )
            else:
                logger.warning(
                    "%s: Failed to move '%s' (%s). See previous logs for details.",
                    thread_name,
                    mover.get_current_path(),
                    mover.status.name,
                )
        except Exception as e:
            logger.exception(
                "%s: Unexpected critical error processing %r: %s",
                thread_name,
                mover,
                e,
            )
        finally:
            report.record(mover)

    return FileMoveThread(
        source_queue=source_queue,
        process_single=process_single_item,
        stop_event=stop_event,
        sleep_func=final_sleep_func,
        name=thread_name,
        poll_interval=poll_interval_seconds,
    )
