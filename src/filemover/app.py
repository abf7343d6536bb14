import logging
import queue
from typing import Iterable, Optional

from filemover.episode.file_episode import FileEpisode
from filemover.mover.destination_locks import DestinationLocks
from filemover.mover.file_mover import FileMover
from filemover.mover.move_report import MoveReport
from filemover.mover.mover_thread import FileMoveThread
from filemover.mover.thread_factory import ProgressSinkFactory, create_file_move_thread
from filemover.startup_code.context import AppContext

logger = logging.getLogger(__name__)


class AppRunFailureError(Exception):
    """Raised when run_moves() cannot complete because its workers died."""

    pass


THREAD_JOIN_TIMEOUT = 5.0
MIN_SUPERVISE_INTERVAL_SECONDS = 0.05


def _build_movers(
    context: AppContext, episodes: Iterable[FileEpisode]
) -> list[FileMover]:
    cfg = context.config
    preferences = cfg.preferences()
    return [
        FileMover(
            episode,
            preferences=preferences,
            fs=context.fs,
            cancel_event=context.shutdown_event,
            chunk_size=cfg.copy_chunk_size_bytes,
        )
        for episode in episodes
    ]


def _start_workers(
    context: AppContext,
    move_queue: "queue.Queue[FileMover]",
    report: MoveReport,
    worker_count: int,
    progress_sink_factory: Optional[ProgressSinkFactory],
) -> list[FileMoveThread]:
    workers: list[FileMoveThread] = []
    destination_locks = DestinationLocks()
    for i in range(worker_count):
        worker = create_file_move_thread(
            index=i,
            poll_interval_seconds=context.config.move_poll_interval_seconds,
            source_queue=move_queue,
            stop_event=context.shutdown_event,
            fs=context.fs,
            report=report,
            progress_sink_factory=progress_sink_factory,
            destination_locks=destination_locks,
        )
        worker.start()
        logger.debug("Started %s", worker.name)
        workers.append(worker)
    return workers


def _stop_and_join_workers(
    context: AppContext, workers: list[FileMoveThread]
) -> None:
    context.shutdown_event.set()
    for worker in workers:
        if worker.is_alive():
            worker.join(timeout=THREAD_JOIN_TIMEOUT)
            if worker.is_alive():
                logger.warning("%s did not shut down cleanly.", worker.name)


def run_moves(
    context: AppContext,
    episodes: Iterable[FileEpisode],
    *,
    progress_sink_factory: Optional[ProgressSinkFactory] = None,
) -> MoveReport:
    """
    Moves every episode's file using a pool of worker threads.

    Returns once every move has finished or the context's shutdown event
    was set (for instance by a signal). Moves that never started are
    counted in `MoveReport.not_attempted`. The shutdown event is set on
    return, which stops the workers.

    Raises:
        AppRunFailureError: If all workers died with moves still pending.
    """
    movers = _build_movers(context, episodes)
    report = MoveReport(submitted=len(movers))
    if not movers:
        logger.info("Nothing to move.")
        return report

    move_queue: "queue.Queue[FileMover]" = queue.Queue()
    for mover in movers:
        move_queue.put(mover)

    worker_count = min(context.config.worker_count, len(movers))
    logger.info("Moving %d file(s) with %d worker(s)", len(movers), worker_count)

    supervise_interval = max(
        context.config.move_poll_interval_seconds, MIN_SUPERVISE_INTERVAL_SECONDS
    )
    workers: list[FileMoveThread] = []
    try:
        workers = _start_workers(
            context, move_queue, report, worker_count, progress_sink_factory
        )
        while report.finished < report.submitted:
            if context.shutdown_event.wait(supervise_interval):
                logger.warning(
                    "Shutdown requested with %d move(s) unfinished.",
                    report.submitted - report.finished,
                )
                break
            if not any(w.is_alive() for w in workers):
                raise AppRunFailureError(
                    f"All workers exited with {report.submitted - report.finished} move(s) pending."
                )
    finally:
        _stop_and_join_workers(context, workers)

    logger.info(
        "Finished: %d succeeded, %d failed, %d not attempted %s",
        report.succeeded,
        report.failed,
        report.not_attempted,
        report.summary(),
    )
    return report
