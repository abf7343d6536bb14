import logging
import threading
import time
from queue import Queue, Empty
from typing import Callable, Optional

from filemover.mover.file_mover import FileMover

logger = logging.getLogger(__name__)


class FileMoveThread(threading.Thread):
    """
    Worker thread that takes FileMover tasks from a shared queue and hands
    each one to `process_single`. Queue polling, shutdown and task_done
    bookkeeping live here; what happens to a task does not.
    """

    def __init__(
        self,
        *,
        source_queue: "Queue[FileMover]",
        process_single: Callable[[FileMover], None],
        stop_event: threading.Event,
        poll_interval: float,
        sleep_func: Callable[[float], None] = time.sleep,
        name: Optional[str] = None,
    ):
        """
        Args:
            source_queue: Queue of FileMover tasks, shared between workers.
            process_single: Callable that runs one task (returns None).
            stop_event: Set to make the thread exit after its current task.
            poll_interval: Seconds to block on the queue before re-checking
                           stop_event.
            sleep_func: Back-off sleep after a queue error (injectable).
            name: Optional thread name; defaults to 'FileMoveThread'.
        """
        super().__init__(daemon=True, name=name or "FileMoveThread")
        self.source_queue = source_queue
        self.process_single = process_single
        self.stop_event = stop_event
        self.poll_interval = poll_interval
        self.sleep_func = sleep_func
        self.processed_count = 0

    def run(self) -> None:
        logger.info("%s starting", self.name)

        while not self.stop_event.is_set():
            try:
                task = self.source_queue.get(block=True, timeout=self.poll_interval)
            except Empty:
                continue
            except Exception as e:
                logger.exception("%s: error polling queue: %s", self.name, e)
                self.sleep_func(self.poll_interval)
                continue

            try:
                logger.debug("%s dequeued: %r", self.name, task)
                try:
                    self.process_single(task)
                except Exception:
                    logger.exception(
                        "%s: unexpected exception in process_single for %r",
                        self.name,
                        task,
                    )
                self.processed_count += 1
            finally:
                try:
                    self.source_queue.task_done()
                except ValueError:
                    logger.warning(
                        "%s: task_done() called more times than there were items.",
                        self.name,
                    )

        logger.info("%s stopping after %d task(s)", self.name, self.processed_count)

    def stop(self) -> None:
        """Signal the thread to stop gracefully by setting the stop_event."""
        if not self.stop_event.is_set():
            logger.info("%s stop requested", self.name)
            self.stop_event.set()
        else:
            logger.debug("%s stop already requested", self.name)
