import logging
from typing import Optional

from filemover.file_functions.format_size_human_readable import (
    format_size_human_readable,
)

logger = logging.getLogger(__name__)


class LoggingProgressSink:
    """
    Progress sink that writes a move's progress to the log.

    Updates are throttled: a line is logged each time the copied amount
    crosses another `log_every_fraction` of the total.
    """

    def __init__(self, label: str, log_every_fraction: float = 0.1):
        if not 0.0 < log_every_fraction <= 1.0:
            raise ValueError("log_every_fraction must be in (0, 1]")
        self.label = label
        self.log_every_fraction = log_every_fraction
        self.total_bytes: Optional[int] = None
        self.last_value = 0
        self.last_status = ""
        self._next_threshold = 0.0
        self.finished: Optional[bool] = None

    def initialize_progress(self, total_bytes: int) -> None:
        self.total_bytes = total_bytes
        self.last_value = 0
        self._next_threshold = total_bytes * self.log_every_fraction
        logger.info(
            "%s: copying %s", self.label, format_size_human_readable(total_bytes)
        )

    def set_progress_status(self, status: str) -> None:
        self.last_status = status

    def set_progress_value(self, value: int) -> None:
        self.last_value = value
        if not self.total_bytes:
            return
        if value >= self._next_threshold:
            percent = 100.0 * value / self.total_bytes
            logger.info("%s: %s (%.0f%%)", self.label, self.last_status, percent)
            while self._next_threshold <= value:
                self._next_threshold += self.total_bytes * self.log_every_fraction

    def finish_progress(self, success: bool) -> None:
        self.finished = success
        if success:
            logger.info("%s: done", self.label)
        else:
            logger.warning("%s: failed after %s", self.label, self.last_status or "0 bytes")
