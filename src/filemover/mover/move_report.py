import threading
from collections import Counter
from dataclasses import dataclass, field
from typing import Dict

from filemover.mover.file_mover import FileMover
from filemover.mover.move_status import MoveStatus


@dataclass
class MoveReport:
    """Thread-safe tally of finished moves, keyed by terminal status."""

    submitted: int = 0
    counts: Counter = field(default_factory=Counter)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def record(self, mover: FileMover) -> None:
        with self._lock:
            self.counts[mover.status] += 1

    @property
    def finished(self) -> int:
        with self._lock:
            return sum(self.counts.values())

    @property
    def succeeded(self) -> int:
        with self._lock:
            return sum(n for status, n in self.counts.items() if status.is_success)

    @property
    def failed(self) -> int:
        with self._lock:
            return sum(
                n for status, n in self.counts.items() if not status.is_success
            )

    @property
    def not_attempted(self) -> int:
        return self.submitted - self.finished

    def summary(self) -> Dict[str, int]:
        with self._lock:
            return {
                status.name: self.counts[status]
                for status in MoveStatus
                if self.counts[status]
            }
