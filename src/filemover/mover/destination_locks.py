import threading
from pathlib import Path


class DestinationLocks:
    """
    One lock per plain destination path, shared by all workers of a run.

    A worker holds the lock of its mover's plain destination while it picks
    a version index and performs the move, so two files wanting the same
    name never pick the same free slot. Keys are case-folded because
    case-insensitive filesystems treat such names as one entry.
    """

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: dict[str, threading.Lock] = {}

    def lock_for(self, plain_destination: Path) -> threading.Lock:
        key = str(plain_destination).casefold()
        with self._guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = threading.Lock()
                self._locks[key] = lock
            return lock

    def __len__(self) -> int:
        with self._guard:
            return len(self._locks)
