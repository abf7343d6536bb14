import threading
from typing import Optional

from filemover.file_functions.fs_mock import FS
from filemover.startup_code.load_config import Config


class AppContext:
    """
    Shared dependencies of one run.

    `shutdown_event` doubles as the cancellation signal of in-flight
    cross-volume copies: once set, copies stop at their next chunk.
    """

    def __init__(self, config: Config, fs: FS):
        self.shutdown_event = threading.Event()
        self.config: Config = config
        self.fs: FS = fs

    def __str__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"config_type={type(self.config).__name__}, "
            f"fs=<{self.fs.__class__.__name__} instance>, "
            f"shutdown_event_set={self.shutdown_event.is_set()}"
            f")"
        )

    __repr__ = __str__


def build_context(config: Config, fs_override: Optional[FS] = None) -> AppContext:
    """
    Factory function to create an AppContext instance.
    Allows overriding the filesystem implementation for testing.
    """
    fs_instance: FS = fs_override if fs_override is not None else FS()
    return AppContext(config=config, fs=fs_instance)
