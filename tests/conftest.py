"""
Global pytest fixtures for the FileMover test suite.

This file provides:
- Foundational fixtures for test environments (temporary directories, real filesystem access).
- Default configurations (both real and mocked) for the application.
- Generic mock objects for the collaborators a FileMover talks to.
"""

import logging
import threading
from pathlib import Path
from typing import NamedTuple, Optional
from unittest.mock import Mock, MagicMock

import pytest

# --- Project-specific Imports ---
from filemover.episode.file_episode import FileEpisode
from filemover.file_functions.fs_mock import FS
from filemover.mover.preferences import MovePreferences
from filemover.protocols import EpisodeRecord, ProgressSink
from filemover.startup_code.load_config import Config

from tests.test_utils.fs_helpers import RecordingProgressSink

logger = logging.getLogger(__name__)


# --- 1. Foundational Test Environment Fixtures ---


class MoveTestDirs(NamedTuple):
    """
    Paths to the temporary directories used by move tests.
    All paths are absolute and fully resolved, residing within a unique
    pytest tmp_path, so they compare equal to what FileMover computes.
    """

    base_dir: Path  # Root directory for this test environment setup
    source_dir: Path  # Where files to be moved are created
    dest_dir: Path  # Destination root; NOT created up front
    log_dir: Path  # Directory for test-specific application logs


@pytest.fixture(scope="function")
def real_fs() -> FS:
    """
    Provides a real filesystem interface instance that interacts with the
    actual operating system's filesystem.
    Scope: function (a new instance per test function for isolation).
    """
    return FS()


@pytest.fixture(scope="function")
def move_test_dirs(tmp_path: Path, real_fs: FS) -> MoveTestDirs:
    """
    Creates the source and log directories under tmp_path. The destination
    directory is left absent so tests also exercise its creation.
    """
    base = tmp_path.resolve() / "move_env"
    dirs = MoveTestDirs(
        base_dir=base,
        source_dir=base / "incoming",
        dest_dir=base / "library",
        log_dir=base / "logs",
    )
    for dir_path in (dirs.base_dir, dirs.source_dir, dirs.log_dir):
        real_fs.mkdir(dir_path, parents=True, exist_ok=True)
    logger.debug("Created move test directories under %s", base)
    return dirs


@pytest.fixture
def source_file(move_test_dirs: MoveTestDirs) -> Path:
    """A 100 000 byte file waiting in the source directory."""
    path = move_test_dirs.source_dir / "show.s01e01.mkv"
    path.write_bytes(bytes(range(256)) * 390 + b"x" * 160)
    return path


@pytest.fixture
def make_episode(move_test_dirs: MoveTestDirs, real_fs: FS):
    """Factory building a FileEpisode aimed at the test destination directory."""

    def _make(
        path: Path,
        *,
        basename: str = "Show S01E01",
        suffix: str = ".mkv",
        move_to: Optional[Path] = None,
        fs: Optional[FS] = None,
    ) -> FileEpisode:
        return FileEpisode(
            path,
            move_to_path=move_to if move_to is not None else move_test_dirs.dest_dir,
            destination_basename=basename,
            filename_suffix=suffix,
            fs=fs if fs is not None else real_fs,
        )

    return _make


# --- 2. Configuration Fixtures ---


@pytest.fixture(scope="function")
def default_real_test_config(move_test_dirs: MoveTestDirs) -> Config:
    """
    Provides a real, fully populated Config object with values suitable for
    integration tests. Override fields with `dataclasses.replace()`.
    """
    return Config(
        logger_dir=move_test_dirs.log_dir,
        move_enabled=True,
        remove_emptied_directories=False,
        duplicates_dir_name="versions",
        worker_count=2,
        copy_chunk_size_bytes=32768,
        move_poll_interval_seconds=0.05,  # Reasonably fast for tests
    )


@pytest.fixture
def mock_config(move_test_dirs: MoveTestDirs) -> MagicMock:
    """
    A MagicMock mimicking Config, for unit tests that should not depend on
    Config validation. `spec=Config` catches attribute typos.
    """
    cfg = MagicMock(spec=Config)
    cfg.logger_dir = move_test_dirs.log_dir
    cfg.move_enabled = True
    cfg.remove_emptied_directories = False
    cfg.duplicates_dir_name = "versions"
    cfg.worker_count = 2
    cfg.copy_chunk_size_bytes = 32768
    cfg.move_poll_interval_seconds = 0.05
    cfg.preferences.return_value = MovePreferences()
    return cfg


@pytest.fixture
def default_preferences() -> MovePreferences:
    return MovePreferences()


# --- 3. Generic Mocking Fixtures ---


@pytest.fixture
def mock_fs() -> MagicMock:
    """
    Provides a generic MagicMock for the FS abstraction.
    `spec=FS` ensures only real FS attributes can be used.
    """
    return MagicMock(spec=FS, name="MockFS")


@pytest.fixture
def mock_fs_configured(mock_fs: MagicMock) -> MagicMock:
    """An FS mock where `exists` defaults to False."""
    mock_fs.exists = Mock(return_value=False, name="MockFSExistsFalse")
    return mock_fs


@pytest.fixture
def mock_episode(tmp_path: Path) -> MagicMock:
    """
    An EpisodeRecord mock describing '<tmp>/src/show.mkv' headed for
    '<tmp>/dest' as 'Show S01E01.mkv'.
    """
    episode = MagicMock(spec=EpisodeRecord, name="MockEpisode")
    episode.get_path.return_value = tmp_path / "src" / "show.mkv"
    episode.get_move_to_path.return_value = tmp_path / "dest"
    episode.get_destination_basename.return_value = "Show S01E01"
    episode.get_filename_suffix.return_value = ".mkv"
    episode.get_file_size.return_value = 2048
    return episode


@pytest.fixture
def mock_progress_sink() -> MagicMock:
    return MagicMock(spec=ProgressSink, name="MockProgressSink")


@pytest.fixture
def recording_sink() -> RecordingProgressSink:
    return RecordingProgressSink()


@pytest.fixture
def mock_stop_event() -> MagicMock:
    """
    Provides a mock `threading.Event` object.
    `is_set` defaults to returning False.
    `wait` defaults to returning False (simulating no timeout/no event set).
    """
    evt = MagicMock(spec=threading.Event, name="MockStopEvent")
    evt.is_set.return_value = False
    evt.wait = Mock(return_value=False, name="MockStopEventWait")
    return evt


@pytest.fixture
def reset_logging_state():
    """Restores the global logging configuration a test may change."""
    root = logging.getLogger()
    saved_root_handlers = list(root.handlers)
    saved_root_level = root.level
    saved = {
        name: (lg.level, lg.propagate, lg.disabled, list(lg.handlers))
        for name, lg in logging.Logger.manager.loggerDict.items()
        if isinstance(lg, logging.Logger)
    }

    yield

    for handler in root.handlers:
        if handler not in saved_root_handlers:
            handler.close()
    root.handlers = saved_root_handlers
    root.setLevel(saved_root_level)
    for name, lg in list(logging.Logger.manager.loggerDict.items()):
        if not isinstance(lg, logging.Logger):
            continue
        level, propagate, disabled, handlers = saved.get(
            name, (logging.NOTSET, True, False, [])
        )
        for handler in lg.handlers:
            if handler not in handlers:
                handler.close()
        lg.handlers = handlers
        lg.setLevel(level)
        lg.propagate = propagate
        lg.disabled = disabled
