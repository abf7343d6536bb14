import logging
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from filemover.mover.assign_version_index import assign_version_index
from filemover.mover.file_mover import FileMover
from filemover.mover.preferences import MovePreferences

from tests.test_utils.logging_helpers import find_log_record


@pytest.fixture
def mover(mock_episode: MagicMock, mock_fs: MagicMock) -> FileMover:
    return FileMover(mock_episode, preferences=MovePreferences(), fs=mock_fs)


def _resolve_identity(path, strict=False):
    return Path(path)


def test_keeps_existing_index(mover: FileMover, mock_fs: MagicMock):
    mover.dest_index = 4

    assert assign_version_index(mover, mock_fs) == 4
    mock_fs.exists.assert_not_called()


def test_free_destination_needs_no_index(mover: FileMover, mock_fs: MagicMock):
    mock_fs.exists.return_value = False

    assert assign_version_index(mover, mock_fs) is None
    assert mover.dest_index is None
    mock_fs.exists.assert_called_once_with(mover.dest_root / "Show S01E01.mkv")


def test_destination_is_source_needs_no_index(
    mover: FileMover, mock_fs: MagicMock, mock_episode: MagicMock
):
    mock_episode.get_path.return_value = mover.dest_root / "Show S01E01.mkv"
    mock_fs.exists.return_value = True
    mock_fs.resolve.side_effect = _resolve_identity

    assert assign_version_index(mover, mock_fs) is None
    assert mover.dest_index is None


def test_collision_assigns_index_in_duplicates_dir(
    mover: FileMover, mock_fs: MagicMock, caplog
):
    versions = mover.dest_root / "versions"
    taken = {mover.dest_root / "Show S01E01.mkv", versions / "Show S01E01 (1).mkv"}
    mock_fs.exists.side_effect = lambda p: Path(p) in taken
    mock_fs.resolve.side_effect = _resolve_identity

    with caplog.at_level(logging.INFO):
        assert assign_version_index(mover, mock_fs) == 2

    assert mover.dest_index == 2
    assert find_log_record(caplog, logging.INFO, ["using version 2"])


def test_collision_without_move_enabled_versions_in_place(
    mock_episode: MagicMock, mock_fs: MagicMock
):
    mover = FileMover(
        mock_episode, preferences=MovePreferences(move_enabled=False), fs=mock_fs
    )
    taken = {mover.dest_root / "Show S01E01.mkv"}
    mock_fs.exists.side_effect = lambda p: Path(p) in taken
    mock_fs.resolve.side_effect = _resolve_identity

    assert assign_version_index(mover, mock_fs) == 1
    mock_fs.exists.assert_called_with(mover.dest_root / "Show S01E01 (1).mkv")


def test_no_free_version_leaves_index_unset(
    mover: FileMover, mock_fs: MagicMock, caplog
):
    mock_fs.exists.return_value = True
    mock_fs.resolve.side_effect = _resolve_identity

    with caplog.at_level(logging.ERROR):
        assert assign_version_index(mover, mock_fs) is None

    assert mover.dest_index is None
    assert find_log_record(caplog, logging.ERROR, ["No free version"])


def test_existence_check_error_is_logged(mover: FileMover, mock_fs: MagicMock, caplog):
    mock_fs.exists.side_effect = PermissionError("denied")

    with caplog.at_level(logging.WARNING):
        assert assign_version_index(mover, mock_fs) is None

    assert find_log_record(caplog, logging.WARNING, ["for a collision"])
