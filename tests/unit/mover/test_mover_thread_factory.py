import logging
import threading
from pathlib import Path
from queue import Queue
from unittest.mock import MagicMock

import pytest

from filemover.mover.destination_locks import DestinationLocks
from filemover.mover.file_mover import FileMover
from filemover.mover.move_report import MoveReport
from filemover.mover.move_status import MoveStatus
from filemover.mover.mover_thread import FileMoveThread
from filemover.mover.thread_factory import create_file_move_thread

from tests.test_utils.logging_helpers import find_log_record

FACTORY_MODULE_PATH = "filemover.mover.thread_factory"
ASSIGN_INDEX_PATH = f"{FACTORY_MODULE_PATH}.assign_version_index"


@pytest.fixture
def report() -> MoveReport:
    return MoveReport(submitted=1)


@pytest.fixture
def mock_mover() -> MagicMock:
    mover = MagicMock(spec=dir(FileMover), name="MockFileMover")
    mover.status = MoveStatus.RENAMED
    mover.return_value = True
    mover.get_desired_dest_name.return_value = "Show S01E01.mkv"
    return mover


def _build(mock_fs, report, **kwargs) -> FileMoveThread:
    return create_file_move_thread(
        index=3,
        poll_interval_seconds=0.05,
        source_queue=MagicMock(spec=Queue),
        stop_event=threading.Event(),
        fs=mock_fs,
        report=report,
        **kwargs,
    )


def test_thread_is_configured(mock_fs: MagicMock, report: MoveReport):
    sleep = MagicMock(name="sleep")
    thread = _build(mock_fs, report, sleep_func=sleep)

    assert isinstance(thread, FileMoveThread)
    assert thread.name == "FileMover-3"
    assert thread.poll_interval == 0.05
    assert thread.sleep_func is sleep
    assert not thread.is_alive()


def test_process_single_runs_mover_and_records(
    mocker, mock_fs: MagicMock, report: MoveReport, mock_mover: MagicMock
):
    assign = mocker.patch(ASSIGN_INDEX_PATH)
    thread = _build(mock_fs, report)

    thread.process_single(mock_mover)

    assign.assert_called_once_with(mock_mover, mock_fs)
    mock_mover.assert_called_once_with()
    mock_mover.add_observer.assert_not_called()
    assert report.summary() == {"RENAMED": 1}


def test_progress_sink_factory_binds_sink(
    mocker, mock_fs: MagicMock, report: MoveReport, mock_mover: MagicMock
):
    mocker.patch(ASSIGN_INDEX_PATH)
    sink = MagicMock(name="sink")
    factory = MagicMock(return_value=sink)
    thread = _build(mock_fs, report, progress_sink_factory=factory)

    thread.process_single(mock_mover)

    factory.assert_called_once_with(mock_mover)
    mock_mover.add_observer.assert_called_once_with(sink)


def test_failed_move_is_logged_and_recorded(
    mocker, mock_fs: MagicMock, report: MoveReport, mock_mover: MagicMock, caplog
):
    mocker.patch(ASSIGN_INDEX_PATH)
    mock_mover.return_value = False
    mock_mover.status = MoveStatus.FAIL_TO_MOVE
    thread = _build(mock_fs, report)

    with caplog.at_level(logging.WARNING, logger=FACTORY_MODULE_PATH):
        thread.process_single(mock_mover)

    assert find_log_record(caplog, logging.WARNING, ["FileMover-3: Failed to move", "FAIL_TO_MOVE"])
    assert report.failed == 1


def test_unexpected_error_is_logged_and_still_recorded(
    mocker, mock_fs: MagicMock, report: MoveReport, mock_mover: MagicMock, caplog
):
    mocker.patch(ASSIGN_INDEX_PATH, side_effect=RuntimeError("boom"))
    mock_mover.status = MoveStatus.UNCHECKED
    thread = _build(mock_fs, report)

    with caplog.at_level(logging.ERROR, logger=FACTORY_MODULE_PATH):
        thread.process_single(mock_mover)

    mock_mover.assert_not_called()
    assert find_log_record(caplog, logging.ERROR, ["Unexpected critical error"])
    assert report.finished == 1


def test_version_assignment_and_move_run_under_destination_lock(
    mocker, mock_fs: MagicMock, report: MoveReport, mock_mover: MagicMock
):
    locks = DestinationLocks()
    plain = Path("/library/Doc.pdf")
    mock_mover.get_plain_destination.return_value = plain
    held = []

    def assign(mover, fs):
        held.append(locks.lock_for(plain).locked())

    def run_move():
        held.append(locks.lock_for(plain).locked())
        return True

    mocker.patch(ASSIGN_INDEX_PATH, side_effect=assign)
    mock_mover.side_effect = run_move
    thread = _build(mock_fs, report, destination_locks=locks)

    thread.process_single(mock_mover)

    assert held == [True, True]
    assert not locks.lock_for(plain).locked()
    assert report.succeeded == 1


def test_workers_sharing_locks_wait_for_each_other(
    mocker, mock_fs: MagicMock, report: MoveReport, mock_mover: MagicMock
):
    locks = DestinationLocks()
    plain = Path("/library/Doc.pdf")
    mock_mover.get_plain_destination.return_value = plain
    mocker.patch(ASSIGN_INDEX_PATH)
    thread = _build(mock_fs, report, destination_locks=locks)

    lock = locks.lock_for(plain)
    lock.acquire()
    worker = threading.Thread(target=thread.process_single, args=(mock_mover,))
    worker.start()
    try:
        worker.join(timeout=0.2)
        # Still blocked behind the other holder of the same name.
        assert worker.is_alive()
        mock_mover.assert_not_called()
    finally:
        lock.release()
    worker.join(timeout=5)

    mock_mover.assert_called_once_with()
    assert report.finished == 1
