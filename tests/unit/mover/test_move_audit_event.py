import logging
from pathlib import Path
from unittest import mock

import pytest

from filemover.mover.move_audit_event import create_move_audit_event
from filemover.mover.move_status import MoveStatus

MODULE_PATH_FOR_LOGGER = "filemover.mover.move_audit_event.audit_logger"

SOURCE = Path("/media/incoming/show.mkv")
DEST = Path("/library/Shows/Show S01E01.mkv")


@pytest.fixture
def mock_audit_logger():
    with mock.patch(MODULE_PATH_FOR_LOGGER) as patched_logger:
        yield patched_logger


def test_rename_event_logged_at_info(mock_audit_logger: mock.MagicMock):
    create_move_audit_event(
        status=MoveStatus.RENAMED,
        source=SOURCE,
        destination=DEST,
        file_size_bytes=2048,
        duration_ms=12.9,
    )

    mock_audit_logger.log.assert_called_once_with(
        logging.INFO,
        f"Move audit: RENAMED for 'show.mkv' -> '{DEST}'",
        extra={
            "event_type": "RENAMED",
            "source": str(SOURCE),
            "destination": str(DEST),
            "file_size_bytes": 2048,
            "duration_ms": 12,
            "success": True,
        },
    )


def test_misnamed_event_logged_at_warning(mock_audit_logger: mock.MagicMock):
    create_move_audit_event(
        status=MoveStatus.MISNAMED,
        source=SOURCE,
        destination=DEST,
        file_size_bytes=1,
        duration_ms=1.0,
    )

    level = mock_audit_logger.log.call_args.args[0]
    extra = mock_audit_logger.log.call_args.kwargs["extra"]
    assert level == logging.WARNING
    assert extra["success"] is True


def test_failure_event_includes_truncated_detail(mock_audit_logger: mock.MagicMock):
    create_move_audit_event(
        status=MoveStatus.FAIL_TO_MOVE,
        source=SOURCE,
        destination=None,
        file_size_bytes=None,
        duration_ms=None,
        failure_detail="x" * 500,
    )

    args = mock_audit_logger.log.call_args
    assert args.args[0] == logging.ERROR
    assert args.args[1] == "Move audit: FAIL_TO_MOVE for 'show.mkv'"
    extra = args.kwargs["extra"]
    assert extra["destination"] is None
    assert extra["duration_ms"] is None
    assert extra["success"] is False
    assert len(extra["failure_detail"]) == 256


def test_event_reaches_audit_logger_name(caplog: pytest.LogCaptureFixture):
    audit = logging.getLogger("filemover.move_audit")
    saved_propagate, saved_level = audit.propagate, audit.level
    audit.propagate = False
    audit.setLevel(logging.INFO)
    audit.addHandler(caplog.handler)
    try:
        create_move_audit_event(
            status=MoveStatus.COPIED,
            source=SOURCE,
            destination=DEST,
            file_size_bytes=10,
            duration_ms=5,
        )
    finally:
        audit.removeHandler(caplog.handler)
        audit.propagate = saved_propagate
        audit.setLevel(saved_level)

    records = [r for r in caplog.records if r.name == "filemover.move_audit"]
    assert len(records) == 1
    assert records[0].event_type == "COPIED"
    assert records[0].destination == str(DEST)
