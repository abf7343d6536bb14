import logging
from pathlib import Path
from typing import Optional, Dict, Any

from filemover.mover.move_status import MoveStatus

audit_logger = logging.getLogger("filemover.move_audit")


def _level_for(status: MoveStatus) -> int:
    if status is MoveStatus.MISNAMED:
        return logging.WARNING
    if status.is_success:
        return logging.INFO
    return logging.ERROR


def create_move_audit_event(
    status: MoveStatus,
    source: Path,
    destination: Optional[Path],
    file_size_bytes: Optional[int],
    duration_ms: Optional[float],
    failure_detail: Optional[str] = None,
) -> None:
    """
    Helper to construct the 'extra' dict and log one audit event per
    finished move. MISNAMED is logged at WARNING so it stands out from
    ordinary renames when monitoring.
    """
    extra_data: Dict[str, Any] = {
        "event_type": status.name,
        "source": str(source),
        "destination": str(destination) if destination is not None else None,
        "file_size_bytes": file_size_bytes,
        "duration_ms": int(duration_ms) if duration_ms is not None else None,
        "success": status.is_success,
    }
    if failure_detail is not None:
        extra_data["failure_detail"] = str(failure_detail)[:256]

    message = f"Move audit: {status.name} for '{source.name}'"
    if destination is not None:
        message += f" -> '{destination}'"

    audit_logger.log(_level_for(status), message, extra=extra_data)
