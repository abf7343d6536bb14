from enum import Enum


class MoveStatus(Enum):
    """
    Outcome of a single FileMover invocation.

    UNCHECKED is the initial value and UNMOVED is held while the move is
    underway; every other member is terminal.
    """

    UNCHECKED = "unchecked"
    FILE_MISSING = "file_missing"
    UNMOVED = "unmoved"
    ALREADY_IN_PLACE = "already_in_place"
    RENAMED = "renamed"
    MISNAMED = "misnamed"
    COPIED = "copied"
    FAIL_TO_MOVE = "fail_to_move"

    @property
    def is_success(self) -> bool:
        # MISNAMED means the file was moved but the filesystem stored a
        # different name than requested; the file is usable where it landed.
        return self in SUCCESS_STATUSES


SUCCESS_STATUSES = frozenset(
    {
        MoveStatus.ALREADY_IN_PLACE,
        MoveStatus.RENAMED,
        MoveStatus.MISNAMED,
        MoveStatus.COPIED,
    }
)
