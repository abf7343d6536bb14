from dataclasses import dataclass

DEFAULT_DUPLICATES_DIR_NAME = "versions"


@dataclass(frozen=True)
class MovePreferences:
    """
    The user preferences a FileMover consults.

    move_enabled: when True, versioned duplicates are placed in a
        `duplicates_dir_name` subdirectory of the destination directory.
    remove_emptied_directories: when True, the source's directory (and
        ancestors that become empty in turn) are removed after a move.
    """

    move_enabled: bool = True
    remove_emptied_directories: bool = False
    duplicates_dir_name: str = DEFAULT_DUPLICATES_DIR_NAME
