from configparser import (
    ConfigParser,
    MissingSectionHeaderError,
    ParsingError,
    NoOptionError,
)
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

from filemover.file_functions.fs_mock import FS
from filemover.mover.preferences import MovePreferences


class ConfigError(Exception):
    """Raised when the configuration is invalid or missing."""

    pass


@dataclass(frozen=True)
class Config:
    """Holds the application configuration, matching the INI file structure."""

    # From [Directories]
    logger_dir: Path

    # From [Preferences]
    move_enabled: bool
    remove_emptied_directories: bool
    duplicates_dir_name: str

    # From [Mover]
    worker_count: int
    copy_chunk_size_bytes: int
    move_poll_interval_seconds: float

    def __post_init__(self):
        if "/" in self.duplicates_dir_name or self.duplicates_dir_name in (
            ".",
            "..",
        ):
            raise ConfigError(
                "[Preferences] duplicates_dir_name must be a single directory name"
            )

    def preferences(self) -> MovePreferences:
        return MovePreferences(
            move_enabled=self.move_enabled,
            remove_emptied_directories=self.remove_emptied_directories,
            duplicates_dir_name=self.duplicates_dir_name,
        )


# Helper functions for parsing options
def _get_string_option(
    cp: ConfigParser, section: str, option: str, allow_empty: bool = False
) -> str:
    if not cp.has_option(section, option):
        raise ConfigError(f"[{section}] missing option '{option}'")
    value = cp.get(section, option)
    if not allow_empty and not value.strip():
        raise ConfigError(f"[{section}] '{option}' cannot be empty")
    return value.strip()


def _get_int_option(
    cp: ConfigParser,
    section: str,
    option: str,
    min_value: Optional[int] = None,
    max_value: Optional[int] = None,
) -> int:
    if not cp.has_option(section, option):
        raise ConfigError(f"[{section}] missing option '{option}'")
    raw_value = cp.get(section, option)
    try:
        value = int(raw_value)
    except ValueError:
        raise ConfigError(f"[{section}] '{option}' ('{raw_value}') must be an integer")
    if min_value is not None and value < min_value:
        raise ConfigError(f"[{section}] '{option}' ({value}) must be >= {min_value}")
    if max_value is not None and value > max_value:
        raise ConfigError(f"[{section}] '{option}' ({value}) must be <= {max_value}")
    return value


def _get_float_option(
    cp: ConfigParser,
    section: str,
    option: str,
    min_value: Optional[float] = None,
) -> float:
    if not cp.has_option(section, option):
        raise ConfigError(f"[{section}] missing option '{option}'")
    raw_value = cp.get(section, option)
    try:
        value = float(raw_value)
    except ValueError:
        raise ConfigError(f"[{section}] '{option}' ('{raw_value}') must be a float")
    if min_value is not None and value < min_value:
        raise ConfigError(f"[{section}] '{option}' ({value}) must be >= {min_value}")
    return value


def _get_boolean_option(cp: ConfigParser, section: str, option: str) -> bool:
    if not cp.has_option(section, option):
        raise ConfigError(f"[{section}] missing option '{option}'")
    raw_value = cp.get(section, option)
    try:
        return cp.getboolean(section, option)
    except ValueError:
        raise ConfigError(
            f"[{section}] '{option}' ('{raw_value}') must be a boolean (e.g., true, false, yes, no, 1, 0)"
        )


def _parse_directories_config(cp: ConfigParser, fs: FS) -> Path:
    # Logger directory - created later by setup_logging if missing
    logger_dir_str = _get_string_option(cp, "Directories", "logger_dir")
    logger_dir_expanded = Path(logger_dir_str).expanduser()
    try:
        if fs.exists(logger_dir_expanded) and not fs.is_dir(logger_dir_expanded):
            raise ConfigError(
                f"[Directories] logger_dir '{logger_dir_expanded}' is not a directory."
            )
        return fs.resolve(logger_dir_expanded, strict=False)
    except ConfigError:
        raise
    except OSError as e:
        raise ConfigError(
            f"Error processing logger_dir '{logger_dir_expanded}': {e}"
        ) from e


def _parse_preferences_config(cp: ConfigParser) -> tuple[bool, bool, str]:
    move_enabled = _get_boolean_option(cp, "Preferences", "move_enabled")
    remove_emptied = _get_boolean_option(
        cp, "Preferences", "remove_emptied_directories"
    )
    duplicates_dir_name = _get_string_option(
        cp, "Preferences", "duplicates_dir_name"
    )
    return move_enabled, remove_emptied, duplicates_dir_name


def _parse_mover_config(cp: ConfigParser) -> tuple[int, int, float]:
    worker_count = _get_int_option(
        cp, "Mover", "worker_count", min_value=1, max_value=64
    )
    chunk_size = _get_int_option(
        cp, "Mover", "copy_chunk_size_bytes", min_value=1024
    )
    poll_interval = _get_float_option(
        cp, "Mover", "move_poll_interval_seconds", min_value=0.0
    )
    return worker_count, chunk_size, poll_interval


def load_config(path: Union[str, Path], fs: FS = FS()) -> Config:
    """Loads, parses, and validates configuration from an INI file."""
    config_path = Path(path)
    try:
        if not fs.exists(config_path):
            raise ConfigError(f"Config file not found: {config_path}")
        if fs.is_dir(config_path):
            raise ConfigError(f"Config path is not a file: {config_path}")
    except OSError as e:
        raise ConfigError(f"Error checking config path '{config_path}': {e}") from e

    cp = ConfigParser()
    try:
        with fs.open(str(config_path), "r", encoding="utf-8") as f:
            cp.read_file(f)
    except (OSError, UnicodeDecodeError, MissingSectionHeaderError, ParsingError) as e:
        raise ConfigError(
            f"[Config] error reading or parsing config file '{config_path}': {e}"
        ) from e

    for section in ("Directories", "Preferences", "Mover"):
        if not cp.has_section(section):
            raise ConfigError(f"Missing section [{section}] in '{config_path}'")

    try:
        logger_d = _parse_directories_config(cp, fs)
        move_enabled, remove_emptied, duplicates_dir_name = _parse_preferences_config(
            cp
        )
        worker_count, chunk_size, move_poll = _parse_mover_config(cp)
    except ConfigError:
        raise
    except NoOptionError as e:
        raise ConfigError(f"Missing option in config file '{config_path}': {e}") from e

    return Config(
        logger_dir=logger_d,
        move_enabled=move_enabled,
        remove_emptied_directories=remove_emptied,
        duplicates_dir_name=duplicates_dir_name,
        worker_count=worker_count,
        copy_chunk_size_bytes=chunk_size,
        move_poll_interval_seconds=move_poll,
    )
