import copy
import datetime
import json
import logging
import logging.config
import sys
import traceback
from pathlib import Path
from typing import Any, Dict, Optional, Union, Tuple, Type

# LogRecord attributes that are never treated as "extra" fields.
LOG_RECORD_BUILTIN_ATTRS = {
    "args",
    "asctime",
    "created",
    "exc_info",
    "exc_text",
    "filename",
    "funcName",
    "levelname",
    "levelno",
    "lineno",
    "module",
    "msecs",
    "message",
    "msg",
    "name",
    "pathname",
    "process",
    "processName",
    "relativeCreated",
    "stack_info",
    "thread",
    "threadName",
    "taskName",
}

DEFAULT_LOG_FILENAME = "filemover.log.jsonl"
DEFAULT_AUDIT_LOG_FILENAME = "move_audit.log.jsonl"

APP_LOG_MAX_BYTES = 10 * 1024 * 1024
APP_LOG_BACKUP_COUNT = 5

AUDIT_LOG_MAX_BYTES = 20 * 1024 * 1024
AUDIT_LOG_BACKUP_COUNT = 10

AUDIT_LOGGER_NAME = "filemover.move_audit"

NormalizedExcInfo = Tuple[Type[BaseException], BaseException, Any]


def _generate_utc_iso_timestamp(record: logging.LogRecord) -> str:
    """Generates an ISO 8601 formatted timestamp in UTC."""
    dt = datetime.datetime.fromtimestamp(record.created, tz=datetime.timezone.utc)
    iso = dt.isoformat(timespec="milliseconds")
    if iso.endswith("+00:00"):
        return iso[:-6] + "Z"
    return iso


def _normalize_exc_info(record: logging.LogRecord) -> Optional[NormalizedExcInfo]:
    """
    Coalesces the forms `record.exc_info` may take (None/False, True, an
    exception instance, or a 3-tuple) into a 3-tuple, or None when no usable
    exception is attached.
    """
    raw = record.exc_info
    if not raw:
        return None
    if raw is True:
        raw = sys.exc_info()
    elif isinstance(raw, BaseException):
        raw = (type(raw), raw, raw.__traceback__)

    if not (isinstance(raw, tuple) and len(raw) == 3):
        return None
    cls, val, tb = raw
    if not (isinstance(cls, type) and issubclass(cls, BaseException)):
        return None
    return cls, val, tb


class JSONFormatter(logging.Formatter):
    """
    Formats each record as one JSON object per line.

    `fmt_keys` maps output keys to LogRecord attributes; attributes passed
    through `extra=` are appended under their own names.
    """

    DEFAULT_FMT_KEYS: Dict[str, str] = {
        "timestamp": "asctime",
        "level": "levelname",
        "message": "message",
        "logger": "name",
        "function": "funcName",
        "line": "lineno",
        "thread": "threadName",
    }
    DEFAULT_EXCEPTION_KEY: str = "exception"
    DEFAULT_STACK_INFO_KEY: str = "stack_info"

    def __init__(
        self, fmt_keys: Optional[Dict[str, str]] = None, datefmt: Optional[str] = None
    ):
        super().__init__(datefmt=datefmt)
        self.fmt_keys: Dict[str, str] = (
            dict(fmt_keys) if fmt_keys is not None else dict(self.DEFAULT_FMT_KEYS)
        )

    def _prepare_log_dict(self, record: logging.LogRecord) -> Dict[str, Any]:
        data: Dict[str, Any] = {}
        exc_info = _normalize_exc_info(record)
        mapped_attrs = set(self.fmt_keys.values())

        for output_key, attr in self.fmt_keys.items():
            if attr == "asctime":
                data[output_key] = _generate_utc_iso_timestamp(record)
            elif attr == "message":
                data[output_key] = record.getMessage()
            elif attr == "exc_info":
                if exc_info:
                    data[output_key] = self.formatException(exc_info)
            elif attr == "stack_info":
                if record.stack_info:
                    data[output_key] = self.formatStack(record.stack_info)
            elif hasattr(record, attr):
                value = getattr(record, attr)
                if not callable(value):
                    data[output_key] = value

        if exc_info and "exc_info" not in mapped_attrs:
            data.setdefault(self.DEFAULT_EXCEPTION_KEY, self.formatException(exc_info))
        if record.stack_info and "stack_info" not in mapped_attrs:
            data.setdefault(
                self.DEFAULT_STACK_INFO_KEY, self.formatStack(record.stack_info)
            )

        for attr_name, attr_value in record.__dict__.items():
            if (
                attr_name not in LOG_RECORD_BUILTIN_ATTRS
                and attr_name not in mapped_attrs
                and attr_name not in data
                and not callable(attr_value)
            ):
                data[attr_name] = attr_value

        return data

    def format(self, record: logging.LogRecord) -> str:
        return json.dumps(self._prepare_log_dict(record), default=str)


FORMATTER_CLASS_PATH = f"{__name__}.JSONFormatter"

BASE_LOGGING_CONFIG: dict[str, Any] = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "dev_console": {
            "format": "%(asctime)s %(levelname)-8s [%(threadName)s %(name)s:%(lineno)s] %(message)s",
            "datefmt": "%Y-%m-%dT%H:%M:%S",
        },
        "json_file": {
            "()": FORMATTER_CLASS_PATH,
            "fmt_keys": JSONFormatter.DEFAULT_FMT_KEYS,
        },
        "audit_json_file": {
            "()": FORMATTER_CLASS_PATH,
            "fmt_keys": {
                "timestamp": "asctime",
                "level": "levelname",
                "message": "message",
                "logger_name": "name",
            },
        },
    },
    "handlers": {
        "file_json": {
            "class": "logging.handlers.RotatingFileHandler",
            "level": "DEBUG",
            "formatter": "json_file",
            "filename": DEFAULT_LOG_FILENAME,
            "maxBytes": APP_LOG_MAX_BYTES,
            "backupCount": APP_LOG_BACKUP_COUNT,
            "encoding": "utf8",
        },
        "audit_file_json": {
            "class": "logging.handlers.RotatingFileHandler",
            "level": "DEBUG",
            "formatter": "audit_json_file",
            "filename": DEFAULT_AUDIT_LOG_FILENAME,
            "maxBytes": AUDIT_LOG_MAX_BYTES,
            "backupCount": AUDIT_LOG_BACKUP_COUNT,
            "encoding": "utf8",
        },
        "console": {
            "class": "logging.StreamHandler",
            "level": "INFO",
            "formatter": "dev_console",
            "stream": "ext://sys.stderr",
        },
    },
    "loggers": {
        "filemover.file_functions.fs_mock": {"level": "INFO"},
        AUDIT_LOGGER_NAME: {
            "handlers": ["audit_file_json"],
            "level": "DEBUG",
            "propagate": False,
        },
    },
    "root": {
        "level": "DEBUG",
        "handlers": ["file_json", "console"],
    },
}


class LoggingConfigurationError(Exception):
    """Custom exception for errors during logging setup."""

    pass


def _get_level_num(level_input: Union[int, str], param_name_for_error: str) -> int:
    if isinstance(level_input, int):
        return level_input
    if isinstance(level_input, str):
        level_upper = level_input.upper()
        numeric_level = logging.getLevelName(level_upper)
        if isinstance(numeric_level, int):
            return numeric_level
        try:
            return int(level_upper)
        except ValueError:
            raise LoggingConfigurationError(
                f"Invalid level string for {param_name_for_error}: '{level_input}'."
            )
    raise TypeError(
        f"{param_name_for_error} must be an int or string, not {type(level_input)}"
    )


def _place_log_files(cfg: dict[str, Any], log_file_dir: Optional[Path]) -> list[str]:
    """Rewrites relative handler filenames under `log_file_dir`, creating it."""
    warnings: list[str] = []
    for handler_name, handler_cfg in cfg.get("handlers", {}).items():
        fname_str = handler_cfg.get("filename")
        if not fname_str:
            continue
        original_path = Path(fname_str)
        if original_path.is_absolute():
            final_path = original_path.resolve()
            if log_file_dir:
                warnings.append(
                    f"log_file_dir='{log_file_dir}' is ignored for handler '{handler_name}' as it uses an absolute path: '{fname_str}'"
                )
        elif log_file_dir:
            final_path = (log_file_dir / original_path).resolve()
        else:
            raise LoggingConfigurationError(
                f"Handler '{handler_name}' uses a relative filename '{fname_str}' but no log_file_dir was provided"
            )
        try:
            final_path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise LoggingConfigurationError(
                f"Failed to create log directory {final_path.parent}: {e}"
            ) from e
        handler_cfg["filename"] = str(final_path)
    return warnings


def setup_logging(
    *,
    config_path: Optional[Path] = None,
    log_file_dir: Optional[Path] = None,
    console_level: Optional[Union[int, str]] = None,
    file_level: Optional[Union[int, str]] = None,
) -> None:
    """
    Configures logging from BASE_LOGGING_CONFIG (or a JSON dictConfig file).

    Args:
        config_path: Optional JSON file replacing BASE_LOGGING_CONFIG.
        log_file_dir: Directory that relative handler filenames are placed in.
        console_level: Level for the console handler (default INFO).
        file_level: Level for the JSON file handler (default DEBUG).

    Raises:
        LoggingConfigurationError: If the configuration cannot be applied.
    """
    root_logger = logging.getLogger()
    original_root_handlers = list(root_logger.handlers)

    try:
        if config_path:
            if not config_path.exists():
                raise LoggingConfigurationError(f"Config file not found: {config_path}")
            with config_path.open("rt", encoding="utf8") as fp:
                cfg: dict[str, Any] = json.load(fp)
            cfg["disable_existing_loggers"] = False
        else:
            cfg = copy.deepcopy(BASE_LOGGING_CONFIG)

        config_warnings = _place_log_files(cfg, log_file_dir)

        console_lvl = (
            _get_level_num(console_level, "console_level")
            if console_level is not None
            else logging.INFO
        )
        file_lvl = (
            _get_level_num(file_level, "file_level")
            if file_level is not None
            else logging.DEBUG
        )

        handlers = cfg.get("handlers", {})
        if "console" in handlers:
            handlers["console"]["level"] = logging.getLevelName(console_lvl)
        if "file_json" in handlers:
            handlers["file_json"]["level"] = logging.getLevelName(file_lvl)
        cfg.setdefault("root", {})["level"] = logging.getLevelName(
            min(console_lvl, file_lvl)
        )

        logging.config.dictConfig(cfg)

        # Keep handlers installed by the host (e.g. pytest's caplog).
        current = set(root_logger.handlers)
        for original_handler in original_root_handlers:
            if original_handler not in current:
                root_logger.addHandler(original_handler)

        setup_logger = logging.getLogger(__name__)
        for warning_message in config_warnings:
            setup_logger.warning(warning_message)
        setup_logger.info(
            "Logging initialized: root=%s, console=%s, file_json=%s",
            logging.getLevelName(root_logger.getEffectiveLevel()),
            handlers.get("console", {}).get("level", "N/A"),
            handlers.get("file_json", {}).get("level", "N/A"),
        )

    except LoggingConfigurationError:
        raise
    except (OSError, json.JSONDecodeError, KeyError, ValueError, TypeError) as err:
        raise LoggingConfigurationError(f"Failed to initialize logging: {err}") from err
    except Exception as e:
        sys.stderr.write(
            f"CRITICAL: An unexpected error occurred during logging setup: {e}\n"
        )
        traceback.print_exc(file=sys.stderr)
        raise LoggingConfigurationError(
            f"An unexpected error occurred during logging setup: {e}"
        ) from e
