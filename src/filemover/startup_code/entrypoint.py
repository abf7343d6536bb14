import logging
import sys
from typing import Optional, Sequence

from filemover.app import AppRunFailureError, run_moves
from filemover.episode.file_episode import FileEpisode
from filemover.mover.file_mover import FileMover
from filemover.progress.log_progress_sink import LoggingProgressSink
from filemover.startup_code.cli import parse_args
from filemover.startup_code.context import build_context
from filemover.startup_code.load_config import ConfigError, load_config
from filemover.startup_code.logger_setup import (
    LoggingConfigurationError,
    setup_logging,
)
from filemover.startup_code.signal import install_signal_handlers

# sysexits.h codes
EX_OK = 0
EX_SOME_FAILED = 1
EX_USAGE = 64
EX_SOFTWARE = 70
EX_TEMPFAIL = 75  # interrupted; the user is invited to retry
EX_CONFIG = 78

logger = logging.getLogger(__name__)


def _progress_sink_for(mover: FileMover) -> LoggingProgressSink:
    return LoggingProgressSink(label=mover.get_desired_dest_name())


def main_entrypoint(argv: Optional[Sequence[str]] = None) -> int:
    """
    Parses arguments, loads configuration, sets up logging and moves the
    requested files.

    Returns:
        The process exit code.
    """
    # 1. Parse command-line arguments (argparse exits with 2 on bad usage)
    args = parse_args(argv)

    # 2. Load application configuration
    try:
        cfg = load_config(args.config)
    except ConfigError as e:
        print(
            f"CRITICAL: Failed to load configuration from '{args.config}': {e}",
            file=sys.stderr,
        )
        return EX_CONFIG

    # 3. Configure logging
    try:
        setup_logging(
            log_file_dir=cfg.logger_dir,
            file_level=logging.DEBUG,
            console_level=logging.DEBUG if args.dev else logging.INFO,
        )
    except LoggingConfigurationError as e:
        print(f"CRITICAL: Failed to configure logging: {e}", file=sys.stderr)
        return EX_CONFIG

    # 4. Build context, episodes and signal handling
    context = build_context(cfg)
    install_signal_handlers(context)

    episodes = [
        FileEpisode(
            path,
            move_to_path=args.dest,
            destination_basename=args.name,
            fs=context.fs,
        )
        for path in args.files
    ]

    # 5. Run
    try:
        report = run_moves(
            context,
            episodes,
            progress_sink_factory=_progress_sink_for if args.progress else None,
        )
    except AppRunFailureError as e:
        logger.critical("Run failed: %s", e)
        return EX_SOFTWARE
    except Exception:
        logger.exception("Unexpected error while moving files")
        return EX_SOFTWARE

    for episode in episodes:
        logger.info("%s -> %s", episode.get_path(), episode.get_state().name)

    if report.not_attempted:
        return EX_TEMPFAIL
    if report.failed:
        return EX_SOME_FAILED
    return EX_OK


def main() -> None:
    sys.exit(main_entrypoint())
