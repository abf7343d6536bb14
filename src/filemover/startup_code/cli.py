import argparse
from pathlib import Path
from typing import Optional, Sequence


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    """
    Parses command-line arguments for the file mover.

    Returns:
        argparse.Namespace with attributes `config`, `dev`, `dest`, `name`,
        `progress` and `files`.
    """
    parser = argparse.ArgumentParser(
        prog="filemover",
        description="Moves files into a destination directory, renaming them on the way.",
    )
    parser.add_argument(
        "--dev", action="store_true", help="Enable debug logging to console"
    )
    parser.add_argument(
        "--config",
        "-c",
        default="config.ini",
        help="Path to the INI configuration file",
    )
    parser.add_argument(
        "--dest",
        "-d",
        type=Path,
        required=True,
        help="Directory to move the files into (created if missing)",
    )
    parser.add_argument(
        "--name",
        "-n",
        default=None,
        help="New filename without suffix; only valid with a single file",
    )
    parser.add_argument(
        "--progress",
        action="store_true",
        help="Log copy progress for moves across volumes",
    )
    parser.add_argument("files", nargs="+", type=Path, help="Files to move")

    args = parser.parse_args(argv)
    if args.name is not None and len(args.files) != 1:
        parser.error("--name can only be used with a single file")
    return args
