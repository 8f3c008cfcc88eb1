"""
Command-Line Interface (CLI) setup for FFmpeg Advanced.

This module uses Python's `argparse` to define and parse the command-line
arguments of the batch runner.
"""
import argparse
from pathlib import Path
from typing import List, Optional


def _ensure_dir(parser: argparse.ArgumentParser, value: Optional[str], label: str) -> Optional[Path]:
    """Creates the directory if it doesn't exist yet; exits through the parser if it can't."""
    if not value:
        return None
    dir_path = Path(value).expanduser()
    if not dir_path.is_dir():
        try:
            dir_path.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            parser.error(f"The specified {label} '{value}' is not a valid directory and could not be created: {e}")
    return dir_path.resolve()


def get_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """
    Parses command-line arguments.

    Args:
        argv: Arguments to parse; defaults to `sys.argv[1:]`.

    Returns:
        argparse.Namespace: The parsed arguments, with directory options
                            resolved to existing `Path` objects.
    """
    parser = argparse.ArgumentParser(description="Run a batch of FFmpeg media operations described in a YAML job file.")
    parser.add_argument(
        "--job", type=str, required=True, help="Path to the YAML job file (parameters and items)."
    )
    parser.add_argument(
        "--output-dir", type=str, default="output",
        help="Directory receiving binary outputs and the run report."
    )
    parser.add_argument(
        "--temp-work-dir", type=str, default=None,
        help="Specify a directory for temporary files. Useful for pointing to a RAM disk to reduce HDD/SSD writes."
    )
    parser.add_argument(
        "--error-log-dir", type=str, default=None,
        help="Directory for the plain-text log of failed FFmpeg commands."
    )
    parser.add_argument(
        "--continue-on-fail", action="store_true",
        help="Record failed items as error entries and keep going instead of stopping the batch."
    )
    parser.add_argument(
        "--log-level", type=str, default="INFO", choices=["TRACE", "DEBUG", "INFO", "WARNING", "ERROR"],
        help="Set the logging level."
    )

    args = parser.parse_args(argv)

    args.output_dir = _ensure_dir(parser, args.output_dir, "output directory")
    args.temp_work_dir = _ensure_dir(parser, args.temp_work_dir, "temporary working directory")
    args.error_log_dir = _ensure_dir(parser, args.error_log_dir, "error log directory")

    return args
