"""
This module provides utility functions for running FFmpeg and other external
tools as child processes and for condensing their output into error messages.
"""

import os
import shlex
import subprocess
from pathlib import Path
from typing import List, Optional

from loguru import logger

from ..config.common import STDERR_TAIL_LINES
from ..services.logging_service import ErrorLog


def display_command(cmd_list: List[str]) -> str:
    """Joins an argument list into a copy-pasteable command line for logs."""
    if os.name == "nt":
        return subprocess.list2cmdline(cmd_list)
    return shlex.join(cmd_list)


def stderr_tail(stderr: Optional[str], line_count: int = STDERR_TAIL_LINES) -> str:
    """
    Returns the last non-empty lines of a process's stderr, joined by newlines.

    FFmpeg prints its banner, stream info and progress first; the reason for a
    failure is almost always in the final few lines.
    """
    if not stderr:
        return ""
    lines = [line.rstrip() for line in stderr.splitlines() if line.strip()]
    return "\n".join(lines[-line_count:])


def run_cmd(
    cmd_list: List[str],
    src_file_for_log: Path = Path(),
    error_log_dir_for_run_cmd: Optional[Path] = None,
    show_cmd: bool = False,
) -> Optional[subprocess.CompletedProcess]:
    """
    Executes an external command and captures its output.

    This is a wrapper around `subprocess.run` with logging. The command is always
    an argument list and never goes through a shell, so paths and filter
    expressions are passed to the executable exactly as built.

    Args:
        cmd_list: The executable followed by its arguments.
        src_file_for_log: The file being processed, used for logging context
                          in case of an error.
        error_log_dir_for_run_cmd: The directory where an error log should be written
                                   if the command cannot be started.
        show_cmd: If True, the command line is logged at the DEBUG level before execution.

    Returns:
        A `subprocess.CompletedProcess` once the process has exited, whatever its
        return code. Returns `None` if the command could not be started at all
        (e.g., `FileNotFoundError` when the executable is missing).
    """
    if not cmd_list:
        logger.error("run_cmd received an empty command list.")
        return None

    display_cmd_str = display_command(cmd_list)
    if show_cmd:
        logger.debug(f"Executing: {display_cmd_str}")

    try:
        result = subprocess.run(
            cmd_list,
            capture_output=True,
            text=True,
            encoding="utf-8",
            errors="replace",
            shell=False,
        )
    except FileNotFoundError:
        logger.error(
            f"Command not found: '{cmd_list[0]}'. Ensure it's in your system's PATH or configured in config.user.yaml."
        )
        if error_log_dir_for_run_cmd:
            ErrorLog(error_log_dir_for_run_cmd).write(
                f"Command execution error for: {src_file_for_log.name or 'N/A'}",
                f"Command: {display_cmd_str}",
                "Error: Command not found (FileNotFoundError).",
            )
        return None
    except OSError as e:
        logger.error(f"Could not start command for {src_file_for_log.name or 'N/A'}: {e}")
        if error_log_dir_for_run_cmd:
            ErrorLog(error_log_dir_for_run_cmd).write(
                f"Command execution error for: {src_file_for_log.name or 'N/A'}",
                f"Command: {display_cmd_str}",
                f"Exception: {type(e).__name__} - {e}",
            )
        return None

    if result.stdout:
        logger.trace(f"Command stdout: {result.stdout[:500]}")

    # FFmpeg writes progress to stderr even on success.
    if result.stderr and result.returncode != 0:
        logger.debug(f"Command stderr (rc={result.returncode}): {stderr_tail(result.stderr)}")
    elif result.stderr:
        logger.trace(f"Command stderr (rc={result.returncode}): {result.stderr[-500:]}")

    return result
