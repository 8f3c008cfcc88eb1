"""
This module defines the ExecutionEngine, the only place where FFmpeg and
ffprobe are actually run.

`execute()` turns a `CommandPlan` into an argument list, runs it to completion
through `run_cmd` and reports the outcome as an `ExecutionResult`. There is no
timeout and no retry: a command that fails is reported once and the caller
decides what happens next. `probe()` returns ffprobe's structured description
of a file through ffmpeg-python.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional

import ffmpeg
from loguru import logger

from ..domain.exceptions import ExecutionException
from ..domain.plan import CommandPlan
from ..utils.ffmpeg_utils import display_command, run_cmd, stderr_tail
from ..utils.format_utils import formatted_size
from ..utils.module_updater import Modules
from .logging_service import ErrorLog

# Prefix of every execution error that reaches the item level.
FAILURE_PREFIX = "FFmpeg processing failed"


@dataclass(frozen=True)
class ExecutionResult:
    """
    The outcome of one FFmpeg run.

    Attributes:
        succeeded: True when FFmpeg exited with code 0 and the output exists.
        output_path: The produced file (success only).
        message: A short description of the failure (failure only).
        returncode: FFmpeg's exit code, or None if it could not be started.
    """

    succeeded: bool
    output_path: Optional[Path] = None
    message: str = ""
    returncode: Optional[int] = None

    def raise_for_failure(self, context: str = "") -> "ExecutionResult":
        """
        Raises an ExecutionException for a failed run; returns self otherwise.

        Args:
            context: Optional prefix such as "Item 3", put in front of the message.
        """
        if not self.succeeded:
            prefix = f"{context}: " if context else ""
            raise ExecutionException(f"{prefix}{FAILURE_PREFIX}: {self.message}")
        return self


class ExecutionEngine:
    """
    Runs command plans and probes.

    Args:
        ffmpeg_path: The ffmpeg executable; resolved from `config.user.yaml` or
                     the system PATH when omitted.
        ffprobe_path: The ffprobe executable, resolved the same way.
        error_log_dir: If set, every failed command is also appended to an
                       `ErrorLog` in this directory.
    """

    def __init__(
        self,
        ffmpeg_path: Optional[str] = None,
        ffprobe_path: Optional[str] = None,
        error_log_dir: Optional[Path] = None,
    ):
        self.ffmpeg_path = ffmpeg_path or Modules._get_ffmpeg_path()
        self.ffprobe_path = ffprobe_path or Modules._get_ffprobe_path()
        self.error_log_dir = error_log_dir

    def build_command(self, plan: CommandPlan, output_path: Path) -> List[str]:
        return [self.ffmpeg_path, "-hide_banner", "-y", *plan.to_args(str(output_path))]

    def execute(self, plan: CommandPlan, output_path: Path) -> ExecutionResult:
        """
        Runs the plan, writing to `output_path`, and waits for FFmpeg to exit.

        Args:
            plan: The command plan to run.
            output_path: Where FFmpeg writes the result; normally a temp file.

        Returns:
            An ExecutionResult. Failures are returned, not raised.
        """
        output_path = Path(output_path)
        cmd = self.build_command(plan, output_path)
        src_file = Path(plan.input_paths[0])

        logger.info(f"Running {plan.kind.value} on {len(plan.inputs)} input(s) -> {output_path.name}")
        process = run_cmd(cmd, src_file_for_log=src_file, error_log_dir_for_run_cmd=self.error_log_dir, show_cmd=True)

        if process is None:
            return ExecutionResult(
                succeeded=False,
                message=f"ffmpeg could not be started ('{self.ffmpeg_path}')",
            )

        if process.returncode != 0:
            tail = stderr_tail(process.stderr)
            message = f"ffmpeg exited with code {process.returncode}"
            if tail:
                message = f"{message}: {tail}"
            logger.error(f"{plan.kind.value} failed for {src_file.name}: {message}")
            self._log_failure(cmd, src_file, message)
            return ExecutionResult(succeeded=False, message=message, returncode=process.returncode)

        if not output_path.is_file():
            message = f"ffmpeg exited with code 0 but did not create {output_path.name}"
            logger.error(message)
            self._log_failure(cmd, src_file, message)
            return ExecutionResult(succeeded=False, message=message, returncode=0)

        logger.debug(f"Produced {output_path.name} ({formatted_size(output_path.stat().st_size)})")
        return ExecutionResult(succeeded=True, output_path=output_path, returncode=0)

    def probe(self, path: Path) -> Dict[str, Any]:
        """
        Returns ffprobe's description of a file (`format` and `streams`).

        Raises:
            ExecutionException: If ffprobe fails or cannot be started.
        """
        try:
            probe = ffmpeg.probe(str(path), cmd=self.ffprobe_path)
        except ffmpeg.Error as e:
            stderr = e.stderr.decode("utf-8", errors="replace") if isinstance(e.stderr, bytes) else str(e.stderr or "")
            message = f"ffprobe failed for {Path(path).name}: {stderr_tail(stderr) or e}"
            logger.error(message)
            self._log_failure([self.ffprobe_path, str(path)], Path(path), message)
            raise ExecutionException(f"{FAILURE_PREFIX}: {message}") from e
        except OSError as e:
            raise ExecutionException(f"{FAILURE_PREFIX}: ffprobe could not be started ('{self.ffprobe_path}'): {e}") from e

        logger.debug(f"Probed {Path(path).name}: {len(probe.get('streams', []))} stream(s)")
        return probe

    def _log_failure(self, cmd: List[str], src_file: Path, message: str):
        if not self.error_log_dir:
            return
        ErrorLog(self.error_log_dir).write(
            f"Command failed for: {src_file.name}",
            f"Command: {display_command(cmd)}",
            message,
        )
