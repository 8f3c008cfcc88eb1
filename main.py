"""
Main entry point for FFmpeg Advanced.

Loads a YAML job, runs its items through the batch pipeline, writes binary
outputs to the output directory and records every output item in a YAML run
report.
"""

import sys
from datetime import datetime

from loguru import logger

from ffmpeg_advanced.cli import get_args
from ffmpeg_advanced.config.common import LOGGER_FORMAT
from ffmpeg_advanced.domain.exceptions import FFmpegAdvancedException
from ffmpeg_advanced.pipeline.batch_pipeline import BatchPipeline
from ffmpeg_advanced.services.execution_service import ExecutionEngine
from ffmpeg_advanced.services.job_loader import load_job, write_results
from ffmpeg_advanced.services.logging_service import SuccessLog
from ffmpeg_advanced.services.temp_service import TempResourceManager
from ffmpeg_advanced.utils.format_utils import format_timedelta
from ffmpeg_advanced.utils.module_updater import Modules


def main() -> int:
    """
    Runs one job.

    Returns:
        The process exit code: 0 when the batch completed (possibly with error
        records under continue-on-fail), 1 when it was stopped by a failure.
    """
    args = get_args()

    logger.remove()
    logger.add(sys.stderr, level=args.log_level, format=LOGGER_FORMAT)
    logger.debug(f"Parsed arguments: {args}")

    started_at = datetime.now()
    Modules.verify_ffmpeg()

    try:
        job = load_job(args.job)
        pipeline = BatchPipeline(
            job.parameters,
            engine=ExecutionEngine(error_log_dir=args.error_log_dir),
            temp_manager=TempResourceManager(args.temp_work_dir),
            continue_on_fail=args.continue_on_fail or job.continue_on_fail,
        )
        results = pipeline.run(job.items)
        entries = write_results(results, args.output_dir)
    except FFmpegAdvancedException as e:
        logger.error(f"Batch stopped: {e}")
        return 1

    report = SuccessLog(args.output_dir)
    for entry in entries:
        report.write(entry)

    logger.success(
        f"FFmpeg Advanced finished: {len(entries)} output item(s) in {format_timedelta(datetime.now() - started_at)}. "
        f"Report: {report.log_file_path}"
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
