"""
Common configuration settings used throughout the application.

This module contains globally shared configuration settings and constants that are
used across the whole batch processor. It centralizes parameters for logging,
temporary file management, default item field names and report filenames.
It also handles the loading of user-specific configuration from an external
YAML file, allowing for easy customization without modifying the source code.
"""
from pathlib import Path

import yaml
from loguru import logger

# --- User-Defined Path Configuration ---
# This block loads user-specific paths from a 'config.user.yaml' file located
# at the project root. This allows users to specify the locations of external
# tools like FFmpeg, and a scratch directory, without hardcoding paths.

PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent
USER_CONFIG_PATH = PROJECT_ROOT / "config.user.yaml"

# The directory containing the ffmpeg and ffprobe executables. If not provided,
# the application assumes the executables are available in the system's PATH.
MODULE_PATH: Path | None = None

# The shared directory for temporary input/output files. If not provided, the
# system temporary directory is used. The `--temp-work-dir` flag overrides it.
TEMP_WORK_DIR: Path | None = None

if USER_CONFIG_PATH.is_file():
    try:
        with USER_CONFIG_PATH.open("r", encoding="utf-8") as f:
            user_config = yaml.safe_load(f)
        if user_config and "paths" in user_config:
            paths_config = user_config.get("paths") or {}
            ffmpeg_dir_str = paths_config.get("ffmpeg_dir")
            temp_dir_str = paths_config.get("temp_dir")

            if ffmpeg_dir_str:
                MODULE_PATH = Path(ffmpeg_dir_str)
            if temp_dir_str:
                TEMP_WORK_DIR = Path(temp_dir_str)
    except (OSError, yaml.YAMLError) as e:
        logger.warning(f"Could not load or parse '{USER_CONFIG_PATH}': {e}")
else:
    logger.debug(f"User config '{USER_CONFIG_PATH}' not found. Relying on system PATH for executables.")


# --- Logging Configuration ---

# The format string for the Loguru logger.
LOGGER_FORMAT = (
    "<green>{time:MM-DD HH:mm:ss}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | "
    "<level>{message}</level>"
)

# Number of trailing stderr lines kept when an FFmpeg failure is turned into
# an error message. FFmpeg prints its banner and stream mapping first, the
# actual reason for the failure is almost always at the end.
STDERR_TAIL_LINES = 5


# --- Item Field Defaults ---

# The binary field read from (and written to) each item when nothing else is set.
DEFAULT_BINARY_PROPERTY = "data"
DEFAULT_VIDEO_BINARY_PROPERTY = "video"
DEFAULT_AUDIO_BINARY_PROPERTY = "audio"

# The json key used for per-item error records under continue-on-fail.
ERROR_KEY = "error"


# --- Temporary File Naming ---
# Every temporary file is named `<kind>_<uuid hex><suffix>`; the kinds below
# make a leaked file easy to attribute when inspecting the temp directory.

TEMP_KIND_INPUT = "input"
TEMP_KIND_OUTPUT = "output"
TEMP_KIND_MANIFEST = "concat_list"


# --- Report Files ---

# Filename of the YAML report written by the CLI host after a batch run.
RUN_REPORT_FILE_NAME = "run_report.yaml"

# Filename of the plain-text error log written next to failed commands.
ERROR_LOG_FILE_NAME = "error.txt"
