"""
This module provides the Modules class, which locates and verifies the external
executables the application drives: ffmpeg and ffprobe.
"""
import subprocess
import sys

from loguru import logger

from ..config.common import MODULE_PATH


class Modules:
    """
    Resolves paths to external tools.

    It reads `ffmpeg_dir` from the user's `config.user.yaml` to locate the
    executables, and falls back to the system's PATH if no directory is
    configured or the executable is not found there.
    """

    @staticmethod
    def _get_executable_path(name: str) -> str:
        """
        Determines the path of an executable from the configured module directory.

        Args:
            name: The bare executable name, e.g. "ffmpeg" or "ffprobe".

        Returns:
            An absolute path when the executable exists in `ffmpeg_dir`,
            otherwise the bare name so the system PATH is searched.
        """
        exe_name = f"{name}.exe" if sys.platform == "win32" else name

        if MODULE_PATH and MODULE_PATH.is_dir():
            configured_path = MODULE_PATH / exe_name
            if configured_path.is_file():
                logger.debug(f"Using {name} from configured path: '{configured_path}'")
                return str(configured_path)
            logger.warning(f"`ffmpeg_dir` is configured, but '{exe_name}' was not found there. Falling back to system PATH.")

        return name

    @staticmethod
    def _get_ffmpeg_path() -> str:
        return Modules._get_executable_path("ffmpeg")

    @staticmethod
    def _get_ffprobe_path() -> str:
        return Modules._get_executable_path("ffprobe")

    @staticmethod
    def verify_ffmpeg() -> bool:
        """
        Verifies that FFmpeg can be executed by running `ffmpeg -version`.

        Logs the first line of the version output on success and a detailed error
        otherwise. Nothing is raised; a missing FFmpeg will also surface later as
        a per-item execution failure.

        Returns:
            True if FFmpeg ran successfully.
        """
        ffmpeg_cmd = Modules._get_ffmpeg_path()

        try:
            result = subprocess.run(
                [ffmpeg_cmd, "-version"],
                check=True,
                capture_output=True,
                text=True,
                encoding="utf-8",
            )
            version_output_lines = result.stdout.splitlines()
            logger.info(f"FFmpeg version check successful: {version_output_lines[0] if version_output_lines else '?'}")
            return True
        except subprocess.CalledProcessError as e:
            logger.error(f"FFmpeg version command failed (return code {e.returncode}):\n{e.stderr}")
        except FileNotFoundError:
            logger.error(
                "FFmpeg command not found. Please ensure FFmpeg is installed and accessible.\n"
                "You can either add it to your system's PATH or specify its location in the 'config.user.yaml' file."
            )
        except OSError as e:
            logger.error(f"An unexpected error occurred while checking FFmpeg version: {e}")
        return False
