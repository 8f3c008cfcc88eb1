"""
This module provides the file-based logs written next to the console output.

ErrorLog appends human-readable failure records (the failing command and the
tail of FFmpeg's stderr) to a plain text file. SuccessLog keeps the run report:
a YAML list with one entry per output item, which is easy to feed into other
tooling after a batch.
"""

from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Union

import yaml
from loguru import logger

from ..config.common import ERROR_LOG_FILE_NAME, RUN_REPORT_FILE_NAME


class Log:
    """
    Base class for file logs.

    Resolves the log directory from the given path and makes sure it exists.
    """

    linesep_marker: str = "=" * 50

    def __init__(self, log_base_path: Path):
        """
        Args:
            log_base_path: A directory, or a file path whose parent is used.
        """
        self.log_file_path: Path
        log_base_path = Path(log_base_path)
        if log_base_path.suffix and not log_base_path.is_dir():
            self.log_dir: Path = log_base_path.parent.resolve()
        else:
            self.log_dir: Path = log_base_path.resolve()
        self.log_dir.mkdir(parents=True, exist_ok=True)

    def write(self, log_content: Union[dict, list, str]):
        raise NotImplementedError("Subclasses must implement the write() method.")


class ErrorLog(Log):
    """Appends error records to a plain text file, separated by a marker line."""

    def __init__(self, error_log_dir: Path, filename: str = ERROR_LOG_FILE_NAME):
        super().__init__(error_log_dir)
        self.log_file_path = self.log_dir / filename

    def write(self, *error_messages: str):
        """
        Appends one record made of the given lines.

        Args:
            *error_messages: The lines of the record, e.g. the item, the
                             command and the stderr tail.
        """
        if not error_messages:
            return

        content_to_write = "\n".join(error_messages) + "\n" + self.linesep_marker + "\n"

        try:
            with self.log_file_path.open("a", encoding="utf-8") as f:
                f.write(content_to_write)
        except OSError as e:
            # Keep the record on the console if the file is not writable.
            logger.error(f"Failed to write to error log {self.log_file_path}: {e}")
            for msg in error_messages:
                logger.error(f"  - {msg}")


class SuccessLog(Log):
    """
    Structured YAML report of a batch run.

    Entries are kept in memory and the whole list is rewritten on every
    `write()`, so the file is a valid YAML list even if the run is interrupted.
    """

    def __init__(self, success_log_dir: Path, filename: str = RUN_REPORT_FILE_NAME):
        super().__init__(success_log_dir)
        self.log_file_path = self.log_dir / filename
        self.log_entries: List[Dict[str, Any]] = []

    def write(self, new_log_entry: dict):
        """
        Appends an entry, assigns it the next index and rewrites the report.

        Args:
            new_log_entry: A dictionary describing one output item.
        """
        if not isinstance(new_log_entry, dict):
            logger.error("SuccessLog.write expects a dictionary as a log entry.")
            return

        entry = dict(new_log_entry)
        entry["index"] = len(self.log_entries) + 1
        entry.setdefault("ended_datetime", datetime.now().strftime("%Y-%m-%d %H:%M:%S"))
        self.log_entries.append(entry)

        try:
            with self.log_file_path.open("w", encoding="utf-8") as f:
                yaml.dump(
                    self.log_entries,
                    f,
                    default_flow_style=False,
                    sort_keys=False,
                    allow_unicode=True,
                    indent=4,
                    width=220,
                )
        except (OSError, yaml.YAMLError) as e:
            logger.error(f"Failed to write to success log {self.log_file_path}: {e}")

    def read(self) -> List[Dict[str, Any]]:
        """Loads the entries currently on disk; an absent or empty file gives []."""
        if not self.log_file_path.is_file():
            return []
        try:
            with self.log_file_path.open("r", encoding="utf-8") as f:
                loaded_entries = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as e:
            logger.error(f"Error reading success log {self.log_file_path}: {e}")
            return []
        return loaded_entries if isinstance(loaded_entries, list) else []
