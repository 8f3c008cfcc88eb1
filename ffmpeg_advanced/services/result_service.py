"""
This module defines the ResultAssembler, which turns a produced file into the
output record returned to the host.

An output is either handed back as a binary payload on the item, or copied to
a destination path (the item then only reports where it went). Metadata
results are built from a probe document instead of a produced file.
"""

import shutil
import uuid
from pathlib import Path
from typing import Any, Dict, Optional

from loguru import logger

from ..domain.exceptions import MediaIOException
from ..domain.items import BinaryStore, InMemoryBinaryStore, WorkItem
from ..domain.operations import OutputDisposition
from ..utils.format_utils import formatted_size


def summarize_probe(probe: Dict[str, Any]) -> Dict[str, Any]:
    """
    Builds the metadata record: the full `format` and `streams` sections plus
    `duration` (seconds), `bitrate` (bits/s) and `format_name` lifted to the
    top level. Values ffprobe did not report are None.
    """
    format_section = probe.get("format") or {}

    def _number(key: str, cast):
        value = format_section.get(key)
        try:
            return cast(value) if value is not None else None
        except (TypeError, ValueError):
            return None

    return {
        "format": format_section,
        "streams": probe.get("streams") or [],
        "duration": _number("duration", float),
        "bitrate": _number("bit_rate", lambda v: int(float(v))),
        "format_name": format_section.get("format_name"),
    }


class ResultAssembler:
    def __init__(self, binary_store: Optional[BinaryStore] = None):
        self.binary_store = binary_store or InMemoryBinaryStore()

    def assemble(self, item: WorkItem, output_path: Path, extension: str, disposition: OutputDisposition) -> WorkItem:
        """Dispatches on the disposition mode."""
        if disposition.persist_to_path:
            return self.to_path(item, output_path, disposition.destination)
        return self.to_binary(item, output_path, extension, disposition)

    def to_binary(self, item: WorkItem, output_path: Path, extension: str, disposition: OutputDisposition) -> WorkItem:
        """
        Reads the produced file into a payload stored under the output field.

        The payload is named `<output_filename>.<extension>`, or
        `output_<uuid>.<extension>` when no filename was configured. The source
        item's json is passed through unchanged and its input binaries are not
        carried over.

        Raises:
            MediaIOException: If the produced file cannot be read.
        """
        try:
            data = Path(output_path).read_bytes()
        except OSError as e:
            raise MediaIOException(f"Could not read FFmpeg output {output_path}: {e}") from e

        stem = disposition.file_name or f"output_{uuid.uuid4().hex}"
        file_name = f"{stem}.{extension}"
        payload = self.binary_store.prepare(data, file_name)
        logger.debug(f"Output {file_name} ({formatted_size(len(data))}) stored in '{disposition.binary_property}'")
        return WorkItem(json=item.json, binary={disposition.binary_property: payload})

    def to_path(self, item: WorkItem, output_path: Path, destination: Path) -> WorkItem:
        """
        Copies the produced file to `destination`, creating missing parent directories.

        Returns:
            A WorkItem whose json is the source json plus `output_path` and
            `success: true`.

        Raises:
            MediaIOException: If the directory cannot be created or the copy fails.
        """
        destination = Path(destination)
        try:
            destination.parent.mkdir(parents=True, exist_ok=True)
            shutil.copyfile(output_path, destination)
        except OSError as e:
            raise MediaIOException(f"Could not copy output to {destination}: {e}") from e

        logger.info(f"Saved output to {destination}")
        json = dict(item.json)
        json["output_path"] = str(destination)
        json["success"] = True
        return WorkItem(json=json)

    def metadata(self, item: WorkItem, probe: Dict[str, Any]) -> WorkItem:
        """The probe summary as json; the item's binaries are passed through as-is."""
        return WorkItem(json=summarize_probe(probe), binary=item.binary)
