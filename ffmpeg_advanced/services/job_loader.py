"""
Loads batch jobs from YAML and writes their results back to disk.

This is the command-line stand-in for a host workflow engine. A job file looks
like this:

    parameters:
      operation: convert
      format: webm
      resolution: 1280x720
    continue_on_fail: true
    items:
      - json: {title: intro}
        binary: {data: clips/intro.mov}
      - json: {title: outro}
        binary: {data: clips/outro.mov}
        parameters: {resolution: original}

Relative binary paths are resolved against the job file's directory. Each
item's `parameters` override the batch-level ones for that item only.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List

import yaml
from loguru import logger

from ..config.common import ERROR_KEY
from ..domain.exceptions import MediaIOException, NotFoundException, ValidationException
from ..domain.items import BinaryPayload, NodeParameters, WorkItem
from ..utils.format_utils import formatted_size


@dataclass
class Job:
    items: List[WorkItem]
    parameters: NodeParameters
    continue_on_fail: bool = False
    source: Path = field(default_factory=Path)


def _load_item(raw_item: Any, position: int, base_dir: Path) -> WorkItem:
    if not isinstance(raw_item, dict):
        raise ValidationException(f"Job item {position} must be a mapping; got {type(raw_item).__name__}")

    json = raw_item.get("json") or {}
    if not isinstance(json, dict):
        raise ValidationException(f"Job item {position}: 'json' must be a mapping")

    binary: Dict[str, BinaryPayload] = {}
    for field_name, raw_path in (raw_item.get("binary") or {}).items():
        path = Path(str(raw_path)).expanduser()
        if not path.is_absolute():
            path = base_dir / path
        if not path.is_file():
            raise NotFoundException(f"Job item {position}: binary file for '{field_name}' not found: {path}")
        try:
            binary[field_name] = BinaryPayload(path.read_bytes(), path.name)
        except OSError as e:
            raise MediaIOException(f"Job item {position}: could not read {path}: {e}") from e
        logger.debug(f"Loaded {path.name} ({formatted_size(binary[field_name].size)}) into item {position}.{field_name}")

    return WorkItem(json=json, binary=binary)


def load_job(job_path: Path) -> Job:
    """
    Reads a job file.

    Args:
        job_path: Path to the YAML job definition.

    Returns:
        A Job holding the loaded items (payload bytes read into memory), the
        batch parameters and the `continue_on_fail` flag.

    Raises:
        NotFoundException: If the job file or a referenced binary file is missing.
        ValidationException: If the YAML is malformed or has the wrong shape.
    """
    job_path = Path(job_path).expanduser().resolve()
    if not job_path.is_file():
        raise NotFoundException(f"Job file not found: {job_path}")

    try:
        with job_path.open("r", encoding="utf-8") as f:
            raw_job = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ValidationException(f"Could not parse job file {job_path}: {e}") from e
    except OSError as e:
        raise MediaIOException(f"Could not read job file {job_path}: {e}") from e

    if not isinstance(raw_job, dict):
        raise ValidationException(f"Job file {job_path} must contain a mapping at the top level")

    defaults = raw_job.get("parameters") or {}
    raw_items = raw_job.get("items") or []
    if not isinstance(defaults, dict):
        raise ValidationException("Job 'parameters' must be a mapping")
    if not isinstance(raw_items, list):
        raise ValidationException("Job 'items' must be a list")

    items = [_load_item(raw_item, i, job_path.parent) for i, raw_item in enumerate(raw_items)]
    per_item = [(raw_item.get("parameters") or {}) for raw_item in raw_items]

    logger.info(f"Loaded job {job_path.name} with {len(items)} item(s)")
    return Job(
        items=items,
        parameters=NodeParameters(defaults, per_item),
        continue_on_fail=bool(raw_job.get("continue_on_fail", False)),
        source=job_path,
    )


def _unique_destination(output_dir: Path, file_name: str, used_names: set) -> Path:
    """Appends `_1`, `_2`, ... to the stem when an earlier result of this run took the name."""
    candidate = Path(file_name)
    counter = 0
    while candidate.name in used_names:
        counter += 1
        candidate = Path(f"{Path(file_name).stem}_{counter}{Path(file_name).suffix}")
    if counter:
        logger.warning(f"Output name {file_name} is already used in this run; writing {candidate.name} instead")
    used_names.add(candidate.name)
    return output_dir / candidate.name


def write_results(results: List[WorkItem], output_dir: Path) -> List[Dict[str, Any]]:
    """
    Writes every binary payload of the results into `output_dir`.

    Returns:
        One report entry per output item: its json, the files written for it,
        and `status` ("success" or "error").

    Raises:
        MediaIOException: If a payload cannot be written.
    """
    output_dir = Path(output_dir)
    try:
        output_dir.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise MediaIOException(f"Could not create output directory {output_dir}: {e}") from e

    entries = []
    used_names = set()
    for result in results:
        files = {}
        for field_name, payload in result.binary.items():
            destination = _unique_destination(output_dir, payload.file_name, used_names)
            try:
                destination.write_bytes(payload.data)
            except OSError as e:
                raise MediaIOException(f"Could not write {destination}: {e}") from e
            files[field_name] = str(destination)
            logger.info(f"Wrote {destination.name} ({formatted_size(payload.size)})")

        entries.append(
            {
                "status": "error" if ERROR_KEY in result.json else "success",
                "json": result.json,
                "files": files,
            }
        )
    return entries
