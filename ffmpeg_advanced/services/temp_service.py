"""
This module defines the TempResourceManager, which owns every temporary file
the pipeline creates.

FFmpeg needs real files, so binary payloads are written to disk before
processing and outputs are produced on disk before being read back or copied.
All of those files live in one shared directory. Collisions between items (or
between concurrent processes sharing the directory) are avoided purely by
naming: each file gets a fresh UUID. Nothing is locked.

Callers open a `scope()` around the work for one item (or one aggregate run).
Everything acquired inside the scope is released when it exits, on the success
path and on every exception path.
"""

import tempfile
import uuid
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, List, Optional

from loguru import logger

from ..config.common import TEMP_WORK_DIR
from ..domain.exceptions import MediaIOException
from ..domain.temp_models import TempFile


class TempScope:
    """The set of temp files acquired for one operation."""

    def __init__(self, manager: "TempResourceManager", owner: str):
        self.manager = manager
        self.owner = owner
        self.files: List[TempFile] = []

    def acquire(self, kind: str, suffix: str = "") -> TempFile:
        temp_file = self.manager.acquire(kind, suffix=suffix, owner=self.owner)
        self.files.append(temp_file)
        return temp_file

    def write_bytes(self, kind: str, data: bytes, suffix: str = "") -> TempFile:
        temp_file = self.acquire(kind, suffix=suffix)
        try:
            temp_file.path.write_bytes(data)
        except OSError as e:
            raise MediaIOException(f"Could not write temporary file {temp_file.path}: {e}") from e
        return temp_file

    def write_text(self, kind: str, text: str, suffix: str = "") -> TempFile:
        temp_file = self.acquire(kind, suffix=suffix)
        try:
            temp_file.path.write_text(text, encoding="utf-8")
        except OSError as e:
            raise MediaIOException(f"Could not write temporary file {temp_file.path}: {e}") from e
        return temp_file

    def release_all(self):
        for temp_file in reversed(self.files):
            self.manager.release(temp_file)
        self.files.clear()


class TempResourceManager:
    """
    Allocates and reclaims uniquely named files in one temp directory.

    The directory is an explicit handle: pass `directory` to isolate a run (the
    tests give each test its own `tmp_path`). When omitted, the directory from
    `config.user.yaml` is used, falling back to the system temp directory.
    """

    def __init__(self, directory: Optional[Path] = None):
        if directory is None:
            directory = TEMP_WORK_DIR or Path(tempfile.gettempdir())
        self.directory = Path(directory).resolve()
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise MediaIOException(f"Could not create temporary directory {self.directory}: {e}") from e

    def acquire(self, kind: str, suffix: str = "", owner: str = "") -> TempFile:
        """
        Allocates a new unique path; the file itself is not created.

        Args:
            kind: What the file will hold, used as the name prefix.
            suffix: Optional extension including the dot, e.g. ".mp4".
            owner: A label for the acquiring operation, for logs.
        """
        path = self.directory / f"{kind}_{uuid.uuid4().hex}{suffix}"
        temp_file = TempFile(path, kind=kind, owner=owner)
        logger.trace(f"Acquired temp file {path.name} for {owner or 'unknown owner'}")
        return temp_file

    def release(self, temp_file: TempFile):
        """Deletes the file if it exists. Releasing twice, or a file never written, is not an error."""
        try:
            temp_file.path.unlink(missing_ok=True)
        except OSError as e:
            logger.error(f"Could not delete temp file {temp_file.path}: {e}")
        else:
            if not temp_file.released:
                logger.trace(f"Released temp file {temp_file.path.name}")
        temp_file.released = True

    @contextmanager
    def scope(self, owner: str = "") -> Iterator[TempScope]:
        """
        Yields a `TempScope` whose files are all released when the block exits.

        Example:
            with temp_manager.scope("item 3") as temps:
                source = temps.write_bytes("input", payload)
                output = temps.acquire("output", ".mp4")
                ...
        """
        temp_scope = TempScope(self, owner)
        try:
            yield temp_scope
        finally:
            temp_scope.release_all()
