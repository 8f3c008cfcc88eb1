"""
Defines data models for temporary resource management.
"""

from datetime import datetime
from pathlib import Path


class TempFile:
    """
    A uniquely named file in the shared temporary directory.

    A `TempFile` only describes the path; the file itself is created by whoever
    writes to it (the pipeline for inputs and manifests, FFmpeg for outputs).
    Every instance handed out by `TempResourceManager.acquire()` must be passed to
    `release()` before the operation that acquired it returns, whether it
    succeeded or not.

    Attributes:
        path (Path): Absolute path of the file.
        kind (str): What the file holds: "input", "output" or "concat_list".
        owner (str): A label for the operation that acquired the file, for logs.
        created_at (datetime): When the path was allocated.
        released (bool): Set once the file has been released.
    """

    def __init__(self, path: Path, kind: str, owner: str = ""):
        self.path = path
        self.kind = kind
        self.owner = owner
        self.created_at = datetime.now()
        self.released = False

    @property
    def exists(self) -> bool:
        return self.path.exists()

    def __str__(self) -> str:
        return str(self.path)

    def __repr__(self) -> str:
        return f"TempFile(path={str(self.path)!r}, kind={self.kind!r}, owner={self.owner!r})"
