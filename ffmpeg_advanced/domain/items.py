"""
Defines the item model exchanged with the host workflow engine.

The host supplies a list of `WorkItem`s and receives a list back. Each item has a
free-form json part that is passed through untouched, and a map of named binary
payloads. Raw bytes are read and written through a `BinaryStore` so the pipeline
never depends on where the host keeps them; `InMemoryBinaryStore` is the simple
default used by the CLI and the tests.

Operation parameters are resolved through `NodeParameters`: batch-level values,
optionally overridden per item index.
"""

import mimetypes
from pathlib import Path
from typing import Any, Dict, List, Optional, Protocol


class BinaryPayload:
    """
    A named binary attachment of a work item.

    Attributes:
        data (bytes): The raw file content.
        file_name (str): The filename reported to the host, e.g. "output_1a2b.mp4".
        mime_type (str): The MIME type guessed from the filename.
        file_extension (str): The extension without the leading dot.
    """

    def __init__(self, data: bytes, file_name: str = "", mime_type: Optional[str] = None):
        self.data = data
        self.file_name = file_name
        self.file_extension = Path(file_name).suffix.lstrip(".")
        if mime_type is None:
            mime_type = mimetypes.guess_type(file_name)[0] or "application/octet-stream"
        self.mime_type = mime_type

    @property
    def size(self) -> int:
        return len(self.data)

    def __repr__(self) -> str:
        return f"BinaryPayload(file_name={self.file_name!r}, mime_type={self.mime_type!r}, size={self.size})"


class WorkItem:
    """A single item of a batch: pass-through json plus named binary payloads."""

    def __init__(self, json: Optional[Dict[str, Any]] = None, binary: Optional[Dict[str, BinaryPayload]] = None):
        self.json: Dict[str, Any] = dict(json or {})
        self.binary: Dict[str, BinaryPayload] = dict(binary or {})

    def has_binary(self, field: str) -> bool:
        return field in self.binary

    def __repr__(self) -> str:
        return f"WorkItem(json={self.json!r}, binary={list(self.binary)})"


class BinaryStore(Protocol):
    """The host's get/put abstraction for raw payload bytes."""

    def get_bytes(self, item: WorkItem, field: str) -> bytes:
        ...

    def prepare(self, data: bytes, file_name: str) -> BinaryPayload:
        ...


class InMemoryBinaryStore:
    """Keeps payload bytes directly on the `BinaryPayload` objects."""

    def get_bytes(self, item: WorkItem, field: str) -> bytes:
        return item.binary[field].data

    def prepare(self, data: bytes, file_name: str) -> BinaryPayload:
        return BinaryPayload(data, file_name)


class NodeParameters:
    """
    Resolves operation parameters for a given item index.

    Batch-level `defaults` apply to every item. `per_item` is an optional list,
    aligned with the batch, whose dictionaries override the defaults for that
    one item (the way a host expression can evaluate differently per item).
    """

    def __init__(self, defaults: Optional[Dict[str, Any]] = None, per_item: Optional[List[Dict[str, Any]]] = None):
        self.defaults: Dict[str, Any] = dict(defaults or {})
        self.per_item: List[Dict[str, Any]] = list(per_item or [])

    def get(self, name: str, index: int = 0, default: Any = None) -> Any:
        if 0 <= index < len(self.per_item):
            overrides = self.per_item[index] or {}
            if name in overrides:
                return overrides[name]
        return self.defaults.get(name, default)

    def for_item(self, index: int) -> Dict[str, Any]:
        """Returns the fully merged parameter dictionary for one item."""
        merged = dict(self.defaults)
        if 0 <= index < len(self.per_item):
            merged.update(self.per_item[index] or {})
        return merged
