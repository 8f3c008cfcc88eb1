"""
Operation descriptors and their validation.

Each media operation is a frozen dataclass carrying only the parameters that
operation understands. Together they form a closed set tagged by
`OperationKind`; the plan builder registers exactly one builder per kind.

`parse_operation` turns the raw parameter dictionary of one item into a
descriptor. It is the only place where user-supplied values are checked, and it
runs before any file I/O, so every malformed value surfaces as a
`ValidationException` while the temp directory is still untouched.
`parse_input_spec` and `parse_output_disposition` do the same for where the
item's media comes from and where the result goes.
"""

import math
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, ClassVar, Dict, Optional, Sequence, Tuple, Union

from ..config.common import (
    DEFAULT_AUDIO_BINARY_PROPERTY,
    DEFAULT_BINARY_PROPERTY,
    DEFAULT_VIDEO_BINARY_PROPERTY,
)
from ..config.operations import (
    ANIMATION_NONE,
    ANIMATION_PRESETS,
    AUDIO_FORMATS,
    CODEC_AUTO,
    CONCAT_REENCODE,
    CONCAT_SOURCE_BINARY,
    CONCAT_SOURCES,
    CONCAT_STRATEGIES,
    CONCAT_STREAM_COPY,
    CONVERT_AUDIO_CODECS,
    CONVERT_VIDEO_CODECS,
    DEFAULT_AUDIO_FORMAT,
    DEFAULT_CRF,
    DEFAULT_CUSTOM_ARGS,
    DEFAULT_CUSTOM_EXTENSION,
    DEFAULT_FRAME_RATE,
    DEFAULT_IMAGE_DURATION,
    DEFAULT_MERGE_AUDIO_CODEC,
    DEFAULT_MERGE_VIDEO_CODEC,
    DEFAULT_OPERATION,
    DEFAULT_PRESET,
    DEFAULT_VIDEO_FORMAT,
    INPUT_MODE_BINARY,
    INPUT_MODE_PATH,
    INPUT_MODES,
    MAX_CRF,
    MERGE_AUDIO_CODECS,
    MERGE_VIDEO_CODECS,
    MIN_CRF,
    OPERATION_COMPRESS,
    OPERATION_CONCATENATE,
    OPERATION_CONVERT,
    OPERATION_CUSTOM,
    OPERATION_EXTRACT_AUDIO,
    OPERATION_IMAGE_TO_VIDEO,
    OPERATION_MERGE,
    OPERATION_METADATA,
    OUTPUT_MODE_BINARY,
    OUTPUT_MODE_FILE,
    OUTPUT_MODES,
    PRESETS,
    RESOLUTION_ORIGINAL,
    RESOLUTIONS,
    VIDEO_FORMATS,
)
from .exceptions import ValidationException


class OperationKind(str, Enum):
    CONVERT = OPERATION_CONVERT
    COMPRESS = OPERATION_COMPRESS
    EXTRACT_AUDIO = OPERATION_EXTRACT_AUDIO
    METADATA = OPERATION_METADATA
    CUSTOM = OPERATION_CUSTOM
    IMAGE_TO_VIDEO = OPERATION_IMAGE_TO_VIDEO
    MERGE = OPERATION_MERGE
    CONCATENATE = OPERATION_CONCATENATE


@dataclass(frozen=True)
class ConvertOperation:
    kind: ClassVar[OperationKind] = OperationKind.CONVERT
    format: str = DEFAULT_VIDEO_FORMAT
    resolution: str = RESOLUTION_ORIGINAL
    video_codec: str = CODEC_AUTO
    audio_codec: str = CODEC_AUTO
    streaming_optimization: bool = False
    preset: str = DEFAULT_PRESET


@dataclass(frozen=True)
class CompressOperation:
    kind: ClassVar[OperationKind] = OperationKind.COMPRESS
    crf: int = DEFAULT_CRF
    preset: str = DEFAULT_PRESET
    format: str = DEFAULT_VIDEO_FORMAT


@dataclass(frozen=True)
class ExtractAudioOperation:
    kind: ClassVar[OperationKind] = OperationKind.EXTRACT_AUDIO
    audio_format: str = DEFAULT_AUDIO_FORMAT


@dataclass(frozen=True)
class MetadataOperation:
    kind: ClassVar[OperationKind] = OperationKind.METADATA


@dataclass(frozen=True)
class CustomOperation:
    """
    Raw FFmpeg output arguments.

    `custom_args` is split on whitespace and every token is handed to FFmpeg
    verbatim. There is no quoting support: an argument that itself contains a
    space (a drawtext string, a path with spaces) is split into several tokens.
    This is an unsafe passthrough, not a shell-like parser.
    """

    kind: ClassVar[OperationKind] = OperationKind.CUSTOM
    custom_args: str = DEFAULT_CUSTOM_ARGS
    output_extension: str = DEFAULT_CUSTOM_EXTENSION

    @property
    def tokens(self) -> Tuple[str, ...]:
        return tuple(self.custom_args.split())


@dataclass(frozen=True)
class ImageToVideoOperation:
    kind: ClassVar[OperationKind] = OperationKind.IMAGE_TO_VIDEO
    animation: str = ANIMATION_NONE
    duration: float = DEFAULT_IMAGE_DURATION
    frame_rate: float = DEFAULT_FRAME_RATE

    @property
    def frames(self) -> int:
        """Total output frames, `ceil(duration * frame_rate)`."""
        # Rounding first keeps 0.1 * 30 from becoming 4 frames.
        return math.ceil(round(self.duration * self.frame_rate, 6))


@dataclass(frozen=True)
class MergeOperation:
    kind: ClassVar[OperationKind] = OperationKind.MERGE
    video_codec: str = DEFAULT_MERGE_VIDEO_CODEC
    audio_codec: str = DEFAULT_MERGE_AUDIO_CODEC
    shortest: bool = True
    format: str = DEFAULT_VIDEO_FORMAT


@dataclass(frozen=True)
class ConcatenateOperation:
    kind: ClassVar[OperationKind] = OperationKind.CONCATENATE
    strategy: str = CONCAT_STREAM_COPY
    source: str = CONCAT_SOURCE_BINARY
    input_paths: Tuple[str, ...] = ()
    include_audio: bool = True
    format: str = DEFAULT_VIDEO_FORMAT

    @property
    def reencode(self) -> bool:
        return self.strategy == CONCAT_REENCODE


OperationDescriptor = Union[
    ConvertOperation,
    CompressOperation,
    ExtractAudioOperation,
    MetadataOperation,
    CustomOperation,
    ImageToVideoOperation,
    MergeOperation,
    ConcatenateOperation,
]


@dataclass(frozen=True)
class InputSpec:
    """
    Where an item's media comes from.

    `sources` pairs a role with either a binary field name (binary mode) or a
    filesystem path (path mode). Single-input operations use the role "main";
    Merge uses "video" and "audio", in that order.
    """

    mode: str
    sources: Tuple[Tuple[str, str], ...]

    @property
    def is_binary(self) -> bool:
        return self.mode == INPUT_MODE_BINARY


@dataclass(frozen=True)
class OutputDisposition:
    """
    Where a produced file goes: back as a binary payload, or copied to a path.

    Attributes:
        mode: "binary" or "file".
        binary_property: The field the payload is stored under (binary mode).
        file_name: Custom filename stem; a generated identifier is used when empty.
        destination: Absolute destination path (file mode only).
    """

    mode: str
    binary_property: str = DEFAULT_BINARY_PROPERTY
    file_name: str = ""
    destination: Optional[Path] = None

    @property
    def persist_to_path(self) -> bool:
        return self.mode == OUTPUT_MODE_FILE


# --- Parameter helpers ---

def _choice(params: Dict[str, Any], name: str, allowed: Sequence[str], default: str, index: int) -> str:
    value = params.get(name, default)
    if value is None:
        value = default
    value = str(value).strip()
    if value not in allowed:
        raise ValidationException(
            f"Item {index}: parameter '{name}' must be one of {', '.join(allowed)}; got '{value}'"
        )
    return value


def _flag(params: Dict[str, Any], name: str, default: bool, index: int) -> bool:
    value = params.get(name, default)
    if isinstance(value, bool):
        return value
    if isinstance(value, int) and value in (0, 1):
        return value == 1
    if isinstance(value, str) and value.strip().lower() in ("true", "yes", "1", "false", "no", "0"):
        return value.strip().lower() in ("true", "yes", "1")
    raise ValidationException(f"Item {index}: parameter '{name}' must be a boolean; got {value!r}")


def _positive_number(params: Dict[str, Any], name: str, default: float, index: int) -> float:
    value = params.get(name, default)
    if isinstance(value, bool):
        raise ValidationException(f"Item {index}: parameter '{name}' must be a number; got {value!r}")
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ValidationException(f"Item {index}: parameter '{name}' must be a number; got {value!r}") from None
    if not math.isfinite(number) or number <= 0:
        raise ValidationException(f"Item {index}: parameter '{name}' must be greater than 0; got {value!r}")
    return number


def _crf(params: Dict[str, Any], index: int) -> int:
    value = params.get("crf", DEFAULT_CRF)
    if isinstance(value, bool):
        raise ValidationException(f"Item {index}: parameter 'crf' must be an integer; got {value!r}")
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    if isinstance(value, str) and value.strip().lstrip("-").isdigit():
        value = int(value.strip())
    if not isinstance(value, int):
        raise ValidationException(f"Item {index}: parameter 'crf' must be an integer; got {value!r}")
    if not MIN_CRF <= value <= MAX_CRF:
        raise ValidationException(
            f"Item {index}: parameter 'crf' must be between {MIN_CRF} and {MAX_CRF}; got {value}"
        )
    return value


def _text(params: Dict[str, Any], name: str, default: str) -> str:
    value = params.get(name, default)
    return default if value is None else str(value).strip()


def parse_path_list(value: Any) -> Tuple[str, ...]:
    """Accepts a comma-separated string or a list of paths; blanks are dropped."""
    if value is None:
        return ()
    if isinstance(value, str):
        parts = value.split(",")
    elif isinstance(value, (list, tuple)):
        parts = [str(p) for p in value if p is not None]
    else:
        raise ValidationException(f"Parameter 'input_paths' must be a string or a list; got {type(value).__name__}")
    return tuple(p.strip() for p in parts if p and p.strip())


# --- Parsers ---

def parse_operation_kind(params: Dict[str, Any], index: int = 0) -> OperationKind:
    name = _choice(params, "operation", [k.value for k in OperationKind], DEFAULT_OPERATION, index)
    return OperationKind(name)


def parse_operation(params: Dict[str, Any], index: int = 0) -> OperationDescriptor:
    """
    Builds and validates the operation descriptor for one item.

    Args:
        params: The merged parameter dictionary of the item.
        index: The item index, used in error messages.

    Returns:
        One of the frozen operation dataclasses.

    Raises:
        ValidationException: If the operation name or any of its parameters is invalid.
    """
    kind = parse_operation_kind(params, index)

    if kind is OperationKind.CONVERT:
        return ConvertOperation(
            format=_choice(params, "format", VIDEO_FORMATS, DEFAULT_VIDEO_FORMAT, index),
            resolution=_choice(params, "resolution", RESOLUTIONS, RESOLUTION_ORIGINAL, index),
            video_codec=_choice(params, "video_codec", CONVERT_VIDEO_CODECS, CODEC_AUTO, index),
            audio_codec=_choice(params, "audio_codec", CONVERT_AUDIO_CODECS, CODEC_AUTO, index),
            streaming_optimization=_flag(params, "streaming_optimization", False, index),
            preset=_choice(params, "preset", PRESETS, DEFAULT_PRESET, index),
        )
    if kind is OperationKind.COMPRESS:
        return CompressOperation(
            crf=_crf(params, index),
            preset=_choice(params, "preset", PRESETS, DEFAULT_PRESET, index),
            format=_choice(params, "format", VIDEO_FORMATS, DEFAULT_VIDEO_FORMAT, index),
        )
    if kind is OperationKind.EXTRACT_AUDIO:
        return ExtractAudioOperation(
            audio_format=_choice(params, "audio_format", AUDIO_FORMATS, DEFAULT_AUDIO_FORMAT, index),
        )
    if kind is OperationKind.METADATA:
        return MetadataOperation()
    if kind is OperationKind.CUSTOM:
        extension = _text(params, "output_extension", DEFAULT_CUSTOM_EXTENSION).lstrip(".")
        if not extension or any(c in extension for c in "/\\ "):
            raise ValidationException(f"Item {index}: parameter 'output_extension' is not a valid extension: {extension!r}")
        return CustomOperation(
            custom_args=_text(params, "custom_args", DEFAULT_CUSTOM_ARGS),
            output_extension=extension,
        )
    if kind is OperationKind.IMAGE_TO_VIDEO:
        return ImageToVideoOperation(
            animation=_choice(params, "animation", ANIMATION_PRESETS, ANIMATION_NONE, index),
            duration=_positive_number(params, "duration", DEFAULT_IMAGE_DURATION, index),
            frame_rate=_positive_number(params, "frame_rate", DEFAULT_FRAME_RATE, index),
        )
    if kind is OperationKind.MERGE:
        return MergeOperation(
            video_codec=_choice(params, "video_codec", MERGE_VIDEO_CODECS, DEFAULT_MERGE_VIDEO_CODEC, index),
            audio_codec=_choice(params, "audio_codec", MERGE_AUDIO_CODECS, DEFAULT_MERGE_AUDIO_CODEC, index),
            shortest=_flag(params, "shortest", True, index),
            format=_choice(params, "format", VIDEO_FORMATS, DEFAULT_VIDEO_FORMAT, index),
        )
    if kind is OperationKind.CONCATENATE:
        source = _choice(params, "source", CONCAT_SOURCES, CONCAT_SOURCE_BINARY, index)
        return ConcatenateOperation(
            strategy=_choice(params, "strategy", CONCAT_STRATEGIES, CONCAT_STREAM_COPY, index),
            source=source,
            input_paths=parse_path_list(params.get("input_paths")),
            include_audio=_flag(params, "include_audio", True, index),
            format=_choice(params, "format", VIDEO_FORMATS, DEFAULT_VIDEO_FORMAT, index),
        )
    raise ValidationException(f"Item {index}: unsupported operation '{kind.value}'")


def parse_input_spec(operation: OperationDescriptor, params: Dict[str, Any], index: int = 0) -> InputSpec:
    """
    Resolves which binary fields or paths feed the operation.

    Only names and paths are checked here; whether the item actually carries the
    fields, or the paths exist, is checked by the pipeline right after, still
    before any temp file is written.
    """
    mode = _choice(params, "input_mode", INPUT_MODES, INPUT_MODE_BINARY, index)

    if operation.kind is OperationKind.MERGE:
        if mode == INPUT_MODE_BINARY:
            roles = (
                ("video", _text(params, "video_binary_property", DEFAULT_VIDEO_BINARY_PROPERTY)),
                ("audio", _text(params, "audio_binary_property", DEFAULT_AUDIO_BINARY_PROPERTY)),
            )
        else:
            roles = (
                ("video", _text(params, "video_path", "")),
                ("audio", _text(params, "audio_path", "")),
            )
    else:
        if mode == INPUT_MODE_BINARY:
            roles = (("main", _text(params, "binary_property", DEFAULT_BINARY_PROPERTY)),)
        else:
            roles = (("main", _text(params, "input_path", "")),)

    for role, value in roles:
        if not value:
            what = "binary field name" if mode == INPUT_MODE_BINARY else "input path"
            raise ValidationException(f"Item {index}: no {what} given for the {role} input")
    return InputSpec(mode=mode, sources=roles)


def parse_output_disposition(params: Dict[str, Any], index: int = 0) -> OutputDisposition:
    mode = _choice(params, "output_mode", OUTPUT_MODES, OUTPUT_MODE_BINARY, index)
    default_field = _text(params, "binary_property", DEFAULT_BINARY_PROPERTY) or DEFAULT_BINARY_PROPERTY
    binary_property = _text(params, "output_binary_property", default_field) or default_field
    file_name = _text(params, "output_filename", "")
    destination: Optional[Path] = None

    if mode == OUTPUT_MODE_FILE:
        raw_destination = _text(params, "output_path", "")
        if not raw_destination:
            raise ValidationException(f"Item {index}: parameter 'output_path' is required when output_mode is '{OUTPUT_MODE_FILE}'")
        destination = Path(raw_destination).expanduser()
        if not destination.is_absolute():
            raise ValidationException(f"Item {index}: parameter 'output_path' must be an absolute path; got '{raw_destination}'")

    return OutputDisposition(
        mode=mode,
        binary_property=binary_property,
        file_name=file_name,
        destination=destination,
    )
