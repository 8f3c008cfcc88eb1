"""
The immutable command plan handed to the execution engine.

A `CommandPlan` is assembled in one pass by the plan builder and used exactly
once. Filter graphs are kept as typed `FilterStage` descriptors and only turned
into FFmpeg's textual syntax by `to_args()`, at the execution boundary, so
quoting of expressions such as `min(zoom+0.0015,1.5)` happens in one place.
"""

from dataclasses import dataclass
from typing import List, Optional, Tuple

from .exceptions import ValidationException
from .operations import OperationKind

# Characters that end an option value in FFmpeg's filter syntax.
_FILTER_SPECIAL_CHARS = set(",:;[]='\\ ")


def format_number(value: float) -> str:
    """Formats a number for the command line without losing precision: 25.0 -> "25", 2.5 -> "2.5"."""
    value = float(value)
    if value.is_integer():
        return str(int(value))
    return repr(value)


def _quote_filter_value(value: str) -> str:
    if not any(c in _FILTER_SPECIAL_CHARS for c in value):
        return value
    return "'" + value.replace("'", "'\\''") + "'"


@dataclass(frozen=True)
class FilterStage:
    """
    One filter of a chain, e.g. `scale=1080:1920` or `zoompan=z=...:d=125`.

    `options` holds `(key, value)` pairs; an empty key makes the value
    positional. Values are quoted on serialization when they contain
    characters that are special to the filter graph parser.
    """

    name: str
    options: Tuple[Tuple[str, str], ...] = ()

    def serialize(self) -> str:
        if not self.options:
            return self.name
        parts = []
        for key, value in self.options:
            quoted = _quote_filter_value(str(value))
            parts.append(f"{key}={quoted}" if key else quoted)
        return f"{self.name}=" + ":".join(parts)


@dataclass(frozen=True)
class FilterChain:
    """
    A linear chain of filter stages with optional pad labels.

    Without labels the chain is a simple per-stream filter (`-vf`). With input
    or output labels it is a complex graph (`-filter_complex`), such as the
    concat filter joining several inputs.
    """

    stages: Tuple[FilterStage, ...]
    input_labels: Tuple[str, ...] = ()
    output_labels: Tuple[str, ...] = ()

    @property
    def is_complex(self) -> bool:
        return bool(self.input_labels or self.output_labels)

    def serialize(self) -> str:
        head = "".join(f"[{label}]" for label in self.input_labels)
        tail = "".join(f"[{label}]" for label in self.output_labels)
        return head + ",".join(stage.serialize() for stage in self.stages) + tail


@dataclass(frozen=True)
class PlanInput:
    """An input file and the options that must precede its `-i`."""

    path: str
    options: Tuple[str, ...] = ()


@dataclass(frozen=True)
class CommandPlan:
    """
    A fully specified FFmpeg invocation, minus the output path.

    Attributes:
        kind: The operation this plan was built for.
        inputs: Ordered inputs, each with its own input options.
        output_options: Codec, quality, mapping and muxer options.
        extension: The output container extension, without the dot.
        filter_graph: An optional filter chain.
    """

    kind: OperationKind
    inputs: Tuple[PlanInput, ...]
    output_options: Tuple[str, ...] = ()
    extension: str = "mp4"
    filter_graph: Optional[FilterChain] = None

    def __post_init__(self):
        if not self.inputs:
            raise ValidationException(f"A {self.kind.value} plan needs at least one input.")
        if self.kind is OperationKind.MERGE and len(self.inputs) != 2:
            raise ValidationException(f"A merge plan needs exactly two inputs; got {len(self.inputs)}.")
        if not self.extension:
            raise ValidationException(f"A {self.kind.value} plan needs an output extension.")
        if self.filter_graph is not None and not self.filter_graph.stages:
            raise ValidationException("A filter graph needs at least one stage.")

    @property
    def input_paths(self) -> List[str]:
        return [plan_input.path for plan_input in self.inputs]

    @property
    def filter_expression(self) -> Optional[str]:
        return self.filter_graph.serialize() if self.filter_graph else None

    def to_args(self, output_path: str) -> List[str]:
        """
        Serializes the plan into FFmpeg arguments (without the executable).

        The order is: each input's options followed by `-i <path>`, the filter
        graph, the output options, and finally the output path.
        """
        args: List[str] = []
        for plan_input in self.inputs:
            args.extend(plan_input.options)
            args.extend(["-i", plan_input.path])
        if self.filter_graph is not None:
            flag = "-filter_complex" if self.filter_graph.is_complex else "-vf"
            args.extend([flag, self.filter_graph.serialize()])
        args.extend(self.output_options)
        args.append(output_path)
        return args

