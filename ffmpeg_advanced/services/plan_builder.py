"""
The command plan builder: operation descriptor + input paths -> CommandPlan.

Every function here is pure. Nothing touches the filesystem or spawns a process;
the same descriptor and paths always produce the same plan. There is one builder
per operation kind, registered in `PLAN_BUILDERS`. Metadata is the only kind
without a builder, because it is answered by a probe instead of an encode.
"""

import os
from typing import Callable, Dict, List, Optional, Sequence

from ..config.operations import (
    ANIMATION_CROPPED_PRESETS,
    ANIMATION_NONE,
    ANIMATION_TARGET_SIZES,
    CODEC_AUTO,
    CONCAT_AUDIO_CODEC,
    CONCAT_VIDEO_CODEC,
    H264_ENCODER,
    IMAGE_VIDEO_PIXEL_FORMAT,
    NO_BUFFER_INPUT_FLAGS,
    RESOLUTION_ORIGINAL,
    ZERO_LATENCY_TUNE,
    ZOOM_MAX,
    ZOOM_STEP,
)
from ..domain.exceptions import ValidationException
from ..domain.operations import (
    CompressOperation,
    ConcatenateOperation,
    ConvertOperation,
    CustomOperation,
    ExtractAudioOperation,
    ImageToVideoOperation,
    MergeOperation,
    OperationDescriptor,
    OperationKind,
)
from ..domain.plan import CommandPlan, FilterChain, FilterStage, PlanInput, format_number


def _single_input(kind: OperationKind, input_paths: Sequence[str]) -> str:
    if len(input_paths) != 1:
        raise ValidationException(f"A {kind.value} plan takes exactly one input; got {len(input_paths)}.")
    return input_paths[0]


def _scale_stage(resolution: str) -> FilterStage:
    width, height = resolution.split("x")
    return FilterStage("scale", (("w", width), ("h", height)))


def zoompan_stage(frames: int, width: int, height: int, frame_rate: float) -> FilterStage:
    """A centred zoom that grows by ZOOM_STEP per frame up to ZOOM_MAX."""
    return FilterStage(
        "zoompan",
        (
            ("z", f"min(zoom+{ZOOM_STEP},{ZOOM_MAX})"),
            ("d", str(frames)),
            ("x", "iw/2-(iw/zoom/2)"),
            ("y", "ih/2-(ih/zoom/2)"),
            ("s", f"{width}x{height}"),
            ("fps", format_number(frame_rate)),
        ),
    )


def build_convert_plan(operation: ConvertOperation, input_paths: Sequence[str]) -> CommandPlan:
    source = _single_input(operation.kind, input_paths)
    input_options = NO_BUFFER_INPUT_FLAGS if operation.streaming_optimization else ()

    output_options: List[str] = []
    if operation.video_codec != CODEC_AUTO:
        output_options.extend(["-c:v", operation.video_codec])
    if operation.audio_codec != CODEC_AUTO:
        output_options.extend(["-c:a", operation.audio_codec])
    # zerolatency is an x264 tune; "auto" resolves to x264 for the common containers.
    if operation.streaming_optimization and operation.video_codec in (H264_ENCODER, CODEC_AUTO):
        output_options.extend(ZERO_LATENCY_TUNE)
    output_options.extend(["-preset", operation.preset])

    filter_graph = None
    if operation.resolution != RESOLUTION_ORIGINAL:
        filter_graph = FilterChain((_scale_stage(operation.resolution),))

    return CommandPlan(
        kind=operation.kind,
        inputs=(PlanInput(source, tuple(input_options)),),
        output_options=tuple(output_options),
        extension=operation.format,
        filter_graph=filter_graph,
    )


def build_compress_plan(operation: CompressOperation, input_paths: Sequence[str]) -> CommandPlan:
    source = _single_input(operation.kind, input_paths)
    return CommandPlan(
        kind=operation.kind,
        inputs=(PlanInput(source),),
        output_options=(
            "-c:v", H264_ENCODER,
            "-crf", str(operation.crf),
            "-preset", operation.preset,
        ),
        extension=operation.format,
    )


def build_extract_audio_plan(operation: ExtractAudioOperation, input_paths: Sequence[str]) -> CommandPlan:
    source = _single_input(operation.kind, input_paths)
    return CommandPlan(
        kind=operation.kind,
        inputs=(PlanInput(source),),
        output_options=("-vn",),
        extension=operation.audio_format,
    )


def build_custom_plan(operation: CustomOperation, input_paths: Sequence[str]) -> CommandPlan:
    source = _single_input(operation.kind, input_paths)
    return CommandPlan(
        kind=operation.kind,
        inputs=(PlanInput(source),),
        output_options=operation.tokens,
        extension=operation.output_extension,
    )


def build_image_to_video_plan(operation: ImageToVideoOperation, input_paths: Sequence[str]) -> CommandPlan:
    """
    Loops a still image into a video of a fixed length.

    The `none` preset loops the image unchanged. The zoom presets add a zoompan
    stage sized to the preset's target; the vertical (9:16) and horizontal
    (16:9) presets first scale the image to cover the target and crop it, so the
    zoom never shows borders.
    """
    source = _single_input(operation.kind, input_paths)

    filter_graph = None
    if operation.animation != ANIMATION_NONE:
        width, height = ANIMATION_TARGET_SIZES[operation.animation]
        stages = []
        if operation.animation in ANIMATION_CROPPED_PRESETS:
            stages.append(
                FilterStage(
                    "scale",
                    (("", str(width)), ("", str(height)), ("force_original_aspect_ratio", "increase")),
                )
            )
            stages.append(FilterStage("crop", (("", str(width)), ("", str(height)))))
        stages.append(zoompan_stage(operation.frames, width, height, operation.frame_rate))
        filter_graph = FilterChain(tuple(stages))

    return CommandPlan(
        kind=operation.kind,
        inputs=(PlanInput(source, ("-loop", "1")),),
        output_options=(
            "-t", format_number(operation.duration),
            "-r", format_number(operation.frame_rate),
            "-c:v", H264_ENCODER,
            "-pix_fmt", IMAGE_VIDEO_PIXEL_FORMAT,
        ),
        extension="mp4",
        filter_graph=filter_graph,
    )


def build_merge_plan(operation: MergeOperation, input_paths: Sequence[str]) -> CommandPlan:
    """Muxes the video stream of input 0 with the audio stream of input 1."""
    if len(input_paths) != 2:
        raise ValidationException(f"A merge plan takes a video and an audio input; got {len(input_paths)} inputs.")
    video_path, audio_path = input_paths

    output_options: List[str] = ["-map", "0:v:0", "-map", "1:a:0"]
    if operation.video_codec != CODEC_AUTO:
        output_options.extend(["-c:v", operation.video_codec])
    if operation.audio_codec != CODEC_AUTO:
        output_options.extend(["-c:a", operation.audio_codec])
    if operation.shortest:
        output_options.append("-shortest")

    return CommandPlan(
        kind=operation.kind,
        inputs=(PlanInput(video_path), PlanInput(audio_path)),
        output_options=tuple(output_options),
        extension=operation.format,
    )


def render_concat_manifest(input_paths: Sequence[str]) -> str:
    """
    Renders the concat demuxer list: one `file '<absolute path>'` line per input.

    A single quote inside a path is closed, escaped and reopened (`'\\''`), which
    is how the concat demuxer expects it.
    """
    lines = []
    for path in input_paths:
        escaped = os.path.abspath(path).replace("'", "'\\''")
        lines.append(f"file '{escaped}'")
    return "\n".join(lines) + "\n"


def build_concatenate_plan(
    operation: ConcatenateOperation,
    input_paths: Sequence[str],
    manifest_path: Optional[str] = None,
) -> CommandPlan:
    """
    Builds one of the two concatenation plans.

    Stream copy reads `manifest_path` (already rendered with
    `render_concat_manifest`) through the concat demuxer and copies every
    stream; input compatibility is not checked. Re-encode feeds every input
    separately into a concat filter and re-encodes to H.264 (and AAC).
    """
    if not input_paths:
        raise ValidationException("A concatenate plan needs at least one input.")

    if not operation.reencode:
        if not manifest_path:
            raise ValidationException("A stream-copy concatenate plan needs a manifest file.")
        return CommandPlan(
            kind=operation.kind,
            inputs=(PlanInput(manifest_path, ("-f", "concat", "-safe", "0")),),
            output_options=("-c", "copy"),
            extension=operation.format,
        )

    count = len(input_paths)
    labels: List[str] = []
    for i in range(count):
        labels.append(f"{i}:v")
        if operation.include_audio:
            labels.append(f"{i}:a")

    audio_streams = "1" if operation.include_audio else "0"
    outputs = ("outv", "outa") if operation.include_audio else ("outv",)
    concat = FilterStage("concat", (("n", str(count)), ("v", "1"), ("a", audio_streams)))

    output_options: List[str] = ["-map", "[outv]"]
    if operation.include_audio:
        output_options.extend(["-map", "[outa]"])
    output_options.extend(["-c:v", CONCAT_VIDEO_CODEC])
    if operation.include_audio:
        output_options.extend(["-c:a", CONCAT_AUDIO_CODEC])

    return CommandPlan(
        kind=operation.kind,
        inputs=tuple(PlanInput(path) for path in input_paths),
        output_options=tuple(output_options),
        extension=operation.format,
        filter_graph=FilterChain((concat,), input_labels=tuple(labels), output_labels=outputs),
    )


PLAN_BUILDERS: Dict[OperationKind, Callable[..., CommandPlan]] = {
    OperationKind.CONVERT: build_convert_plan,
    OperationKind.COMPRESS: build_compress_plan,
    OperationKind.EXTRACT_AUDIO: build_extract_audio_plan,
    OperationKind.CUSTOM: build_custom_plan,
    OperationKind.IMAGE_TO_VIDEO: build_image_to_video_plan,
    OperationKind.MERGE: build_merge_plan,
    OperationKind.CONCATENATE: build_concatenate_plan,
}

_unbuilt_kinds = set(OperationKind) - set(PLAN_BUILDERS) - {OperationKind.METADATA}
if _unbuilt_kinds:
    raise RuntimeError(f"No plan builder registered for: {sorted(k.value for k in _unbuilt_kinds)}")


def build_plan(
    operation: OperationDescriptor,
    input_paths: Sequence[str],
    manifest_path: Optional[str] = None,
) -> CommandPlan:
    """
    Maps an operation descriptor and its resolved input paths to a command plan.

    Args:
        operation: A validated operation descriptor.
        input_paths: Resolved input file paths, in the order the operation expects.
        manifest_path: The concat list file, for stream-copy concatenation only.

    Raises:
        ValidationException: For metadata (which has no plan) or a wrong input count.
    """
    builder = PLAN_BUILDERS.get(operation.kind)
    if builder is None:
        raise ValidationException(f"Operation '{operation.kind.value}' does not produce a command plan.")
    if operation.kind is OperationKind.CONCATENATE:
        return builder(operation, list(input_paths), manifest_path)
    return builder(operation, list(input_paths))
