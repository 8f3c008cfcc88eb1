"""
Configuration settings for the individual media operations.

This module defines the allowed values and defaults for every operation
parameter (formats, codecs, presets, resolutions), together with the constants
used to synthesize the animation filter graphs for still-image videos.
"""

# --- Operation Names ---
OPERATION_CONVERT = "convert"
OPERATION_COMPRESS = "compress"
OPERATION_EXTRACT_AUDIO = "extract_audio"
OPERATION_METADATA = "metadata"
OPERATION_CUSTOM = "custom"
OPERATION_IMAGE_TO_VIDEO = "image_to_video"
OPERATION_MERGE = "merge"
OPERATION_CONCATENATE = "concatenate"

DEFAULT_OPERATION = OPERATION_CONVERT

# --- Input / Output Modes ---
INPUT_MODE_BINARY = "binary"
INPUT_MODE_PATH = "path"
INPUT_MODES = (INPUT_MODE_BINARY, INPUT_MODE_PATH)

OUTPUT_MODE_BINARY = "binary"
OUTPUT_MODE_FILE = "file"
OUTPUT_MODES = (OUTPUT_MODE_BINARY, OUTPUT_MODE_FILE)

# --- Containers ---
VIDEO_FORMATS = ("mp4", "webm", "avi", "mov", "gif", "mkv")
AUDIO_FORMATS = ("mp3", "wav", "aac")
DEFAULT_VIDEO_FORMAT = "mp4"
DEFAULT_AUDIO_FORMAT = "mp3"

# --- Codecs ---
# "auto" leaves the choice to FFmpeg's default for the output container.
CODEC_AUTO = "auto"
CODEC_COPY = "copy"
H264_ENCODER = "libx264"
VP9_ENCODER = "libvpx-vp9"
AAC_ENCODER = "aac"
OPUS_ENCODER = "libopus"

CONVERT_VIDEO_CODECS = (CODEC_AUTO, H264_ENCODER, VP9_ENCODER)
CONVERT_AUDIO_CODECS = (CODEC_AUTO, AAC_ENCODER, OPUS_ENCODER)
MERGE_VIDEO_CODECS = (CODEC_AUTO, CODEC_COPY, H264_ENCODER, VP9_ENCODER)
MERGE_AUDIO_CODECS = (CODEC_AUTO, CODEC_COPY, AAC_ENCODER, OPUS_ENCODER)

# --- Resolution ---
RESOLUTION_ORIGINAL = "original"
RESOLUTIONS = (RESOLUTION_ORIGINAL, "1920x1080", "1280x720", "854x480")

# --- Quality / Speed ---
PRESETS = (
    "ultrafast", "superfast", "veryfast", "faster", "fast",
    "medium", "slow", "slower", "veryslow",
)
DEFAULT_PRESET = "medium"
MIN_CRF = 0
MAX_CRF = 51
DEFAULT_CRF = 23

# --- Streaming Optimization ---
# Input flags that disable demuxer buffering, and the x264 tuning that drops
# lookahead latency. The tuning only applies to the H.264 encoder.
NO_BUFFER_INPUT_FLAGS = ("-fflags", "nobuffer", "-flags", "low_delay")
ZERO_LATENCY_TUNE = ("-tune", "zerolatency")

# --- Custom Command ---
DEFAULT_CUSTOM_ARGS = "-c:v libx264 -preset slow -crf 22"
DEFAULT_CUSTOM_EXTENSION = "mp4"

# --- Image to Video ---
ANIMATION_NONE = "none"
ANIMATION_ZOOMPAN = "zoompan"
ANIMATION_ZOOMPAN_VERTICAL = "zoompan_vertical"
ANIMATION_ZOOMPAN_HORIZONTAL = "zoompan_horizontal"
ANIMATION_PRESETS = (
    ANIMATION_NONE,
    ANIMATION_ZOOMPAN,
    ANIMATION_ZOOMPAN_VERTICAL,
    ANIMATION_ZOOMPAN_HORIZONTAL,
)

# Output frame size for each zoom preset, as (width, height).
ANIMATION_TARGET_SIZES = {
    ANIMATION_ZOOMPAN: (1280, 720),
    ANIMATION_ZOOMPAN_VERTICAL: (1080, 1920),
    ANIMATION_ZOOMPAN_HORIZONTAL: (1920, 1080),
}
# Presets that scale and crop the source to the target aspect before zooming.
ANIMATION_CROPPED_PRESETS = (ANIMATION_ZOOMPAN_VERTICAL, ANIMATION_ZOOMPAN_HORIZONTAL)

ZOOM_STEP = 0.0015
ZOOM_MAX = 1.5
DEFAULT_IMAGE_DURATION = 5.0
DEFAULT_FRAME_RATE = 25.0
IMAGE_VIDEO_PIXEL_FORMAT = "yuv420p"

# --- Merge ---
DEFAULT_MERGE_VIDEO_CODEC = CODEC_COPY
DEFAULT_MERGE_AUDIO_CODEC = AAC_ENCODER

# --- Concatenate ---
CONCAT_STREAM_COPY = "stream_copy"
CONCAT_REENCODE = "reencode"
CONCAT_STRATEGIES = (CONCAT_STREAM_COPY, CONCAT_REENCODE)
CONCAT_SOURCE_BINARY = "binary"
CONCAT_SOURCE_PATHS = "paths"
CONCAT_SOURCES = (CONCAT_SOURCE_BINARY, CONCAT_SOURCE_PATHS)
# Codecs forced on re-encoded concatenation output so mixed inputs line up.
CONCAT_VIDEO_CODEC = H264_ENCODER
CONCAT_AUDIO_CODEC = AAC_ENCODER
