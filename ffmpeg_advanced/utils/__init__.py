"""
Utilities Package.

Modules:
    - ffmpeg_utils.py: runs external commands and condenses their stderr.
    - format_utils.py: human-readable durations and file sizes.
    - module_updater.py: locates and verifies the ffmpeg/ffprobe executables.
"""
