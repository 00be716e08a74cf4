"""
Utilities Package for SonicWave.

Helper modules that are not specific to any single part of the conversion domain.

Modules:
    - ffmpeg_utils.py: Runs external commands and locates/verifies the FFmpeg binary.
    - format_utils.py: Formats sizes, durations and ratios, and derives file names.
"""
