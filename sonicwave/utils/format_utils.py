"""
This module contains helper functions for formatting data into human-readable strings
and for deriving names from file names. They are used throughout the application,
particularly in logging and reports, to present durations, sizes and ratios in a
clear and consistent way.
"""

import re
from datetime import timedelta
from pathlib import Path
from typing import Iterable

_EXTENSION_RE = re.compile(r"\.[^/.]+$")


def format_timedelta(td_object: timedelta) -> str:
    """
    Formats a timedelta object into a "HH:MM:SS" string.

    Args:
        td_object: The timedelta object to format.

    Returns:
        A string representing the timedelta in HH:MM:SS format.
        For example, a timedelta of 7261 seconds becomes "02:01:01".
        Returns "00:00:00" if the input is not a valid timedelta object.
    """
    if not isinstance(td_object, timedelta):
        return "00:00:00"

    total_seconds = int(td_object.total_seconds())
    hours, remainder = divmod(total_seconds, 3600)
    minutes, seconds = divmod(remainder, 60)
    return f"{hours:02}:{minutes:02}:{seconds:02}"


def formatted_size(size_bytes: int) -> str:
    """
    Converts a size in bytes to a human-readable string (e.g., B, KB, MB, GB, TB).

    Args:
        size_bytes: The size in bytes.

    Returns:
        A formatted string with the appropriate unit.
        For example, 1536 becomes "1.50 KB", and 2097152 becomes "2 MB".
    """
    if size_bytes < 0:
        size_bytes = 0

    units = ["B", "KB", "MB", "GB", "TB", "PB"]
    factor = 1024.0

    if size_bytes == 0:
        return "0 B"

    # Iterate through units until the size is less than the next factor of 1024.
    for unit in units:
        if size_bytes < factor:
            if unit == "B":
                return f"{size_bytes} {unit}"
            else:
                # Clean up ".00" for whole numbers (e.g., "2.00 MB" -> "2 MB").
                return f"{size_bytes:.2f} {unit}".replace(".00", "")
        size_bytes /= factor

    return f"{size_bytes:.2f} {units[-1]}".replace(".00", "")


def get_file_extension(file_name: str) -> str:
    """
    Returns the lowercased extension of `file_name` without the dot.

    "Track.FLAC" gives "flac". A name without an extension gives "".
    """
    suffix = Path(file_name or "").suffix
    return suffix[1:].lower() if suffix else ""


def strip_extension(file_name: str) -> str:
    """Removes the last extension: "album/song.wav" gives "album/song"."""
    return _EXTENSION_RE.sub("", file_name or "")


def build_output_name(source_name: str, extension: str, suffix: str = "") -> str:
    """
    Derives the download name of a converted file.

    Only the base name of `source_name` is kept, so directory parts never leak
    into the output: "in/song.wav" with "mp3" and "_converted" gives
    "song_converted.mp3".
    """
    base = strip_extension(Path(source_name or "").name) or "output"
    return f"{base}{suffix}.{extension}"


def contains_any_extensions(file_name: str, extensions_to_check: Iterable[str]) -> bool:
    """
    Checks if a file's extension is one of `extensions_to_check` (case-insensitive).

    Extensions may be given with or without the leading dot.
    """
    normalized_extensions = {ext.lower().lstrip(".") for ext in extensions_to_check}
    if not normalized_extensions:
        return False
    return get_file_extension(file_name) in normalized_extensions


def compression_ratio(original_size: int, compressed_size: int) -> float:
    """
    Percentage of the original size saved by the conversion, rounded to one decimal.

    Negative when the output grew. Returns 0.0 for an empty original.
    """
    if original_size <= 0:
        return 0.0
    ratio = (original_size - compressed_size) / original_size * 100
    return round(ratio, 1)
