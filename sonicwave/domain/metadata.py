"""
Derives audio metadata from the codec engine's log output.

The engine has no structured metadata API; the only source is the text it
prints while opening an input. Everything that reads raw log text lives in
this module so the rest of the pipeline only ever sees a `Metadata` value.
"""
import re
from dataclasses import dataclass
from typing import Dict, Optional

# Marker for a field that could not be found in the log.
UNKNOWN = "unknown"

_DURATION_RE = re.compile(r"Duration: (\d{2}:\d{2}:\d{2}\.\d+)")
_SAMPLE_RATE_RE = re.compile(r"(\d+) Hz")
_CHANNELS_RE = re.compile(r"\b(mono|stereo|\d+ channels)\b")
# ffmpeg itself prints "kb/s"; "kbps" is accepted too.
_BITRATE_RE = re.compile(r"(\d+(?:\.\d+)?) (?:kbps|kb/s)")


@dataclass(frozen=True)
class Metadata:
    duration: str = UNKNOWN
    sample_rate: str = UNKNOWN
    channels: str = UNKNOWN
    bitrate: str = UNKNOWN

    def is_known(self, field_name: str) -> bool:
        return getattr(self, field_name) != UNKNOWN

    @property
    def is_empty(self) -> bool:
        return all(value == UNKNOWN for value in self.as_dict().values())

    def as_dict(self) -> Dict[str, str]:
        return {
            "duration": self.duration,
            "sample_rate": self.sample_rate,
            "channels": self.channels,
            "bitrate": self.bitrate,
        }


def _first_group(pattern: re.Pattern, text: str) -> Optional[str]:
    match = pattern.search(text)
    return match.group(1) if match else None


def extract_metadata(log_slice: Optional[str]) -> Metadata:
    """
    Parses duration, sample rate, channel layout and bitrate out of a log slice.

    Each field is matched independently, so a missing sample rate never hides a
    duration that is present. Fields with no match are `UNKNOWN`. This function
    does not raise: `None` or non-text input is treated as an empty log.

    Example:
        >>> extract_metadata("Duration: 00:03:21.45, bitrate: 192 kbps ... 44100 Hz, stereo")
        Metadata(duration='00:03:21.45', sample_rate='44100 Hz', channels='stereo', bitrate='192 kbps')
    """
    if not isinstance(log_slice, str) or not log_slice:
        return Metadata()

    duration = _first_group(_DURATION_RE, log_slice)
    sample_rate = _first_group(_SAMPLE_RATE_RE, log_slice)
    channels = _first_group(_CHANNELS_RE, log_slice)
    bitrate = _first_group(_BITRATE_RE, log_slice)

    return Metadata(
        duration=duration or UNKNOWN,
        sample_rate=f"{sample_rate} Hz" if sample_rate else UNKNOWN,
        channels=channels or UNKNOWN,
        bitrate=f"{bitrate} kbps" if bitrate else UNKNOWN,
    )


class MetadataExtractor:
    """Object form of `extract_metadata`, for callers that inject collaborators."""

    def extract(self, log_slice: Optional[str]) -> Metadata:
        return extract_metadata(log_slice)
