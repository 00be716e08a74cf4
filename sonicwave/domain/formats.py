"""
The output format catalog.

A `FormatProfile` is the fixed set of encoding parameters attached to one output
format id. `FormatCatalog` is a read-only lookup table built from
`config.audio.FORMAT_PROFILES`; it has no state beyond that table and is safe to
share between callers.
"""
from dataclasses import dataclass
from typing import Dict, Iterable, Optional, Tuple

from ..config.audio import (
    DEFAULT_MIME_TYPE,
    FORMAT_PROFILES,
    LOSSLESS_EXTENSIONS,
    RECOMMENDED_BITRATES,
    RECOMMENDED_CHANNELS,
    RECOMMENDED_SAMPLE_RATE_HZ,
)
from ..utils.format_utils import get_file_extension
from .exceptions import UnknownFormatError
from .models import ConversionOptions


@dataclass(frozen=True)
class FormatProfile:
    format_id: str
    container_extension: str
    codec_name: str
    supports_bitrate: bool
    mime_type: str = DEFAULT_MIME_TYPE
    extra_args: Tuple[str, ...] = ()

    @property
    def is_lossless(self) -> bool:
        return not self.supports_bitrate


def _normalize_format_id(format_id: str) -> str:
    return (format_id or "").strip().lstrip(".").lower()


class FormatCatalog:
    """
    Maps a format id to its `FormatProfile`.

    Ids are matched case-insensitively and a leading dot is ignored, so "MP3",
    ".mp3" and "mp3" all resolve to the same profile.
    """

    def __init__(self, profiles: Iterable[FormatProfile]):
        self._profiles: Dict[str, FormatProfile] = {}
        for profile in profiles:
            key = _normalize_format_id(profile.format_id)
            if key in self._profiles:
                raise ValueError(f"Duplicate format id in catalog: {key!r}")
            self._profiles[key] = profile

    @classmethod
    def from_config(cls, table: Optional[dict] = None) -> "FormatCatalog":
        table = FORMAT_PROFILES if table is None else table
        return cls(
            FormatProfile(
                format_id=format_id,
                container_extension=ext,
                codec_name=codec,
                supports_bitrate=supports_bitrate,
                mime_type=mime_type or DEFAULT_MIME_TYPE,
                extra_args=tuple(extra_args),
            )
            for format_id, (ext, codec, supports_bitrate, mime_type, extra_args) in table.items()
        )

    def resolve(self, format_id: str) -> FormatProfile:
        """
        Returns the profile registered for `format_id`.

        Raises:
            UnknownFormatError: If no profile is registered under that id.
        """
        profile = self._profiles.get(_normalize_format_id(format_id))
        if profile is None:
            raise UnknownFormatError(format_id)
        return profile

    def ids(self) -> Tuple[str, ...]:
        return tuple(self._profiles)

    def __contains__(self, format_id: object) -> bool:
        return isinstance(format_id, str) and _normalize_format_id(format_id) in self._profiles

    def __len__(self) -> int:
        return len(self._profiles)

    def recommended_options(self, source_name: str, format_id: str) -> ConversionOptions:
        """
        Suggests conversion options for turning `source_name` into `format_id`.

        Lossless targets get no bitrate. Lossy targets get a higher bitrate when
        the source itself is lossless, since there is more detail worth keeping.

        Raises:
            UnknownFormatError: If `format_id` is not registered.
        """
        profile = self.resolve(format_id)
        bitrate = None
        if profile.supports_bitrate:
            source_is_lossless = get_file_extension(source_name) in LOSSLESS_EXTENSIONS
            lossless_rate, lossy_rate = RECOMMENDED_BITRATES.get(
                _normalize_format_id(format_id), ("192k", "128k")
            )
            bitrate = lossless_rate if source_is_lossless else lossy_rate
        return ConversionOptions(
            channels=RECOMMENDED_CHANNELS,
            sample_rate_hz=RECOMMENDED_SAMPLE_RATE_HZ,
            bitrate=bitrate,
        )


# The catalog built from the static configuration. Read-only.
DEFAULT_CATALOG = FormatCatalog.from_config()


def resolve(format_id: str) -> FormatProfile:
    """Resolves `format_id` against the default catalog."""
    return DEFAULT_CATALOG.resolve(format_id)
