"""
Configuration settings related to audio formats.

This module defines the raw data behind the format catalog (codec, container,
bitrate support and MIME type of every output format), the fixed per-format
arguments, the extensions accepted as input, and output naming conventions.
"""

# ======================================================================================
# Output Format Profiles
# ======================================================================================

# FLAC compression level passed with every FLAC encode (0-12, 5 is ffmpeg's default).
FLAC_COMPRESSION_LEVEL = 5

# Each entry: format id -> (container extension, codec name, supports bitrate,
# MIME type, fixed extra arguments appended after the codec/bitrate arguments).
# Lossless formats (wav, flac) never take a bitrate.
FORMAT_PROFILES = {
    "mp3": ("mp3", "libmp3lame", True, "audio/mpeg", ()),
    "wav": ("wav", "pcm_s16le", False, "audio/wav", ()),
    "m4a": ("m4a", "aac", True, "audio/mp4", ()),
    "aac": ("aac", "aac", True, "audio/aac", ("-strict", "experimental")),
    "ogg": ("ogg", "libvorbis", True, "audio/ogg", ()),
    "flac": ("flac", "flac", False, "audio/flac", ("-compression_level", str(FLAC_COMPRESSION_LEVEL))),
}

# MIME type used when a profile does not declare one.
DEFAULT_MIME_TYPE = "audio/*"


# ======================================================================================
# Recommended Parameters
# ======================================================================================

# Source extensions treated as lossless when recommending a target bitrate.
LOSSLESS_EXTENSIONS = ("wav", "flac")

RECOMMENDED_SAMPLE_RATE_HZ = 44100
RECOMMENDED_CHANNELS = 2

# format id -> (bitrate for a lossless source, bitrate for a lossy source).
RECOMMENDED_BITRATES = {
    "mp3": ("256k", "192k"),
    "m4a": ("256k", "160k"),
    "aac": ("256k", "160k"),
    "ogg": ("192k", "128k"),
}


# ======================================================================================
# Input Identification and Output Naming
# ======================================================================================

# Extensions (without the leading dot) accepted as conversion input.
AUDIO_EXTENSIONS = ("mp3", "wav", "m4a", "aac", "ogg", "flac")

# Appended to the source base name: "song.wav" -> "song_converted.mp3".
OUTPUT_NAME_SUFFIX = "_converted"
