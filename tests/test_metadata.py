from sonicwave.domain.metadata import UNKNOWN, Metadata, MetadataExtractor, extract_metadata


def test_extracts_all_fields():
    log = "Duration: 00:03:21.45, start: 0.000000, 44100 Hz, stereo, 192 kbps"
    assert extract_metadata(log) == Metadata(
        duration="00:03:21.45",
        sample_rate="44100 Hz",
        channels="stereo",
        bitrate="192 kbps",
    )


def test_empty_log_is_all_unknown():
    metadata = extract_metadata("")
    assert metadata == Metadata()
    assert metadata.is_empty
    assert all(value == UNKNOWN for value in metadata.as_dict().values())


def test_non_text_input_never_raises():
    assert extract_metadata(None) == Metadata()
    assert extract_metadata(b"Duration: 00:00:01.00") == Metadata()


def test_fields_are_independent():
    metadata = extract_metadata("Stream #0:0: Audio: mp3, 48000 Hz, mono")
    assert metadata.duration == UNKNOWN
    assert metadata.bitrate == UNKNOWN
    assert metadata.sample_rate == "48000 Hz"
    assert metadata.channels == "mono"
    assert metadata.is_known("sample_rate")
    assert not metadata.is_known("duration")


def test_ffmpeg_kb_per_second_is_normalised():
    metadata = extract_metadata("  Duration: 00:00:05.12, start: 0.0, bitrate: 1411.2 kb/s")
    assert metadata.bitrate == "1411.2 kbps"
    assert metadata.duration == "00:00:05.12"


def test_channel_count_phrase():
    assert extract_metadata("Audio: flac, 96000 Hz, 6 channels, s32").channels == "6 channels"


def test_first_match_wins():
    log = (
        "Duration: 00:01:00.00, bitrate: 320 kb/s\n"
        "Stream #0:0: Audio: mp3, 44100 Hz, stereo, 320 kb/s\n"
        "Stream #0:1: Audio: mp3, 22050 Hz, mono, 64 kb/s\n"
    )
    metadata = extract_metadata(log)
    assert metadata.sample_rate == "44100 Hz"
    assert metadata.channels == "stereo"
    assert metadata.bitrate == "320 kbps"


def test_duration_needs_marker_and_fraction():
    assert extract_metadata("time=00:00:10.00").duration == UNKNOWN
    assert extract_metadata("Duration: N/A, bitrate: N/A").duration == UNKNOWN


def test_extractor_object():
    assert MetadataExtractor().extract("mono").channels == "mono"


def test_as_dict_keys():
    assert list(Metadata().as_dict()) == ["duration", "sample_rate", "channels", "bitrate"]
