import yaml

from sonicwave.domain.metadata import Metadata
from sonicwave.domain.models import BatchResult, JobResult
from sonicwave.services.file_processing_service import ProcessAudioFiles, save_results
from sonicwave.services.logging_service import BatchReportLog, ErrorLog


def _sample_batch():
    batch = BatchResult()
    batch.add(JobResult.success("a.wav", b"12345", "a_converted.mp3", "audio/mpeg",
                                metadata=Metadata(duration="00:00:01.00")))
    batch.add(JobResult.failure("b.wav", "EngineExecError", "Engine run failed", attempts=3))
    batch.add(JobResult.success("c.wav", b"678", "c_converted.mp3", "audio/mpeg"))
    return batch


class TestProcessAudioFiles:
    def test_filters_by_extension_and_recurses(self, tmp_path):
        (tmp_path / "nested").mkdir()
        (tmp_path / "a.mp3").write_bytes(b"a")
        (tmp_path / "nested" / "b.FLAC").write_bytes(b"b")
        (tmp_path / "notes.txt").write_text("not audio")

        processor = ProcessAudioFiles([tmp_path])
        assert [p.name for p in processor.files] == ["a.mp3", "b.FLAC"]
        assert [p.name for p, _ in processor.skipped] == ["notes.txt"]

    def test_size_limit(self, tmp_path):
        big = tmp_path / "big.wav"
        big.write_bytes(b"\0" * (1024 * 1024 + 1))
        small = tmp_path / "small.wav"
        small.write_bytes(b"\0")

        processor = ProcessAudioFiles([big, small], max_file_size_mb=1)
        assert processor.files == (small,)
        assert processor.skipped[0][0] == big
        assert "too large" in processor.skipped[0][1]

    def test_missing_paths_and_duplicates(self, tmp_path):
        track = tmp_path / "t.ogg"
        track.write_bytes(b"ogg")
        processor = ProcessAudioFiles([track, tmp_path / "gone.mp3", track])
        assert processor.files == (track,)
        assert processor.skipped == [(tmp_path / "gone.mp3", "does not exist")]

    def test_load_keeps_order_and_names(self, tmp_path):
        first = tmp_path / "z.wav"
        second = tmp_path / "a.wav"
        first.write_bytes(b"zz")
        second.write_bytes(b"aa")
        sources = ProcessAudioFiles([first, second]).load()
        assert [(s.name, s.data) for s in sources] == [("z.wav", b"zz"), ("a.wav", b"aa")]
        assert sources[0].size == 2


def test_save_results_never_overwrites(tmp_path):
    (tmp_path / "a_converted.mp3").write_bytes(b"old")
    written = save_results(_sample_batch(), tmp_path)
    assert [p.name for p in written] == ["a_converted_1.mp3", "c_converted.mp3"]
    assert (tmp_path / "a_converted.mp3").read_bytes() == b"old"
    assert (tmp_path / "a_converted_1.mp3").read_bytes() == b"12345"


def test_batch_report_yaml(tmp_path):
    path = BatchReportLog(tmp_path).write(_sample_batch(), header={"format": "mp3"})
    document = yaml.safe_load(path.read_text(encoding="utf-8"))

    assert document["format"] == "mp3"
    assert document["total"] == 3
    assert document["succeeded"] == 2
    assert document["failed"] == 1
    assert [s["source_name"] for s in document["successes"]] == ["a.wav", "c.wav"]
    assert document["successes"][0]["output_size"] == "5 B"
    assert document["successes"][0]["metadata"]["duration"] == "00:00:01.00"
    assert document["failures"][0] == {
        "source_name": "b.wav",
        "ok": False,
        "error_kind": "EngineExecError",
        "message": "Engine run failed",
        "attempts": 3,
    }


def test_error_log_appends_blocks(tmp_path):
    error_log = ErrorLog(tmp_path)
    error_log.write_failures(_sample_batch())
    error_log.write("second event")
    text = error_log.log_file_path.read_text(encoding="utf-8")
    assert "Conversion failed for: b.wav" in text
    assert "Kind: EngineExecError" in text
    assert text.count(ErrorLog.linesep_marker) == 2


def test_error_log_ignores_empty_write(tmp_path):
    error_log = ErrorLog(tmp_path)
    error_log.write()
    assert not error_log.log_file_path.exists()
