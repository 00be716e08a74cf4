"""
BatchOrchestrator and run_batch tests: ordering, failure isolation, the
one-result-per-file invariant, cancellation and progress reporting.
"""
import pytest

from sonicwave.domain.exceptions import UnknownFormatError
from sonicwave.domain.models import ConversionOptions, SourceFile
from sonicwave.pipeline.batch_pipeline import (
    BatchOrchestrator,
    CancellationToken,
    build_jobs,
    run_batch,
)
from sonicwave.services.job_orchestrator import JobOrchestrator

from .conftest import FakeEngine, make_job


@pytest.fixture
def files():
    return [
        SourceFile("one.wav", b"one"),
        SourceFile("two.wav", b"two"),
        SourceFile("three.wav", b"three"),
    ]


def test_middle_job_failure_does_not_abort_batch(files, delays):
    engine = FakeEngine(fail_input=lambda data: data == b"two")
    batch = run_batch(engine, files, "mp3", sleep=delays.append)

    assert [r.source_name for r in batch.successes] == ["one.wav", "three.wav"]
    assert [r.output_name for r in batch.successes] == ["one_converted.mp3", "three_converted.mp3"]
    assert len(batch.failures) == 1
    failure = batch.failures[0]
    assert failure.source_name == "two.wav"
    assert failure.error_kind == "EngineExecError"
    assert failure.attempts == 3
    assert batch.total == 3
    assert not batch.ok


def test_all_succeed_in_input_order(files, engine):
    batch = run_batch(engine, files, "ogg")
    assert batch.ok
    assert [r.source_name for r in batch.successes] == ["one.wav", "two.wav", "three.wav"]
    assert [r.output_bytes for r in batch.successes] == [b"converted:one", b"converted:two", b"converted:three"]
    assert all(r.mime_type == "audio/ogg" for r in batch.successes)


def test_counts_always_add_up(delays):
    engine = FakeEngine(fail_input=lambda data: data.startswith(b"bad"))
    sources = [SourceFile(f"f{i}.mp3", b"bad" if i % 3 == 0 else b"good") for i in range(10)]
    batch = run_batch(engine, sources, "wav", max_retries=0, sleep=delays.append)
    assert len(batch.successes) + len(batch.failures) == len(sources)
    assert [r.source_name for r in batch.failures] == ["f0.mp3", "f3.mp3", "f6.mp3", "f9.mp3"]


def test_workspace_is_drained_between_jobs(files, delays):
    engine = FakeEngine(fail_input=lambda data: data == b"two")
    run_batch(engine, files, "flac", sleep=delays.append)
    assert engine.buffers_seen_at_put == [[], [], []]
    assert engine.buffers() == []


def test_bitrate_dropped_for_whole_lossless_batch(files, engine):
    run_batch(engine, files, "wav", ConversionOptions(bitrate="128k", channels=2))
    for argv in engine.conversion_runs:
        assert "-b:a" not in argv
        assert argv[argv.index("-ac") + 1] == "2"


def test_unknown_format_fails_every_file_without_raising(files, engine):
    batch = run_batch(engine, files, "wma")
    assert batch.successes == []
    assert [r.source_name for r in batch.failures] == ["one.wav", "two.wav", "three.wav"]
    assert {r.error_kind for r in batch.failures} == {"UnknownFormatError"}
    assert engine.calls == []


def test_empty_batch(engine):
    batch = run_batch(engine, [], "mp3")
    assert batch.total == 0
    assert batch.ok


def test_probe_metadata_for_every_file(files, engine):
    batch = run_batch(engine, files, "mp3", probe_metadata=True)
    assert all(r.metadata is not None and r.metadata.channels == "stereo" for r in batch.successes)
    assert len(engine.ops("run")) == 6


def test_cancellation_between_jobs(files, engine):
    token = CancellationToken()
    seen = []

    def on_done(index, total, result):
        seen.append((index, total, result.ok))
        if index == 0:
            token.cancel()

    batch = run_batch(engine, files, "mp3", cancel_token=token, on_job_done=on_done)
    assert [r.source_name for r in batch.successes] == ["one.wav"]
    assert [r.source_name for r in batch.failures] == ["two.wav", "three.wav"]
    assert {r.error_kind for r in batch.failures} == {"BatchCancelled"}
    assert batch.total == 3
    assert len(engine.ops("put")) == 1
    assert seen == [(0, 3, True), (1, 3, False), (2, 3, False)]


def test_failing_progress_callback_is_ignored(files, engine):
    def on_done(index, total, result):
        raise RuntimeError("ui went away")

    batch = run_batch(engine, files, "mp3", on_job_done=on_done)
    assert len(batch.successes) == 3


def test_orchestrator_fault_is_recorded_as_failure(engine):
    class ExplodingOrchestrator(JobOrchestrator):
        def execute(self, job):
            if job.position == 1:
                raise RuntimeError("boom")
            return super().execute(job)

    jobs = [make_job(f"f{i}.wav", position=i) for i in range(3)]
    batch = BatchOrchestrator(ExplodingOrchestrator(engine)).run(jobs)
    assert [r.source_name for r in batch.successes] == ["f0.wav", "f2.wav"]
    assert batch.failures[0].error_kind == "RuntimeError"


def test_build_jobs_shares_profile_and_options(files):
    options = ConversionOptions(sample_rate_hz=48000)
    jobs = build_jobs(files, "M4A", options, probe_metadata=True)
    assert [job.position for job in jobs] == [0, 1, 2]
    assert {job.target_profile.format_id for job in jobs} == {"m4a"}
    assert all(job.options is options and job.probe_metadata for job in jobs)


def test_build_jobs_unknown_format(files):
    with pytest.raises(UnknownFormatError):
        build_jobs(files, "nope")


def test_report_structure(files, delays):
    engine = FakeEngine(fail_input=lambda data: data == b"two")
    report = run_batch(engine, files, "mp3", max_retries=1, sleep=delays.append).to_report()
    assert report["total"] == 3
    assert report["succeeded"] == 2
    assert report["failed"] == 1
    assert report["successes"][0]["output_name"] == "one_converted.mp3"
    assert report["failures"][0]["error_kind"] == "EngineExecError"
    assert report["failures"][0]["attempts"] == 2
