"""
Shared fixtures for the SonicWave test suite.

`FakeEngine` is an in-memory `CodecEngine`: buffers live in a dict, `run`
"converts" by prefixing the input bytes, and failures can be scripted per test.
Every operation is recorded in `calls` so tests can assert on the exact
sequence of engine operations.
"""
from typing import Callable, Dict, List, Optional, Sequence

import pytest
from loguru import logger

from sonicwave.domain.exceptions import (
    CleanupError,
    EngineExecError,
    EngineReadError,
    EngineWriteError,
)
from sonicwave.domain.formats import DEFAULT_CATALOG
from sonicwave.domain.models import ConversionJob, ConversionOptions, SourceFile
from sonicwave.services.engine_base import CodecEngine

PROBE_LOG = (
    "Input #0, wav, from 'input.wav':\n"
    "  Duration: 00:03:21.45, bitrate: 1411 kb/s\n"
    "    Stream #0:0: Audio: pcm_s16le, 44100 Hz, stereo, s16, 1411 kb/s\n"
    "At least one output file must be specified\n"
)


class FakeEngine(CodecEngine):
    def __init__(
        self,
        run_failures: int = 0,
        fail_input: Optional[Callable[[bytes], bool]] = None,
        fail_put: bool = False,
        fail_get: bool = False,
        fail_delete: bool = False,
        partial_output_on_failure: bool = False,
        probe_log: str = PROBE_LOG,
    ):
        super().__init__()
        self.store: Dict[str, bytes] = {}
        self.calls: List[tuple] = []
        self.run_failures = run_failures
        self.fail_input = fail_input
        self.fail_put = fail_put
        self.fail_get = fail_get
        self.fail_delete = fail_delete
        self.partial_output_on_failure = partial_output_on_failure
        self.probe_log = probe_log
        self.buffers_seen_at_put: List[List[str]] = []
        self.busy_during_run: List[bool] = []
        self.closed = False

    # --- helpers ---

    def ops(self, op: str) -> List[tuple]:
        return [call for call in self.calls if call[0] == op]

    @property
    def conversion_runs(self) -> List[List[str]]:
        return [call[1] for call in self.ops("run") if len(call[1]) > 2]

    # --- CodecEngine ---

    def put(self, name: str, data: bytes):
        self.calls.append(("put", name))
        if self.fail_put:
            raise EngineWriteError(name, "workspace is full")
        self.buffers_seen_at_put.append(sorted(self.store))
        self.store[name] = data

    def run(self, argv: Sequence[str]) -> str:
        argv = list(argv)
        self.calls.append(("run", argv))
        self.busy_during_run.append(self.is_busy)
        input_key = argv[argv.index("-i") + 1]

        if len(argv) == 2:
            self._append_log(self.probe_log)
            raise EngineExecError(argv, log=self.probe_log, returncode=1)

        output_key = argv[-1]
        source = self.store.get(input_key)
        failing = source is None or (self.fail_input is not None and self.fail_input(source))
        if self.run_failures > 0:
            self.run_failures -= 1
            failing = True
        if failing:
            log = f"Error while encoding {output_key}\n"
            if self.partial_output_on_failure:
                self.store[output_key] = b"partial"
            self._append_log(log)
            raise EngineExecError(argv, log=log, returncode=1)

        self.store[output_key] = b"converted:" + source
        log = f"Output #0, to '{output_key}'\n"
        self._append_log(log)
        return log

    def get(self, name: str) -> bytes:
        self.calls.append(("get", name))
        if self.fail_get or name not in self.store:
            raise EngineReadError(name, "no such buffer")
        return self.store[name]

    def delete(self, name: str):
        self.calls.append(("delete", name))
        if self.fail_delete:
            raise CleanupError(name, "permission denied")
        self.store.pop(name, None)

    def buffers(self) -> List[str]:
        return sorted(self.store)

    def close(self):
        self.closed = True


@pytest.fixture
def engine():
    return FakeEngine()


@pytest.fixture
def log_messages():
    """Collects every loguru message emitted during the test, DEBUG and up."""
    messages: List[str] = []
    sink_id = logger.add(lambda message: messages.append(message.record["message"]), level="DEBUG")
    yield messages
    logger.remove(sink_id)


@pytest.fixture
def delays():
    """Collects requested retry delays; pass `delays.append` as the sleep function."""
    return []


def make_job(
    name: str = "song.wav",
    data: bytes = b"pcm-data",
    format_id: str = "mp3",
    options: Optional[ConversionOptions] = None,
    probe_metadata: bool = False,
    position: int = 0,
) -> ConversionJob:
    return ConversionJob.from_source(
        SourceFile(name, data),
        DEFAULT_CATALOG.resolve(format_id),
        options or ConversionOptions(),
        probe_metadata=probe_metadata,
        position=position,
    )
