"""
The interface SonicWave consumes from a codec engine.

A codec engine owns a flat, named workspace of byte buffers and can run a
command-line-style operation against it. It also keeps one append-only text log
that every run writes into. The engine is a single shared, stateful resource:
nothing in its workspace is isolated per job, which is why every caller must
hold `exclusive()` for the full lifecycle of one job.
"""
import threading
from contextlib import contextmanager
from typing import Iterator, List, Sequence


class CodecEngine:
    """
    Base class for codec engine adapters.

    Subclasses implement the four buffer operations (`put`, `run`, `get`,
    `delete`) and `buffers`. The log stream and the single-owner lock are
    provided here; subclasses feed the stream through `_append_log`.

    Contract for subclasses:
        - `put(name, data)` raises `EngineWriteError` when the write fails.
        - `run(argv)` returns the log text of that run and raises
          `EngineExecError` (carrying the partial log) on a failed exit.
        - `get(name)` raises `EngineReadError` when `name` does not exist.
        - `delete(name)` is best effort. Deleting a missing name is not an
          error; other failures may raise `CleanupError`, which callers log
          and ignore.
    """

    def __init__(self):
        self._log_chunks: List[str] = []
        self._log_length = 0
        self._log_lock = threading.Lock()
        self._owner_lock = threading.Lock()

    # --- Buffer operations ---

    def put(self, name: str, data: bytes):
        raise NotImplementedError("Subclasses must implement put().")

    def run(self, argv: Sequence[str]) -> str:
        raise NotImplementedError("Subclasses must implement run().")

    def get(self, name: str) -> bytes:
        raise NotImplementedError("Subclasses must implement get().")

    def delete(self, name: str):
        raise NotImplementedError("Subclasses must implement delete().")

    def buffers(self) -> List[str]:
        """Names currently present in the workspace."""
        raise NotImplementedError("Subclasses must implement buffers().")

    def close(self):
        """Releases engine resources. The default engine holds none."""

    # --- Log stream ---

    def _append_log(self, text: str):
        if not text:
            return
        with self._log_lock:
            self._log_chunks.append(text)
            self._log_length += len(text)

    def log_offset(self) -> int:
        """Current length of the log stream. Record this right before `run`."""
        with self._log_lock:
            return self._log_length

    def log_since(self, offset: int) -> str:
        """Everything appended to the log stream after `offset`."""
        with self._log_lock:
            full_log = "".join(self._log_chunks)
            # Collapse to one chunk so later slices don't re-join the whole history.
            self._log_chunks = [full_log] if full_log else []
        return full_log[max(offset, 0):]

    def read_log(self) -> str:
        return self.log_since(0)

    # --- Ownership ---

    @contextmanager
    def exclusive(self) -> Iterator["CodecEngine"]:
        """
        Holds the engine for one job's whole lifecycle.

        The lock is not reentrant: acquiring it twice from the same thread blocks.
        """
        self._owner_lock.acquire()
        try:
            yield self
        finally:
            self._owner_lock.release()

    @property
    def is_busy(self) -> bool:
        return self._owner_lock.locked()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        self.close()
