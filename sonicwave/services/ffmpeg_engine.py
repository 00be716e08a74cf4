"""
A codec engine backed by a local FFmpeg executable.

The workspace is a private temporary directory: buffer names are file names
inside it, and every run executes FFmpeg with that directory as its working
directory so relative names in `argv` resolve to workspace buffers.
"""
import shutil
import tempfile
from pathlib import Path
from typing import List, Optional, Sequence

from loguru import logger

from ..domain.exceptions import CleanupError, EngineExecError, EngineReadError, EngineWriteError
from ..utils.ffmpeg_utils import get_ffmpeg_path, run_cmd
from .engine_base import CodecEngine

# Always prepended to the caller's argv. "-y" matters: a retried run must be
# able to overwrite an output name even if its deletion failed.
FFMPEG_BASE_ARGS = ("-hide_banner", "-nostdin", "-y")


def _absolute_command(ffmpeg_cmd: str) -> str:
    """
    Anchors a command given as a relative path ("bin/ffmpeg") to the current directory.

    Runs happen inside the workspace, where a relative path would no longer
    resolve. A bare name ("ffmpeg") is left for the PATH lookup.
    """
    path = Path(ffmpeg_cmd)
    if path.is_absolute() or len(path.parts) == 1:
        return ffmpeg_cmd
    return str(path.resolve())


class FFmpegEngine(CodecEngine):
    """
    Runs conversions with FFmpeg against a temporary-directory workspace.

    Args:
        ffmpeg_cmd: Executable to run. Defaults to the configured `ffmpeg_dir`
                    or "ffmpeg" on PATH.
        workspace_dir: Parent directory for the workspace (e.g. a RAM disk).
        timeout: Optional per-run limit in seconds.
    """

    def __init__(
        self,
        ffmpeg_cmd: Optional[str] = None,
        workspace_dir: Optional[Path] = None,
        timeout: Optional[float] = None,
    ):
        super().__init__()
        self.ffmpeg_cmd = _absolute_command(ffmpeg_cmd or get_ffmpeg_path())
        self.timeout = timeout
        self.workspace = Path(
            tempfile.mkdtemp(prefix="sonicwave_", dir=str(workspace_dir) if workspace_dir else None)
        )
        logger.debug(f"FFmpegEngine workspace created at {self.workspace}")

    def _buffer_path(self, name: str) -> Path:
        # Buffer names are flat; refuse anything that would escape the workspace.
        if not name or Path(name).name != name:
            raise ValueError(f"Invalid buffer name: {name!r}")
        return self.workspace / name

    def put(self, name: str, data: bytes):
        try:
            self._buffer_path(name).write_bytes(data)
        except (OSError, ValueError) as e:
            raise EngineWriteError(name, str(e)) from e

    def run(self, argv: Sequence[str]) -> str:
        cmd_list = [self.ffmpeg_cmd, *FFMPEG_BASE_ARGS, *argv]
        result = run_cmd(cmd_list, cwd=self.workspace, show_cmd=True, timeout=self.timeout)
        if result is None:
            raise EngineExecError(argv, log="", returncode=None)

        log_text = result.stderr or ""
        self._append_log(log_text)
        if result.returncode != 0:
            raise EngineExecError(argv, log=log_text, returncode=result.returncode)
        return log_text

    def get(self, name: str) -> bytes:
        try:
            return self._buffer_path(name).read_bytes()
        except (OSError, ValueError) as e:
            raise EngineReadError(name, str(e)) from e

    def delete(self, name: str):
        try:
            self._buffer_path(name).unlink(missing_ok=True)
        except (OSError, ValueError) as e:
            raise CleanupError(name, str(e)) from e

    def buffers(self) -> List[str]:
        if not self.workspace.is_dir():
            return []
        return sorted(p.name for p in self.workspace.iterdir() if p.is_file())

    def close(self):
        if self.workspace.exists():
            shutil.rmtree(self.workspace, ignore_errors=True)
            logger.debug(f"FFmpegEngine workspace removed: {self.workspace}")
