"""
Discovers and loads the audio files a batch will convert.

Inputs may be files or directories (scanned recursively). Only files with an
accepted audio extension are kept, and files above the configured size limit
are skipped before their bytes are ever read.
"""

from pathlib import Path
from typing import Iterable, List, Optional, Tuple

from loguru import logger

from ..config.audio import AUDIO_EXTENSIONS
from ..config.common import MAX_INPUT_FILE_SIZE_MB
from ..domain.models import BatchResult, SourceFile
from ..utils.format_utils import contains_any_extensions, formatted_size


class ProcessAudioFiles:
    """
    Collects audio files from a set of input paths.

    Attributes:
        files (Tuple[Path, ...]): Accepted files, in discovery order (inputs in the
                                  order given, directory contents sorted).
        skipped (List[Tuple[Path, str]]): Rejected paths with the reason.
        max_size_bytes (int): Upper size limit for an accepted file.
    """

    files: Tuple[Path, ...] = tuple()

    def __init__(
        self,
        paths: Iterable[Path],
        max_file_size_mb: int = MAX_INPUT_FILE_SIZE_MB,
        extensions: Iterable[str] = AUDIO_EXTENSIONS,
    ):
        self.extensions = tuple(extensions)
        self.max_size_bytes = max_file_size_mb * 1024 * 1024
        self.skipped: List[Tuple[Path, str]] = []
        self.set_files_to_process([Path(p) for p in paths])

    def set_files_to_process(self, paths: List[Path]):
        discovered: List[Path] = []
        seen = set()
        for input_path in paths:
            for candidate in self._expand(input_path):
                resolved = candidate.resolve()
                if resolved in seen:
                    continue
                seen.add(resolved)
                reason = self._rejection_reason(candidate)
                if reason:
                    logger.info(f"Skipping '{candidate}': {reason}")
                    self.skipped.append((candidate, reason))
                    continue
                discovered.append(candidate)
        self.files = tuple(discovered)
        logger.debug(f"Discovered {len(self.files)} audio file(s), skipped {len(self.skipped)}.")

    def _expand(self, input_path: Path) -> List[Path]:
        if input_path.is_dir():
            return sorted(p for p in input_path.rglob("*") if p.is_file())
        if input_path.is_file():
            return [input_path]
        logger.warning(f"Input path does not exist: {input_path}")
        self.skipped.append((input_path, "does not exist"))
        return []

    def _rejection_reason(self, path: Path) -> Optional[str]:
        if not contains_any_extensions(path.name, self.extensions):
            return "not a supported audio file"
        size = path.stat().st_size
        if size > self.max_size_bytes:
            return f"too large ({formatted_size(size)} > {formatted_size(self.max_size_bytes)})"
        return None

    def load(self) -> List[SourceFile]:
        """Reads every accepted file into a `SourceFile`. Unreadable files are skipped."""
        sources: List[SourceFile] = []
        for path in self.files:
            try:
                sources.append(SourceFile(name=path.name, data=path.read_bytes()))
            except OSError as e:
                logger.error(f"Could not read '{path}': {e}")
                self.skipped.append((path, f"unreadable: {e}"))
        return sources


def _unique_path(directory: Path, file_name: str) -> Path:
    candidate = directory / file_name
    stem, suffix = candidate.stem, candidate.suffix
    counter = 1
    while candidate.exists():
        candidate = directory / f"{stem}_{counter}{suffix}"
        counter += 1
    return candidate


def save_results(batch: BatchResult, output_dir: Path) -> List[Path]:
    """
    Writes every successful output of `batch` into `output_dir`.

    Existing files are never overwritten: a numeric suffix is added instead
    ("song_converted_1.mp3"). Returns the written paths in input order.
    """
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)
    written: List[Path] = []
    for result in batch.successes:
        target = _unique_path(output_dir, result.output_name)
        try:
            target.write_bytes(result.output_bytes or b"")
        except OSError as e:
            logger.error(f"Could not save '{result.output_name}' to {output_dir}: {e}")
            continue
        logger.info(f"Saved {target} ({formatted_size(target.stat().st_size)})")
        written.append(target)
    return written
