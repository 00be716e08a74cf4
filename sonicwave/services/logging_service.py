"""
This module provides the file-based reports written after a batch.

It separates reporting concerns into a class for errors (ErrorLog), which
appends human-readable text, and one for the batch outcome (BatchReportLog),
which writes a machine-readable YAML document. Both are independent of the
real-time console logging done through loguru.
"""

from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from loguru import logger

from ..config.common import BATCH_REPORT_FILE_NAME, ERROR_LOG_FILE_NAME
from ..domain.models import BatchResult


class Log:
    """
    Base class for report writers: resolves and creates the report directory.
    """

    # A decorative separator line used in text-based logs for better readability.
    linesep_marker: str = "=" * 50

    def __init__(self, log_dir: Path):
        self.log_dir: Path = Path(log_dir).resolve()
        self.log_dir.mkdir(parents=True, exist_ok=True)
        self.log_file_path: Path  # To be defined by the subclass.

    def write(self, *args, **kwargs):
        raise NotImplementedError("Subclasses must implement the write() method.")


class ErrorLog(Log):
    """
    Appends error messages to a plain text file, one block per event.
    """

    def __init__(self, error_log_dir: Path, filename: str = ERROR_LOG_FILE_NAME):
        super().__init__(error_log_dir)
        self.log_file_path = self.log_dir / filename

    def write(self, *error_messages: str):
        """
        Appends the given messages, one per line, followed by a separator line.
        """
        if not error_messages:
            return

        content_to_write = "\n".join(error_messages) + "\n" + self.linesep_marker + "\n"
        try:
            with self.log_file_path.open("a", encoding="utf-8") as f:
                f.write(content_to_write)
        except OSError as e:
            # Fall back to the console so the messages are not lost.
            logger.error(f"Failed to write to error log {self.log_file_path}: {e}")
            for msg in error_messages:
                logger.error(f"  - {msg}")

    def write_failures(self, batch: BatchResult):
        for failure in batch.failures:
            self.write(
                f"Conversion failed for: {failure.source_name}",
                f"Kind: {failure.error_kind}",
                f"Message: {failure.message}",
                f"Attempts: {failure.attempts}",
            )


class BatchReportLog(Log):
    """
    Writes the outcome of one batch as a YAML document.

    The document holds a header (time, target format, options) followed by the
    per-file successes and failures in input order. Output bytes are never
    written, only their names and sizes.
    """

    def __init__(self, report_dir: Path, filename: str = BATCH_REPORT_FILE_NAME):
        super().__init__(report_dir)
        self.log_file_path = self.log_dir / filename

    def write(self, batch: BatchResult, header: Optional[Dict[str, Any]] = None) -> Optional[Path]:
        document: Dict[str, Any] = {"ended_datetime": datetime.now().isoformat(timespec="seconds")}
        document.update(header or {})
        document.update(batch.to_report())
        try:
            with self.log_file_path.open("w", encoding="utf-8") as f:
                yaml.dump(
                    document,
                    f,
                    default_flow_style=False,
                    sort_keys=False,
                    allow_unicode=True,
                    indent=4,
                    width=220,
                )
        except OSError as e:
            logger.error(f"Failed to write batch report {self.log_file_path}: {e}")
            return None
        logger.info(f"Batch report written to {self.log_file_path}")
        return self.log_file_path
