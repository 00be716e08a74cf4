"""
Main entry point for SonicWave.

Parses command-line arguments, collects the input files, converts them as one
batch on a local FFmpeg engine and writes the outputs plus a YAML report.
"""

import signal
import sys
from dataclasses import replace
from typing import Optional, Sequence

from loguru import logger

from sonicwave.cli import get_args
from sonicwave.config.common import LOGGER_FORMAT
from sonicwave.domain.formats import DEFAULT_CATALOG
from sonicwave.domain.models import ConversionOptions, JobResult
from sonicwave.pipeline.batch_pipeline import CancellationToken, run_batch
from sonicwave.services.ffmpeg_engine import FFmpegEngine
from sonicwave.services.file_processing_service import ProcessAudioFiles, save_results
from sonicwave.services.logging_service import BatchReportLog, ErrorLog
from sonicwave.utils.ffmpeg_utils import verify_ffmpeg


def configure_logger(level: str):
    logger.remove()
    logger.add(sys.stderr, level=level, format=LOGGER_FORMAT)


# Initial logger setup; replaced once the command-line level is known.
configure_logger("INFO")


def _log_progress(index: int, total: int, result: JobResult):
    status = "ok" if result.ok else f"failed ({result.error_kind})"
    logger.info(f"[{index + 1}/{total}] {result.source_name}: {status}")
    if result.metadata is not None:
        logger.info(f"    metadata: {result.metadata.as_dict()}")


def build_options(args) -> ConversionOptions:
    options = ConversionOptions(
        channels=args.channels,
        sample_rate_hz=args.sample_rate,
        bitrate=args.bitrate,
    )
    if not args.recommended:
        return options
    # Recommendations use a lossy source as reference; explicit flags always win.
    recommended = DEFAULT_CATALOG.recommended_options("", args.format_id)
    return replace(
        options,
        channels=options.channels or recommended.channels,
        sample_rate_hz=options.sample_rate_hz or recommended.sample_rate_hz,
        bitrate=options.bitrate or recommended.bitrate,
    )


def main(argv: Optional[Sequence[str]] = None) -> int:
    """
    Runs one batch conversion and returns the process exit status.

    0 when every file converted, 1 when at least one failed or nothing was
    found to convert, 2 when FFmpeg is unavailable.
    """
    args = get_args(argv)
    configure_logger(args.log_level)
    logger.debug(f"Parsed arguments: {args}")

    if not verify_ffmpeg():
        return 2

    file_processor = ProcessAudioFiles(args.inputs, max_file_size_mb=args.max_file_size)
    sources = file_processor.load()
    if not sources:
        logger.warning("No supported audio files found. Nothing to do.")
        return 1

    options = build_options(args)
    cancel_token = CancellationToken()

    def _request_cancel(signum, frame):
        logger.warning("Interrupt received: finishing the current file, then stopping.")
        cancel_token.cancel()

    previous_handler = signal.signal(signal.SIGINT, _request_cancel)
    try:
        with FFmpegEngine(workspace_dir=args.temp_work_dir) as engine:
            batch = run_batch(
                engine,
                sources,
                args.format_id,
                options,
                probe_metadata=args.probe,
                max_retries=args.max_retries,
                retry_delay=args.retry_delay,
                cancel_token=cancel_token,
                on_job_done=_log_progress,
            )
    finally:
        signal.signal(signal.SIGINT, previous_handler)

    save_results(batch, args.output_dir)
    BatchReportLog(args.output_dir).write(
        batch,
        header={"format": args.format_id, "options": options.as_dict()},
    )
    if batch.failures:
        ErrorLog(args.output_dir).write_failures(batch)
        for failure in batch.failures:
            logger.error(f"{failure.source_name}: {failure.message}")

    logger.success(
        f"SonicWave finished: {len(batch.successes)} converted, {len(batch.failures)} failed."
    )
    return 0 if batch.ok else 1


if __name__ == "__main__":
    sys.exit(main())
