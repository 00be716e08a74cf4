"""
Command-Line Interface (CLI) setup for SonicWave.

This module uses Python's `argparse` to define and parse the command-line
arguments that control a batch conversion.
"""
import argparse
from pathlib import Path
from typing import Optional, Sequence

from .config.common import MAX_INPUT_FILE_SIZE_MB, MAX_RUN_RETRIES, RETRY_DELAY_SECONDS
from .domain.formats import DEFAULT_CATALOG


def _positive_int(value: str) -> int:
    number = int(value)
    if number <= 0:
        raise argparse.ArgumentTypeError(f"must be a positive integer, got {value}")
    return number


def _non_negative_int(value: str) -> int:
    number = int(value)
    if number < 0:
        raise argparse.ArgumentTypeError(f"must be zero or more, got {value}")
    return number


def _non_negative_float(value: str) -> float:
    number = float(value)
    if number < 0:
        raise argparse.ArgumentTypeError(f"must be zero or more, got {value}")
    return number


def get_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    """
    Parses command-line arguments for SonicWave.

    Args:
        argv: Arguments to parse. Defaults to `sys.argv[1:]`.

    Returns:
        argparse.Namespace: The parsed arguments.
    """
    parser = argparse.ArgumentParser(description="Batch-convert audio files with FFmpeg.")
    parser.add_argument(
        "inputs", nargs="+", type=Path, help="Audio files or directories (scanned recursively)."
    )
    parser.add_argument(
        "--format", "-f", dest="format_id", required=True, type=str.lower,
        choices=DEFAULT_CATALOG.ids(), help="Output format.",
    )
    parser.add_argument(
        "--bitrate", "-b", type=str, default=None,
        help="Target bitrate such as 192k. Ignored for lossless formats (wav, flac).",
    )
    parser.add_argument("--channels", "-c", type=_positive_int, default=None, help="Output channel count.")
    parser.add_argument("--sample-rate", "-r", type=_positive_int, default=None, help="Output sample rate in Hz.")
    parser.add_argument(
        "--recommended", action="store_true",
        help="Fill unset channels/sample rate/bitrate with recommended values for the target format.",
    )
    parser.add_argument(
        "--output-dir", "-o", type=Path, default=Path("converted"),
        help="Directory for converted files and the batch report.",
    )
    parser.add_argument("--probe", action="store_true", help="Read and report each file's metadata before converting.")
    parser.add_argument(
        "--max-retries", type=_non_negative_int, default=MAX_RUN_RETRIES,
        help="Retries after a failed conversion run.",
    )
    parser.add_argument(
        "--retry-delay", type=_non_negative_float, default=RETRY_DELAY_SECONDS,
        help="Seconds to wait between attempts.",
    )
    parser.add_argument(
        "--max-file-size", type=_positive_int, default=MAX_INPUT_FILE_SIZE_MB,
        help="Skip inputs larger than this many MB.",
    )
    parser.add_argument(
        "--temp-work-dir", type=Path, default=None,
        help="Parent directory for the engine workspace, e.g. a RAM disk.",
    )
    parser.add_argument(
        "--log-level", type=str, default="INFO", choices=["TRACE", "DEBUG", "INFO", "WARNING", "ERROR"],
        help="Set the logging level.",
    )

    args = parser.parse_args(argv)

    if args.temp_work_dir:
        try:
            args.temp_work_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            parser.error(f"The temporary working directory '{args.temp_work_dir}' could not be created: {e}")
        args.temp_work_dir = args.temp_work_dir.resolve()

    return args
