"""
Common configuration settings used throughout the application.

This module contains globally shared configuration settings and constants that are
used across the whole SonicWave pipeline. It centralizes parameters for logging,
engine retry behavior, job state tracking and report file naming. It also handles
the loading of user-specific configuration from an external YAML file, allowing
for easy customization without modifying the source code.
"""
from pathlib import Path

import yaml
from loguru import logger

# --- User-Defined Configuration ---
# This block loads user-specific settings from a 'config.user.yaml' file located
# at the project root. Only the keys listed below are recognised:
#
#   paths:
#     ffmpeg_dir: /opt/ffmpeg/bin
#   retry:
#     max_retries: 2
#     delay_seconds: 1.0
#   input:
#     max_file_size_mb: 100

PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent
USER_CONFIG_PATH = PROJECT_ROOT / "config.user.yaml"

# The directory containing the FFmpeg executable. If not provided, the application
# assumes the executable is available in the system's PATH.
MODULE_PATH: Path | None = None

# How many times a failed engine run is retried before the job is failed.
# The default of 2 means three attempts in total.
MAX_RUN_RETRIES = 2

# Fixed delay between two attempts of the same engine run, in seconds.
RETRY_DELAY_SECONDS = 1.0

# Files larger than this are not offered to the engine at all.
MAX_INPUT_FILE_SIZE_MB = 100


def load_user_config(config_path: Path = USER_CONFIG_PATH) -> dict:
    """
    Reads the user YAML config and returns it as a dictionary.

    A missing file yields an empty dict. A file that cannot be parsed is reported
    as a warning and also yields an empty dict, so the built-in defaults apply.
    """
    if not config_path.is_file():
        logger.debug(f"User config '{config_path}' not found. Using built-in defaults.")
        return {}
    try:
        with config_path.open("r", encoding="utf-8") as f:
            loaded = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        logger.warning(f"Could not load or parse '{config_path}': {e}")
        return {}
    if not isinstance(loaded, dict):
        logger.warning(f"User config '{config_path}' is not a mapping. Ignoring it.")
        return {}
    return loaded


_user_config = load_user_config()

_paths_config = _user_config.get("paths") or {}
if _paths_config.get("ffmpeg_dir"):
    MODULE_PATH = Path(_paths_config["ffmpeg_dir"]).expanduser()
    # Relative directories are taken relative to the config file, never to the cwd.
    if not MODULE_PATH.is_absolute():
        MODULE_PATH = PROJECT_ROOT / MODULE_PATH
    MODULE_PATH = MODULE_PATH.resolve()

_retry_config = _user_config.get("retry") or {}
try:
    MAX_RUN_RETRIES = int(_retry_config.get("max_retries", MAX_RUN_RETRIES))
    RETRY_DELAY_SECONDS = float(_retry_config.get("delay_seconds", RETRY_DELAY_SECONDS))
except (TypeError, ValueError) as e:
    logger.warning(f"Invalid 'retry' section in user config, keeping defaults: {e}")

_input_config = _user_config.get("input") or {}
try:
    MAX_INPUT_FILE_SIZE_MB = int(_input_config.get("max_file_size_mb", MAX_INPUT_FILE_SIZE_MB))
except (TypeError, ValueError) as e:
    logger.warning(f"Invalid 'input' section in user config, keeping defaults: {e}")


# --- Logging Configuration ---

# The format string for the Loguru logger. It defines the structure and appearance
# of log messages, including timestamp, level, module name, and the message itself.
LOGGER_FORMAT = (
    "<green>{time:MM-DD HH:mm:ss}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | "
    "<level>{message}</level>"
)


# --- Report Files ---

# The YAML file that receives the structured result of a whole batch.
BATCH_REPORT_FILE_NAME = "batch_report.yaml"

# The plain-text file that failures are appended to.
ERROR_LOG_FILE_NAME = "error.txt"


# --- Engine Buffer Naming ---

# Buffer keys are scoped to one job: "job0001_input.mp3", "job0001_output.ogg".
# The shared engine workspace has no isolation, so fixed names must never be used.
BUFFER_KEY_TEMPLATE = "job{seq:04d}_{role}.{ext}"

# Extension used for an input buffer when the source name has none.
FALLBACK_INPUT_EXTENSION = "dat"


# --- Job State Constants ---
# The states a single job moves through inside the JobOrchestrator.

JOB_STATE_PENDING = "pending"  # Created, not yet touching the engine.
JOB_STATE_STAGED = "staged"  # Input bytes written into the engine workspace.
JOB_STATE_EXTRACTING = "extracting"  # Metadata probe running against the staged input.
JOB_STATE_EXECUTING = "executing"  # Conversion command running (possibly retried).
JOB_STATE_CLEANING = "cleaning"  # Job buffers being removed from the workspace.
JOB_STATE_DONE = "done"  # A JobResult has been produced.

# error_kind given to jobs that never started because the batch was cancelled.
BATCH_CANCELLED_KIND = "BatchCancelled"
