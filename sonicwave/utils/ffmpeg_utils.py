"""
This module provides utility functions related to FFmpeg.
It includes a function for running command-line processes with consistent
logging, and helpers to locate and verify the FFmpeg executable.
"""

import os
import shlex
import subprocess
import sys
from pathlib import Path
from typing import List, Optional, Sequence

from loguru import logger

from ..config.common import MODULE_PATH


def display_command(cmd_list: Sequence[str]) -> str:
    """Quotes and joins a command list for logging, using the platform's rules."""
    try:
        if os.name == "nt":
            return subprocess.list2cmdline(list(cmd_list))
        return shlex.join(cmd_list)
    except (TypeError, ValueError) as e:
        logger.warning(f"Could not format command list for display: {e}. Using simple join.")
        return " ".join(map(str, cmd_list))


def run_cmd(
    cmd_list: Sequence[str],
    cwd: Optional[Path] = None,
    show_cmd: bool = False,
    timeout: Optional[float] = None,
) -> Optional[subprocess.CompletedProcess]:
    """
    Executes an external command and captures its output.

    This is a wrapper around Python's `subprocess.run` that adds logging and
    maps launch failures to `None` instead of raising.

    Args:
        cmd_list: The command to execute as a list of arguments (never a shell string).
        cwd: Working directory for the process.
        show_cmd: If True, the command is logged at the DEBUG level before execution.
        timeout: Optional limit in seconds.

    Returns:
        A `subprocess.CompletedProcess` with return code, stdout and stderr, or
        `None` if the command could not be run at all (executable not found,
        timed out, OS error).
    """
    cmd_list = [str(part) for part in cmd_list]
    if not cmd_list:
        logger.error("run_cmd received an empty command list.")
        return None

    display_cmd_str = display_command(cmd_list)
    if show_cmd:
        logger.debug(f"Executing command: {display_cmd_str}")

    try:
        result = subprocess.run(
            cmd_list,
            cwd=str(cwd) if cwd else None,
            capture_output=True,
            text=True,
            encoding="utf-8",
            errors="replace",
            timeout=timeout,
            shell=False,
        )
    except FileNotFoundError:
        logger.error(
            f"Command not found: '{cmd_list[0]}'. Ensure it's in your system's PATH or configured in config.user.yaml."
        )
        return None
    except subprocess.TimeoutExpired:
        logger.error(f"Command timed out after {timeout}s: {display_cmd_str}")
        return None
    except OSError as e:
        logger.error(f"Could not execute command {display_cmd_str}: {e}")
        return None

    if result.stdout:
        logger.trace(f"Command stdout: {result.stdout[:500]}")
    # ffmpeg writes its normal progress output to stderr, so only a non-zero
    # exit makes stderr worth a debug line.
    if result.stderr and result.returncode != 0:
        logger.debug(f"Command stderr (rc={result.returncode}): {result.stderr[-2000:]}")
    elif result.stderr:
        logger.trace(f"Command stderr (rc={result.returncode}): {result.stderr[:500]}")

    return result


def get_ffmpeg_path(module_path: Optional[Path] = MODULE_PATH) -> str:
    """
    Determines the FFmpeg executable to use.

    The `ffmpeg_dir` from the user configuration wins when it contains the
    executable; otherwise plain "ffmpeg" is returned and resolved via PATH.
    """
    ffmpeg_exe_name = "ffmpeg.exe" if sys.platform == "win32" else "ffmpeg"

    if module_path and module_path.is_dir():
        # Absolute, since FFmpeg runs with the engine workspace as its cwd.
        configured_ffmpeg_path = (module_path / ffmpeg_exe_name).resolve()
        if configured_ffmpeg_path.is_file():
            logger.debug(f"Using FFmpeg from configured path: '{configured_ffmpeg_path}'")
            return str(configured_ffmpeg_path)
        logger.warning(
            f"`ffmpeg_dir` is configured, but '{ffmpeg_exe_name}' was not found there. Falling back to system PATH."
        )

    return "ffmpeg"


def verify_ffmpeg(ffmpeg_cmd: Optional[str] = None) -> bool:
    """
    Checks that FFmpeg can be executed by running `ffmpeg -version`.

    Logs the first line of the version output on success and a helpful error
    otherwise.

    Returns:
        True if FFmpeg ran successfully, False otherwise.
    """
    ffmpeg_cmd = ffmpeg_cmd or get_ffmpeg_path()
    result = run_cmd([ffmpeg_cmd, "-version"])
    if result is None:
        logger.error(
            "FFmpeg could not be started. Install it, add it to your PATH, "
            "or set `paths.ffmpeg_dir` in 'config.user.yaml'."
        )
        return False
    if result.returncode != 0:
        logger.error(f"FFmpeg version command failed (return code {result.returncode}):\n{result.stderr}")
        return False
    version_output_lines: List[str] = result.stdout.splitlines() or [""]
    logger.info(f"FFmpeg version check successful: {version_output_lines[0]}")
    return True
