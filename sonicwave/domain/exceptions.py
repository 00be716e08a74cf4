"""
Defines custom exception types for SonicWave.

These exceptions allow for specific error handling throughout the conversion
pipeline. The orchestrators catch them per job and turn them into failed
`JobResult` values; the class name becomes the result's `error_kind`.

All custom exceptions inherit from the base `SonicWaveException`.
"""
from typing import Optional, Sequence


class SonicWaveException(Exception):
    """Base class for all custom exceptions in SonicWave."""

    pass


# --- Format Catalog Exceptions ---
class FormatException(SonicWaveException):
    """Base class for exceptions raised while resolving output formats."""

    pass


class UnknownFormatError(FormatException):
    """
    Raised when a format id is not registered in the catalog.

    Fatal to the job that asked for it. It is never retried.
    """

    def __init__(self, format_id: str):
        self.format_id = format_id
        super().__init__(f"Unknown output format: {format_id!r}")


# --- Codec Engine Exceptions ---
class EngineException(SonicWaveException):
    """Base class for failures at the codec engine boundary."""

    pass


class EngineWriteError(EngineException):
    """Raised when a buffer cannot be written into the engine workspace."""

    def __init__(self, name: str, reason: str = ""):
        self.name = name
        self.reason = reason
        message = f"Could not write buffer '{name}' into the engine workspace"
        super().__init__(f"{message}: {reason}" if reason else message)


class EngineExecError(EngineException):
    """
    Raised when an engine run exits with a failure status.

    Carries whatever log output the engine produced before failing, since that
    is usually the only explanation available. This is the one engine error the
    job orchestrator retries.
    """

    def __init__(self, argv: Sequence[str], log: str = "", returncode: Optional[int] = None):
        self.argv = list(argv)
        self.log = log
        self.returncode = returncode
        status = f" (exit status {returncode})" if returncode is not None else ""
        super().__init__(f"Engine run failed{status}: {' '.join(self.argv)}")


class EngineReadError(EngineException):
    """Raised when a buffer does not exist in (or cannot be read from) the workspace."""

    def __init__(self, name: str, reason: str = ""):
        self.name = name
        self.reason = reason
        message = f"Could not read buffer '{name}' from the engine workspace"
        super().__init__(f"{message}: {reason}" if reason else message)


class CleanupError(EngineException):
    """
    Raised by an engine when a buffer cannot be deleted.

    Never surfaced to callers: the orchestrator logs it and carries on.
    """

    def __init__(self, name: str, reason: str = ""):
        self.name = name
        self.reason = reason
        message = f"Could not delete buffer '{name}'"
        super().__init__(f"{message}: {reason}" if reason else message)
