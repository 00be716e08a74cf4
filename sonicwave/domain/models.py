"""
Value objects passed between the conversion services.

Jobs and options are immutable once created. Results are produced exactly once
per job by the `JobOrchestrator` and gathered, in input order, into a
`BatchResult` by the `BatchOrchestrator`.
"""
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Dict, List, Optional

from ..utils.format_utils import compression_ratio, formatted_size
from .metadata import Metadata

if TYPE_CHECKING:
    from .formats import FormatProfile


@dataclass(frozen=True)
class SourceFile:
    """One user-selected input file: its display name and raw bytes."""

    name: str
    data: bytes

    @property
    def size(self) -> int:
        return len(self.data)


@dataclass(frozen=True)
class ConversionOptions:
    """
    Per-batch option overrides. `None` lets the engine choose its default.

    A bitrate given here is only a request: the orchestrator drops it for
    profiles that do not support one.
    """

    channels: Optional[int] = None
    sample_rate_hz: Optional[int] = None
    bitrate: Optional[str] = None

    def as_dict(self) -> Dict[str, Any]:
        return {
            "channels": self.channels,
            "sample_rate_hz": self.sample_rate_hz,
            "bitrate": self.bitrate,
        }


@dataclass(frozen=True)
class ConversionJob:
    """
    The unit of work: one input file, one target profile, one set of options.

    `position` is the job's index in its batch. When `probe_metadata` is set the
    orchestrator reads the input's metadata before converting it.
    """

    source_name: str
    source_bytes: bytes
    target_profile: "FormatProfile"
    options: ConversionOptions = field(default_factory=ConversionOptions)
    probe_metadata: bool = False
    position: int = 0

    @classmethod
    def from_source(
        cls,
        source: SourceFile,
        target_profile: "FormatProfile",
        options: Optional[ConversionOptions] = None,
        probe_metadata: bool = False,
        position: int = 0,
    ) -> "ConversionJob":
        return cls(
            source_name=source.name,
            source_bytes=source.data,
            target_profile=target_profile,
            options=options or ConversionOptions(),
            probe_metadata=probe_metadata,
            position=position,
        )


@dataclass
class JobResult:
    """
    Outcome of one job: a success carrying the converted bytes, or a failure
    carrying the error kind and message.
    """

    source_name: str
    ok: bool
    output_bytes: Optional[bytes] = None
    output_name: Optional[str] = None
    mime_type: Optional[str] = None
    error_kind: Optional[str] = None
    message: Optional[str] = None
    metadata: Optional[Metadata] = None
    attempts: int = 0
    source_size: Optional[int] = None

    @classmethod
    def success(
        cls,
        source_name: str,
        output_bytes: bytes,
        output_name: str,
        mime_type: str,
        metadata: Optional[Metadata] = None,
        attempts: int = 1,
        source_size: Optional[int] = None,
    ) -> "JobResult":
        return cls(
            source_name=source_name,
            ok=True,
            output_bytes=output_bytes,
            output_name=output_name,
            mime_type=mime_type,
            metadata=metadata,
            attempts=attempts,
            source_size=source_size,
        )

    @classmethod
    def failure(
        cls,
        source_name: str,
        error_kind: str,
        message: str,
        metadata: Optional[Metadata] = None,
        attempts: int = 0,
    ) -> "JobResult":
        return cls(
            source_name=source_name,
            ok=False,
            error_kind=error_kind,
            message=message,
            metadata=metadata,
            attempts=attempts,
        )

    def to_report(self) -> Dict[str, Any]:
        entry: Dict[str, Any] = {"source_name": self.source_name, "ok": self.ok}
        if self.ok:
            entry["output_name"] = self.output_name
            entry["mime_type"] = self.mime_type
            output_size = len(self.output_bytes or b"")
            entry["output_size"] = formatted_size(output_size)
            if self.source_size is not None:
                entry["input_size"] = formatted_size(self.source_size)
                entry["compression_ratio"] = compression_ratio(self.source_size, output_size)
        else:
            entry["error_kind"] = self.error_kind
            entry["message"] = self.message
        entry["attempts"] = self.attempts
        if self.metadata is not None:
            entry["metadata"] = self.metadata.as_dict()
        return entry


@dataclass
class BatchResult:
    """Successes and failures of one batch, each list in input order."""

    successes: List[JobResult] = field(default_factory=list)
    failures: List[JobResult] = field(default_factory=list)

    def add(self, result: JobResult):
        (self.successes if result.ok else self.failures).append(result)

    @property
    def total(self) -> int:
        return len(self.successes) + len(self.failures)

    @property
    def ok(self) -> bool:
        return not self.failures

    def to_report(self) -> Dict[str, Any]:
        return {
            "total": self.total,
            "succeeded": len(self.successes),
            "failed": len(self.failures),
            "successes": [r.to_report() for r in self.successes],
            "failures": [r.to_report() for r in self.failures],
        }
