"""
Drives one conversion job through the codec engine.

A job moves through `staged -> extracting (optional) -> executing -> cleaning ->
done`. Staging writes the source bytes into the engine workspace, the optional
metadata probe reads the engine's description of the staged input, executing
runs the conversion with a bounded retry loop and reads the output back, and
cleaning removes both of the job's buffers no matter how far the job got.

The orchestrator holds the engine's `exclusive()` lock for the whole lifecycle,
so the next job can only stage once this job's cleaning has completed.
"""
import itertools
import time
import traceback
from dataclasses import dataclass, replace
from typing import Callable, List, Optional

from loguru import logger

from ..config.audio import OUTPUT_NAME_SUFFIX
from ..config.common import (
    BUFFER_KEY_TEMPLATE,
    FALLBACK_INPUT_EXTENSION,
    JOB_STATE_CLEANING,
    JOB_STATE_DONE,
    JOB_STATE_EXECUTING,
    JOB_STATE_EXTRACTING,
    JOB_STATE_PENDING,
    JOB_STATE_STAGED,
    MAX_RUN_RETRIES,
    RETRY_DELAY_SECONDS,
)
from ..domain.exceptions import EngineExecError, SonicWaveException
from ..domain.formats import FormatProfile
from ..domain.metadata import Metadata, MetadataExtractor
from ..domain.models import ConversionJob, ConversionOptions, JobResult, SourceFile
from ..utils.format_utils import build_output_name, get_file_extension
from .engine_base import CodecEngine

# Process-wide, so two orchestrators sharing one engine never hand out the same key.
_buffer_sequence = itertools.count(1)


def effective_options(profile: FormatProfile, options: ConversionOptions) -> ConversionOptions:
    """Drops a requested bitrate when the target profile cannot take one."""
    if options.bitrate and not profile.supports_bitrate:
        logger.debug(
            f"Ignoring bitrate {options.bitrate!r}: format '{profile.format_id}' does not support a bitrate."
        )
        return replace(options, bitrate=None)
    return options


def build_command(
    profile: FormatProfile,
    options: ConversionOptions,
    input_key: str,
    output_key: str,
) -> List[str]:
    """
    Builds the engine argv for one conversion.

    The argument order is fixed: input, channel count, sample rate, codec,
    bitrate, the profile's fixed arguments, output. Optional arguments are left
    out when their option is unset, and the bitrate is also left out whenever
    the profile does not support one, whatever the caller asked for.
    """
    options = effective_options(profile, options)
    argv = ["-i", input_key]
    if options.channels:
        argv.extend(["-ac", str(options.channels)])
    if options.sample_rate_hz:
        argv.extend(["-ar", str(options.sample_rate_hz)])
    argv.extend(["-acodec", profile.codec_name])
    if options.bitrate:
        argv.extend(["-b:a", str(options.bitrate)])
    argv.extend(profile.extra_args)
    argv.append(output_key)
    return argv


def build_probe_command(input_key: str) -> List[str]:
    """An input-only invocation: the engine describes the input, then fails for lack of an output."""
    return ["-i", input_key]


@dataclass
class JobContext:
    """Mutable bookkeeping for one job while it is being orchestrated."""

    job: ConversionJob
    input_key: str
    output_key: str
    state: str = JOB_STATE_PENDING
    attempts: int = 0
    cleanups: int = 0
    metadata: Optional[Metadata] = None
    run_log: str = ""

    def transition(self, state: str):
        logger.debug(f"[{self.input_key}] {self.state} -> {state}")
        self.state = state


class JobOrchestrator:
    """
    Executes `ConversionJob`s one at a time against a shared `CodecEngine`.

    Attributes:
        engine (CodecEngine): The engine handle. Owned by the caller, who also closes it.
        max_retries (int): Extra attempts after a failed engine run; total attempts
                           are `max_retries + 1`.
        retry_delay (float): Seconds to wait between two attempts.
        extractor (MetadataExtractor): Parses probe log slices.
    """

    def __init__(
        self,
        engine: CodecEngine,
        max_retries: int = MAX_RUN_RETRIES,
        retry_delay: float = RETRY_DELAY_SECONDS,
        extractor: Optional[MetadataExtractor] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        if max_retries < 0:
            raise ValueError("max_retries cannot be negative.")
        if retry_delay < 0:
            raise ValueError("retry_delay cannot be negative.")
        self.engine = engine
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self.extractor = extractor or MetadataExtractor()
        self._sleep = sleep
        self.last_context: Optional[JobContext] = None

    @property
    def max_attempts(self) -> int:
        return self.max_retries + 1

    def _new_context(self, job: ConversionJob) -> JobContext:
        seq = next(_buffer_sequence)
        input_ext = get_file_extension(job.source_name) or FALLBACK_INPUT_EXTENSION
        return JobContext(
            job=job,
            input_key=BUFFER_KEY_TEMPLATE.format(seq=seq, role="input", ext=input_ext),
            output_key=BUFFER_KEY_TEMPLATE.format(
                seq=seq, role="output", ext=job.target_profile.container_extension
            ),
        )

    # --- Public operations ---

    def execute(self, job: ConversionJob) -> JobResult:
        """
        Converts one job and returns its result. Never raises for job failures.

        Engine and format errors become a failed `JobResult` whose `error_kind`
        is the exception class name. Anything unexpected is logged with its
        traceback and reported the same way.
        """
        ctx = self._new_context(job)
        self.last_context = ctx
        logger.info(
            f"[#{job.position + 1}] Converting '{job.source_name}' to {job.target_profile.format_id} "
            f"(buffers {ctx.input_key}, {ctx.output_key})"
        )
        with self.engine.exclusive():
            result = self._execute_owned(ctx)
        ctx.transition(JOB_STATE_DONE)
        return result

    def probe(self, source: SourceFile) -> Metadata:
        """
        Reads the metadata of one source file without converting it.

        Stages the bytes, runs the metadata probe and cleans up. Never raises:
        any failure is logged and degrades to all-unknown metadata.
        """
        seq = next(_buffer_sequence)
        input_ext = get_file_extension(source.name) or FALLBACK_INPUT_EXTENSION
        input_key = BUFFER_KEY_TEMPLATE.format(seq=seq, role="input", ext=input_ext)
        with self.engine.exclusive():
            try:
                self.engine.put(input_key, source.data)
                return self._run_probe(input_key)
            except SonicWaveException as e:
                logger.warning(f"Metadata probe failed for '{source.name}': {e}")
                return Metadata()
            except Exception as e:
                tb_str = "".join(traceback.format_exception(e))
                logger.error(
                    f"Unexpected error while probing '{source.name}': {e}\nTraceback:\n{tb_str}"
                )
                return Metadata()
            finally:
                self._release(input_key)

    # --- Lifecycle steps ---

    def _execute_owned(self, ctx: JobContext) -> JobResult:
        job = ctx.job
        try:
            try:
                self._stage(ctx)
                if job.probe_metadata:
                    self._extract(ctx)
                output_bytes = self._convert(ctx)
            finally:
                self._clean(ctx)
        except SonicWaveException as e:
            logger.error(
                f"Conversion failed for '{job.source_name}' after {ctx.attempts} attempt(s): "
                f"{type(e).__name__}: {e}"
            )
            return JobResult.failure(
                job.source_name,
                error_kind=type(e).__name__,
                message=str(e),
                metadata=ctx.metadata,
                attempts=ctx.attempts,
            )
        except Exception as e:
            tb_str = "".join(traceback.format_exception(e))
            logger.error(
                f"Unexpected error while converting '{job.source_name}'\n"
                f"Exception type: {type(e).__name__}\n"
                f"Exception message: {e}\n"
                f"Traceback:\n{tb_str}"
            )
            return JobResult.failure(
                job.source_name,
                error_kind=type(e).__name__,
                message=str(e),
                metadata=ctx.metadata,
                attempts=ctx.attempts,
            )

        output_name = build_output_name(
            job.source_name, job.target_profile.container_extension, OUTPUT_NAME_SUFFIX
        )
        logger.info(
            f"[#{job.position + 1}] Converted '{job.source_name}' -> '{output_name}' ({ctx.attempts} attempt(s))"
        )
        return JobResult.success(
            job.source_name,
            output_bytes=output_bytes,
            output_name=output_name,
            mime_type=job.target_profile.mime_type,
            metadata=ctx.metadata,
            attempts=ctx.attempts,
            source_size=len(job.source_bytes),
        )

    def _stage(self, ctx: JobContext):
        self.engine.put(ctx.input_key, ctx.job.source_bytes)
        ctx.transition(JOB_STATE_STAGED)

    def _extract(self, ctx: JobContext):
        ctx.transition(JOB_STATE_EXTRACTING)
        ctx.metadata = self._run_probe(ctx.input_key)
        logger.debug(f"Metadata for '{ctx.job.source_name}': {ctx.metadata.as_dict()}")

    def _run_probe(self, input_key: str) -> Metadata:
        offset = self.engine.log_offset()
        try:
            self.engine.run(build_probe_command(input_key))
        except EngineExecError:
            # An input-only run has no output and is expected to fail; the log
            # slice below is the only thing the probe is for.
            logger.trace(f"Metadata probe of {input_key} exited with an error, as expected.")
        return self.extractor.extract(self.engine.log_since(offset))

    def _convert(self, ctx: JobContext) -> bytes:
        ctx.transition(JOB_STATE_EXECUTING)
        job = ctx.job
        argv = build_command(job.target_profile, job.options, ctx.input_key, ctx.output_key)
        logger.debug(f"Engine command for '{job.source_name}': {argv}")

        last_error: Optional[EngineExecError] = None
        for attempt in range(1, self.max_attempts + 1):
            ctx.attempts = attempt
            offset = self.engine.log_offset()
            try:
                self.engine.run(argv)
            except EngineExecError as e:
                last_error = e
                if attempt >= self.max_attempts:
                    break
                logger.warning(
                    f"Attempt {attempt}/{self.max_attempts} failed for '{job.source_name}', "
                    f"retrying in {self.retry_delay:g}s: {e}"
                )
                # A failed run may leave a partial output behind; the next attempt must not see it.
                self._release(ctx.output_key)
                self._sleep(self.retry_delay)
                continue
            ctx.run_log = self.engine.log_since(offset)
            if ctx.run_log:
                logger.debug(f"Engine log for '{job.source_name}' (attempt {attempt}):\n{ctx.run_log.rstrip()}")
            return self.engine.get(ctx.output_key)

        raise last_error

    def _clean(self, ctx: JobContext):
        ctx.transition(JOB_STATE_CLEANING)
        self._release(ctx.input_key)
        self._release(ctx.output_key)
        ctx.cleanups += 1

    def _release(self, name: str):
        try:
            self.engine.delete(name)
        except Exception as e:
            # Cleanup never changes a job's outcome.
            logger.warning(f"Could not delete engine buffer '{name}': {e}")
