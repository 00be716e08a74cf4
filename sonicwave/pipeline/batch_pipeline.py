"""
Batch conversion pipeline.

`BatchOrchestrator` runs an ordered list of jobs through a `JobOrchestrator`,
strictly one after the other, and gathers every outcome into a `BatchResult`.
One file failing never stops the batch. `run_batch` is the entry point used by
callers that start from raw files and a format id.
"""
import threading
import traceback
from datetime import datetime
from typing import Callable, Optional, Sequence

from loguru import logger

from ..config.common import BATCH_CANCELLED_KIND, MAX_RUN_RETRIES, RETRY_DELAY_SECONDS
from ..domain.exceptions import UnknownFormatError
from ..domain.formats import DEFAULT_CATALOG, FormatCatalog
from ..domain.models import BatchResult, ConversionJob, ConversionOptions, JobResult, SourceFile
from ..services.engine_base import CodecEngine
from ..services.job_orchestrator import JobOrchestrator
from ..utils.format_utils import format_timedelta

ProgressCallback = Callable[[int, int, JobResult], None]


class CancellationToken:
    """
    Cooperative stop signal for a running batch.

    Checked between jobs only. A job already in flight always runs to the end
    of its cleaning step, since an engine call cannot be interrupted.
    """

    def __init__(self):
        self._event = threading.Event()

    def cancel(self):
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()


class BatchOrchestrator:
    def __init__(self, job_orchestrator: JobOrchestrator, on_job_done: Optional[ProgressCallback] = None):
        self.job_orchestrator = job_orchestrator
        self.on_job_done = on_job_done

    def run(self, jobs: Sequence[ConversionJob], cancel_token: Optional[CancellationToken] = None) -> BatchResult:
        """
        Processes `jobs` in order and returns the partitioned results.

        Every job yields exactly one result, so
        `len(successes) + len(failures) == len(jobs)` holds even when the
        batch is cancelled: jobs never started are recorded as failures of
        kind "BatchCancelled".
        """
        batch = BatchResult()
        total = len(jobs)
        started_at = datetime.now()
        logger.info(f"[{self.__class__.__name__}] Starting batch of {total} job(s).")

        for index, job in enumerate(jobs):
            if cancel_token is not None and cancel_token.cancelled:
                result = JobResult.failure(
                    job.source_name,
                    error_kind=BATCH_CANCELLED_KIND,
                    message="Batch was cancelled before this file was converted.",
                )
            else:
                result = self._run_one(job)
            batch.add(result)
            if self.on_job_done is not None:
                self._notify(index, total, result)

        logger.info(
            f"[{self.__class__.__name__}] Batch finished in {format_timedelta(datetime.now() - started_at)}: "
            f"{len(batch.successes)} succeeded, {len(batch.failures)} failed."
        )
        return batch

    def _run_one(self, job: ConversionJob) -> JobResult:
        try:
            return self.job_orchestrator.execute(job)
        except Exception as e:
            # JobOrchestrator already reports job failures as results; this only
            # catches a fault in the orchestrator itself.
            tb_str = "".join(traceback.format_exception(e))
            logger.error(f"Job for '{job.source_name}' aborted unexpectedly: {e}\nTraceback:\n{tb_str}")
            return JobResult.failure(job.source_name, error_kind=type(e).__name__, message=str(e))

    def _notify(self, index: int, total: int, result: JobResult):
        try:
            self.on_job_done(index, total, result)
        except Exception as e:
            logger.warning(f"Progress callback raised for job {index + 1}/{total}: {e}")


def build_jobs(
    files: Sequence[SourceFile],
    target_format_id: str,
    options: Optional[ConversionOptions] = None,
    probe_metadata: bool = False,
    catalog: FormatCatalog = DEFAULT_CATALOG,
):
    """
    Creates one `ConversionJob` per file, all sharing one format and option set.

    Raises:
        UnknownFormatError: If `target_format_id` is not in `catalog`.
    """
    profile = catalog.resolve(target_format_id)
    options = options or ConversionOptions()
    return [
        ConversionJob.from_source(source, profile, options, probe_metadata=probe_metadata, position=position)
        for position, source in enumerate(files)
    ]


def run_batch(
    engine: CodecEngine,
    files: Sequence[SourceFile],
    target_format_id: str,
    options: Optional[ConversionOptions] = None,
    *,
    probe_metadata: bool = False,
    max_retries: int = MAX_RUN_RETRIES,
    retry_delay: float = RETRY_DELAY_SECONDS,
    cancel_token: Optional[CancellationToken] = None,
    on_job_done: Optional[ProgressCallback] = None,
    catalog: FormatCatalog = DEFAULT_CATALOG,
    sleep: Optional[Callable[[float], None]] = None,
) -> BatchResult:
    """
    Converts `files` to `target_format_id` on `engine` and returns the batch result.

    Never raises for per-file problems. An unknown format id fails every file
    with `UnknownFormatError` instead of raising, so the caller always gets a
    result with one entry per input file.

    Args:
        engine: An initialised engine handle. The caller keeps ownership and
                closes it after its last batch.
        files: Input files, in the order results should be reported.
        target_format_id: Output format id, e.g. "mp3" or "flac".
        options: Channel, sample rate and bitrate overrides for the whole batch.
        probe_metadata: Read each input's metadata before converting it.
        max_retries: Extra attempts after a failed engine run.
        retry_delay: Seconds between attempts.
        cancel_token: Checked between files.
        on_job_done: Called as `(index, total, result)` after each file.
        catalog: Format catalog to resolve `target_format_id` against.
        sleep: Replacement for `time.sleep` between retries.
    """
    try:
        jobs = build_jobs(files, target_format_id, options, probe_metadata, catalog)
    except UnknownFormatError as e:
        logger.error(f"Cannot start batch: {e}")
        batch = BatchResult()
        for source in files:
            batch.add(JobResult.failure(source.name, error_kind=type(e).__name__, message=str(e)))
        return batch

    orchestrator_kwargs = {"max_retries": max_retries, "retry_delay": retry_delay}
    if sleep is not None:
        orchestrator_kwargs["sleep"] = sleep
    job_orchestrator = JobOrchestrator(engine, **orchestrator_kwargs)
    return BatchOrchestrator(job_orchestrator, on_job_done=on_job_done).run(jobs, cancel_token=cancel_token)
