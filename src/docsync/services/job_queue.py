"""
Priority Job Queue for webhook change-sets.

An in-process, in-memory scheduler that admits change-sets as jobs, keeps
them ordered by priority, dispatches them to the batch processor under a
concurrency limit, and retries failed jobs with exponential backoff.

The queue is the single authority over job state. Jobs move through
``pending -> processing -> completed | retrying | failed`` and
``retrying -> pending`` once their backoff delay has passed. Terminal jobs
stay visible in the active list for a grace period and are kept in the
completion map for the lifetime of the process.

All state is mutated from the event loop that runs the scheduler, so no
locking is needed.
"""

import asyncio
import heapq
import itertools
import logging
import time
import uuid
from datetime import datetime
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Optional

from docsync.core.file_changes import FileChange
from docsync.services.models import BatchJob, BatchStatus, JobRecord, JobStatus, QueueJob

if TYPE_CHECKING:
    from docsync.services.batch_processor import BatchProcessor

logger = logging.getLogger(__name__)


class JobQueueError(Exception):
    """Base exception for job queue errors."""

    pass


class QueueFullError(JobQueueError):
    """Raised when a job is admitted while the queue is at capacity."""

    pass


class BatchFailedError(JobQueueError):
    """Raised when the batch processor reports a batch-level failure."""

    pass


class JobQueueObserver:
    """
    Receives job lifecycle notifications.

    Subclass and override the hooks of interest; the defaults do nothing.
    Exceptions raised by an observer are logged and never reach the queue.
    """

    def on_job_added(self, job: QueueJob) -> None:
        pass

    def on_job_started(self, job: QueueJob) -> None:
        pass

    def on_job_completed(self, job: QueueJob, result: BatchJob) -> None:
        pass

    def on_job_retrying(self, job: QueueJob, delay: float, error: BaseException) -> None:
        pass

    def on_job_failed(self, job: QueueJob, error: BaseException) -> None:
        pass


class LoggingJobObserver(JobQueueObserver):
    """Observer that writes every lifecycle transition to the log."""

    def on_job_added(self, job: QueueJob) -> None:
        logger.info(
            f"Job {job.id} added for {job.repository} "
            f"({len(job.files)} files, priority {job.priority})"
        )

    def on_job_started(self, job: QueueJob) -> None:
        logger.info(f"Job {job.id} started (attempt {job.attempts})")

    def on_job_completed(self, job: QueueJob, result: BatchJob) -> None:
        logger.info(
            f"Job {job.id} completed: {result.success_count} succeeded, "
            f"{result.failure_count} failed"
        )

    def on_job_retrying(self, job: QueueJob, delay: float, error: BaseException) -> None:
        logger.warning(
            f"Job {job.id} failed (attempt {job.attempts}): {error}. Retrying in {delay:.1f}s"
        )

    def on_job_failed(self, job: QueueJob, error: BaseException) -> None:
        logger.error(f"Job {job.id} failed after {job.attempts} attempts: {error}")


def _generate_job_id() -> str:
    return f"job_{int(time.time() * 1000)}_{uuid.uuid4().hex[:9]}"


class PriorityJobQueue:
    """
    Bounded priority queue with a background scheduler.

    Args:
        processor: Batch processor the jobs are dispatched to
        max_concurrent: Maximum number of jobs in ``processing`` at once
        max_size: Maximum length of the active list; admission fails at this size
        max_attempts: Processor invocations allowed per job
        tick_interval: Seconds between scheduler ticks
        eviction_delay: Seconds a terminal job stays in the active list
        backoff_base: Retry delay is ``backoff_base ** attempts`` seconds
        job_timeout: Optional deadline in seconds for one processor invocation
        observer: Lifecycle observer, defaults to a no-op observer
        clock: Monotonic time source used for backoff and eviction
        sleep: Awaitable sleep used by the scheduler loop and ``wait_idle``
    """

    def __init__(
        self,
        processor: "BatchProcessor",
        max_concurrent: int = 3,
        max_size: int = 100,
        max_attempts: int = 3,
        tick_interval: float = 1.0,
        eviction_delay: float = 300.0,
        backoff_base: float = 2.0,
        job_timeout: Optional[float] = None,
        observer: Optional[JobQueueObserver] = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        if max_concurrent < 1:
            raise ValueError("max_concurrent must be at least 1")
        if max_size < 1:
            raise ValueError("max_size must be at least 1")
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")

        self._processor = processor
        self._max_concurrent = max_concurrent
        self._max_size = max_size
        self._max_attempts = max_attempts
        self._tick_interval = tick_interval
        self._eviction_delay = eviction_delay
        self._backoff_base = backoff_base
        self._job_timeout = job_timeout
        self._observer = observer or JobQueueObserver()
        self._clock = clock
        self._sleep = sleep

        self._jobs: list[QueueJob] = []
        self._completed: dict[str, JobRecord] = {}
        # (ready_at, sequence, job_id) for jobs waiting out their backoff
        self._ready_heap: list[tuple[float, int, str]] = []
        self._sequence = itertools.count()
        self._evict_at: dict[str, float] = {}
        self._in_flight: dict[str, asyncio.Task] = {}
        self._scheduler_task: Optional[asyncio.Task] = None

    @property
    def max_concurrent(self) -> int:
        return self._max_concurrent

    @property
    def max_size(self) -> int:
        return self._max_size

    def is_running(self) -> bool:
        return self._scheduler_task is not None and not self._scheduler_task.done()

    def is_full(self) -> bool:
        return len(self._jobs) >= self._max_size

    def add_job(self, repository: str, files: list[FileChange], priority: int) -> str:
        """
        Admit a change-set as a new pending job.

        The job is inserted before the first job with a strictly lower
        priority, so equal priorities keep their admission order.

        Returns:
            The generated job id

        Raises:
            QueueFullError: If the active list is at capacity. The queue is
                left unchanged.
        """
        if self.is_full():
            raise QueueFullError(f"Queue is full (max size: {self._max_size})")

        job = QueueJob(
            id=_generate_job_id(),
            repository=repository,
            files=list(files),
            priority=priority,
        )

        index = next(
            (i for i, existing in enumerate(self._jobs) if existing.priority < priority),
            len(self._jobs),
        )
        self._jobs.insert(index, job)

        self._notify("on_job_added", job)
        return job.id

    def get_job(self, job_id: str) -> Optional[QueueJob]:
        """Return the job from the active list, if it is still there."""
        for job in self._jobs:
            if job.id == job_id:
                return job
        return None

    def get_job_status(self, job_id: str) -> Optional[dict[str, Any]]:
        """
        Return a snapshot of a job.

        The active list is consulted first, then the completion map, so an
        admitted job stays visible after it has been evicted.
        """
        job = self.get_job(job_id)
        record = self._completed.get(job_id)

        if job is not None:
            snapshot = job.to_dict()
            if record is not None and record.result is not None:
                snapshot["result"] = record.result.to_dict()
            return snapshot

        if record is not None:
            return record.to_dict()
        return None

    def get_queue_stats(self) -> dict[str, int]:
        """
        Summarize the queue.

        ``total``, ``pending`` and ``retrying`` describe the active list;
        ``completed`` and ``failed`` count the completion map, so they keep
        growing after terminal jobs are evicted.
        """
        records = self._completed.values()
        return {
            "total": len(self._jobs),
            "pending": sum(1 for j in self._jobs if j.status == JobStatus.PENDING),
            "processing": len(self._in_flight),
            "retrying": sum(1 for j in self._jobs if j.status == JobStatus.RETRYING),
            "completed": sum(1 for r in records if r.status == JobStatus.COMPLETED),
            "failed": sum(1 for r in records if r.status == JobStatus.FAILED),
        }

    def jobs(self) -> list[QueueJob]:
        """Return the active list in queue order."""
        return list(self._jobs)

    async def start(self) -> None:
        """Start the background scheduler loop."""
        if self.is_running():
            logger.debug("Job queue scheduler is already running")
            return

        self._scheduler_task = asyncio.create_task(self._run_scheduler())
        logger.info(
            f"Job queue started (max concurrent: {self._max_concurrent}, "
            f"max size: {self._max_size})"
        )

    async def stop(self) -> None:
        """
        Stop the scheduler loop.

        Cancels in-flight processor calls and drops pending backoff timers.
        Interrupted jobs return to ``pending`` without consuming an attempt,
        and retrying jobs return to ``pending`` immediately, so a restarted
        queue dispatches both.
        """
        if self._scheduler_task is not None:
            self._scheduler_task.cancel()
            await asyncio.gather(self._scheduler_task, return_exceptions=True)
            self._scheduler_task = None

        tasks = list(self._in_flight.values())
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        self._in_flight.clear()
        self._ready_heap.clear()

        for job in self._jobs:
            if job.status == JobStatus.PROCESSING:
                job.status = JobStatus.PENDING
                job.attempts -= 1
            elif job.status == JobStatus.RETRYING:
                job.status = JobStatus.PENDING

        logger.info("Job queue stopped")

    async def tick(self) -> None:
        """
        Run one scheduler step.

        Promotes retries whose backoff has passed, evicts terminal jobs whose
        grace period has passed, then dispatches pending jobs in queue order
        while fewer than ``max_concurrent`` are processing.
        """
        now = self._clock()
        self._promote_ready(now)
        self._evict_expired(now)
        self._dispatch()

    async def wait_idle(self) -> None:
        """
        Drive the queue until no job is pending, processing or retrying.

        Used by one-off tooling that runs without the background loop.
        """
        while True:
            await self.tick()

            if self._in_flight:
                await asyncio.wait(
                    list(self._in_flight.values()), return_when=asyncio.FIRST_COMPLETED
                )
                continue

            if self._ready_heap:
                delay = max(self._ready_heap[0][0] - self._clock(), 0.0)
                await self._sleep(delay)
                continue

            if not any(job.status == JobStatus.PENDING for job in self._jobs):
                return

    async def _run_scheduler(self) -> None:
        while True:
            try:
                await self.tick()
            except Exception as e:
                logger.error(f"Job queue tick failed: {e}", exc_info=True)
            await self._sleep(self._tick_interval)

    def _promote_ready(self, now: float) -> None:
        while self._ready_heap and self._ready_heap[0][0] <= now:
            _, _, job_id = heapq.heappop(self._ready_heap)
            job = self.get_job(job_id)
            if job is not None and job.status == JobStatus.RETRYING:
                job.status = JobStatus.PENDING

    def _evict_expired(self, now: float) -> None:
        expired = {job_id for job_id, at in self._evict_at.items() if at <= now}
        if not expired:
            return
        self._jobs = [job for job in self._jobs if job.id not in expired]
        for job_id in expired:
            del self._evict_at[job_id]
        logger.debug(f"Evicted {len(expired)} finished jobs from the queue")

    def _dispatch(self) -> None:
        while len(self._in_flight) < self._max_concurrent:
            job = next((j for j in self._jobs if j.status == JobStatus.PENDING), None)
            if job is None:
                return

            job.status = JobStatus.PROCESSING
            job.attempts += 1
            job.started_at = datetime.now()
            self._notify("on_job_started", job)

            self._in_flight[job.id] = asyncio.create_task(self._execute(job))

    async def _execute(self, job: QueueJob) -> None:
        try:
            operation = self._processor.process_file_batch(job.repository, job.files)
            if self._job_timeout:
                result = await asyncio.wait_for(operation, timeout=self._job_timeout)
            else:
                result = await operation

            if result.status == BatchStatus.FAILED:
                raise BatchFailedError(result.error or "Batch processing failed")
        except Exception as e:
            self._on_failure(job, e)
        else:
            self._on_success(job, result)
        finally:
            self._in_flight.pop(job.id, None)

    def _on_success(self, job: QueueJob, result: BatchJob) -> None:
        job.status = JobStatus.COMPLETED
        job.completed_at = datetime.now()
        job.error = None
        self._completed[job.id] = JobRecord(
            job_id=job.id,
            repository=job.repository,
            status=JobStatus.COMPLETED,
            attempts=job.attempts,
            completed_at=job.completed_at,
            result=result,
        )
        self._evict_at[job.id] = self._clock() + self._eviction_delay
        self._notify("on_job_completed", job, result)

    def _on_failure(self, job: QueueJob, error: BaseException) -> None:
        job.error = str(error) or type(error).__name__

        if job.attempts < self._max_attempts:
            delay = self._backoff_base ** job.attempts
            job.status = JobStatus.RETRYING
            heapq.heappush(
                self._ready_heap, (self._clock() + delay, next(self._sequence), job.id)
            )
            self._notify("on_job_retrying", job, delay, error)
            return

        job.status = JobStatus.FAILED
        job.completed_at = datetime.now()
        self._completed[job.id] = JobRecord(
            job_id=job.id,
            repository=job.repository,
            status=JobStatus.FAILED,
            attempts=job.attempts,
            completed_at=job.completed_at,
            error=job.error,
        )
        self._evict_at[job.id] = self._clock() + self._eviction_delay
        self._notify("on_job_failed", job, error)

    def _notify(self, hook: str, *args: Any) -> None:
        try:
            getattr(self._observer, hook)(*args)
        except Exception as e:
            logger.warning(f"Job queue observer {hook} raised: {e}")
