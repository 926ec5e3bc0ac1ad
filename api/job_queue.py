"""
Job Queue for Requirement Identifications

In-process job queue with a bounded worker pool. Jobs move through the
states

  waiting ─┬─> active ─┬─> completed
  delayed ─┤           └─> failed
  paused ──┘

Stores jobs in memory (for MVP - would use Redis in production).

Cancellation is cooperative: cancelling an active job only moves it to
failed with the reason "Job was canceled". The running handler notices at
its next checkpoint, and whatever it returns or raises afterwards does not
change the job's state again.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from typing import Any, Awaitable, Callable, Iterable, Optional
from uuid import uuid4

logger = logging.getLogger(__name__)

CANCELED_REASON = "Job was canceled"


class JobState(str, Enum):
    """State of a queued job."""
    WAITING = "waiting"
    ACTIVE = "active"
    COMPLETED = "completed"
    FAILED = "failed"
    DELAYED = "delayed"
    PAUSED = "paused"


PENDING_STATES = (JobState.WAITING, JobState.PAUSED, JobState.ACTIVE, JobState.DELAYED)
FINISHED_STATES = (JobState.COMPLETED, JobState.FAILED)


class JobStateError(Exception):
    """Requested transition is not allowed in the job's current state."""


@dataclass
class Job:
    """Represents a queued job"""

    job_id: str
    data: dict[str, Any]
    state: JobState = JobState.WAITING
    progress: int = 0
    created_at: datetime = field(default_factory=datetime.now)
    updated_at: datetime = field(default_factory=datetime.now)
    processed_at: Optional[datetime] = None
    finished_at: Optional[datetime] = None
    delay_until: Optional[datetime] = None
    failed_reason: Optional[str] = None
    return_value: Any = None

    def update(
        self,
        state: Optional[JobState] = None,
        progress: Optional[int] = None,
        failed_reason: Optional[str] = None,
        return_value: Any = None,
    ):
        """Update job state"""
        if state is not None:
            self.state = state
        if progress is not None:
            self.progress = progress
        if failed_reason is not None:
            self.failed_reason = failed_reason
        if return_value is not None:
            self.return_value = return_value
        self.updated_at = datetime.now()

        if state == JobState.ACTIVE:
            self.processed_at = self.updated_at
        if state in FINISHED_STATES:
            self.finished_at = self.updated_at

    @property
    def is_ready(self) -> bool:
        if self.state == JobState.WAITING:
            return True
        return (
            self.state == JobState.DELAYED
            and self.delay_until is not None
            and self.delay_until <= datetime.now()
        )


JobHandler = Callable[[Job], Awaitable[Any]]


class JobQueue:
    """
    Queue of identification jobs.

    Jobs are picked in insertion order by `process()` workers.
    """

    def __init__(self, name: str = "reqIdentification", max_jobs: int = 1000):
        self.name = name
        self.jobs: dict[str, Job] = {}
        self.max_jobs = max_jobs
        self._paused = False
        self._closed = False
        self._condition = asyncio.Condition()
        self._workers: list[asyncio.Task] = []

    @property
    def is_paused(self) -> bool:
        return self._paused

    async def add(self, data: dict[str, Any], delay: Optional[float] = None) -> Job:
        """
        Enqueue a job.

        Args:
            data: JSON-serializable payload
            delay: Seconds to wait before the job becomes eligible

        Returns:
            The created Job
        """
        async with self._condition:
            if len(self.jobs) >= self.max_jobs:
                self._cleanup_old_jobs()

            job = Job(job_id=str(uuid4()), data=data)
            if delay:
                job.state = JobState.DELAYED
                job.delay_until = datetime.now() + timedelta(seconds=delay)
            elif self._paused:
                job.state = JobState.PAUSED
            self.jobs[job.job_id] = job
            self._condition.notify_all()

            logger.info(f"Queue {self.name}: added job {job.job_id} ({job.state.value})")
            return job

    async def get_job(self, job_id: str) -> Optional[Job]:
        """Get a job by ID"""
        async with self._condition:
            return self.jobs.get(job_id)

    async def get_jobs(self, states: Iterable[JobState]) -> list[Job]:
        """Jobs currently in any of the given states, oldest first."""
        wanted = set(states)
        async with self._condition:
            return [job for job in self.jobs.values() if job.state in wanted]

    async def update_progress(self, job_id: str, progress: int) -> bool:
        """Record progress of a job. Returns False when the job no longer exists."""
        async with self._condition:
            job = self.jobs.get(job_id)
            if job is None:
                logger.warning(f"Job {job_id} not found for progress update")
                return False
            job.update(progress=max(0, min(100, int(progress))))
            return True

    async def move_to_completed(self, job_id: str, return_value: Any = None) -> bool:
        """Complete an active job. Jobs canceled or removed meanwhile are left alone."""
        async with self._condition:
            job = self.jobs.get(job_id)
            if job is None or job.state != JobState.ACTIVE:
                logger.info(f"Job {job_id} is no longer active, not marking completed")
                return False
            job.update(state=JobState.COMPLETED, return_value=return_value)
            logger.info(f"Job {job_id} completed")
            return True

    async def move_to_failed(self, job_id: str, reason: str) -> bool:
        """Fail a job that is not finished yet."""
        async with self._condition:
            job = self.jobs.get(job_id)
            if job is None or job.state in FINISHED_STATES:
                return False
            job.update(state=JobState.FAILED, failed_reason=reason)
            logger.error(f"Job {job_id} failed: {reason}")
            return True

    async def cancel_job(self, job_id: str) -> Optional[JobState]:
        """
        Cancel a job.

        Active jobs are moved to failed with the reason "Job was canceled";
        waiting, delayed and paused jobs are removed from the queue.

        Returns:
            The state the job was in, or None when it does not exist

        Raises:
            JobStateError: if the job is already completed or failed
        """
        async with self._condition:
            job = self.jobs.get(job_id)
            if job is None:
                return None
            previous = job.state
            if previous in FINISHED_STATES:
                raise JobStateError(
                    f"Job cannot be canceled. Jobs in '{previous.value}' state cannot be modified."
                )
            if previous == JobState.ACTIVE:
                job.update(state=JobState.FAILED, failed_reason=CANCELED_REASON)
            else:
                del self.jobs[job_id]
            logger.info(f"Job {job_id} canceled (was {previous.value})")
            return previous

    async def pause(self) -> None:
        """Stop handing out jobs; waiting jobs become paused."""
        async with self._condition:
            self._paused = True
            for job in self.jobs.values():
                if job.state == JobState.WAITING:
                    job.update(state=JobState.PAUSED)
            logger.info(f"Queue {self.name} paused")

    async def resume(self) -> None:
        async with self._condition:
            self._paused = False
            for job in self.jobs.values():
                if job.state == JobState.PAUSED:
                    job.update(state=JobState.WAITING)
            self._condition.notify_all()
            logger.info(f"Queue {self.name} resumed")

    def process(self, concurrency: int, handler: JobHandler) -> None:
        """
        Start `concurrency` workers that run `handler` for each job.

        A handler's return value completes the job; an exception fails it
        with the exception message as the failed reason.
        """
        concurrency = max(concurrency, 1)
        for index in range(concurrency):
            task = asyncio.create_task(self._worker(handler), name=f"{self.name}-worker-{index}")
            self._workers.append(task)
        logger.info(f"Queue {self.name}: started {concurrency} workers")

    async def close(self) -> None:
        """Stop all workers. Jobs still active stay active."""
        async with self._condition:
            self._closed = True
            self._condition.notify_all()
        for task in self._workers:
            task.cancel()
        await asyncio.gather(*self._workers, return_exceptions=True)
        self._workers.clear()
        logger.info(f"Queue {self.name} closed")

    async def _next_job(self) -> Optional[Job]:
        async with self._condition:
            while not self._closed:
                if not self._paused:
                    for job in self.jobs.values():
                        if job.is_ready:
                            job.update(state=JobState.ACTIVE)
                            return job
                try:
                    await asyncio.wait_for(self._condition.wait(), timeout=self._next_wakeup())
                except asyncio.TimeoutError:
                    pass
            return None

    def _next_wakeup(self) -> Optional[float]:
        """Seconds until the earliest delayed job is due, or None to wait for a notify."""
        due = [
            job.delay_until
            for job in self.jobs.values()
            if job.state == JobState.DELAYED and job.delay_until is not None
        ]
        if not due:
            return None
        return max((min(due) - datetime.now()).total_seconds(), 0.0)

    async def _worker(self, handler: JobHandler) -> None:
        while True:
            job = await self._next_job()
            if job is None:
                return

            logger.info(f"Queue {self.name}: processing job {job.job_id}")
            try:
                result = await handler(job)
            except Exception as e:
                await self.move_to_failed(job.job_id, str(e) or type(e).__name__)
            else:
                await self.move_to_completed(job.job_id, result)

    def _cleanup_old_jobs(self):
        """Remove oldest completed/failed jobs"""
        finished_jobs = [
            (job_id, job)
            for job_id, job in self.jobs.items()
            if job.state in FINISHED_STATES
        ]
        finished_jobs.sort(key=lambda x: x[1].finished_at or x[1].created_at)

        # Remove oldest half
        for job_id, _ in finished_jobs[: max(len(finished_jobs) // 2, 1)]:
            del self.jobs[job_id]
            logger.debug(f"Cleaned up old job {job_id}")


class QueueJobContext:
    """Binds a queue job to the pipeline's job-context protocol."""

    def __init__(self, queue: JobQueue, job_id: str):
        self.queue = queue
        self.job_id = job_id

    async def exists(self) -> bool:
        return await self.queue.get_job(self.job_id) is not None

    async def is_canceled(self) -> bool:
        job = await self.queue.get_job(self.job_id)
        return job is not None and job.state == JobState.FAILED

    async def report_progress(self, progress: int) -> None:
        await self.queue.update_progress(self.job_id, progress)
