"""
Identification Worker

Connects the job queue to the identification pipeline: each raw job payload
is handed to the pipeline with a QueueJobContext, so the pipeline can poll
for cancellation and report progress. The pipeline only raises
JobFatalError, whose message becomes the job's failed reason.
"""

import logging
from typing import Any

from api.job_queue import Job, JobQueue, QueueJobContext
from pipeline import IdentificationPipeline

logger = logging.getLogger(__name__)


class IdentificationWorker:
    """Bounded pool of workers running identification jobs."""

    def __init__(self, queue: JobQueue, pipeline: IdentificationPipeline, concurrency: int = 1):
        self.queue = queue
        self.pipeline = pipeline
        self.concurrency = concurrency

    async def handle(self, job: Job) -> dict[str, Any]:
        """Run one job; the returned summary becomes the job's return value."""
        summary = await self.pipeline.run_payload(job.data, QueueJobContext(self.queue, job.job_id))
        return summary.model_dump()

    def start(self) -> None:
        self.queue.process(self.concurrency, self.handle)
        logger.info(f"Identification worker started (concurrency {self.concurrency})")

    async def stop(self) -> None:
        await self.queue.close()
