"""
Job state → status response mapping.

Every queue state maps to a fixed message; active and completed jobs also
report their progress and failed jobs their failure reason. Internal
exception details never reach this response beyond the failed reason the
pipeline recorded.
"""

from typing import Callable, Optional

from api.job_queue import Job, JobState
from api.models import JobStatusResponse

UNKNOWN_STATE_MESSAGE = "Job is in an unknown state"

RESPONSE_MAP: dict[JobState, tuple[str, Optional[Callable[[Job], dict]]]] = {
    JobState.WAITING: ("The job is waiting to be processed", None),
    JobState.ACTIVE: ("Job is still processing", lambda job: {"job_progress": job.progress}),
    JobState.COMPLETED: ("Job completed successfully", lambda job: {"job_progress": job.progress}),
    JobState.FAILED: ("Job failed", lambda job: {"error": job.failed_reason or "Unknown error"}),
    JobState.DELAYED: ("Job is delayed and will be processed later", None),
    JobState.PAUSED: ("Job is paused and will be resumed once unpaused", None),
}


def job_status(job: Job) -> JobStatusResponse:
    """Describe a job for the status endpoint."""
    message, handler = RESPONSE_MAP.get(job.state, (UNKNOWN_STATE_MESSAGE, None))
    extra = handler(job) if handler else {}
    return JobStatusResponse(status=getattr(job.state, "value", str(job.state)), message=message, **extra)
