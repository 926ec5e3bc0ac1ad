"""
LegalEye Web API Package

FastAPI-based interface for requirement identifications.

Usage:
    # Start the server
    uvicorn api.main:app --reload

    # Or via entry point
    legaleye-api
"""

from api.job_queue import Job, JobQueue, JobState, JobStateError, QueueJobContext
from api.main import AppServices, app, build_services, create_app
from api.models import (
    CancelJobResponse,
    CreateIdentificationRequest,
    CreateIdentificationResponse,
    JobStatusResponse,
    PendingJobsResponse,
)
from api.service import IdentificationRequestError, IdentificationService
from api.worker import IdentificationWorker

__all__ = [
    "app",
    "create_app",
    "build_services",
    "AppServices",
    # Queue
    "Job",
    "JobQueue",
    "JobState",
    "JobStateError",
    "QueueJobContext",
    # Service
    "IdentificationRequestError",
    "IdentificationService",
    "IdentificationWorker",
    # Models
    "CancelJobResponse",
    "CreateIdentificationRequest",
    "CreateIdentificationResponse",
    "JobStatusResponse",
    "PendingJobsResponse",
]
