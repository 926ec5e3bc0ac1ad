"""
LegalEye Requirement Identification Pipeline

  - task_graph: matches requirements to legal bases and sizes the run
  - progress: integer progress reporting
  - orchestrator: the control loop (IdentificationPipeline)
  - finalizer / notifier: terminal transitions and owner e-mails
  - errors: job-fatal error types
  - context: the job handle the pipeline polls for cancellation

Usage:
    from pipeline import IdentificationPipeline

    pipeline = IdentificationPipeline(store, classifier, notifier)
    summary = await pipeline.run(job_data, job_context)
"""

from .context import JobContext
from .errors import IdentificationNotFoundError, JobCanceledError, JobFatalError, JobNotFoundError
from .finalizer import Finalizer
from .notifier import (
    LoggingNotifier,
    Notification,
    Notifier,
    SmtpNotifier,
    build_notifier,
    notify_best_effort,
)
from .orchestrator import IdentificationPipeline
from .progress import ProgressTracker
from .task_graph import (
    RequirementTask,
    TaskGraph,
    build_requirement_name,
    build_task_graph,
    match_legal_bases,
)

__all__ = [
    # Context and errors
    "JobContext",
    "JobFatalError",
    "JobNotFoundError",
    "JobCanceledError",
    "IdentificationNotFoundError",
    # Task graph
    "RequirementTask",
    "TaskGraph",
    "build_requirement_name",
    "build_task_graph",
    "match_legal_bases",
    # Progress
    "ProgressTracker",
    # Notifications
    "LoggingNotifier",
    "Notification",
    "Notifier",
    "SmtpNotifier",
    "build_notifier",
    "notify_best_effort",
    # Pipeline
    "Finalizer",
    "IdentificationPipeline",
]
