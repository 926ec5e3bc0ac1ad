"""
Job context seen by the pipeline.

The orchestrator never talks to the queue directly. It receives a JobContext
that answers the cooperative-cancellation questions and accepts progress
updates; the queue worker supplies the implementation.
"""

from typing import Protocol


class JobContext(Protocol):
    """Handle on the queue job an identification run belongs to."""

    job_id: str

    async def exists(self) -> bool:
        """Whether the job record is still present in the queue."""
        ...

    async def is_canceled(self) -> bool:
        """Whether the job was externally marked failed or canceled."""
        ...

    async def report_progress(self, progress: int) -> None:
        """Report an integer progress value in [0, 100]."""
        ...
