"""
Progress Tracker

Turns completed/total task counts into the integer percentage reported to
the queue: floor(completed / total * 100), clamped to [0, 100] and never
lower than a value already reported.
"""

import logging
from typing import Awaitable, Callable, Optional

logger = logging.getLogger(__name__)

ProgressReporter = Callable[[int], Awaitable[None]]


class ProgressTracker:
    """
    Tracks task completion for one run.

    Args:
        total_tasks: Fixed task count computed at job start
        report: Coroutine called with each new progress value
    """

    def __init__(self, total_tasks: int, report: Optional[ProgressReporter] = None):
        self.total_tasks = max(total_tasks, 0)
        self.completed_tasks = 0
        self.progress = 0
        self._report = report

    def _percentage(self) -> int:
        if self.total_tasks == 0:
            return 0
        return min(100, (self.completed_tasks * 100) // self.total_tasks)

    async def advance(self, tasks: int = 1) -> int:
        """Mark tasks as done and report the new progress if it moved."""
        self.completed_tasks += tasks
        value = max(self.progress, self._percentage())
        if value != self.progress:
            await self._publish(value)
        return self.progress

    async def complete(self) -> int:
        """Force progress to 100 at a terminal transition."""
        if self.progress != 100:
            await self._publish(100)
        return self.progress

    async def _publish(self, value: int) -> None:
        self.progress = value
        if self._report is not None:
            await self._report(value)
        logger.debug(f"Progress {value}% ({self.completed_tasks}/{self.total_tasks})")
