"""
Finalizer

Moves an identification to its terminal status, forces progress to 100 and
notifies the owner. Every notification is best-effort.
"""

import logging
from typing import Optional

from shared.models import (
    Article,
    IdentificationStatus,
    IdentificationSummary,
    LegalBasis,
    Requirement,
    RequirementIdentification,
)
from storage import LinkStore

from .notifier import (
    Notification,
    Notifier,
    article_failure_notification,
    notify_best_effort,
    run_failure_notification,
    summary_notification,
)
from .progress import ProgressTracker

logger = logging.getLogger("legaleye.pipeline")


class Finalizer:
    """Terminal transitions and owner notifications for a run."""

    def __init__(self, store: LinkStore, notifier: Notifier, notification_attempts: int = 2):
        self.store = store
        self.notifier = notifier
        self.notification_attempts = notification_attempts

    async def complete(
        self,
        identification: RequirementIdentification,
        summary: IdentificationSummary,
        tracker: ProgressTracker,
    ) -> None:
        await self.store.update_identification_status(identification.id, IdentificationStatus.COMPLETED)
        identification.status = IdentificationStatus.COMPLETED
        await tracker.complete()
        logger.info(
            f"Identification {identification.id} completed: "
            f"{summary.requirement_count} requirements, {summary.legal_basis_count} legal bases, "
            f"{summary.article_count} articles classified, {summary.failed_articles} failed"
        )

        await self._notify_owner(
            identification,
            lambda to: summary_notification(to, identification, summary),
        )

    async def fail(
        self,
        req_identification_id: int,
        identification: Optional[RequirementIdentification],
        reason: str,
        tracker: ProgressTracker,
    ) -> None:
        """
        Mark the run Failed and send the failure notification.

        Never raises: each step is attempted even when an earlier one failed.
        """
        logger.error(f"Identification {req_identification_id} failed: {reason}")

        try:
            updated = await self.store.update_identification_status(
                req_identification_id, IdentificationStatus.FAILED
            )
            if updated and identification is not None:
                identification.status = IdentificationStatus.FAILED
        except Exception:
            logger.exception(f"Could not mark identification {req_identification_id} as failed")

        try:
            await tracker.complete()
        except Exception:
            logger.exception(f"Could not report final progress for identification {req_identification_id}")

        if identification is None:
            return
        await self._notify_owner(
            identification,
            lambda to: run_failure_notification(to, identification, reason),
        )

    async def notify_article_failure(
        self,
        identification: RequirementIdentification,
        requirement: Requirement,
        legal_basis: LegalBasis,
        article: Article,
        reason: str,
    ) -> None:
        await self._notify_owner(
            identification,
            lambda to: article_failure_notification(to, identification, requirement, legal_basis, article, reason),
        )

    async def _notify_owner(self, identification: RequirementIdentification, build) -> bool:
        try:
            to = await self.store.get_user_email(identification.user_id)
        except Exception:
            logger.exception(f"Could not look up owner of identification {identification.id}")
            return False
        if not to:
            logger.warning(f"No e-mail for user {identification.user_id}, skipping notification")
            return False

        notification: Notification = build(to)
        return await notify_best_effort(self.notifier, notification, self.notification_attempts)
