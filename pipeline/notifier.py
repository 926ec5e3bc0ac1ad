"""
Notifications

Builds the e-mails sent to the owner of an identification and delivers
them through a Notifier:

  - summary_notification: the run completed
  - article_failure_notification: one article could not be classified
  - run_failure_notification: the run was aborted

Delivery from the pipeline always goes through `notify_best_effort`, which
retries a bounded number of times and then logs and gives up. A
notification problem never changes the outcome of a run.
"""

import asyncio
import logging
import smtplib
from abc import ABC, abstractmethod
from dataclasses import dataclass
from email.message import EmailMessage

from config.worker_config import WorkerConfig
from shared.models import (
    Article,
    IdentificationSummary,
    LegalBasis,
    Requirement,
    RequirementIdentification,
)

logger = logging.getLogger(__name__)


@dataclass
class Notification:
    """A plain-text e-mail."""

    to: str
    subject: str
    text: str


class Notifier(ABC):
    """Delivery channel for notifications."""

    @abstractmethod
    async def send(self, notification: Notification) -> None:
        """Deliver the notification or raise."""


class SmtpNotifier(Notifier):
    """Sends notifications through an SMTP server with STARTTLS."""

    def __init__(self, config: WorkerConfig):
        if not config.email_host:
            raise ValueError("EMAIL_HOST is required for SMTP notifications")
        self.config = config

    async def send(self, notification: Notification) -> None:
        message = EmailMessage()
        message["From"] = self.config.email_from or self.config.email_user or ""
        message["To"] = notification.to
        message["Subject"] = notification.subject
        message.set_content(notification.text)
        await asyncio.to_thread(self._deliver, message)
        logger.info(f"Sent '{notification.subject}' to {notification.to}")

    def _deliver(self, message: EmailMessage) -> None:
        with smtplib.SMTP(self.config.email_host, self.config.email_port, timeout=30) as smtp:
            smtp.starttls()
            if self.config.email_user:
                smtp.login(self.config.email_user, self.config.email_password or "")
            smtp.send_message(message)


class LoggingNotifier(Notifier):
    """Logs notifications instead of sending them. Keeps a copy of each."""

    def __init__(self):
        self.sent: list[Notification] = []

    async def send(self, notification: Notification) -> None:
        self.sent.append(notification)
        logger.info(f"Notification to {notification.to}: {notification.subject}")


def build_notifier(config: WorkerConfig) -> Notifier:
    """SMTP when EMAIL_HOST is configured, logging otherwise."""
    if config.smtp_enabled:
        return SmtpNotifier(config)
    logger.warning("EMAIL_HOST not set, notifications will only be logged")
    return LoggingNotifier()


async def notify_best_effort(notifier: Notifier, notification: Notification, attempts: int = 2) -> bool:
    """
    Try to deliver a notification up to `attempts` times.

    Returns:
        True when delivered, False when every attempt failed
    """
    attempts = max(attempts, 1)
    for attempt in range(1, attempts + 1):
        try:
            await notifier.send(notification)
            return True
        except Exception as e:
            logger.warning(
                f"Notification '{notification.subject}' to {notification.to} failed "
                f"(attempt {attempt}/{attempts}): {e}"
            )
    logger.error(f"Giving up on notification '{notification.subject}' to {notification.to}")
    return False


# ============================================================================
# Message builders
# ============================================================================

def summary_notification(
    to: str,
    identification: RequirementIdentification,
    summary: IdentificationSummary,
) -> Notification:
    lines = [
        f"La identificación de requerimientos \"{identification.name}\" "
        f"(ID {identification.id}) ha finalizado correctamente.",
        "",
        f"Fundamentos legales analizados: {summary.legal_basis_count}",
        f"Artículos clasificados: {summary.article_count}",
        f"Requerimientos identificados: {summary.requirement_count}",
    ]
    if summary.failed_articles:
        lines.append(f"Artículos que no pudieron clasificarse: {summary.failed_articles}")
    return Notification(
        to=to,
        subject="Identificación de requerimientos completada",
        text="\n".join(lines),
    )


def article_failure_notification(
    to: str,
    identification: RequirementIdentification,
    requirement: Requirement,
    legal_basis: LegalBasis,
    article: Article,
    reason: str,
) -> Notification:
    return Notification(
        to=to,
        subject="Error al clasificar un artículo",
        text=(
            f"No fue posible clasificar el artículo \"{article.article_name}\" (ID {article.id}) "
            f"del fundamento legal \"{legal_basis.legal_name}\" para el requerimiento "
            f"{requirement.requirement_number} en la identificación \"{identification.name}\" "
            f"(ID {identification.id}).\n\n"
            f"Motivo: {reason}\n\n"
            f"La identificación continúa con los demás artículos."
        ),
    )


def run_failure_notification(
    to: str,
    identification: RequirementIdentification,
    reason: str,
) -> Notification:
    return Notification(
        to=to,
        subject="Error en la identificación de requerimientos",
        text=(
            f"La identificación de requerimientos \"{identification.name}\" "
            f"(ID {identification.id}) no pudo completarse.\n\n"
            f"Motivo: {reason}"
        ),
    )
