"""
Worker Configuration

Settings for the identification worker pool, the pipeline's summary step
and outgoing notifications.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

load_dotenv()


@dataclass
class WorkerConfig:
    """Configuration for the identification worker."""

    # Number of identification jobs processed at the same time
    concurrency: int = 1

    # Size of the "top mandatory articles" query per requirement
    top_mandatory_articles: int = 5

    # Bounded retry for best-effort notifications
    notification_attempts: int = 2

    # SMTP
    email_host: Optional[str] = None
    email_port: int = 587
    email_user: Optional[str] = None
    email_password: Optional[str] = None
    email_from: Optional[str] = None

    @classmethod
    def from_env(cls) -> WorkerConfig:
        """Load configuration from environment variables."""
        return cls(
            concurrency=int(os.getenv("CONCURRENCY_REQ_IDENTIFICATIONS", "1")),
            top_mandatory_articles=int(os.getenv("LEGALEYE_TOP_MANDATORY_ARTICLES", "5")),
            notification_attempts=int(os.getenv("LEGALEYE_NOTIFICATION_ATTEMPTS", "2")),
            email_host=os.getenv("EMAIL_HOST") or None,
            email_port=int(os.getenv("EMAIL_PORT", "587")),
            email_user=os.getenv("EMAIL_USER") or None,
            email_password=os.getenv("EMAIL_PASS") or None,
            email_from=os.getenv("EMAIL_FROM") or None,
        )

    @property
    def smtp_enabled(self) -> bool:
        return bool(self.email_host)
