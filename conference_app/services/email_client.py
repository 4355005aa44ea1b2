"""
Email delivery sinks
"""

from __future__ import annotations

import logging
from functools import lru_cache

import resend

from conference_app.core.config import settings
from conference_app.core.exceptions import NotificationError

logger = logging.getLogger(__name__)


class EmailSink:
    """Accepts (to, subject, html); raises NotificationError on failure."""

    def send(self, to: str, subject: str, html: str) -> None:
        raise NotImplementedError


class ResendEmailSink(EmailSink):
    def __init__(self, api_key: str, from_email: str):
        resend.api_key = api_key
        self.from_email = from_email

    def send(self, to: str, subject: str, html: str) -> None:
        params = {
            "from": self.from_email,
            "to": [to],
            "subject": subject,
            "html": html,
        }
        try:
            response = resend.Emails.send(params)
        except Exception as e:
            raise NotificationError(f"Failed to send email to {to}: {e}") from e
        logger.info(f"Email '{subject}' sent to {to} (id={response.get('id')})")


class LoggingEmailSink(EmailSink):
    """Development sink used when no provider is configured"""

    def send(self, to: str, subject: str, html: str) -> None:
        logger.info(f"Email not configured. Would have sent '{subject}' to: {to}")


@lru_cache(maxsize=1)
def get_email_sink() -> EmailSink:
    """Return a cached sink: Resend when RESEND_API_KEY is set, logging otherwise."""
    if not settings.RESEND_API_KEY:
        return LoggingEmailSink()
    return ResendEmailSink(settings.RESEND_API_KEY, settings.EMAIL_FROM)
