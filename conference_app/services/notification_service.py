"""
Notification dispatcher for confirmation, reminder and cancellation emails.

Every send is fire-and-forget from the caller's point of view: a failed
delivery raises NotificationError, which callers catch and log locally.
There is no retry and no deduplication here; the reminder sweep owns
the ``reminder_sent`` bookkeeping.
"""

from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path
from typing import Optional

from jinja2 import Environment, FileSystemLoader, select_autoescape

from conference_app.core.config import settings
from conference_app.core.exceptions import NotificationError
from conference_app.models import Signup, Slot
from conference_app.services.email_client import EmailSink
from conference_app.utils.date_utils import format_slot_datetime

logger = logging.getLogger(__name__)

TEMPLATE_DIR = Path(__file__).resolve().parent.parent / "templates" / "emails"

templates = Environment(
    loader=FileSystemLoader(str(TEMPLATE_DIR)),
    autoescape=select_autoescape(["html"]),
)


def build_cancellation_url(token: str) -> str:
    """Self-service link; the token is already URL-safe and embedded verbatim"""
    return f"{settings.BASE_URL.rstrip('/')}/cancel/{token}"


class NotificationDispatcher:
    """Renders notification emails and hands them to an EmailSink"""

    def __init__(self, sink: EmailSink):
        self.sink = sink

    def _deliver(self, to: str, subject: str, template_name: str, **context) -> None:
        try:
            html = templates.get_template(template_name).render(
                school_name=settings.SCHOOL_NAME,
                **context,
            )
            self.sink.send(to, subject, html)
        except NotificationError:
            raise
        except Exception as e:
            raise NotificationError(f"Failed to send email to {to}: {e}") from e

    def send_confirmation(self, signup: Signup, slot: Slot, teacher_name: Optional[str] = None) -> None:
        date_str, time_str = format_slot_datetime(
            slot.start_time, slot.end_time, slot.hide_end_time, slot.hide_time
        )
        self._deliver(
            signup.email,
            f"Conference Confirmed - {settings.SCHOOL_NAME}",
            "confirmation.html",
            parent_name=signup.parent_name,
            teacher_name=teacher_name or slot.created_by.display_name,
            date_str=date_str,
            time_str=time_str,
            attendee_count=signup.attendee_count,
            cancellation_url=build_cancellation_url(signup.cancellation_token),
        )
        logger.info(f"Confirmation sent for signup {signup.id}")

    def send_reminder(self, signup: Signup, slot: Slot, teacher_name: Optional[str] = None) -> None:
        date_str, time_str = format_slot_datetime(
            slot.start_time, slot.end_time, slot.hide_end_time, slot.hide_time
        )
        self._deliver(
            signup.email,
            f"Reminder: Conference Tomorrow - {settings.SCHOOL_NAME}",
            "reminder.html",
            parent_name=signup.parent_name,
            child_name=signup.child_name or "Student",
            teacher_name=teacher_name or slot.created_by.display_name,
            date_str=date_str,
            time_str=time_str,
            attendee_count=signup.attendee_count,
            cancellation_url=build_cancellation_url(signup.cancellation_token),
        )
        logger.info(f"Reminder sent for signup {signup.id}")

    def send_cancellation_notice(self, email: str, parent_name: str, slot_time: datetime) -> None:
        date_str, time_str = format_slot_datetime(slot_time, slot_time, hide_end_time=True)
        self._deliver(
            email,
            f"Conference Cancelled - {settings.SCHOOL_NAME}",
            "cancellation.html",
            parent_name=parent_name,
            date_str=date_str,
            time_str=time_str,
        )
        logger.info(f"Cancellation notice sent to {email}")
