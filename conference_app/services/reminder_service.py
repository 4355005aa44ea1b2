"""
Reminder sweep invoked by the external scheduler.

Selects signups whose slot starts inside the reminder window and that have
not been reminded yet, then handles each one in its own transaction:
lock the row, send, mark ``reminder_sent``, commit. A failed send rolls back
that row only, so a rerun retries exactly the rows still unmarked.
"""

import logging
from datetime import datetime, timedelta
from typing import Optional, Tuple

from sqlalchemy.orm import Session

from conference_app.core.config import settings
from conference_app.schemas.signup import ReminderSweepResult
from conference_app.services.notification_service import NotificationDispatcher
from conference_app.services.repositories import SignupRepo
from conference_app.utils.date_utils import to_naive_utc, utcnow

logger = logging.getLogger(__name__)


def reminder_window(now: datetime) -> Tuple[datetime, datetime]:
    """[now + lead, now + lead + window); window should match the scheduler cadence"""
    start = now + timedelta(hours=settings.REMINDER_LEAD_HOURS)
    return start, start + timedelta(minutes=settings.REMINDER_WINDOW_MINUTES)


class ReminderSweep:
    def __init__(self, dispatcher: NotificationDispatcher):
        self.dispatcher = dispatcher

    def run(self, db: Session, now: Optional[datetime] = None) -> ReminderSweepResult:
        window_start, window_end = reminder_window(to_naive_utc(now) if now else utcnow())
        candidate_ids = SignupRepo.list_due_for_reminder(db, window_start, window_end)
        db.commit()

        logger.info(f"Found {len(candidate_ids)} signups needing reminders")
        result = ReminderSweepResult(processed=len(candidate_ids))

        for signup_id in candidate_ids:
            try:
                signup = SignupRepo.claim_for_reminder(db, signup_id)
                if signup is None:
                    # reminded, cancelled, or held by an overlapping sweep
                    db.rollback()
                    result.skipped += 1
                    continue

                self.dispatcher.send_reminder(signup, signup.slot, signup.slot.created_by.display_name)
                signup.reminder_sent = True
                db.commit()
                result.sent += 1
            except Exception as e:
                db.rollback()
                result.failed += 1
                logger.error(f"Reminder failed for signup {signup_id}: {e}", exc_info=True)

        logger.info(
            f"Reminder sweep done: processed={result.processed} sent={result.sent} "
            f"failed={result.failed} skipped={result.skipped}"
        )
        return result
