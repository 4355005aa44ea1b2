"""
Scheduler entry point for the reminder sweep
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from conference_app.api.deps import get_reminder_sweep
from conference_app.core.db import get_db
from conference_app.services.reminder_service import ReminderSweep
from conference_app.utils.security import verify_cron_secret

router = APIRouter()

@router.api_route("/reminders", methods=["GET", "POST"])
def run_reminders(
    db: Session = Depends(get_db),
    sweep: ReminderSweep = Depends(get_reminder_sweep),
    secret: str = Depends(verify_cron_secret)
):
    """Send reminders for slots starting in the configured window"""
    result = sweep.run(db)
    return {"success": True, **result.model_dump()}
