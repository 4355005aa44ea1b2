"""
Signup-related Pydantic schemas
"""

from datetime import datetime
from typing import Optional
from pydantic import BaseModel, EmailStr, Field

__all__ = [
    "SignupCreate",
    "SignupResponse",
    "SignupReceipt",
    "CancellationContext",
    "ReminderSweepResult",
]

class SignupCreate(BaseModel):
    """Registrant details for a signup"""
    parent_name: str = Field(..., min_length=1, max_length=255)
    child_name: Optional[str] = Field(None, max_length=255)
    email: EmailStr
    attendee_count: int = Field(1, ge=1)
    contribution: Optional[str] = None
    donation: Optional[str] = None

class SignupResponse(BaseModel):
    """Signup roster entry; never carries the cancellation token"""
    id: str
    slot_id: str
    parent_name: str
    child_name: Optional[str] = None
    email: str
    attendee_count: int
    contribution: Optional[str] = None
    donation: Optional[str] = None
    reminder_sent: bool
    created_at: datetime

    class Config:
        from_attributes = True

class SignupReceipt(BaseModel):
    """Returned to the registrant after a successful signup"""
    signup_id: str
    slot_id: str
    attendee_count: int
    cancellation_url: str

class CancellationContext(BaseModel):
    """Signup plus the slot details shown before cancelling"""
    signup_id: str
    slot_id: str
    parent_name: str
    child_name: Optional[str] = None
    email: str
    attendee_count: int
    start_time: datetime
    end_time: datetime
    hide_time: bool
    hide_end_time: bool
    teacher_name: str

class ReminderSweepResult(BaseModel):
    """Outcome counts of one reminder sweep"""
    processed: int = 0
    sent: int = 0
    failed: int = 0
    skipped: int = 0
