"""
Pydantic schemas package
"""

from .common import *
from .auth import *
from .slot import *
from .signup import *

__all__ = [
    "StandardResponse",
    "ErrorResponse",
    "Actor",
    "TokenPayload",
    "SlotCreate",
    "SlotUpdate",
    "SlotResponse",
    "SlotAvailability",
    "SignupCreate",
    "SignupResponse",
    "SignupReceipt",
    "CancellationContext",
    "ReminderSweepResult",
]
