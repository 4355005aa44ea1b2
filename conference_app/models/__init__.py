"""
Database models package
"""

from .user import User, Role, UserStatus
from .event_page import EventPage
from .slot_template import SlotTemplate
from .slot import Slot
from .signup import Signup

__all__ = ["User", "Role", "UserStatus", "EventPage", "SlotTemplate", "Slot", "Signup"]
