"""
Signup model
"""

import uuid
from datetime import datetime
from sqlalchemy import Column, Integer, String, Text, Boolean, DateTime, ForeignKey, CheckConstraint
from sqlalchemy.orm import relationship

from conference_app.core.db import Base

class Signup(Base):
    __tablename__ = "signups"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    slot_id = Column(String(36), ForeignKey("slots.id", ondelete="CASCADE"), nullable=False, index=True)
    parent_name = Column(String(255), nullable=False)
    child_name = Column(String(255), nullable=True)
    email = Column(String(255), nullable=False)
    contribution = Column(Text, nullable=True)
    donation = Column(Text, nullable=True)
    attendee_count = Column(Integer, nullable=False, default=1)
    # Bearer credential for self-service cancellation
    cancellation_token = Column(String(128), unique=True, nullable=False, index=True)
    reminder_sent = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, default=datetime.utcnow)

    # Relationships
    slot = relationship("Slot", back_populates="signups")

    __table_args__ = (
        CheckConstraint("attendee_count >= 1", name="ck_signups_attendee_count_positive"),
    )
