"""
Slot model
"""

import uuid
from datetime import datetime
from sqlalchemy import Column, Integer, String, Text, Boolean, DateTime, ForeignKey, CheckConstraint
from sqlalchemy.orm import relationship

from conference_app.core.db import Base

class Slot(Base):
    __tablename__ = "slots"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    start_time = Column(DateTime, nullable=False, index=True)
    end_time = Column(DateTime, nullable=False)
    max_capacity = Column(Integer, nullable=False, default=1)
    name = Column(String(255), nullable=True)
    description = Column(Text, nullable=True)
    donation_link = Column(String(2048), nullable=True)

    # Display flags; capacity logic ignores them
    hide_time = Column(Boolean, default=False)
    hide_end_time = Column(Boolean, default=False)
    collect_contributing = Column(Boolean, default=False)
    collect_donating = Column(Boolean, default=False)
    display_name_as_title = Column(Boolean, default=False)

    template_id = Column(String(36), ForeignKey("slot_templates.id", ondelete="SET NULL"), nullable=True)
    event_page_id = Column(String(36), ForeignKey("event_pages.id", ondelete="SET NULL"), nullable=True)
    created_by_id = Column(String(36), ForeignKey("users.id"), nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)

    # Relationships
    created_by = relationship("User", back_populates="slots")
    event_page = relationship("EventPage", back_populates="slots")
    template = relationship("SlotTemplate")
    signups = relationship(
        "Signup",
        back_populates="slot",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    __table_args__ = (
        CheckConstraint("max_capacity >= 1", name="ck_slots_max_capacity_positive"),
    )
