"""
Slot template model
"""

import uuid
from sqlalchemy import Column, String, Text, Boolean

from conference_app.core.db import Base

class SlotTemplate(Base):
    __tablename__ = "slot_templates"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    collect_donation_link = Column(Boolean, default=False)
    collect_contributing = Column(Boolean, default=False)
    collect_donating = Column(Boolean, default=False)
    display_name_as_title = Column(Boolean, default=False)
    hide_end_time = Column(Boolean, default=False)
    is_default = Column(Boolean, default=False)
