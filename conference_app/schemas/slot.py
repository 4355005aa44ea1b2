"""
Slot-related Pydantic schemas
"""

from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field, field_validator

from conference_app.utils.date_utils import parse_input_datetime

__all__ = ["SlotCreate", "SlotUpdate", "SlotResponse", "SlotAvailability"]

class SlotCreate(BaseModel):
    """Schema for creating a slot.

    Unset optional fields are filled from the template when ``template_id``
    is given. ``end_time`` may be omitted only when the end time is hidden.
    """
    start_time: datetime
    end_time: Optional[datetime] = None
    max_capacity: int = Field(1, ge=1)
    name: Optional[str] = None
    description: Optional[str] = None
    donation_link: Optional[str] = None
    hide_time: bool = False
    hide_end_time: Optional[bool] = None
    collect_contributing: Optional[bool] = None
    collect_donating: Optional[bool] = None
    display_name_as_title: Optional[bool] = None
    template_id: Optional[str] = None
    event_page_id: Optional[str] = None

    @field_validator("start_time", "end_time")
    @classmethod
    def _normalize_time(cls, value):
        return parse_input_datetime(value) if value is not None else value

class SlotUpdate(BaseModel):
    """Schema for updating a slot"""
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    max_capacity: Optional[int] = Field(None, ge=1)
    name: Optional[str] = None
    description: Optional[str] = None
    donation_link: Optional[str] = None
    hide_time: Optional[bool] = None
    hide_end_time: Optional[bool] = None

    @field_validator("start_time", "end_time")
    @classmethod
    def _normalize_time(cls, value):
        return parse_input_datetime(value) if value is not None else value

class SlotResponse(BaseModel):
    """Slot response schema"""
    id: str
    start_time: datetime
    end_time: datetime
    max_capacity: int
    name: Optional[str] = None
    description: Optional[str] = None
    donation_link: Optional[str] = None
    hide_time: bool
    hide_end_time: bool
    collect_contributing: bool
    collect_donating: bool
    display_name_as_title: bool
    template_id: Optional[str] = None
    event_page_id: Optional[str] = None
    created_by_id: str

    class Config:
        from_attributes = True

class SlotAvailability(SlotResponse):
    """Slot with authoritative occupancy"""
    teacher_name: str
    occupancy: int
    remaining: int
    is_full: bool
