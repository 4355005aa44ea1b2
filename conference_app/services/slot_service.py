"""
Slot management and availability queries
"""

import logging
from datetime import datetime, timedelta
from typing import List, Optional

from sqlalchemy.orm import Session

from conference_app.core.config import settings
from conference_app.core.exceptions import AuthorizationError, NotFoundError, SlotValidationError
from conference_app.models import Signup, Slot
from conference_app.schemas.auth import Actor
from conference_app.schemas.slot import SlotAvailability, SlotCreate, SlotResponse, SlotUpdate
from conference_app.services.repositories import (
    EventPageRepo,
    SignupRepo,
    SlotRepo,
    TemplateRepo,
    UserRepo,
)
from conference_app.utils.date_utils import utcnow

logger = logging.getLogger(__name__)

# Slot fields a template supplies when the request leaves them unset
TEMPLATE_FIELDS = (
    "name",
    "description",
    "hide_end_time",
    "collect_contributing",
    "collect_donating",
    "display_name_as_title",
)


def can_manage_slot(actor: Actor, slot: Slot) -> bool:
    """Administrators manage every slot; teachers manage the slots they created"""
    return actor.is_admin or slot.created_by_id == actor.user_id


def resolve_end_time(start_time: datetime, end_time: Optional[datetime], hide_end_time: bool) -> datetime:
    if end_time is None:
        if not hide_end_time:
            raise SlotValidationError("End time is required unless it is hidden")
        return start_time + timedelta(minutes=settings.DEFAULT_SLOT_DURATION_MINUTES)
    if end_time < start_time:
        raise SlotValidationError("End time must not be before start time")
    return end_time


class SlotService:
    """Service for slot lifecycle operations"""

    @staticmethod
    def create_slot(db: Session, actor: Actor, slot_data: SlotCreate) -> Slot:
        values = slot_data.model_dump(exclude={"template_id", "event_page_id"})

        if slot_data.template_id:
            template = TemplateRepo.get_by_id(db, slot_data.template_id)
            if not template:
                raise NotFoundError("Template")
            for field in TEMPLATE_FIELDS:
                if values.get(field) is None:
                    values[field] = getattr(template, field)

        if slot_data.event_page_id and not EventPageRepo.get_by_id(db, slot_data.event_page_id):
            raise NotFoundError("Event page")

        for flag in ("hide_end_time", "collect_contributing", "collect_donating", "display_name_as_title"):
            values[flag] = bool(values.get(flag))

        values["end_time"] = resolve_end_time(
            slot_data.start_time, slot_data.end_time, values["hide_end_time"]
        )

        slot = Slot(
            **values,
            template_id=slot_data.template_id,
            event_page_id=slot_data.event_page_id,
            created_by_id=actor.user_id,
        )
        db.add(slot)
        db.commit()
        db.refresh(slot)

        logger.info(f"Slot {slot.id} created by {actor.username} (capacity {slot.max_capacity})")
        return slot

    @staticmethod
    def update_slot(db: Session, slot_id: str, actor: Actor, slot_update: SlotUpdate) -> Slot:
        """Apply an update under the slot lock.

        Capacity cannot drop below the current occupancy.
        """
        try:
            slot = SlotRepo.get_for_update(db, slot_id)
            if not slot:
                raise NotFoundError("Slot")
            if not can_manage_slot(actor, slot):
                raise AuthorizationError()

            changes = slot_update.model_dump(exclude_unset=True)

            if changes.get("max_capacity") is not None:
                occupied = SignupRepo.occupancy(db, slot.id)
                if changes["max_capacity"] < occupied:
                    raise SlotValidationError(
                        f"Capacity cannot be lower than the {occupied} attendees already signed up",
                        details={"occupancy": occupied},
                    )

            for field, value in changes.items():
                if value is None and field not in ("name", "description", "donation_link"):
                    continue
                setattr(slot, field, value)

            if "start_time" in changes or "end_time" in changes or "hide_end_time" in changes:
                if "end_time" in changes:
                    end_time = changes["end_time"]
                elif slot.hide_end_time and "start_time" in changes:
                    # hidden end times follow the start
                    end_time = None
                else:
                    end_time = slot.end_time
                slot.end_time = resolve_end_time(slot.start_time, end_time, bool(slot.hide_end_time))

            db.commit()
        except Exception:
            db.rollback()
            raise

        db.refresh(slot)
        logger.info(f"Slot {slot.id} updated by {actor.username}")
        return slot

    @staticmethod
    def delete_slot(db: Session, slot_id: str, actor: Actor) -> None:
        """Delete a slot together with its signups"""
        slot = SlotRepo.get_by_id(db, slot_id)
        if not slot:
            raise NotFoundError("Slot")
        if not can_manage_slot(actor, slot):
            raise AuthorizationError()

        db.delete(slot)
        db.commit()
        logger.info(f"Slot {slot_id} deleted by {actor.username}")

    @staticmethod
    def list_signups(db: Session, slot_id: str, actor: Actor) -> List[Signup]:
        slot = SlotRepo.get_by_id(db, slot_id)
        if not slot:
            raise NotFoundError("Slot")
        if not can_manage_slot(actor, slot):
            raise AuthorizationError()
        return SignupRepo.list_for_slot(db, slot.id)

    @staticmethod
    def get_availability(db: Session, slot_id: str) -> SlotAvailability:
        slot = SlotRepo.get_by_id(db, slot_id)
        if not slot:
            raise NotFoundError("Slot")
        return SlotService._availability(slot, SignupRepo.occupancy(db, slot.id))

    @staticmethod
    def list_upcoming(db: Session, now: Optional[datetime] = None) -> List[SlotAvailability]:
        return SlotService._with_occupancy(db, SlotRepo.list_upcoming(db, now or utcnow()))

    @staticmethod
    def list_for_teacher(db: Session, username: str, now: Optional[datetime] = None) -> List[SlotAvailability]:
        teacher = UserRepo.get_by_username(db, username)
        if not teacher:
            raise NotFoundError("Teacher")
        return SlotService._with_occupancy(db, SlotRepo.list_for_owner(db, teacher.id, now or utcnow()))

    @staticmethod
    def list_for_event(db: Session, slug: str) -> List[SlotAvailability]:
        event_page = EventPageRepo.get_by_slug(db, slug)
        if not event_page:
            raise NotFoundError("Event")
        return SlotService._with_occupancy(db, SlotRepo.list_for_event_page(db, event_page.id))

    @staticmethod
    def _with_occupancy(db: Session, slots: List[Slot]) -> List[SlotAvailability]:
        occupancy = SignupRepo.occupancy_by_slot(db, [slot.id for slot in slots])
        return [SlotService._availability(slot, occupancy.get(slot.id, 0)) for slot in slots]

    @staticmethod
    def _availability(slot: Slot, occupied: int) -> SlotAvailability:
        remaining = max(slot.max_capacity - occupied, 0)
        return SlotAvailability(
            **SlotResponse.model_validate(slot).model_dump(),
            teacher_name=slot.created_by.display_name,
            occupancy=occupied,
            remaining=remaining,
            is_full=remaining == 0,
        )
