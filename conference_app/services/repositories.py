"""
Repository layer over the relational store.

Methods here never commit; transaction boundaries belong to the services.
"""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from sqlalchemy import func, update
from sqlalchemy.orm import Session, joinedload

from conference_app.core.db import is_sqlite
from conference_app.models import EventPage, Signup, Slot, SlotTemplate, User


def _take_sqlite_write_lock(db: Session, column, row_id: str) -> None:
    """SQLite ignores FOR UPDATE. A no-op UPDATE as the transaction's first
    statement takes the database write lock instead, waiting for the current
    writer like a row lock would."""
    table = column.table
    db.execute(update(table).where(table.c.id == row_id).values({column.name: column}))


# -------- User repository --------

class UserRepo:
    @staticmethod
    def get_by_id(db: Session, user_id: str) -> Optional[User]:
        return db.query(User).filter(User.id == user_id).first()

    @staticmethod
    def get_by_username(db: Session, username: str) -> Optional[User]:
        return db.query(User).filter(User.username == username.lower().strip()).first()


# -------- Template / event page lookups --------

class TemplateRepo:
    @staticmethod
    def get_by_id(db: Session, template_id: str) -> Optional[SlotTemplate]:
        return db.query(SlotTemplate).filter(SlotTemplate.id == template_id).first()


class EventPageRepo:
    @staticmethod
    def get_by_id(db: Session, event_page_id: str) -> Optional[EventPage]:
        return db.query(EventPage).filter(EventPage.id == event_page_id).first()

    @staticmethod
    def get_by_slug(db: Session, slug: str) -> Optional[EventPage]:
        return db.query(EventPage).filter(EventPage.slug == slug).first()


# -------- Slot repository --------

class SlotRepo:
    @staticmethod
    def get_by_id(db: Session, slot_id: str) -> Optional[Slot]:
        return db.query(Slot).filter(Slot.id == slot_id).first()

    @staticmethod
    def get_for_update(db: Session, slot_id: str) -> Optional[Slot]:
        """Load a slot holding its row lock until the transaction ends"""
        if is_sqlite(db):
            _take_sqlite_write_lock(db, Slot.__table__.c.max_capacity, slot_id)
        return (
            db.query(Slot)
            .filter(Slot.id == slot_id)
            .with_for_update()
            .populate_existing()
            .first()
        )

    @staticmethod
    def list_upcoming(db: Session, now: datetime) -> List[Slot]:
        return (
            db.query(Slot)
            .options(joinedload(Slot.created_by))
            .filter(Slot.start_time >= now)
            .order_by(Slot.start_time)
            .all()
        )

    @staticmethod
    def list_for_owner(db: Session, owner_id: str, now: datetime) -> List[Slot]:
        return (
            db.query(Slot)
            .options(joinedload(Slot.created_by))
            .filter(Slot.created_by_id == owner_id, Slot.start_time >= now)
            .order_by(Slot.start_time)
            .all()
        )

    @staticmethod
    def list_for_event_page(db: Session, event_page_id: str) -> List[Slot]:
        return (
            db.query(Slot)
            .options(joinedload(Slot.created_by))
            .filter(Slot.event_page_id == event_page_id)
            .order_by(Slot.start_time)
            .all()
        )


# -------- Signup repository --------

class SignupRepo:
    @staticmethod
    def get_by_id(db: Session, signup_id: str) -> Optional[Signup]:
        return db.query(Signup).filter(Signup.id == signup_id).first()

    @staticmethod
    def get_by_token(db: Session, token: str) -> Optional[Signup]:
        """Exact match on the unique token column"""
        return (
            db.query(Signup)
            .options(joinedload(Signup.slot).joinedload(Slot.created_by))
            .filter(Signup.cancellation_token == token)
            .first()
        )

    @staticmethod
    def token_exists(db: Session, token: str) -> bool:
        return db.query(Signup.id).filter(Signup.cancellation_token == token).first() is not None

    @staticmethod
    def occupancy(db: Session, slot_id: str) -> int:
        """Sum of attendee counts of the live signups for a slot"""
        return db.query(
            func.coalesce(func.sum(Signup.attendee_count), 0)
        ).filter(Signup.slot_id == slot_id).scalar()

    @staticmethod
    def occupancy_by_slot(db: Session, slot_ids: List[str]) -> dict:
        if not slot_ids:
            return {}
        rows = db.query(
            Signup.slot_id,
            func.sum(Signup.attendee_count).label("occupied")
        ).filter(Signup.slot_id.in_(slot_ids)).group_by(Signup.slot_id).all()
        return {row.slot_id: row.occupied for row in rows}

    @staticmethod
    def list_for_slot(db: Session, slot_id: str) -> List[Signup]:
        return db.query(Signup).filter(Signup.slot_id == slot_id).order_by(Signup.created_at).all()

    @staticmethod
    def list_due_for_reminder(db: Session, window_start: datetime, window_end: datetime) -> List[str]:
        """Ids of un-reminded signups whose slot starts in [window_start, window_end)"""
        rows = (
            db.query(Signup.id)
            .join(Slot, Signup.slot_id == Slot.id)
            .filter(
                Slot.start_time >= window_start,
                Slot.start_time < window_end,
                Signup.reminder_sent == False,  # noqa: E712
            )
            .order_by(Slot.start_time)
            .all()
        )
        return [row.id for row in rows]

    @staticmethod
    def claim_for_reminder(db: Session, signup_id: str) -> Optional[Signup]:
        """Lock a still un-reminded signup; rows locked by another sweep are skipped"""
        if is_sqlite(db):
            _take_sqlite_write_lock(db, Signup.__table__.c.reminder_sent, signup_id)
        return (
            db.query(Signup)
            .filter(Signup.id == signup_id, Signup.reminder_sent == False)  # noqa: E712
            .with_for_update(skip_locked=True)
            .populate_existing()
            .first()
        )
