"""
Public API routes - no authentication required
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from conference_app.core.db import get_db
from conference_app.services.slot_service import SlotService
from conference_app.utils.responses import success_response

router = APIRouter()

@router.get("/health")
async def health_check():
    """Health check endpoint"""
    return {"status": "ok"}

@router.get("/slots")
def list_upcoming_slots(db: Session = Depends(get_db)):
    """Upcoming slots with current occupancy"""
    slots = SlotService.list_upcoming(db)
    return success_response(
        message="Slots retrieved successfully",
        data=[slot.model_dump() for slot in slots]
    )

@router.get("/slots/{slot_id}")
def get_slot(slot_id: str, db: Session = Depends(get_db)):
    """Authoritative availability for one slot; clients re-fetch this after a mutation"""
    availability = SlotService.get_availability(db, slot_id)
    return success_response(
        message="Slot retrieved successfully",
        data=availability.model_dump()
    )

@router.get("/teachers/{username}/slots")
def list_teacher_slots(username: str, db: Session = Depends(get_db)):
    slots = SlotService.list_for_teacher(db, username)
    return success_response(
        message="Slots retrieved successfully",
        data=[slot.model_dump() for slot in slots]
    )

@router.get("/events/{slug}/slots")
def list_event_slots(slug: str, db: Session = Depends(get_db)):
    slots = SlotService.list_for_event(db, slug)
    return success_response(
        message="Slots retrieved successfully",
        data=[slot.model_dump() for slot in slots]
    )
