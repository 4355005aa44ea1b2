"""
Admin API routes - requires an authenticated teacher or administrator
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from conference_app.api.deps import get_cancellation_resolver
from conference_app.core.db import get_db
from conference_app.schemas.auth import Actor
from conference_app.schemas.signup import SignupResponse
from conference_app.schemas.slot import SlotCreate, SlotResponse, SlotUpdate
from conference_app.services.cancellation_service import CancellationResolver
from conference_app.services.slot_service import SlotService
from conference_app.utils.responses import success_response
from conference_app.utils.security import get_current_actor

router = APIRouter()

@router.post("/slots")
def create_slot(
    slot_data: SlotCreate,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor)
):
    """Create a new slot, optionally from a template"""
    slot = SlotService.create_slot(db, actor, slot_data)
    return success_response(
        message="Slot created successfully",
        data=SlotResponse.model_validate(slot).model_dump(),
        status_code=201
    )

@router.patch("/slots/{slot_id}")
def update_slot(
    slot_id: str,
    slot_update: SlotUpdate,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor)
):
    """Update a slot's time window, capacity or metadata"""
    slot = SlotService.update_slot(db, slot_id, actor, slot_update)
    return success_response(
        message="Slot updated successfully",
        data=SlotResponse.model_validate(slot).model_dump()
    )

@router.delete("/slots/{slot_id}")
def delete_slot(
    slot_id: str,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor)
):
    """Delete a slot and its signups"""
    SlotService.delete_slot(db, slot_id, actor)
    return success_response(
        message="Slot deleted successfully",
        data={"deleted_slot_id": slot_id}
    )

@router.get("/slots/{slot_id}/signups")
def list_slot_signups(
    slot_id: str,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor)
):
    """Roster for a slot"""
    signups = SlotService.list_signups(db, slot_id, actor)
    return success_response(
        message="Signups retrieved successfully",
        data={
            "signups": [SignupResponse.model_validate(s).model_dump() for s in signups],
            "occupancy": sum(s.attendee_count for s in signups)
        }
    )

@router.delete("/signups/{signup_id}")
def remove_signup(
    signup_id: str,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
    resolver: CancellationResolver = Depends(get_cancellation_resolver)
):
    """Remove a signup as the slot owner or an administrator"""
    context = resolver.cancel_by_id(db, signup_id, actor)
    return success_response(
        message="Signup removed successfully",
        data={"signup_id": context.signup_id, "slot_id": context.slot_id}
    )
