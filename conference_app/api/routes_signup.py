"""
Parent-facing signup and self-service cancellation routes
"""

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from conference_app.api.deps import get_cancellation_resolver, get_capacity_guard
from conference_app.core.db import get_db
from conference_app.schemas.signup import SignupCreate, SignupReceipt
from conference_app.services.cancellation_service import CancellationResolver
from conference_app.services.capacity_service import CapacityGuard
from conference_app.services.notification_service import build_cancellation_url
from conference_app.utils.responses import success_response, rate_limit_error
from conference_app.utils.security import rate_limit_check, get_client_ip

router = APIRouter()

@router.post("/slots/{slot_id}/signups")
def sign_up(
    slot_id: str,
    request: Request,
    registrant: SignupCreate,
    db: Session = Depends(get_db),
    guard: CapacityGuard = Depends(get_capacity_guard)
):
    """Register for a slot"""
    # Rate limiting
    client_ip = get_client_ip(request)
    if not rate_limit_check(client_ip):
        rate_limit_error()

    signup = guard.attempt_signup(db, slot_id, registrant)

    receipt = SignupReceipt(
        signup_id=signup.id,
        slot_id=signup.slot_id,
        attendee_count=signup.attendee_count,
        cancellation_url=build_cancellation_url(signup.cancellation_token),
    )
    return success_response(
        message="Successfully signed up!",
        data=receipt.model_dump(),
        status_code=201
    )

@router.get("/cancel/{token}")
def get_cancellation(
    token: str,
    request: Request,
    db: Session = Depends(get_db),
    resolver: CancellationResolver = Depends(get_cancellation_resolver)
):
    """Show the signup a cancellation link refers to"""
    client_ip = get_client_ip(request)
    if not rate_limit_check(client_ip):
        rate_limit_error()

    context = resolver.resolve_by_token(db, token)
    return success_response(
        message="Signup found",
        data=context.model_dump()
    )

@router.post("/cancel/{token}")
def cancel_signup(
    token: str,
    request: Request,
    db: Session = Depends(get_db),
    resolver: CancellationResolver = Depends(get_cancellation_resolver)
):
    """Cancel a signup using its cancellation token"""
    client_ip = get_client_ip(request)
    if not rate_limit_check(client_ip):
        rate_limit_error()

    context = resolver.cancel_by_token(db, token)
    return success_response(
        message="Your conference has been cancelled.",
        data={"signup_id": context.signup_id, "slot_id": context.slot_id}
    )
