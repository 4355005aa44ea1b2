"""
Cancellation resolver: token-based self-service and privileged id-based removal
"""

import logging
from datetime import datetime

from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from conference_app.core.exceptions import AuthorizationError, NotFoundError, NotificationError
from conference_app.models import Signup
from conference_app.schemas.auth import Actor
from conference_app.schemas.signup import CancellationContext
from conference_app.services.notification_service import NotificationDispatcher
from conference_app.services.repositories import SignupRepo
from conference_app.services.slot_service import can_manage_slot

logger = logging.getLogger(__name__)


def _token_hint(token: str) -> str:
    return f"{token[:6]}..."


def build_context(signup: Signup) -> CancellationContext:
    slot = signup.slot
    return CancellationContext(
        signup_id=signup.id,
        slot_id=slot.id,
        parent_name=signup.parent_name,
        child_name=signup.child_name,
        email=signup.email,
        attendee_count=signup.attendee_count,
        start_time=slot.start_time,
        end_time=slot.end_time,
        hide_time=bool(slot.hide_time),
        hide_end_time=bool(slot.hide_end_time),
        teacher_name=slot.created_by.display_name,
    )


class CancellationResolver:
    """Deletes signups; deletion is the only path that frees capacity"""

    def __init__(self, dispatcher: NotificationDispatcher):
        self.dispatcher = dispatcher

    def resolve_by_token(self, db: Session, token: str) -> CancellationContext:
        signup = SignupRepo.get_by_token(db, token)
        if not signup:
            logger.info(f"No signup found for cancellation token {_token_hint(token)}")
            raise NotFoundError("Signup")
        return build_context(signup)

    def cancel_by_token(self, db: Session, token: str) -> CancellationContext:
        """Cancel with the bearer token; holding the token is the authorization"""
        signup = SignupRepo.get_by_token(db, token)
        if not signup:
            raise NotFoundError("Signup")
        return self._delete(db, signup)

    def cancel_by_id(self, db: Session, signup_id: str, actor: Actor) -> CancellationContext:
        """Cancel as an administrator or as the owner of the parent slot.

        Non-privileged callers get the same AuthorizationError whether or not
        the signup exists.
        """
        signup = SignupRepo.get_by_id(db, signup_id)
        if not signup:
            if actor.is_admin:
                raise NotFoundError("Signup")
            raise AuthorizationError()
        if not can_manage_slot(actor, signup.slot):
            logger.warning(f"User {actor.username} refused cancellation of signup {signup_id}")
            raise AuthorizationError()
        return self._delete(db, signup, actor)

    def _delete(self, db: Session, signup: Signup, actor: Actor = None) -> CancellationContext:
        context = build_context(signup)
        try:
            db.delete(signup)
            db.commit()
        except StaleDataError:
            # removed concurrently by another cancellation
            db.rollback()
            raise NotFoundError("Signup")
        except Exception:
            db.rollback()
            raise

        by = f" by {actor.username}" if actor else ""
        logger.info(f"Signup {context.signup_id} cancelled{by}; slot {context.slot_id} freed {context.attendee_count}")
        self._send_notice(context.email, context.parent_name, context.start_time)
        return context

    def _send_notice(self, email: str, parent_name: str, slot_time: datetime) -> None:
        try:
            self.dispatcher.send_cancellation_notice(email, parent_name, slot_time)
        except NotificationError as e:
            logger.error(f"Cancellation email to {email} failed: {e}", exc_info=True)
