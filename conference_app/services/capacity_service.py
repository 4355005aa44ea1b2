"""
Capacity guard: admits or rejects signups against a slot's maximum capacity
"""

import logging
from sqlalchemy.orm import Session

from conference_app.core.exceptions import CapacityError, NotFoundError, NotificationError, SlotValidationError
from conference_app.models import Signup, Slot
from conference_app.schemas.signup import SignupCreate
from conference_app.services.notification_service import NotificationDispatcher
from conference_app.services.repositories import SignupRepo, SlotRepo
from conference_app.utils.security import generate_cancellation_token

logger = logging.getLogger(__name__)


class CapacityGuard:
    """Keeps sum(attendee_count) of a slot's signups within max_capacity.

    The occupancy read, the decision and the insert run in one transaction
    that holds the slot's row lock, so concurrent signups for the same slot
    are serialized and cannot both take the last spot.
    """

    def __init__(self, dispatcher: NotificationDispatcher):
        self.dispatcher = dispatcher

    def attempt_signup(self, db: Session, slot_id: str, registrant: SignupCreate) -> Signup:
        """Create a signup or raise NotFoundError / CapacityError"""
        if registrant.attendee_count < 1:
            raise SlotValidationError("Attendee count must be at least 1")

        try:
            slot = SlotRepo.get_for_update(db, slot_id)
            if not slot:
                raise NotFoundError("Slot")

            occupied = SignupRepo.occupancy(db, slot.id)
            remaining = slot.max_capacity - occupied
            if registrant.attendee_count > remaining:
                logger.warning(
                    f"Signup rejected for slot {slot.id}: requested {registrant.attendee_count}, "
                    f"remaining {max(remaining, 0)}"
                )
                raise CapacityError(remaining=max(remaining, 0))

            token = generate_cancellation_token()
            while SignupRepo.token_exists(db, token):
                token = generate_cancellation_token()

            signup = Signup(
                slot_id=slot.id,
                parent_name=registrant.parent_name.strip(),
                child_name=registrant.child_name,
                email=str(registrant.email),
                contribution=registrant.contribution,
                donation=registrant.donation,
                attendee_count=registrant.attendee_count,
                cancellation_token=token,
                reminder_sent=False,
            )
            db.add(signup)
            teacher_name = slot.created_by.display_name
            db.commit()
        except Exception:
            db.rollback()
            raise

        logger.info(
            f"Signup {signup.id} created for slot {slot_id} "
            f"({occupied + signup.attendee_count}/{slot.max_capacity})"
        )
        self._send_confirmation(signup, slot, teacher_name)
        return signup

    def _send_confirmation(self, signup: Signup, slot: Slot, teacher_name: str) -> None:
        try:
            self.dispatcher.send_confirmation(signup, slot, teacher_name)
        except NotificationError as e:
            logger.error(f"Confirmation email failed for signup {signup.id}: {e}", exc_info=True)
