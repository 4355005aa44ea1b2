"""
Tests for the capacity guard
"""

import random

import pytest
from pydantic import ValidationError

from conference_app.core.exceptions import CapacityError, NotFoundError
from conference_app.models import Signup
from conference_app.schemas.signup import SignupCreate
from conference_app.services.cancellation_service import CancellationResolver
from conference_app.services.capacity_service import CapacityGuard
from conference_app.services.notification_service import NotificationDispatcher
from conference_app.services.repositories import SignupRepo

from conftest import make_slot


def registrant(attendee_count=1, name="Jordan Parent"):
    return SignupCreate(
        parent_name=name,
        child_name="Sam",
        email="parent@example.com",
        attendee_count=attendee_count,
    )


@pytest.fixture
def guard(dispatcher):
    return CapacityGuard(dispatcher)


@pytest.fixture
def resolver(dispatcher):
    return CancellationResolver(dispatcher)


def test_signup_creates_row_with_token(db_session, guard, slot):
    signup = guard.attempt_signup(db_session, slot.id, registrant())

    assert signup.id
    assert signup.slot_id == slot.id
    assert signup.attendee_count == 1
    assert signup.reminder_sent is False
    assert len(signup.cancellation_token) >= 40
    assert SignupRepo.occupancy(db_session, slot.id) == 1


def test_signup_unknown_slot(db_session, guard):
    with pytest.raises(NotFoundError):
        guard.attempt_signup(db_session, "missing-slot", registrant())


def test_attendee_count_must_be_positive():
    with pytest.raises(ValidationError):
        registrant(attendee_count=0)


def test_capacity_error_reports_remaining(db_session, guard, teacher):
    slot = make_slot(db_session, teacher, max_capacity=3)
    guard.attempt_signup(db_session, slot.id, registrant(attendee_count=2))

    with pytest.raises(CapacityError) as exc_info:
        guard.attempt_signup(db_session, slot.id, registrant(attendee_count=2))

    assert exc_info.value.remaining == 1
    assert "Not enough spots available" in exc_info.value.message
    assert SignupRepo.occupancy(db_session, slot.id) == 2


def test_full_slot_reports_zero_remaining(db_session, guard, teacher):
    slot = make_slot(db_session, teacher, max_capacity=1)
    guard.attempt_signup(db_session, slot.id, registrant())

    with pytest.raises(CapacityError) as exc_info:
        guard.attempt_signup(db_session, slot.id, registrant())

    assert exc_info.value.remaining == 0


def test_documented_scenario(db_session, guard, resolver, slot):
    """capacity 2: 1 ok, 2 rejected, 1 ok, cancel first, 1 ok"""
    first = guard.attempt_signup(db_session, slot.id, registrant(name="First"))
    assert SignupRepo.occupancy(db_session, slot.id) == 1

    with pytest.raises(CapacityError) as exc_info:
        guard.attempt_signup(db_session, slot.id, registrant(attendee_count=2))
    assert exc_info.value.remaining == 1

    guard.attempt_signup(db_session, slot.id, registrant(name="Second"))
    assert SignupRepo.occupancy(db_session, slot.id) == 2

    resolver.cancel_by_token(db_session, first.cancellation_token)
    assert SignupRepo.occupancy(db_session, slot.id) == 1

    guard.attempt_signup(db_session, slot.id, registrant(name="Third"))
    assert SignupRepo.occupancy(db_session, slot.id) == 2


def test_cancellation_frees_capacity_for_same_count(db_session, guard, resolver, teacher):
    slot = make_slot(db_session, teacher, max_capacity=4)
    family = guard.attempt_signup(db_session, slot.id, registrant(attendee_count=3))
    guard.attempt_signup(db_session, slot.id, registrant(attendee_count=1))

    with pytest.raises(CapacityError):
        guard.attempt_signup(db_session, slot.id, registrant(attendee_count=1))

    resolver.cancel_by_token(db_session, family.cancellation_token)

    guard.attempt_signup(db_session, slot.id, registrant(attendee_count=3))
    assert SignupRepo.occupancy(db_session, slot.id) == 4


def test_signup_succeeds_when_email_fails(db_session, failing_sink, slot):
    guard = CapacityGuard(NotificationDispatcher(failing_sink))

    signup = guard.attempt_signup(db_session, slot.id, registrant())

    assert failing_sink.attempts == 1
    assert db_session.query(Signup).filter(Signup.id == signup.id).count() == 1


def test_confirmation_sent_with_cancel_link(db_session, guard, email_sink, slot):
    signup = guard.attempt_signup(db_session, slot.id, registrant())

    assert len(email_sink.messages) == 1
    message = email_sink.messages[0]
    assert message["to"] == "parent@example.com"
    assert "Conference Confirmed" in message["subject"]
    assert f"/cancel/{signup.cancellation_token}" in message["html"]
    assert "Mrs. Garcia" in message["html"]


def test_random_sequence_never_exceeds_capacity(db_session, guard, resolver, teacher):
    rng = random.Random(1234)
    slot = make_slot(db_session, teacher, max_capacity=5)
    live = []

    for _ in range(60):
        if live and rng.random() < 0.35:
            token = live.pop(rng.randrange(len(live)))
            resolver.cancel_by_token(db_session, token)
        else:
            try:
                signup = guard.attempt_signup(
                    db_session, slot.id, registrant(attendee_count=rng.randint(1, 3))
                )
                live.append(signup.cancellation_token)
            except CapacityError:
                pass
        assert SignupRepo.occupancy(db_session, slot.id) <= slot.max_capacity
