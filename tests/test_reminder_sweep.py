"""
Tests for the reminder sweep
"""

import threading
import time
from concurrent.futures import ThreadPoolExecutor
from datetime import timedelta, timezone

import pytest

from conference_app.core.config import settings
from conference_app.core.exceptions import NotificationError
from conference_app.models import Signup
from conference_app.schemas.signup import SignupCreate
from conference_app.services.capacity_service import CapacityGuard
from conference_app.services.notification_service import NotificationDispatcher
from conference_app.services.reminder_service import ReminderSweep, reminder_window
from conference_app.utils.date_utils import utcnow

from conftest import RecordingEmailSink, make_slot


class FlakyEmailSink(RecordingEmailSink):
    """Fails reminders for the listed addresses"""

    def __init__(self, failing):
        super().__init__()
        self.failing = set(failing)

    def send(self, to, subject, html):
        if "Reminder" in subject and to in self.failing:
            raise NotificationError(f"Delivery to {to} refused")
        super().send(to, subject, html)


@pytest.fixture
def now():
    return utcnow().replace(microsecond=0)


def book(db, slot, email):
    guard = CapacityGuard(NotificationDispatcher(RecordingEmailSink()))
    return guard.attempt_signup(db, slot.id, SignupCreate(parent_name="Pat", email=email))


def reminders(sink):
    return [m for m in sink.messages if "Reminder" in m["subject"]]


def test_window_bounds(now):
    start, end = reminder_window(now)

    assert start == now + timedelta(hours=24)
    assert end == now + timedelta(hours=25)


def test_window_follows_settings(now, monkeypatch):
    monkeypatch.setattr(settings, "REMINDER_WINDOW_MINUTES", 120)

    start, end = reminder_window(now)

    assert end - start == timedelta(hours=2)


def test_selects_only_slots_inside_window(db_session, teacher, now):
    inside = make_slot(db_session, teacher, max_capacity=5, starts_in=timedelta(hours=24, minutes=30))
    too_early = make_slot(db_session, teacher, max_capacity=5, starts_in=timedelta(hours=23, minutes=59))
    too_late = make_slot(db_session, teacher, max_capacity=5, starts_in=timedelta(hours=25, minutes=1))
    for slot in (inside, too_early, too_late):
        book(db_session, slot, f"{slot.id}@example.com")

    sink = RecordingEmailSink()
    result = ReminderSweep(NotificationDispatcher(sink)).run(db_session, now=utcnow())

    assert result.processed == 1
    assert result.sent == 1
    assert [m["to"] for m in reminders(sink)] == [f"{inside.id}@example.com"]


def test_second_sweep_sends_nothing(db_session, teacher, now):
    slot = make_slot(db_session, teacher, max_capacity=5, starts_in=timedelta(hours=24, minutes=30))
    first = book(db_session, slot, "one@example.com")
    book(db_session, slot, "two@example.com")
    sink = RecordingEmailSink()
    sweep = ReminderSweep(NotificationDispatcher(sink))

    first_run = sweep.run(db_session, now=now)
    second_run = sweep.run(db_session, now=now)

    assert first_run.sent == 2
    assert second_run.processed == 0
    assert second_run.sent == 0
    assert len(reminders(sink)) == 2
    db_session.expire_all()
    assert db_session.query(Signup).filter(Signup.id == first.id).one().reminder_sent is True


def test_failed_send_is_retried_on_rerun(db_session, teacher, now):
    slot = make_slot(db_session, teacher, max_capacity=5, starts_in=timedelta(hours=24, minutes=30))
    book(db_session, slot, "ok@example.com")
    bounced = book(db_session, slot, "bounce@example.com")

    flaky = FlakyEmailSink(failing={"bounce@example.com"})
    first_run = ReminderSweep(NotificationDispatcher(flaky)).run(db_session, now=now)

    assert first_run.processed == 2
    assert first_run.sent == 1
    assert first_run.failed == 1
    db_session.expire_all()
    assert db_session.query(Signup).filter(Signup.id == bounced.id).one().reminder_sent is False

    healthy = RecordingEmailSink()
    rerun = ReminderSweep(NotificationDispatcher(healthy)).run(db_session, now=now)

    assert rerun.processed == 1
    assert rerun.sent == 1
    assert [m["to"] for m in reminders(healthy)] == ["bounce@example.com"]


def test_reminder_contains_cancel_link_and_teacher(db_session, teacher, now):
    slot = make_slot(db_session, teacher, max_capacity=1, starts_in=timedelta(hours=24, minutes=10))
    signup = book(db_session, slot, "pat@example.com")
    sink = RecordingEmailSink()

    ReminderSweep(NotificationDispatcher(sink)).run(db_session, now=now)

    html = reminders(sink)[0]["html"]
    assert f"/cancel/{signup.cancellation_token}" in html
    assert "Mrs. Garcia" in html


def test_cancelled_signup_between_selection_and_send_is_skipped(db_session, teacher, now, monkeypatch):
    slot = make_slot(db_session, teacher, max_capacity=2, starts_in=timedelta(hours=24, minutes=30))
    signup = book(db_session, slot, "gone@example.com")

    from conference_app.services.repositories import SignupRepo

    original = SignupRepo.list_due_for_reminder

    def list_then_cancel(db, window_start, window_end):
        ids = original(db, window_start, window_end)
        db.query(Signup).filter(Signup.id == signup.id).delete()
        db.commit()
        return ids

    monkeypatch.setattr(SignupRepo, "list_due_for_reminder", staticmethod(list_then_cancel))
    sink = RecordingEmailSink()

    result = ReminderSweep(NotificationDispatcher(sink)).run(db_session, now=now)

    assert result.processed == 1
    assert result.skipped == 1
    assert reminders(sink) == []


class SlowEmailSink(RecordingEmailSink):
    """Holds each delivery long enough for a second sweep to collide"""

    def __init__(self, delay=0.2):
        super().__init__()
        self.delay = delay
        self.lock = threading.Lock()

    def send(self, to, subject, html):
        time.sleep(self.delay)
        with self.lock:
            super().send(to, subject, html)


def test_aware_now_in_other_zone_is_converted(db_session, teacher, now):
    slot = make_slot(db_session, teacher, max_capacity=1, starts_in=timedelta(hours=24, minutes=30))
    book(db_session, slot, "pat@example.com")
    pacific_now = now.replace(tzinfo=timezone.utc).astimezone(timezone(timedelta(hours=-7)))
    sink = RecordingEmailSink()

    result = ReminderSweep(NotificationDispatcher(sink)).run(db_session, now=pacific_now)

    assert result.sent == 1
    assert [m["to"] for m in reminders(sink)] == ["pat@example.com"]


def test_overlapping_sweeps_send_each_reminder_once(db_session, session_factory, teacher, now):
    slot = make_slot(db_session, teacher, max_capacity=5, starts_in=timedelta(hours=24, minutes=30))
    for i in range(3):
        book(db_session, slot, f"parent{i}@example.com")

    sink = SlowEmailSink()
    barrier = threading.Barrier(2)

    def sweep(_):
        db = session_factory()
        try:
            barrier.wait()
            return ReminderSweep(NotificationDispatcher(sink)).run(db, now=now)
        finally:
            db.close()

    with ThreadPoolExecutor(max_workers=2) as pool:
        results = list(pool.map(sweep, range(2)))

    assert sorted(m["to"] for m in reminders(sink)) == [f"parent{i}@example.com" for i in range(3)]
    assert sum(r.sent for r in results) == 3
    assert all(r.failed == 0 for r in results)
    assert all(r.sent + r.skipped == r.processed for r in results)
    db_session.expire_all()
    assert db_session.query(Signup).filter(Signup.reminder_sent == False).count() == 0  # noqa: E712
