"""
Shared fixtures: per-test SQLite database, users, slots and fake email sinks
"""

from datetime import timedelta

import pytest
from sqlalchemy.orm import sessionmaker

from conference_app.core.db import Base, create_db_engine
from conference_app.core.exceptions import NotificationError
from conference_app.models import Role, Slot, User, UserStatus
from conference_app.schemas.auth import Actor
from conference_app.services.email_client import EmailSink
from conference_app.services.notification_service import NotificationDispatcher
from conference_app.utils.date_utils import utcnow
from conference_app.utils.security import rate_limiter


class RecordingEmailSink(EmailSink):
    """Keeps every message instead of delivering it"""

    def __init__(self):
        self.messages = []

    def send(self, to, subject, html):
        self.messages.append({"to": to, "subject": subject, "html": html})


class FailingEmailSink(EmailSink):
    """Notification sink that always fails"""

    def __init__(self):
        self.attempts = 0

    def send(self, to, subject, html):
        self.attempts += 1
        raise NotificationError(f"Delivery to {to} refused")


@pytest.fixture
def engine(tmp_path):
    """Fresh SQLite file database per test"""
    engine = create_db_engine(f"sqlite:///{tmp_path / 'test_signups.db'}")
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db_session(session_factory):
    """Create test database session"""
    db = session_factory()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture(autouse=True)
def reset_rate_limiter():
    rate_limiter.clear()
    yield
    rate_limiter.clear()


@pytest.fixture
def email_sink():
    return RecordingEmailSink()


@pytest.fixture
def failing_sink():
    return FailingEmailSink()


@pytest.fixture
def dispatcher(email_sink):
    return NotificationDispatcher(email_sink)


def make_user(db, username, role=Role.USER, name=None, status=UserStatus.ACTIVE):
    user = User(
        username=username,
        email=f"{username}@school.example.com",
        name=name,
        role=role,
        status=status,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def as_actor(user):
    return Actor(user_id=user.id, username=user.username, role=user.role)


def make_slot(db, owner, max_capacity=2, starts_in=timedelta(days=3), **fields):
    start = utcnow().replace(microsecond=0) + starts_in
    slot = Slot(
        start_time=start,
        end_time=start + timedelta(minutes=15),
        max_capacity=max_capacity,
        created_by_id=owner.id,
        **fields,
    )
    db.add(slot)
    db.commit()
    db.refresh(slot)
    return slot


@pytest.fixture
def teacher(db_session):
    return make_user(db_session, "mrs.garcia", name="Mrs. Garcia")


@pytest.fixture
def other_teacher(db_session):
    return make_user(db_session, "mr.lee")


@pytest.fixture
def admin(db_session):
    return make_user(db_session, "principal", role=Role.ADMIN, name="Principal Skinner")


@pytest.fixture
def slot(db_session, teacher):
    """Slot with room for two attendees"""
    return make_slot(db_session, teacher, max_capacity=2)
