"""
Service dependencies for the routers
"""

from fastapi import Depends

from conference_app.services.cancellation_service import CancellationResolver
from conference_app.services.capacity_service import CapacityGuard
from conference_app.services.email_client import get_email_sink
from conference_app.services.notification_service import NotificationDispatcher
from conference_app.services.reminder_service import ReminderSweep


def get_notification_dispatcher() -> NotificationDispatcher:
    return NotificationDispatcher(get_email_sink())


def get_capacity_guard(
    dispatcher: NotificationDispatcher = Depends(get_notification_dispatcher),
) -> CapacityGuard:
    return CapacityGuard(dispatcher)


def get_cancellation_resolver(
    dispatcher: NotificationDispatcher = Depends(get_notification_dispatcher),
) -> CancellationResolver:
    return CancellationResolver(dispatcher)


def get_reminder_sweep(
    dispatcher: NotificationDispatcher = Depends(get_notification_dispatcher),
) -> ReminderSweep:
    return ReminderSweep(dispatcher)
