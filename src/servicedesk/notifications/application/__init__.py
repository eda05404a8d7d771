"""Notifications application layer."""

from servicedesk.notifications.application.services import (
    INotificationRepository,
    ISubscriptionRepository,
    NotificationFanout,
    NotificationService,
    SubscriptionService,
)

__all__ = [
    "NotificationFanout",
    "NotificationService",
    "SubscriptionService",
    "INotificationRepository",
    "ISubscriptionRepository",
]
