"""Notifications infrastructure layer."""

from servicedesk.notifications.infrastructure.models import NotificationModel, SubscriptionModel
from servicedesk.notifications.infrastructure.repositories import (
    SQLAlchemyNotificationRepository,
    SQLAlchemySubscriptionRepository,
)

__all__ = [
    "NotificationModel",
    "SubscriptionModel",
    "SQLAlchemyNotificationRepository",
    "SQLAlchemySubscriptionRepository",
]
