"""Notifications domain layer."""

from servicedesk.notifications.domain.entities import Notification, Subscription
from servicedesk.notifications.domain.events import (
    TEMPLATES,
    NotificationEvent,
    Scope,
    Template,
    excerpt,
    resolve_recipients,
)

__all__ = [
    "Notification",
    "Subscription",
    "NotificationEvent",
    "Scope",
    "Template",
    "TEMPLATES",
    "excerpt",
    "resolve_recipients",
]
