"""Notifications interfaces layer."""

from servicedesk.notifications.interfaces.controllers import notifications_router

__all__ = ["notifications_router"]
