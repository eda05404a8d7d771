"""History interfaces layer."""

from servicedesk.history.interfaces.controllers import event_log_router

__all__ = ["event_log_router"]
