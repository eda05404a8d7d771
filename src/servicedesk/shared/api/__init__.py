"""
Shared API Layer
================

Middleware, exception handlers and request dependencies used by every
module router.
"""

from servicedesk.shared.api.dependencies import get_container, get_current_actor, get_sla_config
from servicedesk.shared.api.middleware import (
    CorrelationIDMiddleware,
    LoggingMiddleware,
    TimingMiddleware,
    register_exception_handlers,
)

__all__ = [
    "get_container",
    "get_current_actor",
    "get_sla_config",
    "CorrelationIDMiddleware",
    "LoggingMiddleware",
    "TimingMiddleware",
    "register_exception_handlers",
]
