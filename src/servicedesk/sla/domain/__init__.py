"""SLA domain layer."""

from servicedesk.sla.domain.entities import SLABreach, SLAClock, TicketSLAStatus
from servicedesk.sla.domain.value_objects import (
    SLACalculator,
    SLAConfig,
    SLAPolicy,
    describe_breach,
)

__all__ = [
    "SLABreach",
    "SLAClock",
    "TicketSLAStatus",
    "SLACalculator",
    "SLAConfig",
    "SLAPolicy",
    "describe_breach",
]
