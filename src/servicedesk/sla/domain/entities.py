"""
SLA Domain Entities
===================
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional
from uuid import UUID

from servicedesk.config import SLAState


@dataclass
class SLABreach:
    """
    One detected SLA violation, recorded at most once.

    Identity for deduplication is (ticket_id, kind, reference_at): the
    first-response time, the resolution time, or the ticket creation time
    for response, resolution and current_resolution breaches.
    """
    id: UUID
    ticket_id: UUID
    kind: str
    reference_at: datetime
    detected_at: datetime
    elapsed_minutes: float
    target_minutes: int
    attributed_to: Optional[UUID] = None


@dataclass
class SLAClock:
    """State of one budget (response or resolution) of one ticket."""
    target_minutes: int
    deadline: datetime
    state: SLAState
    met_at: Optional[datetime] = None
    remaining_minutes: Optional[float] = None


@dataclass
class TicketSLAStatus:
    """SLA view of a ticket: both budgets and the breaches recorded so far."""
    ticket_id: UUID
    ticket_type: Optional[str]
    priority: str
    has_policy: bool
    response: Optional[SLAClock] = None
    resolution: Optional[SLAClock] = None
    breaches: List[SLABreach] = field(default_factory=list)
