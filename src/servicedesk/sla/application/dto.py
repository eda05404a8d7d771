"""
SLA Application DTOs
====================

Response models for the SLA API.
"""

from datetime import datetime
from typing import List, Literal, Optional
from uuid import UUID

from pydantic import BaseModel, Field

# ========== Type Aliases for Literals ==========
SLAStateStr = Literal["on_track", "breached", "met"]
BreachKindStr = Literal["response", "resolution", "current_resolution"]


class SLAPolicyResponse(BaseModel):
    """One configured policy."""
    ticket_type: str
    priority: str
    response_minutes: int = Field(..., description="Budget for the first response")
    resolution_minutes: int = Field(..., description="Budget for resolution")


class SLAPolicyListResponse(BaseModel):
    default_priority: str
    notifying_roles: List[str]
    policies: List[SLAPolicyResponse]


class SLAClockResponse(BaseModel):
    """State of one budget."""
    target_minutes: int
    deadline: datetime
    state: SLAStateStr
    met_at: Optional[datetime] = None
    remaining_minutes: Optional[float] = Field(None, description="Negative once past the deadline; null once met")


class SLABreachResponse(BaseModel):
    id: UUID
    kind: BreachKindStr
    reference_at: datetime
    detected_at: datetime
    elapsed_minutes: float
    target_minutes: int
    attributed_to: Optional[UUID] = None


class TicketSLAResponse(BaseModel):
    """SLA view of one ticket."""
    ticket_id: UUID
    ticket_type: Optional[str] = None
    priority: str
    has_policy: bool
    response: Optional[SLAClockResponse] = None
    resolution: Optional[SLAClockResponse] = None
    breaches: List[SLABreachResponse] = Field(default_factory=list)


class ScanResponse(BaseModel):
    """Result of a manual scan."""
    message: str
    breaches_recorded: int
