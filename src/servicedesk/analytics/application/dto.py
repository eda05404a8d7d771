"""
Analytics Application DTOs
==========================
"""

from datetime import date, datetime
from typing import Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel, Field


class DailyCount(BaseModel):
    date: date
    count: int


class AnalyticsResponse(BaseModel):
    """System-wide ticket statistics."""
    total_tickets: int
    resolved_tickets: int
    tickets_by_status: Dict[str, int] = Field(default_factory=dict)
    average_resolution_hours: float = Field(..., description="Mean creation-to-resolution time of resolved tickets")
    sla_breaches: int = Field(..., description="Breaches recorded in the ledger")
    satisfaction_distribution: Dict[int, int] = Field(default_factory=dict)
    tickets_over_time: List[DailyCount] = Field(default_factory=list, description="Tickets created per day, last 30 days")


class ReportTicket(BaseModel):
    id: UUID
    title: str
    status: str
    priority: str
    type_name: Optional[str] = None
    project_id: UUID
    created_at: datetime
    resolved_at: Optional[datetime] = None


class ReportStatistics(BaseModel):
    total_tickets: int
    by_status: Dict[str, int] = Field(default_factory=dict)
    by_priority: Dict[str, int] = Field(default_factory=dict)
    average_resolution_hours: float
    sla_breaches: int


class ReportResponse(BaseModel):
    """Tickets and statistics for a period."""
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    type_id: Optional[UUID] = None
    statistics: ReportStatistics
    tickets: List[ReportTicket] = Field(default_factory=list)
