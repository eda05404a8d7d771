"""
History Application DTOs
========================
"""

from datetime import datetime
from typing import Any, Dict, Optional
from uuid import UUID

from pydantic import BaseModel, Field


class ChangeHistoryResponse(BaseModel):
    """One ticket history line."""
    id: UUID
    ticket_id: UUID
    user_id: Optional[UUID] = Field(None, description="None for system entries")
    new_status: Optional[str] = None
    change: str
    created_at: datetime


class EventLogResponse(BaseModel):
    id: UUID
    action: str
    user_id: Optional[UUID] = None
    details: Dict[str, Any] = Field(default_factory=dict)
    ip_address: Optional[str] = None
    created_at: datetime
