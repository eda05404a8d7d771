"""
Notifications Application DTOs
==============================
"""

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field


class SubscriptionCreateRequest(BaseModel):
    """Exactly one of project_id and ticket_id."""
    project_id: Optional[UUID] = None
    ticket_id: Optional[UUID] = None


class SubscriptionResponse(BaseModel):
    id: UUID
    user_id: UUID
    project_id: Optional[UUID] = None
    ticket_id: Optional[UUID] = None
    created_at: datetime


class NotificationResponse(BaseModel):
    id: UUID
    type: str = Field(..., description="Event type tag, e.g. new_ticket")
    content: str
    status: str = Field(..., description="unread or read")
    ticket_id: Optional[UUID] = None
    created_at: datetime


class MarkAllReadResponse(BaseModel):
    message: str
    updated: int
