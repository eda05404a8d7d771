"""
Tickets Application DTOs
========================

Pydantic models for ticket, post, attachment and feedback payloads.
"""

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from servicedesk.config import DEFAULT_PRIORITY


# ========== Request DTOs ==========

class TicketCreateRequest(BaseModel):
    """New ticket submitted against a project."""
    project_id: UUID
    type_id: UUID = Field(..., description="Must be one of the project's ticket types")
    title: str = Field(..., min_length=1, max_length=500)
    description: str = Field(..., min_length=1)
    priority: Optional[str] = Field(None, max_length=50, description=f"Defaults to '{DEFAULT_PRIORITY}'")


class StatusChangeRequest(BaseModel):
    status: str = Field(..., description="new, in_progress, resolved, reopened or closed")


class ResolveRequest(BaseModel):
    resolution: Optional[str] = None


class ReopenRequest(BaseModel):
    reason: Optional[str] = None


class SatisfactionRequest(BaseModel):
    rating: int = Field(..., ge=1, le=5)
    comment: Optional[str] = None


class AssignRequest(BaseModel):
    assignee_id: UUID


class PostCreateRequest(BaseModel):
    content: str = Field(..., min_length=1)
    title: str = Field("Comment", max_length=255)


# ========== Response DTOs ==========

class AttachmentResponse(BaseModel):
    filename: str = Field(..., description="Stored file name")
    original_name: str
    content_type: Optional[str] = None
    size: int
    uploaded_by: UUID
    uploaded_at: datetime


class TicketResponse(BaseModel):
    """Full ticket representation."""
    id: UUID
    title: str
    description: str
    status: str
    priority: str
    creator_id: UUID
    project_id: UUID
    type_id: Optional[UUID] = None
    type_name: Optional[str] = None
    assignee_id: Optional[UUID] = None
    resolution: Optional[str] = None
    resolved_by: Optional[UUID] = None
    resolved_at: Optional[datetime] = None
    reopen_reason: Optional[str] = None
    reopened_by: Optional[UUID] = None
    reopened_at: Optional[datetime] = None
    satisfaction_rating: Optional[int] = None
    attachments: List[AttachmentResponse] = Field(default_factory=list)
    created_at: datetime
    updated_at: Optional[datetime] = None


class PostResponse(BaseModel):
    id: UUID
    ticket_id: UUID
    author_id: UUID
    title: str
    content: str
    created_at: datetime


class FeedbackResponse(BaseModel):
    id: UUID
    ticket_id: UUID
    author_id: UUID
    rating: int
    comment: Optional[str] = None
    created_at: datetime
