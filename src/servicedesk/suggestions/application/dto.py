"""
Suggestions Application DTOs
============================
"""

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field


class SuggestionCreateRequest(BaseModel):
    content: str = Field(..., min_length=1)


class SuggestionAssignRequest(BaseModel):
    developer_id: UUID


class SuggestionStatusRequest(BaseModel):
    status: str
    additional_info: Optional[str] = Field(None, description="Sent to the author when status is needs_info")


class SuggestionTestRequest(BaseModel):
    passed: bool
    notes: Optional[str] = None


class SuggestionResponse(BaseModel):
    id: UUID
    content: str
    author_id: UUID
    status: str
    developer_id: Optional[UUID] = None
    additional_info: Optional[str] = None
    test_notes: Optional[str] = None
    created_at: datetime
    updated_at: Optional[datetime] = None
