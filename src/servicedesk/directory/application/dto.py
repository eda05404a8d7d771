"""
Directory Application DTOs
==========================

Pydantic models for authentication, user, role, project and ticket type
requests and responses.
"""

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field


# ========== Request DTOs ==========

class LoginRequest(BaseModel):
    """Credentials for obtaining a token."""
    login: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class UserCreateRequest(BaseModel):
    """Manager-only user creation."""
    login: str = Field(..., min_length=1, max_length=150)
    password: str = Field(..., min_length=1)
    role_id: UUID


class UserUpdateRequest(BaseModel):
    """Manager-only user update; omitted fields stay unchanged."""
    login: Optional[str] = Field(None, min_length=1, max_length=150)
    password: Optional[str] = Field(None, min_length=1)
    role_id: Optional[UUID] = None


class ProfileUpdateRequest(BaseModel):
    """Self-service profile update."""
    login: Optional[str] = Field(None, min_length=1, max_length=150)
    current_password: Optional[str] = None
    new_password: Optional[str] = Field(None, min_length=1)


class ProjectCreateRequest(BaseModel):
    """Project creation payload."""
    name: str = Field(..., min_length=1, max_length=255)
    key: str = Field(..., min_length=1, max_length=50)
    visible_to_role_ids: List[UUID] = Field(..., min_length=1)
    manager_id: UUID


class ProjectUpdateRequest(BaseModel):
    """Project update payload. Roles and manager are applied for Managers only."""
    name: str = Field(..., min_length=1, max_length=255)
    key: str = Field(..., min_length=1, max_length=50)
    visible_to_role_ids: Optional[List[UUID]] = None
    manager_id: Optional[UUID] = None


class TicketTypeCreateRequest(BaseModel):
    """New ticket type for a project."""
    name: str = Field(..., min_length=1, max_length=150)
    description: Optional[str] = None


# ========== Response DTOs ==========

class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"


class MessageResponse(BaseModel):
    message: str


class RoleResponse(BaseModel):
    id: UUID
    name: str
    permissions: List[str] = Field(default_factory=list)


class UserResponse(BaseModel):
    """User without credentials."""
    id: UUID
    login: str
    role_id: Optional[UUID] = None
    role_name: Optional[str] = None
    created_at: Optional[datetime] = None


class TicketTypeResponse(BaseModel):
    id: UUID
    name: str
    description: Optional[str] = None


class ProjectResponse(BaseModel):
    id: UUID
    name: str
    key: str
    manager_id: Optional[UUID] = None
    visible_to_role_ids: List[UUID] = Field(default_factory=list)
    ticket_types: List[TicketTypeResponse] = Field(default_factory=list)
