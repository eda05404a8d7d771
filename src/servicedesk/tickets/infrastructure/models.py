"""
Tickets Infrastructure Models
=============================

SQLAlchemy ORM models for tickets, posts and feedback.

These are the database representations of the ticket aggregate.
Attachments are stored as a JSON list on the ticket row.
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
from uuid import UUID, uuid4

from sqlalchemy import JSON, DateTime, ForeignKey, Index, Integer, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from servicedesk.config import DEFAULT_PRIORITY, TicketStatus
from servicedesk.infrastructure.database import Base


class TicketModel(Base):
    """
    Database model for the Ticket aggregate.

    Maps to the 'tickets' table.
    """
    __tablename__ = "tickets"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)

    title: Mapped[str] = mapped_column(String(500), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    status: Mapped[str] = mapped_column(String(50), nullable=False, default=TicketStatus.NEW.value, index=True)
    priority: Mapped[str] = mapped_column(String(50), nullable=False, default=DEFAULT_PRIORITY)

    # References
    creator_id: Mapped[UUID] = mapped_column(Uuid, nullable=False, index=True)
    project_id: Mapped[UUID] = mapped_column(Uuid, ForeignKey("projects.id"), nullable=False, index=True)
    type_id: Mapped[Optional[UUID]] = mapped_column(Uuid, ForeignKey("ticket_types.id", ondelete="SET NULL"), nullable=True)
    assignee_id: Mapped[Optional[UUID]] = mapped_column(Uuid, nullable=True)

    # Resolution
    resolution: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    resolved_by: Mapped[Optional[UUID]] = mapped_column(Uuid, nullable=True)
    resolved_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    # Reopen
    reopen_reason: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    reopened_by: Mapped[Optional[UUID]] = mapped_column(Uuid, nullable=True)
    reopened_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    satisfaction_rating: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    attachments: Mapped[List[Dict[str, Any]]] = mapped_column(JSON, nullable=False, default=list)

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))

    __table_args__ = (
        Index("idx_tickets_project_status", "project_id", "status"),
    )


class PostModel(Base):
    """Maps to the 'ticket_posts' table."""
    __tablename__ = "ticket_posts"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    ticket_id: Mapped[UUID] = mapped_column(Uuid, ForeignKey("tickets.id", ondelete="CASCADE"), nullable=False)
    author_id: Mapped[UUID] = mapped_column(Uuid, nullable=False)
    title: Mapped[str] = mapped_column(String(255), nullable=False, default="Comment")
    content: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))

    __table_args__ = (
        Index("idx_posts_ticket_created", "ticket_id", "created_at"),
    )


class FeedbackModel(Base):
    """Maps to the 'ticket_feedback' table."""
    __tablename__ = "ticket_feedback"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    ticket_id: Mapped[UUID] = mapped_column(Uuid, ForeignKey("tickets.id", ondelete="CASCADE"), nullable=False, index=True)
    author_id: Mapped[UUID] = mapped_column(Uuid, nullable=False)
    rating: Mapped[int] = mapped_column(Integer, nullable=False)
    comment: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))
