"""
History Infrastructure Models
=============================

SQLAlchemy ORM models for ticket history and the event log.
"""

from datetime import datetime, timezone
from typing import Any, Dict, Optional
from uuid import UUID, uuid4

from sqlalchemy import JSON, DateTime, Index, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from servicedesk.infrastructure.database import Base


class ChangeHistoryModel(Base):
    """Maps to the 'ticket_history' table."""
    __tablename__ = "ticket_history"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    ticket_id: Mapped[UUID] = mapped_column(Uuid, nullable=False)
    user_id: Mapped[Optional[UUID]] = mapped_column(Uuid, nullable=True)
    new_status: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    change: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc)
    )

    __table_args__ = (
        Index("idx_history_ticket_created", "ticket_id", "created_at"),
    )


class EventLogModel(Base):
    """Maps to the 'event_log' table."""
    __tablename__ = "event_log"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    action: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    user_id: Mapped[Optional[UUID]] = mapped_column(Uuid, nullable=True)
    details: Mapped[Dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)
    ip_address: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        index=True
    )
