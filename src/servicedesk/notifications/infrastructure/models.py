"""
Notifications Infrastructure Models
===================================
"""

from datetime import datetime, timezone
from typing import Optional
from uuid import UUID, uuid4

from sqlalchemy import DateTime, Index, String, Text, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from servicedesk.config import NotificationStatus
from servicedesk.infrastructure.database import Base


class NotificationModel(Base):
    """Maps to the 'notifications' table."""
    __tablename__ = "notifications"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    recipient_id: Mapped[UUID] = mapped_column(Uuid, nullable=False)
    type: Mapped[str] = mapped_column(String(50), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default=NotificationStatus.UNREAD.value)
    ticket_id: Mapped[Optional[UUID]] = mapped_column(Uuid, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc)
    )

    __table_args__ = (
        Index("idx_notifications_recipient_created", "recipient_id", "created_at"),
    )


class SubscriptionModel(Base):
    """
    Maps to the 'subscriptions' table.

    One of project_id / ticket_id is set. The unique constraints stop a
    user from subscribing twice to the same scope.
    """
    __tablename__ = "subscriptions"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    user_id: Mapped[UUID] = mapped_column(Uuid, nullable=False, index=True)
    project_id: Mapped[Optional[UUID]] = mapped_column(Uuid, nullable=True, index=True)
    ticket_id: Mapped[Optional[UUID]] = mapped_column(Uuid, nullable=True, index=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc)
    )

    __table_args__ = (
        UniqueConstraint("user_id", "project_id", name="uq_subscription_user_project"),
        UniqueConstraint("user_id", "ticket_id", name="uq_subscription_user_ticket"),
    )
