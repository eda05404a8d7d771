"""
SLA Infrastructure Models
=========================

SQLAlchemy ORM model for the breach ledger.
"""

from datetime import datetime, timezone
from typing import Optional
from uuid import UUID, uuid4

from sqlalchemy import DateTime, Float, Integer, String, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from servicedesk.infrastructure.database import Base


class SLABreachModel(Base):
    """
    Database model for SLABreach.

    Maps to the 'sla_breaches' table. The unique constraint is the
    deduplication key: one row per (ticket, kind, reference time).
    """
    __tablename__ = "sla_breaches"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    ticket_id: Mapped[UUID] = mapped_column(Uuid, nullable=False, index=True)
    kind: Mapped[str] = mapped_column(String(50), nullable=False)  # response, resolution, current_resolution
    reference_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    detected_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        index=True
    )
    elapsed_minutes: Mapped[float] = mapped_column(Float, nullable=False)
    target_minutes: Mapped[int] = mapped_column(Integer, nullable=False)
    attributed_to: Mapped[Optional[UUID]] = mapped_column(Uuid, nullable=True)

    __table_args__ = (
        UniqueConstraint("ticket_id", "kind", "reference_at", name="uq_sla_breach_ticket_kind_reference"),
    )
