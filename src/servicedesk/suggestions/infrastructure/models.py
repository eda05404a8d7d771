"""
Suggestions Infrastructure Models
=================================
"""

from datetime import datetime, timezone
from typing import Optional
from uuid import UUID, uuid4

from sqlalchemy import DateTime, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from servicedesk.config import SuggestionStatus
from servicedesk.infrastructure.database import Base


class SuggestionModel(Base):
    """Maps to the 'suggestions' table."""
    __tablename__ = "suggestions"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    author_id: Mapped[UUID] = mapped_column(Uuid, nullable=False, index=True)
    status: Mapped[str] = mapped_column(String(50), nullable=False, default=SuggestionStatus.NEW.value)
    developer_id: Mapped[Optional[UUID]] = mapped_column(Uuid, nullable=True)
    additional_info: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    test_notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))
