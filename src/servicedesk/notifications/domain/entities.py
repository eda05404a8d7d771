"""
Notification Domain Entities
============================
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional
from uuid import UUID

from servicedesk.config import NotificationStatus
from servicedesk.core import ValidationException


@dataclass
class Notification:
    """One in-app message for one recipient."""
    id: UUID
    recipient_id: UUID
    type: str
    content: str
    created_at: datetime
    status: str = NotificationStatus.UNREAD.value
    ticket_id: Optional[UUID] = None

    @property
    def is_read(self) -> bool:
        return self.status == NotificationStatus.READ.value


@dataclass
class Subscription:
    """
    "Notify this user about this scope."

    Exactly one of project_id and ticket_id is set.
    """
    id: UUID
    user_id: UUID
    created_at: datetime
    project_id: Optional[UUID] = None
    ticket_id: Optional[UUID] = None

    def __post_init__(self):
        if (self.project_id is None) == (self.ticket_id is None):
            raise ValidationException("A subscription targets exactly one project or one ticket")
