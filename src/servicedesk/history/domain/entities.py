"""
History Domain Entities
=======================

Append-only records. Nothing here is ever updated after it is written.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Optional
from uuid import UUID


@dataclass
class ChangeHistoryEntry:
    """
    One human-readable line in a ticket's history.

    user_id is None for entries written by the system (SLA breaches).
    """
    id: UUID
    ticket_id: UUID
    change: str
    created_at: datetime
    user_id: Optional[UUID] = None
    new_status: Optional[str] = None


@dataclass
class EventLogEntry:
    """An audited action (login, project edits, status changes, ...)."""
    id: UUID
    action: str
    created_at: datetime
    user_id: Optional[UUID] = None
    details: Dict[str, Any] = field(default_factory=dict)
    ip_address: Optional[str] = None
