"""
History Application Services
============================

Writing and reading ticket history and the event log.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Dict, List, Optional
from uuid import UUID, uuid4

from servicedesk.config import RoleName
from servicedesk.core import AuthorizationException, Clock, utcnow
from servicedesk.history.domain import ChangeHistoryEntry, EventLogEntry
from servicedesk.shared.infrastructure.logging import get_logger

logger = get_logger(__name__)


# ========== Repository Interfaces ==========

class IHistoryRepository(ABC):
    """Interface for ticket history data access."""

    @abstractmethod
    async def append(self, entry: ChangeHistoryEntry) -> ChangeHistoryEntry:
        """Append one entry."""

    @abstractmethod
    async def list_for_ticket(self, ticket_id: UUID) -> List[ChangeHistoryEntry]:
        """Entries of one ticket, newest first."""

    @abstractmethod
    async def delete_for_tickets(self, ticket_ids: List[UUID]) -> None:
        """Drop the history of deleted tickets."""


class IEventLogRepository(ABC):
    """Interface for event log data access."""

    @abstractmethod
    async def append(self, entry: EventLogEntry) -> EventLogEntry:
        """Append one entry."""

    @abstractmethod
    async def list(self, limit: int = 100, offset: int = 0, action: Optional[str] = None) -> List[EventLogEntry]:
        """Entries newest first."""


class IEventRecorder(ABC):
    """What other contexts use to audit an action."""

    @abstractmethod
    async def record(self, action: str, user_id: Optional[UUID], details: Optional[Dict[str, Any]] = None) -> None:
        """Record an audited action."""


# ========== Application Services ==========

class HistoryService:
    """Appends and lists per-ticket change history."""

    def __init__(self, repository: IHistoryRepository, clock: Clock = utcnow):
        self._repo = repository
        self._clock = clock

    async def record(
        self,
        ticket_id: UUID,
        user_id: Optional[UUID],
        change: str,
        new_status: Optional[str] = None,
        at: Optional[datetime] = None
    ) -> ChangeHistoryEntry:
        """Append an entry; ``at`` backdates it (breaches are dated at the event)."""
        entry = ChangeHistoryEntry(
            id=uuid4(),
            ticket_id=ticket_id,
            user_id=user_id,
            new_status=new_status,
            change=change,
            created_at=at or self._clock(),
        )
        return await self._repo.append(entry)

    async def list_for_ticket(self, ticket_id: UUID) -> List[ChangeHistoryEntry]:
        """Callers check ticket access before asking."""
        return await self._repo.list_for_ticket(ticket_id)

    async def purge(self, ticket_ids: List[UUID]) -> None:
        await self._repo.delete_for_tickets(ticket_ids)


class EventLogService(IEventRecorder):
    """
    Event log writer and reader.

    The client address is bound per request by the composition root.
    """

    def __init__(
        self,
        repository: IEventLogRepository,
        client_ip: Optional[str] = None,
        clock: Clock = utcnow
    ):
        self._repo = repository
        self._client_ip = client_ip
        self._clock = clock

    async def record(self, action: str, user_id: Optional[UUID], details: Optional[Dict[str, Any]] = None) -> None:
        await self._repo.append(EventLogEntry(
            id=uuid4(),
            action=action,
            user_id=user_id,
            details=details or {},
            ip_address=self._client_ip,
            created_at=self._clock(),
        ))
        logger.debug("Event recorded", extra={"action": action})

    async def list_events(
        self,
        actor,
        limit: int = 100,
        offset: int = 0,
        action: Optional[str] = None
    ) -> List[EventLogEntry]:
        """Managers only."""
        if not actor.has_role(RoleName.MANAGER.value):
            raise AuthorizationException("Only managers can read the event log")
        return await self._repo.list(limit=limit, offset=offset, action=action)
