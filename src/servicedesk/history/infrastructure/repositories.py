"""
History Infrastructure Repositories
===================================
"""

from typing import List, Optional
from uuid import UUID

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from servicedesk.core import ensure_utc
from servicedesk.history.application.services import IEventLogRepository, IHistoryRepository
from servicedesk.history.domain import ChangeHistoryEntry, EventLogEntry
from servicedesk.history.infrastructure.models import ChangeHistoryModel, EventLogModel


class SQLAlchemyHistoryRepository(IHistoryRepository):

    def __init__(self, session: AsyncSession):
        self._session = session

    async def append(self, entry: ChangeHistoryEntry) -> ChangeHistoryEntry:
        self._session.add(ChangeHistoryModel(
            id=entry.id,
            ticket_id=entry.ticket_id,
            user_id=entry.user_id,
            new_status=entry.new_status,
            change=entry.change,
            created_at=entry.created_at,
        ))
        await self._session.flush()
        return entry

    async def list_for_ticket(self, ticket_id: UUID) -> List[ChangeHistoryEntry]:
        stmt = (
            select(ChangeHistoryModel)
            .where(ChangeHistoryModel.ticket_id == ticket_id)
            .order_by(ChangeHistoryModel.created_at.desc())
        )
        result = await self._session.execute(stmt)
        return [
            ChangeHistoryEntry(
                id=m.id,
                ticket_id=m.ticket_id,
                user_id=m.user_id,
                new_status=m.new_status,
                change=m.change,
                created_at=ensure_utc(m.created_at),
            )
            for m in result.scalars().all()
        ]

    async def delete_for_tickets(self, ticket_ids: List[UUID]) -> None:
        if not ticket_ids:
            return
        await self._session.execute(
            delete(ChangeHistoryModel).where(ChangeHistoryModel.ticket_id.in_(ticket_ids))
        )


class SQLAlchemyEventLogRepository(IEventLogRepository):

    def __init__(self, session: AsyncSession):
        self._session = session

    async def append(self, entry: EventLogEntry) -> EventLogEntry:
        self._session.add(EventLogModel(
            id=entry.id,
            action=entry.action,
            user_id=entry.user_id,
            details=entry.details,
            ip_address=entry.ip_address,
            created_at=entry.created_at,
        ))
        await self._session.flush()
        return entry

    async def list(self, limit: int = 100, offset: int = 0, action: Optional[str] = None) -> List[EventLogEntry]:
        stmt = select(EventLogModel)
        if action:
            stmt = stmt.where(EventLogModel.action == action)
        stmt = stmt.order_by(EventLogModel.created_at.desc()).limit(limit).offset(offset)
        result = await self._session.execute(stmt)
        return [
            EventLogEntry(
                id=m.id,
                action=m.action,
                user_id=m.user_id,
                details=dict(m.details or {}),
                ip_address=m.ip_address,
                created_at=ensure_utc(m.created_at),
            )
            for m in result.scalars().all()
        ]
