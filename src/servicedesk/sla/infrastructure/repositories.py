"""
SLA Infrastructure Repositories
===============================

Concrete implementation of the breach ledger using SQLAlchemy.
"""

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from servicedesk.core import ensure_utc
from servicedesk.sla.application.services import IBreachRepository
from servicedesk.sla.domain import SLABreach
from servicedesk.sla.infrastructure.models import SLABreachModel


class SQLAlchemyBreachRepository(IBreachRepository):
    """
    SQLAlchemy implementation of the breach ledger.

    Reference times are compared after normalising to UTC in Python, so the
    check behaves the same on backends that drop the offset.
    """

    def __init__(self, session: AsyncSession):
        self._session = session

    async def exists(self, ticket_id: UUID, kind: str, reference_at: datetime) -> bool:
        stmt = select(SLABreachModel.reference_at).where(
            SLABreachModel.ticket_id == ticket_id,
            SLABreachModel.kind == kind,
        )
        result = await self._session.execute(stmt)
        wanted = ensure_utc(reference_at)
        return any(ensure_utc(r) == wanted for r in result.scalars().all())

    async def create(self, breach: SLABreach) -> SLABreach:
        self._session.add(SLABreachModel(
            id=breach.id,
            ticket_id=breach.ticket_id,
            kind=breach.kind,
            reference_at=ensure_utc(breach.reference_at),
            detected_at=breach.detected_at,
            elapsed_minutes=breach.elapsed_minutes,
            target_minutes=breach.target_minutes,
            attributed_to=breach.attributed_to,
        ))
        await self._session.flush()
        return breach

    async def list_for_ticket(self, ticket_id: UUID) -> List[SLABreach]:
        stmt = (
            select(SLABreachModel)
            .where(SLABreachModel.ticket_id == ticket_id)
            .order_by(SLABreachModel.detected_at)
        )
        result = await self._session.execute(stmt)
        return [self._to_entity(m) for m in result.scalars().all()]

    async def count(self, ticket_ids: Optional[List[UUID]] = None) -> int:
        stmt = select(func.count(SLABreachModel.id))
        if ticket_ids is not None:
            if not ticket_ids:
                return 0
            stmt = stmt.where(SLABreachModel.ticket_id.in_(ticket_ids))
        result = await self._session.execute(stmt)
        return result.scalar_one()

    async def delete_for_tickets(self, ticket_ids: List[UUID]) -> None:
        if ticket_ids:
            await self._session.execute(delete(SLABreachModel).where(SLABreachModel.ticket_id.in_(ticket_ids)))

    @staticmethod
    def _to_entity(model: SLABreachModel) -> SLABreach:
        return SLABreach(
            id=model.id,
            ticket_id=model.ticket_id,
            kind=model.kind,
            reference_at=ensure_utc(model.reference_at),
            detected_at=ensure_utc(model.detected_at),
            elapsed_minutes=model.elapsed_minutes,
            target_minutes=model.target_minutes,
            attributed_to=model.attributed_to,
        )
