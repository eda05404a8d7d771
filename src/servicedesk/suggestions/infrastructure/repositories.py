"""
Suggestions Infrastructure Repositories
=======================================
"""

from typing import List, Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from servicedesk.core import RepositoryException, ensure_utc
from servicedesk.suggestions.application.services import ISuggestionRepository
from servicedesk.suggestions.domain import Suggestion
from servicedesk.suggestions.infrastructure.models import SuggestionModel


class SQLAlchemySuggestionRepository(ISuggestionRepository):

    def __init__(self, session: AsyncSession):
        self._session = session

    async def get_by_id(self, suggestion_id: UUID) -> Optional[Suggestion]:
        model = await self._session.get(SuggestionModel, suggestion_id)
        return self._to_entity(model) if model else None

    async def list(self, author_id: Optional[UUID] = None) -> List[Suggestion]:
        stmt = select(SuggestionModel)
        if author_id is not None:
            stmt = stmt.where(SuggestionModel.author_id == author_id)
        result = await self._session.execute(stmt.order_by(SuggestionModel.created_at.desc()))
        return [self._to_entity(m) for m in result.scalars().all()]

    async def create(self, suggestion: Suggestion) -> Suggestion:
        self._session.add(SuggestionModel(
            id=suggestion.id,
            content=suggestion.content,
            author_id=suggestion.author_id,
            status=suggestion.status,
            created_at=suggestion.created_at,
            updated_at=suggestion.updated_at or suggestion.created_at,
        ))
        await self._session.flush()
        return suggestion

    async def update(self, suggestion: Suggestion) -> Suggestion:
        model = await self._session.get(SuggestionModel, suggestion.id)
        if model is None:
            raise RepositoryException(f"Suggestion {suggestion.id} not found")
        model.status = suggestion.status
        model.developer_id = suggestion.developer_id
        model.additional_info = suggestion.additional_info
        model.test_notes = suggestion.test_notes
        model.updated_at = suggestion.updated_at or model.updated_at
        await self._session.flush()
        return suggestion

    @staticmethod
    def _to_entity(model: SuggestionModel) -> Suggestion:
        return Suggestion(
            id=model.id,
            content=model.content,
            author_id=model.author_id,
            status=model.status,
            developer_id=model.developer_id,
            additional_info=model.additional_info,
            test_notes=model.test_notes,
            created_at=ensure_utc(model.created_at),
            updated_at=ensure_utc(model.updated_at),
        )
