"""
Tickets Infrastructure Repositories
===================================

SQLAlchemy implementations of the ticket, post and feedback repositories.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional
from uuid import UUID

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from servicedesk.core import RepositoryException, ensure_utc
from servicedesk.directory.infrastructure.models import TicketTypeModel
from servicedesk.tickets.application.services import (
    IFeedbackRepository,
    IPostRepository,
    ITicketRepository,
)
from servicedesk.tickets.domain import Attachment, Feedback, Post, Ticket
from servicedesk.tickets.infrastructure.models import FeedbackModel, PostModel, TicketModel


def _attachment_to_dict(attachment: Attachment) -> Dict[str, Any]:
    return {
        "filename": attachment.filename,
        "original_name": attachment.original_name,
        "content_type": attachment.content_type,
        "size": attachment.size,
        "uploaded_by": str(attachment.uploaded_by),
        "uploaded_at": attachment.uploaded_at.isoformat(),
    }


def _attachment_from_dict(data: Dict[str, Any]) -> Attachment:
    return Attachment(
        filename=data["filename"],
        original_name=data["original_name"],
        content_type=data.get("content_type"),
        size=data["size"],
        uploaded_by=UUID(data["uploaded_by"]),
        uploaded_at=ensure_utc(datetime.fromisoformat(data["uploaded_at"])),
    )


class SQLAlchemyTicketRepository(ITicketRepository):
    """
    SQLAlchemy implementation of ticket repository.

    The ticket type name is joined in on every read; the SLA evaluator
    looks policies up by it.
    """

    def __init__(self, session: AsyncSession):
        self._session = session

    def _select(self):
        return (
            select(TicketModel, TicketTypeModel.name)
            .outerjoin(TicketTypeModel, TicketModel.type_id == TicketTypeModel.id)
        )

    async def get_by_id(self, ticket_id: UUID) -> Optional[Ticket]:
        result = await self._session.execute(self._select().where(TicketModel.id == ticket_id))
        row = result.one_or_none()
        return self._to_entity(*row) if row else None

    async def create(self, ticket: Ticket) -> Ticket:
        model = TicketModel(id=ticket.id)
        self._apply(model, ticket)
        model.created_at = ticket.created_at
        self._session.add(model)
        await self._session.flush()
        return await self.get_by_id(ticket.id)

    async def update(self, ticket: Ticket) -> Ticket:
        model = await self._session.get(TicketModel, ticket.id)
        if model is None:
            raise RepositoryException(f"Ticket {ticket.id} not found")
        self._apply(model, ticket)
        await self._session.flush()
        return await self.get_by_id(ticket.id)

    async def list(
        self,
        project_ids: Optional[List[UUID]] = None,
        statuses: Optional[List[str]] = None,
        creator_id: Optional[UUID] = None
    ) -> List[Ticket]:
        stmt = self._select()

        conditions = []
        if project_ids is not None:
            if not project_ids:
                return []
            conditions.append(TicketModel.project_id.in_(project_ids))
        if statuses is not None:
            conditions.append(TicketModel.status.in_(statuses))
        if creator_id is not None:
            conditions.append(TicketModel.creator_id == creator_id)
        if conditions:
            stmt = stmt.where(*conditions)

        stmt = stmt.order_by(TicketModel.created_at.desc())
        result = await self._session.execute(stmt)
        return [self._to_entity(*row) for row in result.all()]

    async def ids_for_project(self, project_id: UUID) -> List[UUID]:
        result = await self._session.execute(
            select(TicketModel.id).where(TicketModel.project_id == project_id)
        )
        return list(result.scalars().all())

    async def delete_many(self, ticket_ids: List[UUID]) -> None:
        if not ticket_ids:
            return
        await self._session.execute(delete(TicketModel).where(TicketModel.id.in_(ticket_ids)))
        await self._session.flush()

    @staticmethod
    def _apply(model: TicketModel, ticket: Ticket) -> None:
        model.title = ticket.title
        model.description = ticket.description
        model.status = ticket.status
        model.priority = ticket.priority
        model.creator_id = ticket.creator_id
        model.project_id = ticket.project_id
        model.type_id = ticket.type_id
        model.assignee_id = ticket.assignee_id
        model.resolution = ticket.resolution
        model.resolved_by = ticket.resolved_by
        model.resolved_at = ticket.resolved_at
        model.reopen_reason = ticket.reopen_reason
        model.reopened_by = ticket.reopened_by
        model.reopened_at = ticket.reopened_at
        model.satisfaction_rating = ticket.satisfaction_rating
        model.attachments = [_attachment_to_dict(a) for a in ticket.attachments]
        model.updated_at = ticket.updated_at or ticket.created_at

    @staticmethod
    def _to_entity(model: TicketModel, type_name: Optional[str]) -> Ticket:
        return Ticket(
            id=model.id,
            title=model.title,
            description=model.description,
            status=model.status,
            priority=model.priority,
            creator_id=model.creator_id,
            project_id=model.project_id,
            type_id=model.type_id,
            type_name=type_name,
            assignee_id=model.assignee_id,
            resolution=model.resolution,
            resolved_by=model.resolved_by,
            resolved_at=ensure_utc(model.resolved_at),
            reopen_reason=model.reopen_reason,
            reopened_by=model.reopened_by,
            reopened_at=ensure_utc(model.reopened_at),
            satisfaction_rating=model.satisfaction_rating,
            attachments=[_attachment_from_dict(a) for a in model.attachments or []],
            created_at=ensure_utc(model.created_at),
            updated_at=ensure_utc(model.updated_at),
        )


class SQLAlchemyPostRepository(IPostRepository):

    def __init__(self, session: AsyncSession):
        self._session = session

    async def create(self, post: Post) -> Post:
        self._session.add(PostModel(
            id=post.id,
            ticket_id=post.ticket_id,
            author_id=post.author_id,
            title=post.title,
            content=post.content,
            created_at=post.created_at,
        ))
        await self._session.flush()
        return post

    async def list_for_ticket(self, ticket_id: UUID) -> List[Post]:
        stmt = select(PostModel).where(PostModel.ticket_id == ticket_id).order_by(PostModel.created_at)
        result = await self._session.execute(stmt)
        return [self._to_entity(m) for m in result.scalars().all()]

    async def first_response(self, ticket_id: UUID, creator_id: UUID) -> Optional[Post]:
        stmt = (
            select(PostModel)
            .where(PostModel.ticket_id == ticket_id, PostModel.author_id != creator_id)
            .order_by(PostModel.created_at)
            .limit(1)
        )
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()
        return self._to_entity(model) if model else None

    async def delete_for_tickets(self, ticket_ids: List[UUID]) -> None:
        if ticket_ids:
            await self._session.execute(delete(PostModel).where(PostModel.ticket_id.in_(ticket_ids)))

    @staticmethod
    def _to_entity(model: PostModel) -> Post:
        return Post(
            id=model.id,
            ticket_id=model.ticket_id,
            author_id=model.author_id,
            title=model.title,
            content=model.content,
            created_at=ensure_utc(model.created_at),
        )


class SQLAlchemyFeedbackRepository(IFeedbackRepository):

    def __init__(self, session: AsyncSession):
        self._session = session

    async def create(self, feedback: Feedback) -> Feedback:
        self._session.add(FeedbackModel(
            id=feedback.id,
            ticket_id=feedback.ticket_id,
            author_id=feedback.author_id,
            rating=feedback.rating,
            comment=feedback.comment,
            created_at=feedback.created_at,
        ))
        await self._session.flush()
        return feedback

    async def list_for_ticket(self, ticket_id: UUID) -> List[Feedback]:
        stmt = (
            select(FeedbackModel)
            .where(FeedbackModel.ticket_id == ticket_id)
            .order_by(FeedbackModel.created_at.desc())
        )
        result = await self._session.execute(stmt)
        return [
            Feedback(
                id=m.id,
                ticket_id=m.ticket_id,
                author_id=m.author_id,
                rating=m.rating,
                comment=m.comment,
                created_at=ensure_utc(m.created_at),
            )
            for m in result.scalars().all()
        ]

    async def rating_distribution(self) -> Dict[int, int]:
        stmt = select(FeedbackModel.rating, func.count(FeedbackModel.id)).group_by(FeedbackModel.rating)
        result = await self._session.execute(stmt)
        return {rating: count for rating, count in result.all()}

    async def delete_for_tickets(self, ticket_ids: List[UUID]) -> None:
        if ticket_ids:
            await self._session.execute(delete(FeedbackModel).where(FeedbackModel.ticket_id.in_(ticket_ids)))
