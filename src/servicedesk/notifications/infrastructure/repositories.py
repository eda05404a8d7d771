"""
Notifications Infrastructure Repositories
=========================================
"""

from typing import List, Optional
from uuid import UUID

from sqlalchemy import delete, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from servicedesk.config import NotificationStatus
from servicedesk.core import ensure_utc
from servicedesk.notifications.application.services import (
    INotificationRepository,
    ISubscriptionRepository,
)
from servicedesk.notifications.domain import Notification, Subscription
from servicedesk.notifications.infrastructure.models import NotificationModel, SubscriptionModel


class SQLAlchemyNotificationRepository(INotificationRepository):

    def __init__(self, session: AsyncSession):
        self._session = session

    async def create(self, notification: Notification) -> Notification:
        self._session.add(NotificationModel(
            id=notification.id,
            recipient_id=notification.recipient_id,
            type=notification.type,
            content=notification.content,
            status=notification.status,
            ticket_id=notification.ticket_id,
            created_at=notification.created_at,
        ))
        await self._session.flush()
        return notification

    async def get_by_id(self, notification_id: UUID) -> Optional[Notification]:
        model = await self._session.get(NotificationModel, notification_id)
        return self._to_entity(model) if model else None

    async def list_for_recipient(self, recipient_id: UUID, unread_only: bool = False) -> List[Notification]:
        stmt = select(NotificationModel).where(NotificationModel.recipient_id == recipient_id)
        if unread_only:
            stmt = stmt.where(NotificationModel.status == NotificationStatus.UNREAD.value)
        stmt = stmt.order_by(NotificationModel.created_at.desc())
        result = await self._session.execute(stmt)
        return [self._to_entity(m) for m in result.scalars().all()]

    async def mark_read(self, notification_id: UUID) -> None:
        await self._session.execute(
            update(NotificationModel)
            .where(NotificationModel.id == notification_id)
            .values(status=NotificationStatus.READ.value)
        )
        await self._session.flush()

    async def mark_all_read(self, recipient_id: UUID) -> int:
        result = await self._session.execute(
            update(NotificationModel)
            .where(
                NotificationModel.recipient_id == recipient_id,
                NotificationModel.status == NotificationStatus.UNREAD.value,
            )
            .values(status=NotificationStatus.READ.value)
        )
        await self._session.flush()
        return result.rowcount or 0

    @staticmethod
    def _to_entity(model: NotificationModel) -> Notification:
        return Notification(
            id=model.id,
            recipient_id=model.recipient_id,
            type=model.type,
            content=model.content,
            status=model.status,
            ticket_id=model.ticket_id,
            created_at=ensure_utc(model.created_at),
        )


class SQLAlchemySubscriptionRepository(ISubscriptionRepository):

    def __init__(self, session: AsyncSession):
        self._session = session

    async def create(self, subscription: Subscription) -> Subscription:
        self._session.add(SubscriptionModel(
            id=subscription.id,
            user_id=subscription.user_id,
            project_id=subscription.project_id,
            ticket_id=subscription.ticket_id,
            created_at=subscription.created_at,
        ))
        await self._session.flush()
        return subscription

    async def find(
        self,
        user_id: UUID,
        project_id: Optional[UUID] = None,
        ticket_id: Optional[UUID] = None
    ) -> Optional[Subscription]:
        stmt = select(SubscriptionModel).where(SubscriptionModel.user_id == user_id)
        if project_id is not None:
            stmt = stmt.where(SubscriptionModel.project_id == project_id)
        if ticket_id is not None:
            stmt = stmt.where(SubscriptionModel.ticket_id == ticket_id)
        result = await self._session.execute(stmt.limit(1))
        model = result.scalar_one_or_none()
        return self._to_entity(model) if model else None

    async def get_by_id(self, subscription_id: UUID) -> Optional[Subscription]:
        model = await self._session.get(SubscriptionModel, subscription_id)
        return self._to_entity(model) if model else None

    async def delete(self, subscription_id: UUID) -> None:
        await self._session.execute(delete(SubscriptionModel).where(SubscriptionModel.id == subscription_id))
        await self._session.flush()

    async def list_for_user(self, user_id: UUID) -> List[Subscription]:
        stmt = (
            select(SubscriptionModel)
            .where(SubscriptionModel.user_id == user_id)
            .order_by(SubscriptionModel.created_at)
        )
        result = await self._session.execute(stmt)
        return [self._to_entity(m) for m in result.scalars().all()]

    async def subscribers_of_ticket(self, ticket_id: UUID) -> List[UUID]:
        stmt = (
            select(SubscriptionModel.user_id)
            .where(SubscriptionModel.ticket_id == ticket_id)
            .order_by(SubscriptionModel.created_at)
        )
        result = await self._session.execute(stmt)
        return list(result.scalars().all())

    async def subscribers_of_project(self, project_id: UUID) -> List[UUID]:
        stmt = (
            select(SubscriptionModel.user_id)
            .where(SubscriptionModel.project_id == project_id)
            .order_by(SubscriptionModel.created_at)
        )
        result = await self._session.execute(stmt)
        return list(result.scalars().all())

    async def delete_for_scope(
        self,
        project_id: Optional[UUID] = None,
        ticket_ids: Optional[List[UUID]] = None
    ) -> None:
        conditions = []
        if project_id is not None:
            conditions.append(SubscriptionModel.project_id == project_id)
        if ticket_ids:
            conditions.append(SubscriptionModel.ticket_id.in_(ticket_ids))
        if not conditions:
            return
        await self._session.execute(delete(SubscriptionModel).where(or_(*conditions)))

    @staticmethod
    def _to_entity(model: SubscriptionModel) -> Subscription:
        return Subscription(
            id=model.id,
            user_id=model.user_id,
            project_id=model.project_id,
            ticket_id=model.ticket_id,
            created_at=ensure_utc(model.created_at),
        )
