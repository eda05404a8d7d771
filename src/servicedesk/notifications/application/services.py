"""
Notifications Application Services
==================================

NotificationFanout turns a NotificationEvent into stored notifications.
NotificationService and SubscriptionService back the user-facing API.
"""

from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable, List, Optional
from uuid import UUID, uuid4

from servicedesk.config import NotificationStatus
from servicedesk.core import (
    Clock,
    ConflictException,
    ResourceNotFoundException,
    ValidationException,
    utcnow,
)
from servicedesk.directory.application.services import IProjectRepository
from servicedesk.directory.domain import AccessPolicy, Actor
from servicedesk.history.application.services import IEventRecorder
from servicedesk.notifications.domain import (
    Notification,
    NotificationEvent,
    Subscription,
    resolve_recipients,
)
from servicedesk.shared.infrastructure.logging import get_logger

logger = get_logger(__name__)

# Returns an object with a project_id attribute, or None
TicketLookup = Callable[[UUID], Awaitable[Optional[Any]]]


# ========== Repository Interfaces ==========

class INotificationRepository(ABC):
    """Interface for notification data access."""

    @abstractmethod
    async def create(self, notification: Notification) -> Notification:
        """Persist one notification."""

    @abstractmethod
    async def get_by_id(self, notification_id: UUID) -> Optional[Notification]:
        """Get notification by ID."""

    @abstractmethod
    async def list_for_recipient(self, recipient_id: UUID, unread_only: bool = False) -> List[Notification]:
        """Notifications of one user, newest first."""

    @abstractmethod
    async def mark_read(self, notification_id: UUID) -> None:
        """Mark one notification read."""

    @abstractmethod
    async def mark_all_read(self, recipient_id: UUID) -> int:
        """Mark every unread notification of a user read; returns the count."""


class ISubscriptionRepository(ABC):
    """Interface for subscription data access."""

    @abstractmethod
    async def create(self, subscription: Subscription) -> Subscription:
        """Persist a subscription."""

    @abstractmethod
    async def find(
        self,
        user_id: UUID,
        project_id: Optional[UUID] = None,
        ticket_id: Optional[UUID] = None
    ) -> Optional[Subscription]:
        """Existing subscription of a user to a scope."""

    @abstractmethod
    async def get_by_id(self, subscription_id: UUID) -> Optional[Subscription]:
        """Get subscription by ID."""

    @abstractmethod
    async def delete(self, subscription_id: UUID) -> None:
        """Delete a subscription."""

    @abstractmethod
    async def list_for_user(self, user_id: UUID) -> List[Subscription]:
        """Subscriptions of one user."""

    @abstractmethod
    async def subscribers_of_ticket(self, ticket_id: UUID) -> List[UUID]:
        """Users subscribed to a ticket, in subscription order."""

    @abstractmethod
    async def subscribers_of_project(self, project_id: UUID) -> List[UUID]:
        """Users subscribed to a project, in subscription order."""

    @abstractmethod
    async def delete_for_scope(
        self,
        project_id: Optional[UUID] = None,
        ticket_ids: Optional[List[UUID]] = None
    ) -> None:
        """Drop subscriptions of a deleted project and its tickets."""


# ========== Application Services ==========

class NotificationFanout:
    """
    Expands a NotificationEvent into one notification per recipient.

    Recipients are gathered from the event's direct list and, when asked,
    from ticket and project subscriptions, then deduplicated by
    resolve_recipients. Notifications are written one at a time; a failure
    midway leaves the earlier ones in place.
    """

    def __init__(
        self,
        notification_repository: INotificationRepository,
        subscription_repository: ISubscriptionRepository,
        clock: Clock = utcnow
    ):
        self._notifications = notification_repository
        self._subscriptions = subscription_repository
        self._clock = clock

    async def publish(self, event: NotificationEvent) -> List[Notification]:
        ticket_subscribers: List[UUID] = []
        project_subscribers: List[UUID] = []
        if event.notify_ticket_subscribers and event.ticket_id is not None:
            ticket_subscribers = await self._subscriptions.subscribers_of_ticket(event.ticket_id)
        if event.notify_project_subscribers and event.project_id is not None:
            project_subscribers = await self._subscriptions.subscribers_of_project(event.project_id)

        recipients = resolve_recipients(
            event.actor_id,
            direct=event.direct_recipients,
            ticket_subscribers=ticket_subscribers,
            project_subscribers=project_subscribers,
            exclude=event.exclude,
        )

        created: List[Notification] = []
        now = self._clock()
        for recipient_id, scope in recipients:
            rendered = event.render(scope)
            created.append(await self._notifications.create(Notification(
                id=uuid4(),
                recipient_id=recipient_id,
                type=rendered.tag.value,
                content=rendered.text,
                created_at=now,
                ticket_id=event.ticket_id,
            )))

        logger.info(
            "Notifications fanned out",
            extra={"event_type": event.type.value, "recipients": len(created)}
        )
        return created


class NotificationService:
    """A user's inbox."""

    def __init__(self, repository: INotificationRepository, events: IEventRecorder):
        self._repo = repository
        self._events = events

    async def list_notifications(self, actor: Actor, unread_only: bool = False) -> List[Notification]:
        return await self._repo.list_for_recipient(actor.user_id, unread_only=unread_only)

    async def mark_read(self, actor: Actor, notification_id: UUID) -> Notification:
        """
        Raises:
            ResourceNotFoundException: missing, or addressed to someone else
        """
        notification = await self._repo.get_by_id(notification_id)
        if notification is None or notification.recipient_id != actor.user_id:
            raise ResourceNotFoundException("Notification", str(notification_id))

        await self._repo.mark_read(notification_id)
        notification.status = NotificationStatus.READ.value
        return notification

    async def mark_all_read(self, actor: Actor) -> int:
        count = await self._repo.mark_all_read(actor.user_id)
        await self._events.record("MARK_ALL_NOTIFICATIONS_READ", actor.user_id, {"count": count})
        return count


class SubscriptionService:
    """Subscribe to and unsubscribe from projects and tickets."""

    def __init__(
        self,
        repository: ISubscriptionRepository,
        project_repository: IProjectRepository,
        ticket_lookup: TicketLookup,
        events: IEventRecorder,
        policy: Optional[AccessPolicy] = None,
        clock: Clock = utcnow
    ):
        self._repo = repository
        self._projects = project_repository
        self._ticket_lookup = ticket_lookup
        self._events = events
        self._policy = policy or AccessPolicy()
        self._clock = clock

    async def subscribe(
        self,
        actor: Actor,
        project_id: Optional[UUID] = None,
        ticket_id: Optional[UUID] = None
    ) -> Subscription:
        """
        Subscribe the actor to exactly one visible project or ticket.

        Raises:
            ValidationException: neither or both targets given
            ResourceNotFoundException: target does not exist
            ConflictException: already subscribed
        """
        if (project_id is None) == (ticket_id is None):
            raise ValidationException("Provide either project_id or ticket_id")

        if project_id is not None:
            visible_project_id = project_id
        else:
            ticket = await self._ticket_lookup(ticket_id)
            if ticket is None:
                raise ResourceNotFoundException("Ticket", str(ticket_id))
            visible_project_id = ticket.project_id

        project = await self._projects.get_by_id(visible_project_id)
        if project is None:
            raise ResourceNotFoundException("Project", str(visible_project_id))
        self._policy.require_project_access(actor, project)

        if await self._repo.find(actor.user_id, project_id=project_id, ticket_id=ticket_id):
            raise ConflictException("Already subscribed")

        subscription = await self._repo.create(Subscription(
            id=uuid4(),
            user_id=actor.user_id,
            project_id=project_id,
            ticket_id=ticket_id,
            created_at=self._clock(),
        ))
        await self._events.record(
            "SUBSCRIBE", actor.user_id,
            {"project_id": str(project_id) if project_id else None, "ticket_id": str(ticket_id) if ticket_id else None}
        )
        return subscription

    async def unsubscribe(self, actor: Actor, subscription_id: UUID) -> None:
        subscription = await self._repo.get_by_id(subscription_id)
        if subscription is None or subscription.user_id != actor.user_id:
            raise ResourceNotFoundException("Subscription", str(subscription_id))
        await self._repo.delete(subscription_id)
        await self._events.record("UNSUBSCRIBE", actor.user_id, {"subscription_id": str(subscription_id)})

    async def list_subscriptions(self, actor: Actor) -> List[Subscription]:
        return await self._repo.list_for_user(actor.user_id)
