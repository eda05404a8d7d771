"""
Service Container
=================

Composition root: wires repositories and services for one database
session. Controllers get a container per request through FastAPI's
Depends; the scheduler job builds one per scan.
"""

from functools import cached_property
from typing import List, Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from servicedesk.analytics.application import AnalyticsService
from servicedesk.config import settings
from servicedesk.core import Clock, utcnow
from servicedesk.directory.application import DirectoryService, ProjectService
from servicedesk.directory.domain import AccessPolicy
from servicedesk.directory.infrastructure import (
    SQLAlchemyProjectRepository,
    SQLAlchemyRoleRepository,
    SQLAlchemyUserRepository,
)
from servicedesk.history.application import EventLogService, HistoryService
from servicedesk.history.infrastructure import SQLAlchemyEventLogRepository, SQLAlchemyHistoryRepository
from servicedesk.notifications.application import NotificationFanout, NotificationService, SubscriptionService
from servicedesk.notifications.infrastructure import (
    SQLAlchemyNotificationRepository,
    SQLAlchemySubscriptionRepository,
)
from servicedesk.shared.infrastructure.hooks import PostCommitRunner
from servicedesk.sla.application import ISLAConfigProvider, SLAEvaluator, SLAService
from servicedesk.sla.infrastructure import SQLAlchemyBreachRepository
from servicedesk.suggestions.application import SuggestionService
from servicedesk.suggestions.infrastructure import SQLAlchemySuggestionRepository
from servicedesk.tickets.application import IAttachmentStorage, TicketService
from servicedesk.tickets.infrastructure import (
    LocalAttachmentStorage,
    SQLAlchemyFeedbackRepository,
    SQLAlchemyPostRepository,
    SQLAlchemyTicketRepository,
)


class ServiceContainer:
    """Per-session service graph."""

    def __init__(
        self,
        session: AsyncSession,
        sla_config: ISLAConfigProvider,
        clock: Clock = utcnow,
        client_ip: Optional[str] = None,
        storage: Optional[IAttachmentStorage] = None
    ):
        self.session = session
        self.sla_config = sla_config
        self.clock = clock
        self.client_ip = client_ip
        self.policy = AccessPolicy()
        self.hooks = PostCommitRunner(session)
        self._storage = storage

    # ========== Repositories ==========

    @cached_property
    def roles(self) -> SQLAlchemyRoleRepository:
        return SQLAlchemyRoleRepository(self.session)

    @cached_property
    def users(self) -> SQLAlchemyUserRepository:
        return SQLAlchemyUserRepository(self.session)

    @cached_property
    def projects(self) -> SQLAlchemyProjectRepository:
        return SQLAlchemyProjectRepository(self.session)

    @cached_property
    def tickets(self) -> SQLAlchemyTicketRepository:
        return SQLAlchemyTicketRepository(self.session)

    @cached_property
    def posts(self) -> SQLAlchemyPostRepository:
        return SQLAlchemyPostRepository(self.session)

    @cached_property
    def feedback(self) -> SQLAlchemyFeedbackRepository:
        return SQLAlchemyFeedbackRepository(self.session)

    @cached_property
    def breaches(self) -> SQLAlchemyBreachRepository:
        return SQLAlchemyBreachRepository(self.session)

    @cached_property
    def notifications(self) -> SQLAlchemyNotificationRepository:
        return SQLAlchemyNotificationRepository(self.session)

    @cached_property
    def subscriptions(self) -> SQLAlchemySubscriptionRepository:
        return SQLAlchemySubscriptionRepository(self.session)

    @cached_property
    def suggestions(self) -> SQLAlchemySuggestionRepository:
        return SQLAlchemySuggestionRepository(self.session)

    @cached_property
    def storage(self) -> IAttachmentStorage:
        return self._storage or LocalAttachmentStorage(settings.upload_dir)

    # ========== Services ==========

    @cached_property
    def event_log(self) -> EventLogService:
        return EventLogService(SQLAlchemyEventLogRepository(self.session), self.client_ip, self.clock)

    @cached_property
    def history(self) -> HistoryService:
        return HistoryService(SQLAlchemyHistoryRepository(self.session), self.clock)

    @cached_property
    def fanout(self) -> NotificationFanout:
        return NotificationFanout(self.notifications, self.subscriptions, self.clock)

    @cached_property
    def directory_service(self) -> DirectoryService:
        return DirectoryService(self.users, self.roles, self.projects, self.event_log, self.policy)

    @cached_property
    def project_service(self) -> ProjectService:
        return ProjectService(
            self.projects, self.users, self.roles, self.event_log,
            purger=self.purge_project, policy=self.policy
        )

    @cached_property
    def sla_evaluator(self) -> SLAEvaluator:
        return SLAEvaluator(
            self.tickets, self.posts, self.breaches, self.users,
            self.history, self.fanout, self.sla_config,
            hooks=self.hooks, clock=self.clock
        )

    @cached_property
    def sla_service(self) -> SLAService:
        return SLAService(self.posts, self.breaches, self.sla_config, self.clock)

    @cached_property
    def ticket_service(self) -> TicketService:
        return TicketService(
            self.tickets, self.posts, self.feedback, self.projects, self.users,
            self.history, self.event_log, self.fanout, self.sla_evaluator, self.hooks,
            storage=self.storage, policy=self.policy, clock=self.clock
        )

    @cached_property
    def notification_service(self) -> NotificationService:
        return NotificationService(self.notifications, self.event_log)

    @cached_property
    def subscription_service(self) -> SubscriptionService:
        return SubscriptionService(
            self.subscriptions, self.projects, self.tickets.get_by_id,
            self.event_log, self.policy, self.clock
        )

    @cached_property
    def suggestion_service(self) -> SuggestionService:
        return SuggestionService(
            self.suggestions, self.users, self.fanout, self.event_log,
            self.hooks, self.policy, self.clock
        )

    @cached_property
    def analytics_service(self) -> AnalyticsService:
        return AnalyticsService(self.tickets, self.feedback, self.breaches, self.policy, self.clock)

    async def purge_project(self, project_id: UUID) -> List[UUID]:
        """Remove everything hanging off a project before the project row goes."""
        ticket_ids = await self.ticket_service.purge_project(project_id)
        await self.breaches.delete_for_tickets(ticket_ids)
        await self.subscriptions.delete_for_scope(project_id=project_id, ticket_ids=ticket_ids)
        return ticket_ids
