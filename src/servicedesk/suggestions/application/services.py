"""
Suggestions Application Services
================================
"""

from abc import ABC, abstractmethod
from typing import List, Optional
from uuid import UUID, uuid4

from servicedesk.config import NotificationType, Permission, RoleName, SuggestionStatus
from servicedesk.core import (
    AuthorizationException,
    Clock,
    ResourceNotFoundException,
    utcnow,
)
from servicedesk.directory.application.services import IUserRepository
from servicedesk.directory.domain import AccessPolicy, Actor
from servicedesk.history.application.services import IEventRecorder
from servicedesk.notifications.application.services import NotificationFanout
from servicedesk.notifications.domain import NotificationEvent, excerpt
from servicedesk.shared.infrastructure.hooks import PostCommitRunner
from servicedesk.shared.infrastructure.logging import get_logger
from servicedesk.suggestions.domain import Suggestion

logger = get_logger(__name__)


class ISuggestionRepository(ABC):
    """Interface for suggestion data access."""

    @abstractmethod
    async def get_by_id(self, suggestion_id: UUID) -> Optional[Suggestion]:
        """Get suggestion by ID."""

    @abstractmethod
    async def list(self, author_id: Optional[UUID] = None) -> List[Suggestion]:
        """List suggestions newest first, optionally by author."""

    @abstractmethod
    async def create(self, suggestion: Suggestion) -> Suggestion:
        """Persist a suggestion."""

    @abstractmethod
    async def update(self, suggestion: Suggestion) -> Suggestion:
        """Persist changes to a suggestion."""


class SuggestionService:
    """
    Suggestion workflow. Anyone may submit; managing requires MANAGE_SUGGESTIONS.
    """

    def __init__(
        self,
        repository: ISuggestionRepository,
        user_repository: IUserRepository,
        fanout: NotificationFanout,
        events: IEventRecorder,
        hooks: PostCommitRunner,
        policy: Optional[AccessPolicy] = None,
        clock: Clock = utcnow
    ):
        self._repo = repository
        self._users = user_repository
        self._fanout = fanout
        self._events = events
        self._hooks = hooks
        self._policy = policy or AccessPolicy()
        self._clock = clock

    async def create(self, actor: Actor, content: str) -> Suggestion:
        """Submit a suggestion; every Developer is told about it."""
        now = self._clock()
        suggestion = await self._repo.create(Suggestion(
            id=uuid4(),
            content=content,
            author_id=actor.user_id,
            created_at=now,
            updated_at=now,
        ))

        developers = await self._users.list_ids_by_roles([RoleName.DEVELOPER.value])
        event = NotificationEvent(
            type=NotificationType.SUGGESTION_NEW,
            actor_id=actor.user_id,
            context={"excerpt": excerpt(content)},
            direct_recipients=tuple(developers),
        )
        await self._hooks.commit_then_run(
            ("notification_fanout", lambda: self._fanout.publish(event)),
            ("event_log", lambda: self._events.record(
                "CREATE_SUGGESTION", actor.user_id, {"suggestion_id": str(suggestion.id)}
            )),
        )
        return suggestion

    async def list_suggestions(self, actor: Actor) -> List[Suggestion]:
        """Suggestion managers see all; everyone else sees their own."""
        if self._policy.has_permission(actor, Permission.MANAGE_SUGGESTIONS):
            return await self._repo.list()
        return await self._repo.list(author_id=actor.user_id)

    async def get(self, actor: Actor, suggestion_id: UUID) -> Suggestion:
        suggestion = await self._require(suggestion_id)
        if suggestion.author_id != actor.user_id and not self._policy.has_permission(
            actor, Permission.MANAGE_SUGGESTIONS
        ):
            raise AuthorizationException("No access to this suggestion")
        return suggestion

    async def assign(self, actor: Actor, suggestion_id: UUID, developer_id: UUID) -> Suggestion:
        self._policy.require(actor, Permission.MANAGE_SUGGESTIONS)
        suggestion = await self._require(suggestion_id)
        developer = await self._users.get_by_id(developer_id)
        if developer is None:
            raise ResourceNotFoundException("Developer", str(developer_id))

        suggestion.assign(developer.id, self._clock())
        suggestion = await self._repo.update(suggestion)

        event = NotificationEvent(
            type=NotificationType.SUGGESTION_ASSIGNED,
            actor_id=actor.user_id,
            context={"excerpt": excerpt(suggestion.content)},
            direct_recipients=(developer.id,),
        )
        await self._hooks.commit_then_run(
            ("notification_fanout", lambda: self._fanout.publish(event)),
            ("event_log", lambda: self._events.record(
                "ASSIGN_DEVELOPER", actor.user_id,
                {"suggestion_id": str(suggestion.id), "developer_id": str(developer.id)}
            )),
        )
        return suggestion

    async def change_status(
        self,
        actor: Actor,
        suggestion_id: UUID,
        status: str,
        additional_info: Optional[str] = None
    ) -> Suggestion:
        """Set a status; asking for more information notifies the author."""
        self._policy.require(actor, Permission.MANAGE_SUGGESTIONS)
        suggestion = await self._require(suggestion_id)

        suggestion.change_status(status, additional_info, self._clock())
        suggestion = await self._repo.update(suggestion)

        hooks = []
        if status == SuggestionStatus.NEEDS_INFO.value and additional_info:
            event = NotificationEvent(
                type=NotificationType.SUGGESTION_INFO_NEEDED,
                actor_id=actor.user_id,
                context={"info": additional_info},
                direct_recipients=(suggestion.author_id,),
            )
            hooks.append(("notification_fanout", lambda: self._fanout.publish(event)))
        hooks.append(("event_log", lambda: self._events.record(
            "UPDATE_SUGGESTION_STATUS", actor.user_id,
            {"suggestion_id": str(suggestion.id), "status": status}
        )))
        await self._hooks.commit_then_run(*hooks)
        return suggestion

    async def record_test(
        self,
        actor: Actor,
        suggestion_id: UUID,
        passed: bool,
        notes: Optional[str] = None
    ) -> Suggestion:
        """A passing test readies deployment; a failing one goes back to the developer."""
        self._policy.require(actor, Permission.MANAGE_SUGGESTIONS)
        suggestion = await self._require(suggestion_id)

        suggestion.record_test(passed, notes, self._clock())
        suggestion = await self._repo.update(suggestion)

        hooks = []
        if not passed and suggestion.developer_id is not None:
            event = NotificationEvent(
                type=NotificationType.SUGGESTION_TEST_FAILED,
                actor_id=actor.user_id,
                context={"excerpt": excerpt(suggestion.content)},
                direct_recipients=(suggestion.developer_id,),
            )
            hooks.append(("notification_fanout", lambda: self._fanout.publish(event)))
        hooks.append(("event_log", lambda: self._events.record(
            "TEST_SUGGESTION", actor.user_id, {"suggestion_id": str(suggestion.id), "passed": passed}
        )))
        await self._hooks.commit_then_run(*hooks)
        return suggestion

    async def deploy(self, actor: Actor, suggestion_id: UUID) -> Suggestion:
        """
        Raises:
            InvalidTransitionException: not ready for deployment
        """
        self._policy.require(actor, Permission.MANAGE_SUGGESTIONS)
        suggestion = await self._require(suggestion_id)

        suggestion.deploy(self._clock())
        suggestion = await self._repo.update(suggestion)

        event = NotificationEvent(
            type=NotificationType.SUGGESTION_DEPLOYED,
            actor_id=actor.user_id,
            context={"excerpt": excerpt(suggestion.content)},
            direct_recipients=(suggestion.author_id,),
        )
        await self._hooks.commit_then_run(
            ("notification_fanout", lambda: self._fanout.publish(event)),
            ("event_log", lambda: self._events.record(
                "DEPLOY_SUGGESTION", actor.user_id, {"suggestion_id": str(suggestion.id)}
            )),
        )
        return suggestion

    async def _require(self, suggestion_id: UUID) -> Suggestion:
        suggestion = await self._repo.get_by_id(suggestion_id)
        if suggestion is None:
            raise ResourceNotFoundException("Suggestion", str(suggestion_id))
        return suggestion
