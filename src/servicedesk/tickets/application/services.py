"""
Tickets Application Services
============================

TicketService runs every ticket lifecycle action the same way:

1. Load the ticket and check the actor against the AccessPolicy
2. Apply the transition on the aggregate (state guards live there)
3. Save the ticket and append its history entry
4. Commit, then run the post-commit hooks (SLA evaluation, notification
   fanout, event log), each in its own transaction

Failures in step 4 are logged and never undo steps 1-3.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional
from uuid import UUID, uuid4

from servicedesk.config import (
    DEFAULT_PRIORITY,
    RESOLVER_ROLES,
    NotificationType,
    Permission,
    RoleName,
    TicketStatus,
    settings,
)
from servicedesk.core import (
    AuthorizationException,
    Clock,
    ResourceNotFoundException,
    ValidationException,
    utcnow,
)
from servicedesk.directory.application.services import IProjectRepository, IUserRepository
from servicedesk.directory.domain import AccessPolicy, Actor, Project
from servicedesk.history.application.services import HistoryService, IEventRecorder
from servicedesk.history.domain import ChangeHistoryEntry
from servicedesk.notifications.application.services import NotificationFanout
from servicedesk.notifications.domain import NotificationEvent, excerpt
from servicedesk.shared.infrastructure.hooks import PostCommitRunner
from servicedesk.shared.infrastructure.logging import get_logger
from servicedesk.tickets.application.dto import PostCreateRequest, TicketCreateRequest
from servicedesk.tickets.domain import Attachment, Feedback, Post, Ticket

logger = get_logger(__name__)


# ========== Repository Interfaces ==========

class ITicketRepository(ABC):
    """Interface for ticket data access."""

    @abstractmethod
    async def get_by_id(self, ticket_id: UUID) -> Optional[Ticket]:
        """Get ticket by ID, with its type name."""

    @abstractmethod
    async def create(self, ticket: Ticket) -> Ticket:
        """Persist a new ticket."""

    @abstractmethod
    async def update(self, ticket: Ticket) -> Ticket:
        """Persist changes to a ticket."""

    @abstractmethod
    async def list(
        self,
        project_ids: Optional[List[UUID]] = None,
        statuses: Optional[List[str]] = None,
        creator_id: Optional[UUID] = None
    ) -> List[Ticket]:
        """List tickets newest first. None means no filter on that field."""

    @abstractmethod
    async def ids_for_project(self, project_id: UUID) -> List[UUID]:
        """IDs of every ticket filed against a project."""

    @abstractmethod
    async def delete_many(self, ticket_ids: List[UUID]) -> None:
        """Delete tickets."""


class IPostRepository(ABC):
    """Interface for post (comment) data access."""

    @abstractmethod
    async def create(self, post: Post) -> Post:
        """Persist a post."""

    @abstractmethod
    async def list_for_ticket(self, ticket_id: UUID) -> List[Post]:
        """Posts of a ticket, oldest first."""

    @abstractmethod
    async def first_response(self, ticket_id: UUID, creator_id: UUID) -> Optional[Post]:
        """Earliest post on the ticket not written by its creator."""

    @abstractmethod
    async def delete_for_tickets(self, ticket_ids: List[UUID]) -> None:
        """Delete posts of deleted tickets."""


class IFeedbackRepository(ABC):
    """Interface for satisfaction feedback data access."""

    @abstractmethod
    async def create(self, feedback: Feedback) -> Feedback:
        """Persist feedback."""

    @abstractmethod
    async def list_for_ticket(self, ticket_id: UUID) -> List[Feedback]:
        """Feedback of a ticket, newest first."""

    @abstractmethod
    async def rating_distribution(self) -> Dict[int, int]:
        """Number of feedback records per rating value."""

    @abstractmethod
    async def delete_for_tickets(self, ticket_ids: List[UUID]) -> None:
        """Delete feedback of deleted tickets."""


class IAttachmentStorage(ABC):
    """Blob storage for attachments."""

    @abstractmethod
    async def save(self, original_name: str, data: bytes) -> str:
        """Store the blob and return its generated file name."""

    @abstractmethod
    async def delete(self, filename: str) -> None:
        """Remove a stored blob; missing files are ignored."""


class ITicketEvaluator(ABC):
    """Checks a ticket against its SLA policy after a lifecycle action."""

    @abstractmethod
    async def evaluate(self, ticket: Ticket) -> Any:
        """Detect and record new breaches for the ticket."""


# ========== Application Services ==========

class TicketService:
    """
    Ticket lifecycle, posts, attachments and satisfaction feedback.
    """

    def __init__(
        self,
        ticket_repository: ITicketRepository,
        post_repository: IPostRepository,
        feedback_repository: IFeedbackRepository,
        project_repository: IProjectRepository,
        user_repository: IUserRepository,
        history: HistoryService,
        events: IEventRecorder,
        fanout: NotificationFanout,
        evaluator: ITicketEvaluator,
        hooks: PostCommitRunner,
        storage: Optional[IAttachmentStorage] = None,
        policy: Optional[AccessPolicy] = None,
        clock: Clock = utcnow
    ):
        self._tickets = ticket_repository
        self._posts = post_repository
        self._feedback = feedback_repository
        self._projects = project_repository
        self._users = user_repository
        self._history = history
        self._events = events
        self._fanout = fanout
        self._evaluator = evaluator
        self._hooks = hooks
        self._storage = storage
        self._policy = policy or AccessPolicy()
        self._clock = clock

    # ---------- Queries ----------

    async def get_ticket(self, actor: Actor, ticket_id: UUID) -> Ticket:
        ticket, _ = await self._load_visible(actor, ticket_id)
        return ticket

    async def list_tickets(
        self,
        actor: Actor,
        project_id: Optional[UUID] = None,
        status: Optional[str] = None
    ) -> List[Ticket]:
        """Tickets of every project the actor can see, plus their own tickets."""
        statuses = [status] if status else None

        if project_id is not None:
            project = await self._require_project(project_id)
            self._policy.require_project_access(actor, project)
            return await self._tickets.list(project_ids=[project_id], statuses=statuses)

        if actor.has_role(RoleName.MANAGER.value):
            return await self._tickets.list(statuses=statuses)

        projects = await self._projects.list()
        visible = [p.id for p in projects if self._policy.can_access_project(actor, p)]
        tickets = await self._tickets.list(project_ids=visible, statuses=statuses)

        own = await self._tickets.list(creator_id=actor.user_id, statuses=statuses)
        seen = {t.id for t in tickets}
        tickets.extend(t for t in own if t.id not in seen)
        tickets.sort(key=lambda t: t.created_at, reverse=True)
        return tickets

    async def list_history(self, actor: Actor, ticket_id: UUID) -> List[ChangeHistoryEntry]:
        await self._load_visible(actor, ticket_id)
        return await self._history.list_for_ticket(ticket_id)

    async def list_posts(self, actor: Actor, ticket_id: UUID) -> List[Post]:
        await self._load_visible(actor, ticket_id)
        return await self._posts.list_for_ticket(ticket_id)

    async def list_feedback(self, actor: Actor, ticket_id: UUID) -> List[Feedback]:
        await self._load_visible(actor, ticket_id)
        return await self._feedback.list_for_ticket(ticket_id)

    # ---------- Lifecycle ----------

    async def create_ticket(self, actor: Actor, request: TicketCreateRequest) -> Ticket:
        """
        File a new ticket.

        Raises:
            ResourceNotFoundException: project does not exist
            AuthorizationException: project not visible to the actor
            ValidationException: ticket type not offered by the project
        """
        project = await self._require_project(request.project_id)
        self._policy.require_project_access(actor, project)
        if not project.allows_ticket_type(request.type_id):
            raise ValidationException(
                "Ticket type is not allowed in this project",
                {"project_id": str(project.id), "type_id": str(request.type_id)}
            )

        now = self._clock()
        ticket = await self._tickets.create(Ticket(
            id=uuid4(),
            title=request.title,
            description=request.description,
            creator_id=actor.user_id,
            project_id=project.id,
            type_id=request.type_id,
            priority=request.priority or DEFAULT_PRIORITY,
            created_at=now,
            updated_at=now,
        ))
        await self._history.record(
            ticket.id, actor.user_id, f"Ticket created: {ticket.title}",
            new_status=TicketStatus.NEW.value, at=now
        )

        event = NotificationEvent(
            type=NotificationType.NEW_TICKET,
            actor_id=actor.user_id,
            context={"title": ticket.title, "project_name": project.name},
            direct_recipients=(project.manager_id,) if project.manager_id else (),
            ticket_id=ticket.id,
            project_id=project.id,
            notify_project_subscribers=True,
        )
        await self._hooks.commit_then_run(
            ("notification_fanout", lambda: self._fanout.publish(event)),
            ("event_log", lambda: self._events.record(
                "CREATE_TICKET", actor.user_id, {"ticket_id": str(ticket.id), "title": ticket.title}
            )),
        )
        logger.info("Ticket created", extra={"ticket_id": str(ticket.id), "project_id": str(project.id)})
        return ticket

    async def change_status(self, actor: Actor, ticket_id: UUID, status: str) -> Ticket:
        """
        Set any of the known statuses. Specialists and Managers only.

        Raises:
            AuthorizationException: actor may not change statuses
            ValidationException: unknown status
        """
        ticket = await self._require_ticket(ticket_id)
        project = await self._projects.get_by_id(ticket.project_id)
        self._policy.require(
            actor, Permission.CHANGE_STATUS, project,
            message="Insufficient permissions to change ticket status"
        )

        now = self._clock()
        previous = ticket.change_status(status, now)
        ticket = await self._tickets.update(ticket)
        await self._history.record(
            ticket.id, actor.user_id, f"Status changed to: {status}",
            new_status=status, at=now
        )

        event = NotificationEvent(
            type=NotificationType.TICKET_STATUS_CHANGE,
            actor_id=actor.user_id,
            context={"title": ticket.title, "status": status},
            ticket_id=ticket.id,
            project_id=ticket.project_id,
            notify_ticket_subscribers=True,
            notify_project_subscribers=True,
        )
        await self._hooks.commit_then_run(
            ("sla_evaluation", lambda: self._evaluator.evaluate(ticket)),
            ("notification_fanout", lambda: self._fanout.publish(event)),
            ("event_log", lambda: self._events.record(
                "UPDATE_TICKET_STATUS", actor.user_id,
                {"ticket_id": str(ticket.id), "from": previous, "to": status}
            )),
        )
        return ticket

    async def resolve(self, actor: Actor, ticket_id: UUID, resolution: Optional[str]) -> Ticket:
        """
        Resolve a ticket. Its creator, Specialists and Managers may do so.

        Raises:
            AuthorizationException: actor is neither creator nor resolver role
            InvalidTransitionException: ticket is already resolved or closed
        """
        ticket = await self._require_ticket(ticket_id)
        self._require_creator_or_resolver(actor, ticket, "resolve")

        now = self._clock()
        ticket.resolve(actor.user_id, resolution, now)
        ticket = await self._tickets.update(ticket)
        await self._history.record(
            ticket.id, actor.user_id, resolution or "Ticket resolved",
            new_status=TicketStatus.RESOLVED.value, at=now
        )

        event = NotificationEvent(
            type=NotificationType.TICKET_RESOLVED,
            actor_id=actor.user_id,
            context={"title": ticket.title},
            direct_recipients=(ticket.creator_id,),
            ticket_id=ticket.id,
        )
        await self._hooks.commit_then_run(
            ("sla_evaluation", lambda: self._evaluator.evaluate(ticket)),
            ("notification_fanout", lambda: self._fanout.publish(event)),
            ("event_log", lambda: self._events.record("RESOLVE_TICKET", actor.user_id, {"ticket_id": str(ticket.id)})),
        )
        return ticket

    async def reopen(self, actor: Actor, ticket_id: UUID, reason: Optional[str]) -> Ticket:
        """
        Reopen a resolved ticket.

        Raises:
            AuthorizationException: actor is neither creator nor resolver role
            InvalidTransitionException: ticket is not resolved
        """
        ticket = await self._require_ticket(ticket_id)
        self._require_creator_or_resolver(actor, ticket, "reopen")

        now = self._clock()
        ticket.reopen(actor.user_id, reason, now)
        ticket = await self._tickets.update(ticket)
        await self._history.record(
            ticket.id, actor.user_id, reason or "Ticket reopened",
            new_status=TicketStatus.REOPENED.value, at=now
        )

        event = NotificationEvent(
            type=NotificationType.TICKET_REOPENED,
            actor_id=actor.user_id,
            context={"title": ticket.title, "reason": reason or "-"},
            direct_recipients=(ticket.resolved_by,) if ticket.resolved_by else (),
            ticket_id=ticket.id,
        )
        await self._hooks.commit_then_run(
            ("notification_fanout", lambda: self._fanout.publish(event)),
            ("event_log", lambda: self._events.record("REOPEN_TICKET", actor.user_id, {"ticket_id": str(ticket.id)})),
        )
        return ticket

    async def rate(self, actor: Actor, ticket_id: UUID, rating: int, comment: Optional[str] = None) -> Ticket:
        """
        Record the creator's satisfaction with a resolved ticket.

        A later rating replaces the ticket's value; every rating is kept
        as its own Feedback record.

        Raises:
            AuthorizationException: actor is not the creator
            InvalidTransitionException: ticket is not resolved
            ValidationException: rating outside 1..5
        """
        ticket = await self._require_ticket(ticket_id)
        if ticket.creator_id != actor.user_id:
            raise AuthorizationException(
                "Only the ticket creator can rate it",
                {"ticket_id": str(ticket_id)}
            )

        now = self._clock()
        ticket.rate(rating, now)
        await self._feedback.create(Feedback(
            id=uuid4(),
            ticket_id=ticket.id,
            author_id=actor.user_id,
            rating=rating,
            comment=comment,
            created_at=now,
        ))
        ticket = await self._tickets.update(ticket)

        event = NotificationEvent(
            type=NotificationType.SATISFACTION_RATING,
            actor_id=actor.user_id,
            context={"title": ticket.title, "rating": rating},
            direct_recipients=(ticket.resolved_by,) if ticket.resolved_by else (),
            ticket_id=ticket.id,
        )
        await self._hooks.commit_then_run(
            ("notification_fanout", lambda: self._fanout.publish(event)),
            ("event_log", lambda: self._events.record(
                "ADD_SATISFACTION_RATING", actor.user_id, {"ticket_id": str(ticket.id), "rating": rating}
            )),
        )
        return ticket

    async def assign(self, actor: Actor, ticket_id: UUID, assignee_id: UUID) -> Ticket:
        """Assign the ticket to a user. Specialists and Managers only."""
        ticket = await self._require_ticket(ticket_id)
        self._policy.require_role(actor, *RESOLVER_ROLES, message="Insufficient permissions to assign tickets")

        assignee = await self._users.get_by_id(assignee_id)
        if assignee is None:
            raise ValidationException("Assignee not found", {"assignee_id": str(assignee_id)})

        now = self._clock()
        ticket.assign(assignee.id, now)
        ticket = await self._tickets.update(ticket)
        await self._history.record(ticket.id, actor.user_id, f"Assigned to: {assignee.login}", at=now)

        event = NotificationEvent(
            type=NotificationType.TICKET_ASSIGNED,
            actor_id=actor.user_id,
            context={"title": ticket.title},
            direct_recipients=(assignee.id,),
            ticket_id=ticket.id,
        )
        await self._hooks.commit_then_run(
            ("notification_fanout", lambda: self._fanout.publish(event)),
            ("event_log", lambda: self._events.record(
                "ASSIGN_TICKET", actor.user_id, {"ticket_id": str(ticket.id), "assignee_id": str(assignee.id)}
            )),
        )
        return ticket

    # ---------- Posts ----------

    async def add_post(self, actor: Actor, ticket_id: UUID, request: PostCreateRequest) -> Post:
        """
        Comment on a ticket.

        The first comment by someone other than the creator is the ticket's
        first response, so posting re-runs the SLA evaluation.
        """
        ticket, _ = await self._load_visible(actor, ticket_id)

        post = await self._posts.create(Post(
            id=uuid4(),
            ticket_id=ticket.id,
            author_id=actor.user_id,
            title=request.title,
            content=request.content,
            created_at=self._clock(),
        ))

        event = NotificationEvent(
            type=NotificationType.NEW_COMMENT,
            actor_id=actor.user_id,
            context={"title": ticket.title, "excerpt": excerpt(post.content)},
            ticket_id=ticket.id,
            project_id=ticket.project_id,
            notify_ticket_subscribers=True,
            notify_project_subscribers=True,
        )
        await self._hooks.commit_then_run(
            ("sla_evaluation", lambda: self._evaluator.evaluate(ticket)),
            ("notification_fanout", lambda: self._fanout.publish(event)),
            ("event_log", lambda: self._events.record("ADD_POST", actor.user_id, {"ticket_id": str(ticket.id)})),
        )
        return post

    # ---------- Attachments ----------

    async def add_attachment(
        self,
        actor: Actor,
        ticket_id: UUID,
        original_name: str,
        content_type: Optional[str],
        data: bytes
    ) -> Attachment:
        """
        Store an uploaded file and attach its metadata to the ticket.

        Raises:
            ValidationException: empty file, too large, or no storage configured
        """
        ticket, _ = await self._load_visible(actor, ticket_id)
        if self._storage is None:
            raise ValidationException("Attachment storage is not configured")
        if not data:
            raise ValidationException("Uploaded file is empty")
        if len(data) > settings.max_upload_bytes:
            raise ValidationException(
                "Uploaded file is too large",
                {"size": len(data), "max_bytes": settings.max_upload_bytes}
            )

        filename = await self._storage.save(original_name, data)
        now = self._clock()
        attachment = Attachment(
            filename=filename,
            original_name=original_name,
            content_type=content_type,
            size=len(data),
            uploaded_by=actor.user_id,
            uploaded_at=now,
        )
        ticket.add_attachment(attachment)
        await self._tickets.update(ticket)
        await self._history.record(ticket.id, actor.user_id, f"Attachment added: {original_name}", at=now)

        await self._hooks.commit_then_run(
            ("event_log", lambda: self._events.record(
                "ADD_ATTACHMENT", actor.user_id, {"ticket_id": str(ticket.id), "filename": filename}
            )),
        )
        return attachment

    # ---------- Project cascade ----------

    async def purge_project(self, project_id: UUID) -> List[UUID]:
        """Delete every ticket of a project with its posts, feedback, history and files."""
        ticket_ids = await self._tickets.ids_for_project(project_id)
        if not ticket_ids:
            return []

        if self._storage is not None:
            for ticket_id in ticket_ids:
                ticket = await self._tickets.get_by_id(ticket_id)
                for attachment in ticket.attachments if ticket else []:
                    await self._storage.delete(attachment.filename)

        await self._posts.delete_for_tickets(ticket_ids)
        await self._feedback.delete_for_tickets(ticket_ids)
        await self._history.purge(ticket_ids)
        await self._tickets.delete_many(ticket_ids)
        logger.info("Project tickets purged", extra={"project_id": str(project_id), "tickets": len(ticket_ids)})
        return ticket_ids

    # ---------- Helpers ----------

    async def _require_ticket(self, ticket_id: UUID) -> Ticket:
        ticket = await self._tickets.get_by_id(ticket_id)
        if ticket is None:
            raise ResourceNotFoundException("Ticket", str(ticket_id))
        return ticket

    async def _require_project(self, project_id: UUID) -> Project:
        project = await self._projects.get_by_id(project_id)
        if project is None:
            raise ResourceNotFoundException("Project", str(project_id))
        return project

    async def _load_visible(self, actor: Actor, ticket_id: UUID):
        """Load a ticket its creator or anyone who can see its project may read."""
        ticket = await self._require_ticket(ticket_id)
        project = await self._require_project(ticket.project_id)
        if ticket.creator_id != actor.user_id:
            self._policy.require_project_access(actor, project)
        return ticket, project

    def _require_creator_or_resolver(self, actor: Actor, ticket: Ticket, action: str) -> None:
        if ticket.creator_id == actor.user_id:
            return
        if actor.has_role(*(r.value for r in RESOLVER_ROLES)):
            return
        raise AuthorizationException(
            f"Insufficient permissions to {action} this ticket",
            {"ticket_id": str(ticket.id)}
        )
