"""
Ticket Domain Entities
======================

The Ticket aggregate owns its status lifecycle. Every status change goes
through one of the transition methods below, which enforce the state
guards; who may call them is decided by the AccessPolicy in the service
layer.

Lifecycle:

    new ──┐
          ├──> resolved ──> reopened ──> resolved ...
    in_progress ─┘
    (any) ──change_status──> (any of the five statuses)
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional
from uuid import UUID

from servicedesk.config import DEFAULT_PRIORITY, OPEN_STATUSES, VALID_STATUSES, TicketStatus
from servicedesk.core import InvalidTransitionException, ValidationException

RESOLVABLE_FROM = frozenset({
    TicketStatus.NEW.value,
    TicketStatus.IN_PROGRESS.value,
    TicketStatus.REOPENED.value,
})


@dataclass
class Attachment:
    """Metadata of an uploaded file; the blob lives in the upload directory."""
    filename: str
    original_name: str
    content_type: Optional[str]
    size: int
    uploaded_by: UUID
    uploaded_at: datetime


@dataclass
class Ticket:
    """A unit of work submitted against a project."""
    id: UUID
    title: str
    description: str
    creator_id: UUID
    project_id: UUID
    type_id: Optional[UUID]
    created_at: datetime
    status: str = TicketStatus.NEW.value
    type_name: Optional[str] = None
    priority: str = DEFAULT_PRIORITY
    assignee_id: Optional[UUID] = None
    resolution: Optional[str] = None
    resolved_by: Optional[UUID] = None
    resolved_at: Optional[datetime] = None
    reopen_reason: Optional[str] = None
    reopened_by: Optional[UUID] = None
    reopened_at: Optional[datetime] = None
    satisfaction_rating: Optional[int] = None
    attachments: List[Attachment] = field(default_factory=list)
    updated_at: Optional[datetime] = None

    @property
    def is_open(self) -> bool:
        return self.status in OPEN_STATUSES

    @property
    def is_resolved(self) -> bool:
        return self.status == TicketStatus.RESOLVED.value

    # ========== Transitions ==========

    def resolve(self, user_id: UUID, resolution: Optional[str], at: datetime) -> None:
        """
        Move to resolved.

        Raises:
            InvalidTransitionException: ticket is already resolved or closed
        """
        if self.status not in RESOLVABLE_FROM:
            raise InvalidTransitionException("ticket", self.status, "resolve")
        self.status = TicketStatus.RESOLVED.value
        self.resolution = resolution
        self.resolved_by = user_id
        self.resolved_at = at
        self.updated_at = at

    def reopen(self, user_id: UUID, reason: Optional[str], at: datetime) -> None:
        """
        Move a resolved ticket back to reopened.

        The previous resolver is kept so they can be told about it.

        Raises:
            InvalidTransitionException: ticket is not resolved
        """
        if not self.is_resolved:
            raise InvalidTransitionException("ticket", self.status, "reopen")
        self.status = TicketStatus.REOPENED.value
        self.reopen_reason = reason
        self.reopened_by = user_id
        self.reopened_at = at
        self.updated_at = at

    def change_status(self, new_status: str, at: datetime) -> str:
        """
        Set any known status. Returns the previous one.

        Raises:
            ValidationException: unknown status
        """
        if new_status not in VALID_STATUSES:
            raise ValidationException(
                f"Invalid status '{new_status}'",
                {"allowed": list(VALID_STATUSES)}
            )
        previous = self.status
        self.status = new_status
        self.updated_at = at
        return previous

    def rate(self, rating: int, at: datetime) -> None:
        """
        Record the creator's satisfaction. Overwrites a previous rating.

        Raises:
            ValidationException: rating outside 1..5
            InvalidTransitionException: ticket is not resolved
        """
        if not 1 <= rating <= 5:
            raise ValidationException("Rating must be between 1 and 5", {"rating": rating})
        if not self.is_resolved:
            raise InvalidTransitionException("ticket", self.status, "rate")
        self.satisfaction_rating = rating
        self.updated_at = at

    def assign(self, user_id: UUID, at: datetime) -> None:
        self.assignee_id = user_id
        self.updated_at = at

    def add_attachment(self, attachment: Attachment) -> None:
        self.attachments.append(attachment)
        self.updated_at = attachment.uploaded_at


@dataclass
class Post:
    """A comment on a ticket. The earliest one not written by the creator is the first response."""
    id: UUID
    ticket_id: UUID
    author_id: UUID
    content: str
    created_at: datetime
    title: str = "Comment"


@dataclass
class Feedback:
    """A satisfaction rating left by a ticket's creator."""
    id: UUID
    ticket_id: UUID
    author_id: UUID
    rating: int
    created_at: datetime
    comment: Optional[str] = None
