"""
Notification Events and Recipient Resolution
============================================

A NotificationEvent describes one thing that happened. Templates are
looked up per (event type, scope) so the same event can read differently
for a ticket subscriber and a project subscriber.

Scopes are walked in a fixed order (direct, ticket, project). A user is
kept at the first scope they appear in, so nobody receives two
notifications for the same event.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, FrozenSet, Iterable, List, Optional, Tuple
from uuid import UUID

from servicedesk.config import NotificationType


class Scope(str, Enum):
    """Where a recipient came from."""
    DIRECT = "direct"
    TICKET = "ticket"
    PROJECT = "project"


SCOPE_ORDER = (Scope.DIRECT, Scope.TICKET, Scope.PROJECT)

EXCERPT_LENGTH = 50


@dataclass(frozen=True)
class Template:
    """Content template and the type tag written on the notification."""
    tag: NotificationType
    text: str


_T = NotificationType

# (event type, scope) -> template
TEMPLATES: Dict[Tuple[NotificationType, Scope], Template] = {
    (_T.NEW_TICKET, Scope.DIRECT): Template(_T.NEW_TICKET, 'New ticket "{title}" was created in project {project_name}'),
    (_T.NEW_TICKET, Scope.PROJECT): Template(_T.NEW_TICKET, 'New ticket "{title}" was created in project {project_name}'),

    (_T.TICKET_STATUS_CHANGE, Scope.TICKET): Template(_T.TICKET_STATUS_CHANGE, 'Status of ticket "{title}" changed to: {status}'),
    (_T.TICKET_STATUS_CHANGE, Scope.PROJECT): Template(_T.TICKET_STATUS_CHANGE, 'Status of ticket "{title}" changed to: {status}'),

    (_T.NEW_COMMENT, Scope.TICKET): Template(_T.NEW_COMMENT, 'New comment on ticket "{title}": {excerpt}'),
    (_T.NEW_COMMENT, Scope.PROJECT): Template(_T.PROJECT_TICKET_COMMENT, 'New comment on ticket "{title}" in project: {excerpt}'),

    (_T.TICKET_RESOLVED, Scope.DIRECT): Template(_T.TICKET_RESOLVED, 'Your ticket "{title}" has been resolved'),
    (_T.TICKET_REOPENED, Scope.DIRECT): Template(_T.TICKET_REOPENED, 'Ticket "{title}" was reopened. Reason: {reason}'),
    (_T.TICKET_ASSIGNED, Scope.DIRECT): Template(_T.TICKET_ASSIGNED, 'Ticket assigned to you: {title}'),
    (_T.SLA_BREACH, Scope.DIRECT): Template(_T.SLA_BREACH, 'SLA exceeded for ticket "{title}" ({minutes} minutes)'),
    (_T.SATISFACTION_RATING, Scope.DIRECT): Template(
        _T.SATISFACTION_RATING, 'Received rating {rating}/5 for resolved ticket "{title}"'
    ),

    (_T.SUGGESTION_NEW, Scope.DIRECT): Template(_T.SUGGESTION_NEW, 'New suggestion requires analysis: {excerpt}'),
    (_T.SUGGESTION_ASSIGNED, Scope.DIRECT): Template(_T.SUGGESTION_ASSIGNED, 'A suggestion was assigned to you: {excerpt}'),
    (_T.SUGGESTION_INFO_NEEDED, Scope.DIRECT): Template(
        _T.SUGGESTION_INFO_NEEDED, 'Your suggestion needs more information: {info}'
    ),
    (_T.SUGGESTION_TEST_FAILED, Scope.DIRECT): Template(
        _T.SUGGESTION_TEST_FAILED, 'Suggestion "{excerpt}" needs changes after testing'
    ),
    (_T.SUGGESTION_DEPLOYED, Scope.DIRECT): Template(_T.SUGGESTION_DEPLOYED, 'Your suggestion has been deployed: {excerpt}'),
}


def excerpt(text: str, length: int = EXCERPT_LENGTH) -> str:
    """Shorten text for inclusion in a notification."""
    if len(text) <= length:
        return text
    return text[:length] + "..."


@dataclass(frozen=True)
class NotificationEvent:
    """
    One lifecycle event to fan out.

    Args:
        type: Event kind; selects the templates
        actor_id: Who caused it; never notified. None for system events
        context: Template variables
        direct_recipients: Explicitly addressed users (creator, resolver, ...)
        ticket_id: Related ticket; its subscribers are reached when notify_ticket_subscribers
        project_id: Related project; its subscribers are reached when notify_project_subscribers
        exclude: Users to skip in every scope
    """
    type: NotificationType
    actor_id: Optional[UUID]
    context: Dict[str, Any] = field(default_factory=dict)
    direct_recipients: Tuple[UUID, ...] = ()
    ticket_id: Optional[UUID] = None
    project_id: Optional[UUID] = None
    notify_ticket_subscribers: bool = False
    notify_project_subscribers: bool = False
    exclude: FrozenSet[UUID] = frozenset()

    def render(self, scope: Scope) -> Template:
        """
        Resolve the template for a scope and fill it in.

        Raises:
            KeyError: no template for this (type, scope) or a missing variable
        """
        template = TEMPLATES[(self.type, scope)]
        return Template(template.tag, template.text.format(**self.context))


def resolve_recipients(
    actor_id: Optional[UUID],
    direct: Iterable[UUID] = (),
    ticket_subscribers: Iterable[UUID] = (),
    project_subscribers: Iterable[UUID] = (),
    exclude: Iterable[UUID] = ()
) -> List[Tuple[UUID, Scope]]:
    """
    Merge recipient sources into one deduplicated, ordered list.

    The result equals (direct | ticket | project) minus the actor and the
    exclusions, with each user tagged by the first scope they appear in.
    """
    skipped = set(exclude)
    if actor_id is not None:
        skipped.add(actor_id)

    seen = set()
    recipients: List[Tuple[UUID, Scope]] = []
    sources = dict(zip(SCOPE_ORDER, (direct, ticket_subscribers, project_subscribers)))
    for scope in SCOPE_ORDER:
        for user_id in sources[scope]:
            if user_id is None or user_id in skipped or user_id in seen:
                continue
            seen.add(user_id)
            recipients.append((user_id, scope))
    return recipients
