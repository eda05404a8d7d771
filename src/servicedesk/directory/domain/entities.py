"""
Directory Domain Entities
=========================

Pure Python entities for users, roles, projects and ticket types.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import FrozenSet, List, Optional
from uuid import UUID


@dataclass
class Role:
    """A named bundle of permissions."""
    id: UUID
    name: str
    permissions: FrozenSet[str] = frozenset()


@dataclass
class User:
    """A person who can sign in."""
    id: UUID
    login: str
    password_hash: str
    role_id: Optional[UUID]
    role_name: Optional[str] = None
    created_at: Optional[datetime] = None


@dataclass
class TicketType:
    """A category of ticket offered by one or more projects."""
    id: UUID
    name: str
    description: Optional[str] = None


@dataclass
class Project:
    """
    A project tickets are filed against.

    Visibility is granted to roles; the manager always sees the project.
    """
    id: UUID
    name: str
    key: str
    manager_id: Optional[UUID] = None
    visible_to_role_ids: List[UUID] = field(default_factory=list)
    ticket_type_ids: List[UUID] = field(default_factory=list)

    def allows_ticket_type(self, ticket_type_id: UUID) -> bool:
        """Check whether tickets of this type may be filed here."""
        return ticket_type_id in self.ticket_type_ids


@dataclass(frozen=True)
class Actor:
    """
    The authenticated caller of an operation.

    Built per request from the token subject and a fresh read of the
    user's role, so permission changes apply immediately.
    """
    user_id: UUID
    role_id: Optional[UUID]
    role_name: Optional[str]
    permissions: FrozenSet[str] = frozenset()

    def has_role(self, *role_names: str) -> bool:
        return self.role_name is not None and self.role_name in {str(r) for r in role_names}
