"""
Directory Domain Layer
======================

Contains:
- Entities: User, Role, Project, TicketType, Actor
- Domain Services: AccessPolicy (pure authorization rules)

This layer has no dependencies on infrastructure - pure Python business logic.
"""

from servicedesk.directory.domain.entities import Actor, Project, Role, TicketType, User
from servicedesk.directory.domain.access import AccessPolicy

__all__ = [
    "Actor",
    "Project",
    "Role",
    "TicketType",
    "User",
    "AccessPolicy",
]
