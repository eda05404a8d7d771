"""
Directory Infrastructure Layer
==============================

- Models: SQLAlchemy ORM models
- Repositories: Data access layer
- Seed: YAML bootstrap of roles, users and projects
"""

from servicedesk.directory.infrastructure.models import (
    ProjectModel,
    RoleModel,
    TicketTypeModel,
    UserModel,
)
from servicedesk.directory.infrastructure.repositories import (
    SQLAlchemyProjectRepository,
    SQLAlchemyRoleRepository,
    SQLAlchemyUserRepository,
)

__all__ = [
    "RoleModel",
    "UserModel",
    "TicketTypeModel",
    "ProjectModel",
    "SQLAlchemyRoleRepository",
    "SQLAlchemyUserRepository",
    "SQLAlchemyProjectRepository",
]
