"""
Directory Application Layer
===========================

Services and DTOs for authentication, users, roles and projects.
"""

from servicedesk.directory.application.services import (
    DirectoryService,
    IProjectRepository,
    IRoleRepository,
    IUserRepository,
    ProjectPurger,
    ProjectService,
)

__all__ = [
    "DirectoryService",
    "ProjectService",
    "ProjectPurger",
    "IUserRepository",
    "IRoleRepository",
    "IProjectRepository",
]
