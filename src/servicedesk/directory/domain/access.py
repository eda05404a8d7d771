"""
Access Policy
=============

Stateless access rules evaluated against an explicit (actor, resource,
capability) triple. No directory lookups happen here: callers pass the
actor and the project they already loaded.

Permission rule precedence (first match wins):
1. Manager role is always permitted
2. Specialist role is permitted for CHANGE_STATUS
3. The project's manager is permitted for MANAGE_TICKET_TYPES on that project
4. Otherwise the role's permission set must intersect the required set
"""

from typing import Iterable, Optional, Union

from servicedesk.config import Permission, RoleName
from servicedesk.core import AuthorizationException
from servicedesk.directory.domain.entities import Actor, Project

RequiredPermissions = Union[str, Permission, Iterable[Union[str, Permission]]]


def _normalize(required: RequiredPermissions) -> set[str]:
    if isinstance(required, str):
        required = [required]
    return {p.value if isinstance(p, Permission) else p for p in required}


class AccessPolicy:
    """Role and project based authorization rules."""

    def has_permission(
        self,
        actor: Actor,
        required: RequiredPermissions,
        project: Optional[Project] = None
    ) -> bool:
        """Evaluate the permission rules in precedence order."""
        needed = _normalize(required)

        if actor.has_role(RoleName.MANAGER.value):
            return True

        if actor.has_role(RoleName.SPECIALIST.value) and Permission.CHANGE_STATUS.value in needed:
            return True

        if (
            Permission.MANAGE_TICKET_TYPES.value in needed
            and project is not None
            and self.is_project_manager(actor, project)
        ):
            return True

        return bool(needed & set(actor.permissions))

    def is_project_manager(self, actor: Actor, project: Project) -> bool:
        return project.manager_id is not None and project.manager_id == actor.user_id

    def can_access_project(self, actor: Actor, project: Project) -> bool:
        """Managers see everything, project managers see their project, others by role."""
        if actor.has_role(RoleName.MANAGER.value):
            return True
        if self.is_project_manager(actor, project):
            return True
        return actor.role_id is not None and actor.role_id in project.visible_to_role_ids

    def require(
        self,
        actor: Actor,
        required: RequiredPermissions,
        project: Optional[Project] = None,
        message: str = "Insufficient permissions"
    ) -> None:
        """Raise AuthorizationException unless the actor holds the permission."""
        if not self.has_permission(actor, required, project):
            raise AuthorizationException(message, {"required": sorted(_normalize(required))})

    def require_project_access(self, actor: Actor, project: Project) -> None:
        if not self.can_access_project(actor, project):
            raise AuthorizationException(
                "No access to this project",
                {"project_id": str(project.id)}
            )

    def require_role(self, actor: Actor, *roles: RoleName, message: str = "Insufficient permissions") -> None:
        if not actor.has_role(*(r.value for r in roles)):
            raise AuthorizationException(message, {"roles": [r.value for r in roles]})
