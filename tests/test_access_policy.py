"""Unit tests for the access rules."""

from uuid import uuid4

import pytest

from servicedesk.config import Permission, RoleName
from servicedesk.core import AuthorizationException
from servicedesk.directory.domain import AccessPolicy, Actor, Project


def make_actor(role: str, *permissions: str, user_id=None, role_id=None) -> Actor:
    return Actor(
        user_id=user_id or uuid4(),
        role_id=role_id or uuid4(),
        role_name=role,
        permissions=frozenset(permissions),
    )


def make_project(**overrides) -> Project:
    defaults = {
        "id": uuid4(),
        "name": "Support",
        "key": "SUP",
        "manager_id": None,
        "visible_to_role_ids": [],
    }
    defaults.update(overrides)
    return Project(**defaults)


@pytest.fixture
def policy() -> AccessPolicy:
    return AccessPolicy()


class TestHasPermission:
    """Rules are evaluated in precedence order."""

    def test_manager_is_always_permitted(self, policy):
        manager = make_actor(RoleName.MANAGER.value)
        assert policy.has_permission(manager, Permission.MANAGE_USERS)
        assert policy.has_permission(manager, "SOMETHING_UNKNOWN")

    def test_specialist_may_change_status_without_the_permission(self, policy):
        specialist = make_actor(RoleName.SPECIALIST.value)
        assert policy.has_permission(specialist, Permission.CHANGE_STATUS)

    def test_specialist_needs_permission_for_other_capabilities(self, policy):
        specialist = make_actor(RoleName.SPECIALIST.value)
        assert not policy.has_permission(specialist, Permission.MANAGE_PROJECTS)

    def test_project_manager_may_manage_ticket_types_of_own_project(self, policy):
        lead = make_actor(RoleName.CLIENT.value)
        project = make_project(manager_id=lead.user_id)
        assert policy.has_permission(lead, Permission.MANAGE_TICKET_TYPES, project)

    def test_project_manager_rule_does_not_extend_to_other_projects(self, policy):
        lead = make_actor(RoleName.CLIENT.value)
        other = make_project(manager_id=uuid4())
        assert not policy.has_permission(lead, Permission.MANAGE_TICKET_TYPES, other)

    def test_role_permissions_intersect_required_set(self, policy):
        analyst = make_actor(RoleName.ANALYST.value, "VIEW_ANALYTICS")
        assert policy.has_permission(analyst, ["GENERATE_REPORTS", "VIEW_ANALYTICS"])
        assert not policy.has_permission(analyst, ["GENERATE_REPORTS"])

    def test_actor_without_role_has_no_permissions(self, policy):
        nobody = Actor(user_id=uuid4(), role_id=None, role_name=None)
        assert not policy.has_permission(nobody, Permission.VIEW_TICKET)

    def test_require_raises_with_required_permissions(self, policy):
        client = make_actor(RoleName.CLIENT.value)
        with pytest.raises(AuthorizationException) as exc_info:
            policy.require(client, Permission.MANAGE_USERS)
        assert exc_info.value.details["required"] == ["MANAGE_USERS"]


class TestProjectVisibility:
    def test_manager_sees_every_project(self, policy):
        assert policy.can_access_project(make_actor(RoleName.MANAGER.value), make_project())

    def test_project_manager_sees_own_project(self, policy):
        lead = make_actor(RoleName.DEVELOPER.value)
        assert policy.can_access_project(lead, make_project(manager_id=lead.user_id))

    def test_visible_role_grants_access(self, policy):
        role_id = uuid4()
        client = make_actor(RoleName.CLIENT.value, role_id=role_id)
        assert policy.can_access_project(client, make_project(visible_to_role_ids=[role_id]))

    def test_other_roles_are_refused(self, policy):
        client = make_actor(RoleName.CLIENT.value)
        project = make_project(visible_to_role_ids=[uuid4()])
        assert not policy.can_access_project(client, project)
        with pytest.raises(AuthorizationException):
            policy.require_project_access(client, project)


def test_require_role_accepts_any_listed_role(policy):
    specialist = make_actor(RoleName.SPECIALIST.value)
    policy.require_role(specialist, RoleName.SPECIALIST, RoleName.MANAGER)
    with pytest.raises(AuthorizationException):
        policy.require_role(make_actor(RoleName.CLIENT.value), RoleName.SPECIALIST, RoleName.MANAGER)
