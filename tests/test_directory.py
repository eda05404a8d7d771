"""Directory tests: authentication, users, projects and ticket types."""

import pytest

from servicedesk.core import (
    AuthenticationException,
    AuthorizationException,
    ConflictException,
    ResourceNotFoundException,
    ValidationException,
)
from servicedesk.directory.application.dto import (
    ProfileUpdateRequest,
    ProjectCreateRequest,
    ProjectUpdateRequest,
    TicketTypeCreateRequest,
    UserCreateRequest,
)
from servicedesk.directory.infrastructure.seed import seed_directory
from servicedesk.shared.infrastructure.security import decode_access_token
from servicedesk.tickets.application.dto import TicketCreateRequest

from tests.conftest import PASSWORD, actor_for, user_id


class TestAuthentication:
    async def test_login_issues_token_for_the_user(self, container, world):
        user, token = await container.directory_service.authenticate("client", PASSWORD)

        payload = decode_access_token(token)
        assert payload.user_id == user.id
        assert payload.role == "Client"

    async def test_wrong_password_is_rejected(self, container, world):
        with pytest.raises(AuthenticationException):
            await container.directory_service.authenticate("client", "nope")

    async def test_unknown_login_is_rejected(self, container, world):
        with pytest.raises(AuthenticationException):
            await container.directory_service.authenticate("ghost", PASSWORD)

    def test_tampered_token_is_rejected(self):
        with pytest.raises(AuthenticationException):
            decode_access_token("not-a-token")

    async def test_actor_carries_role_permissions(self, container, world):
        actor = await actor_for(container, world, "analyst")
        assert actor.role_name == "Analyst"
        assert "VIEW_ANALYTICS" in actor.permissions


class TestUsers:
    async def test_manager_creates_user(self, container, world):
        manager = await actor_for(container, world, "manager")
        user = await container.directory_service.create_user(manager, UserCreateRequest(
            login="newbie", password="pw", role_id=world.roles["Client"].id
        ))
        assert user.role_name == "Client"

        _, token = await container.directory_service.authenticate("newbie", "pw")
        assert decode_access_token(token).user_id == user.id

    async def test_duplicate_login_conflicts(self, container, world):
        manager = await actor_for(container, world, "manager")
        with pytest.raises(ConflictException):
            await container.directory_service.create_user(manager, UserCreateRequest(
                login="client", password="pw", role_id=world.roles["Client"].id
            ))

    async def test_non_manager_cannot_create_user(self, container, world):
        specialist = await actor_for(container, world, "specialist")
        with pytest.raises(AuthorizationException):
            await container.directory_service.create_user(specialist, UserCreateRequest(
                login="newbie", password="pw", role_id=world.roles["Client"].id
            ))

    async def test_manager_cannot_delete_self(self, container, world):
        manager = await actor_for(container, world, "manager")
        with pytest.raises(ValidationException):
            await container.directory_service.delete_user(manager, manager.user_id)

    async def test_deleting_project_manager_clears_the_reference(self, container, world):
        manager = await actor_for(container, world, "manager")
        await container.directory_service.delete_user(manager, user_id(world, "lead"))

        project = await container.projects.get_by_id(world.support.id)
        assert project.manager_id is None

    async def test_project_manager_may_list_users(self, container, world):
        lead = await actor_for(container, world, "lead")
        users = await container.directory_service.list_users(lead)
        assert len(users) == len(world.users)

        client = await actor_for(container, world, "client")
        with pytest.raises(AuthorizationException):
            await container.directory_service.list_users(client)


class TestProfile:
    async def test_new_password_requires_current_one(self, container, world):
        client = await actor_for(container, world, "client")
        with pytest.raises(ValidationException):
            await container.directory_service.update_profile(client, ProfileUpdateRequest(new_password="fresh"))
        with pytest.raises(AuthenticationException):
            await container.directory_service.update_profile(
                client, ProfileUpdateRequest(current_password="wrong", new_password="fresh")
            )

    async def test_password_change(self, container, world):
        client = await actor_for(container, world, "client")
        await container.directory_service.update_profile(
            client, ProfileUpdateRequest(current_password=PASSWORD, new_password="fresh")
        )
        await container.directory_service.authenticate("client", "fresh")

    async def test_login_change_conflicts_with_taken_login(self, container, world):
        client = await actor_for(container, world, "client")
        with pytest.raises(ConflictException):
            await container.directory_service.update_profile(client, ProfileUpdateRequest(login="client2"))


class TestProjects:
    def create_request(self, world, key="NEW"):
        return ProjectCreateRequest(
            name="New project",
            key=key,
            visible_to_role_ids=[world.roles["Client"].id],
            manager_id=user_id(world, "lead"),
        )

    async def test_create_requires_manage_projects(self, container, world):
        specialist = await actor_for(container, world, "specialist")
        with pytest.raises(AuthorizationException):
            await container.project_service.create_project(specialist, self.create_request(world))

        manager = await actor_for(container, world, "manager")
        project = await container.project_service.create_project(manager, self.create_request(world))
        assert project.manager_id == user_id(world, "lead")

    async def test_duplicate_key_conflicts(self, container, world):
        manager = await actor_for(container, world, "manager")
        with pytest.raises(ConflictException):
            await container.project_service.create_project(manager, self.create_request(world, key="SUP"))

    async def test_project_manager_edits_but_cannot_reassign(self, container, world):
        lead = await actor_for(container, world, "lead")
        project = await container.project_service.update_project(lead, world.support.id, ProjectUpdateRequest(
            name="Customer Support",
            key="SUP",
            manager_id=user_id(world, "specialist"),
        ))
        assert project.name == "Customer Support"
        assert project.manager_id == user_id(world, "lead")

    async def test_listing_is_filtered_by_visibility(self, container, world):
        client = await actor_for(container, world, "client")
        projects = await container.project_service.list_projects(client)
        assert [p.key for p in projects] == ["SUP"]

        with pytest.raises(AuthorizationException):
            await container.project_service.get_project(client, world.internal.id)

    async def test_delete_removes_tickets_breaches_and_subscriptions(self, container, world, clock):
        client = await actor_for(container, world, "client")
        ticket = await container.ticket_service.create_ticket(client, TicketCreateRequest(
            project_id=world.support.id,
            type_id=world.incident.id,
            title="VPN down",
            description="VPN does not connect",
            priority="wysoki",
        ))
        await container.subscription_service.subscribe(client, project_id=world.support.id)
        await container.subscription_service.subscribe(client, ticket_id=ticket.id)
        clock.advance(minutes=90)
        assert await container.sla_evaluator.scan_open_tickets() == 1

        manager = await actor_for(container, world, "manager")
        await container.project_service.delete_project(manager, world.support.id)

        assert await container.projects.get_by_id(world.support.id) is None
        assert await container.tickets.get_by_id(ticket.id) is None
        assert await container.breaches.count(ticket_ids=[ticket.id]) == 0
        assert await container.subscription_service.list_subscriptions(client) == []
        assert await container.history.list_for_ticket(ticket.id) == []

    async def test_only_managers_delete(self, container, world):
        lead = await actor_for(container, world, "lead")
        with pytest.raises(AuthorizationException):
            await container.project_service.delete_project(lead, world.support.id)


class TestTicketTypes:
    async def test_project_manager_adds_and_removes_types(self, container, world):
        lead = await actor_for(container, world, "lead")
        ticket_type = await container.project_service.add_ticket_type(
            lead, world.support.id, TicketTypeCreateRequest(name="Feature")
        )
        names = [t.name for t in await container.project_service.list_ticket_types(lead, world.support.id)]
        assert "Feature" in names

        await container.project_service.remove_ticket_type(lead, world.support.id, ticket_type.id)
        names = [t.name for t in await container.project_service.list_ticket_types(lead, world.support.id)]
        assert "Feature" not in names

    async def test_other_users_cannot_manage_types(self, container, world):
        specialist = await actor_for(container, world, "specialist")
        with pytest.raises(AuthorizationException):
            await container.project_service.add_ticket_type(
                specialist, world.support.id, TicketTypeCreateRequest(name="Feature")
            )

    async def test_removing_type_of_another_project_is_not_found(self, container, world):
        manager = await actor_for(container, world, "manager")
        with pytest.raises(ResourceNotFoundException):
            await container.project_service.remove_ticket_type(manager, world.support.id, world.foreign_type.id)


class TestSeed:
    SEED = {
        "roles": [{"name": "Manager", "permissions": ["MANAGE_SYSTEM"]}, {"name": "Client"}],
        "users": [{"login": "admin", "password": "admin", "role": "Manager"}],
        "projects": [{
            "name": "Support",
            "key": "SUP",
            "manager": "admin",
            "visible_to": ["Client"],
            "ticket_types": [{"name": "Bug"}],
        }],
    }

    async def test_seed_is_idempotent(self, session):
        first = await seed_directory(session, self.SEED)
        second = await seed_directory(session, self.SEED)

        assert first == {"roles": 2, "users": 1, "projects": 1}
        assert second == {"roles": 0, "users": 0, "projects": 0}
