"""Service-level tests for the ticket lifecycle."""

from uuid import uuid4

import pytest

from servicedesk.core import (
    AuthorizationException,
    InvalidTransitionException,
    ResourceNotFoundException,
    ValidationException,
)
from servicedesk.tickets.application.dto import PostCreateRequest, TicketCreateRequest

from tests.conftest import T0, actor_for, user_id


def ticket_request(world, **overrides) -> TicketCreateRequest:
    defaults = {
        "project_id": world.support.id,
        "type_id": world.incident.id,
        "title": "VPN drops",
        "description": "Disconnects every five minutes",
    }
    defaults.update(overrides)
    return TicketCreateRequest(**defaults)


async def create_ticket(container, world, login="client", **overrides):
    actor = await actor_for(container, world, login)
    return await container.ticket_service.create_ticket(actor, ticket_request(world, **overrides))


class TestCreateTicket:
    async def test_creates_ticket_with_history_and_event(self, container, world):
        ticket = await create_ticket(container, world)

        assert ticket.status == "new"
        assert ticket.priority == "normal"
        assert ticket.type_name == "Incident"
        assert ticket.created_at == T0

        history = await container.history.list_for_ticket(ticket.id)
        assert [h.change for h in history] == ["Ticket created: VPN drops"]
        assert history[0].new_status == "new"

        manager = await actor_for(container, world, "manager")
        events = await container.event_log.list_events(manager, action="CREATE_TICKET")
        assert len(events) == 1
        assert events[0].ip_address == "127.0.0.1"

    async def test_project_manager_is_notified(self, container, world):
        ticket = await create_ticket(container, world)

        inbox = await container.notifications.list_for_recipient(user_id(world, "lead"))
        assert len(inbox) == 1
        assert inbox[0].type == "new_ticket"
        assert inbox[0].ticket_id == ticket.id
        assert "Support" in inbox[0].content

    async def test_type_outside_project_is_rejected_before_persisting(self, container, world):
        with pytest.raises(ValidationException):
            await create_ticket(container, world, type_id=world.foreign_type.id)

        assert await container.tickets.list() == []

    async def test_invisible_project_is_rejected(self, container, world):
        with pytest.raises(AuthorizationException):
            await create_ticket(container, world, project_id=world.internal.id, type_id=world.foreign_type.id)

    async def test_unknown_project_is_not_found(self, container, world):
        with pytest.raises(ResourceNotFoundException):
            await create_ticket(container, world, project_id=uuid4())


class TestStatusChanges:
    async def test_client_cannot_change_status(self, container, world):
        ticket = await create_ticket(container, world)
        client = await actor_for(container, world, "client")
        with pytest.raises(AuthorizationException):
            await container.ticket_service.change_status(client, ticket.id, "in_progress")

    async def test_specialist_changes_status(self, container, world):
        ticket = await create_ticket(container, world)
        specialist = await actor_for(container, world, "specialist")

        updated = await container.ticket_service.change_status(specialist, ticket.id, "in_progress")

        assert updated.status == "in_progress"
        history = await container.history.list_for_ticket(ticket.id)
        assert history[0].change == "Status changed to: in_progress"

    async def test_unknown_status_is_rejected(self, container, world):
        ticket = await create_ticket(container, world)
        manager = await actor_for(container, world, "manager")
        with pytest.raises(ValidationException):
            await container.ticket_service.change_status(manager, ticket.id, "archived")


class TestResolveReopenRate:
    async def test_creator_resolves_and_reopens(self, container, world, clock):
        ticket = await create_ticket(container, world)
        client = await actor_for(container, world, "client")

        clock.advance(minutes=15)
        resolved = await container.ticket_service.resolve(client, ticket.id, "Works again")
        assert resolved.status == "resolved"
        assert resolved.resolved_at == clock()
        assert await container.notifications.list_for_recipient(client.user_id) == []

        reopened = await container.ticket_service.reopen(client, ticket.id, "Broke again")
        assert reopened.status == "reopened"
        assert reopened.resolved_at == resolved.resolved_at

    async def test_other_client_cannot_resolve(self, container, world):
        ticket = await create_ticket(container, world)
        other = await actor_for(container, world, "client2")
        with pytest.raises(AuthorizationException):
            await container.ticket_service.resolve(other, ticket.id, None)

    async def test_reopen_of_unresolved_ticket_is_invalid(self, container, world):
        ticket = await create_ticket(container, world)
        specialist = await actor_for(container, world, "specialist")
        with pytest.raises(InvalidTransitionException):
            await container.ticket_service.reopen(specialist, ticket.id, "why")

    async def test_resolver_is_notified_on_reopen(self, container, world):
        ticket = await create_ticket(container, world)
        specialist = await actor_for(container, world, "specialist")
        client = await actor_for(container, world, "client")

        await container.ticket_service.resolve(specialist, ticket.id, "fixed")
        await container.ticket_service.reopen(client, ticket.id, "not fixed")

        inbox = await container.notifications.list_for_recipient(specialist.user_id)
        assert [n.type for n in inbox] == ["ticket_reopened"]
        assert "not fixed" in inbox[0].content

    async def test_rating_by_non_creator_is_rejected(self, container, world):
        ticket = await create_ticket(container, world)
        specialist = await actor_for(container, world, "specialist")
        await container.ticket_service.resolve(specialist, ticket.id, "fixed")

        with pytest.raises(AuthorizationException):
            await container.ticket_service.rate(specialist, ticket.id, 5)

    async def test_creator_rates_resolved_ticket(self, container, world):
        ticket = await create_ticket(container, world)
        specialist = await actor_for(container, world, "specialist")
        client = await actor_for(container, world, "client")
        await container.ticket_service.resolve(specialist, ticket.id, "fixed")

        await container.ticket_service.rate(client, ticket.id, 3)
        rated = await container.ticket_service.rate(client, ticket.id, 5, "Thanks")

        assert rated.satisfaction_rating == 5
        feedback = await container.ticket_service.list_feedback(client, ticket.id)
        assert sorted(f.rating for f in feedback) == [3, 5]
        inbox = await container.notifications.list_for_recipient(specialist.user_id)
        assert {n.type for n in inbox} == {"satisfaction_rating"}


class TestVisibilityAndPosts:
    async def test_client_lists_visible_and_own_tickets(self, container, world):
        await create_ticket(container, world)
        specialist = await actor_for(container, world, "specialist")
        await container.ticket_service.create_ticket(
            specialist,
            ticket_request(world, project_id=world.internal.id, type_id=world.foreign_type.id),
        )
        client2 = await actor_for(container, world, "client2")

        visible = await container.ticket_service.list_tickets(client2)
        assert [t.project_id for t in visible] == [world.support.id]

        manager = await actor_for(container, world, "manager")
        assert len(await container.ticket_service.list_tickets(manager)) == 2

    async def test_comment_fans_out_to_subscribers(self, container, world):
        ticket = await create_ticket(container, world)
        client = await actor_for(container, world, "client")
        specialist = await actor_for(container, world, "specialist")
        await container.subscription_service.subscribe(client, ticket_id=ticket.id)

        post = await container.ticket_service.add_post(
            specialist, ticket.id, PostCreateRequest(content="Looking into it")
        )

        assert post.author_id == specialist.user_id
        inbox = await container.notifications.list_for_recipient(client.user_id)
        assert [n.type for n in inbox] == ["new_comment"]
        assert "Looking into it" in inbox[0].content

    async def test_assignment_notifies_assignee(self, container, world):
        ticket = await create_ticket(container, world)
        manager = await actor_for(container, world, "manager")

        assigned = await container.ticket_service.assign(manager, ticket.id, user_id(world, "specialist"))

        assert assigned.assignee_id == user_id(world, "specialist")
        inbox = await container.notifications.list_for_recipient(user_id(world, "specialist"))
        assert [n.type for n in inbox] == ["ticket_assigned"]
        history = await container.history.list_for_ticket(ticket.id)
        assert history[0].change == "Assigned to: specialist"

    async def test_client_cannot_assign(self, container, world):
        ticket = await create_ticket(container, world)
        client = await actor_for(container, world, "client")
        with pytest.raises(AuthorizationException):
            await container.ticket_service.assign(client, ticket.id, client.user_id)


class TestAttachments:
    async def test_upload_stores_file_and_metadata(self, container, world, storage):
        ticket = await create_ticket(container, world)
        client = await actor_for(container, world, "client")

        attachment = await container.ticket_service.add_attachment(
            client, ticket.id, "log.txt", "text/plain", b"line 1\nline 2\n"
        )

        assert attachment.size == 14
        assert attachment.filename.endswith(".txt")
        assert storage.path_for(attachment.filename).read_bytes() == b"line 1\nline 2\n"
        reloaded = await container.tickets.get_by_id(ticket.id)
        assert [a.original_name for a in reloaded.attachments] == ["log.txt"]

    async def test_empty_upload_is_rejected(self, container, world):
        ticket = await create_ticket(container, world)
        client = await actor_for(container, world, "client")
        with pytest.raises(ValidationException):
            await container.ticket_service.add_attachment(client, ticket.id, "empty.txt", None, b"")
