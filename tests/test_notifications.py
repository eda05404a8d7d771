"""Recipient resolution, fanout and inbox tests."""

from uuid import uuid4

import pytest

from servicedesk.config import NotificationType
from servicedesk.core import ConflictException, ResourceNotFoundException, ValidationException
from servicedesk.notifications.domain import NotificationEvent, Scope, resolve_recipients
from servicedesk.tickets.application.dto import TicketCreateRequest

from tests.conftest import actor_for, user_id


class TestResolveRecipients:
    def test_each_user_appears_once_at_first_scope(self):
        a, b, c = uuid4(), uuid4(), uuid4()
        result = resolve_recipients(None, direct=[a], ticket_subscribers=[a, b], project_subscribers=[b, c])
        assert result == [(a, Scope.DIRECT), (b, Scope.TICKET), (c, Scope.PROJECT)]

    def test_actor_and_exclusions_are_dropped(self):
        actor, a, b = uuid4(), uuid4(), uuid4()
        result = resolve_recipients(actor, direct=[actor, a], project_subscribers=[b], exclude=[b])
        assert result == [(a, Scope.DIRECT)]

    def test_missing_ids_are_ignored(self):
        a = uuid4()
        assert resolve_recipients(None, direct=[None, a]) == [(a, Scope.DIRECT)]

    def test_comment_template_differs_by_scope(self):
        event = NotificationEvent(
            type=NotificationType.NEW_COMMENT,
            actor_id=None,
            context={"title": "T", "excerpt": "hello"},
        )
        assert event.render(Scope.TICKET).tag == NotificationType.NEW_COMMENT
        assert event.render(Scope.PROJECT).tag == NotificationType.PROJECT_TICKET_COMMENT


async def create_ticket(container, world):
    client = await actor_for(container, world, "client")
    return await container.ticket_service.create_ticket(client, TicketCreateRequest(
        project_id=world.support.id,
        type_id=world.question.id,
        title="Password reset",
        description="Cannot reset my password",
    ))


class TestFanout:
    async def test_subscriber_of_ticket_and_project_is_notified_once(self, container, world):
        ticket = await create_ticket(container, world)
        watcher = await actor_for(container, world, "client2")
        await container.subscription_service.subscribe(watcher, project_id=world.support.id)
        await container.subscription_service.subscribe(watcher, ticket_id=ticket.id)

        specialist = await actor_for(container, world, "specialist")
        await container.ticket_service.change_status(specialist, ticket.id, "in_progress")

        inbox = await container.notifications.list_for_recipient(watcher.user_id)
        assert len(inbox) == 1
        assert inbox[0].type == "ticket_status_change"
        assert "in_progress" in inbox[0].content

    async def test_project_subscriber_gets_project_comment_tag(self, container, world):
        ticket = await create_ticket(container, world)
        watcher = await actor_for(container, world, "client2")
        await container.subscription_service.subscribe(watcher, project_id=world.support.id)

        event = NotificationEvent(
            type=NotificationType.NEW_COMMENT,
            actor_id=user_id(world, "specialist"),
            context={"title": ticket.title, "excerpt": "update"},
            ticket_id=ticket.id,
            project_id=world.support.id,
            notify_ticket_subscribers=True,
            notify_project_subscribers=True,
        )
        created = await container.fanout.publish(event)

        assert [(n.recipient_id, n.type) for n in created] == [(watcher.user_id, "project_ticket_comment")]

    async def test_actor_is_never_notified(self, container, world):
        ticket = await create_ticket(container, world)
        specialist = await actor_for(container, world, "specialist")
        await container.subscription_service.subscribe(specialist, ticket_id=ticket.id)

        await container.ticket_service.change_status(specialist, ticket.id, "in_progress")

        assert await container.notifications.list_for_recipient(specialist.user_id) == []


class TestSubscriptions:
    async def test_duplicate_subscription_conflicts(self, container, world):
        client = await actor_for(container, world, "client")
        await container.subscription_service.subscribe(client, project_id=world.support.id)
        with pytest.raises(ConflictException):
            await container.subscription_service.subscribe(client, project_id=world.support.id)

    async def test_exactly_one_target_is_required(self, container, world):
        client = await actor_for(container, world, "client")
        with pytest.raises(ValidationException):
            await container.subscription_service.subscribe(client)
        with pytest.raises(ValidationException):
            await container.subscription_service.subscribe(client, project_id=world.support.id, ticket_id=uuid4())

    async def test_unknown_ticket_is_not_found(self, container, world):
        client = await actor_for(container, world, "client")
        with pytest.raises(ResourceNotFoundException):
            await container.subscription_service.subscribe(client, ticket_id=uuid4())

    async def test_unsubscribe_only_own(self, container, world):
        client = await actor_for(container, world, "client")
        other = await actor_for(container, world, "client2")
        subscription = await container.subscription_service.subscribe(client, project_id=world.support.id)

        with pytest.raises(ResourceNotFoundException):
            await container.subscription_service.unsubscribe(other, subscription.id)

        await container.subscription_service.unsubscribe(client, subscription.id)
        assert await container.subscription_service.list_subscriptions(client) == []


class TestInbox:
    async def test_mark_read_and_mark_all_read(self, container, world):
        await create_ticket(container, world)
        await create_ticket(container, world)
        lead = await actor_for(container, world, "lead")

        inbox = await container.notification_service.list_notifications(lead)
        assert len(inbox) == 2

        first = await container.notification_service.mark_read(lead, inbox[0].id)
        assert first.status == "read"
        assert len(await container.notification_service.list_notifications(lead, unread_only=True)) == 1

        assert await container.notification_service.mark_all_read(lead) == 1
        assert await container.notification_service.list_notifications(lead, unread_only=True) == []

    async def test_marking_someone_elses_notification_is_not_found(self, container, world):
        await create_ticket(container, world)
        lead = await actor_for(container, world, "lead")
        client = await actor_for(container, world, "client")
        notification = (await container.notification_service.list_notifications(lead))[0]

        with pytest.raises(ResourceNotFoundException):
            await container.notification_service.mark_read(client, notification.id)
