"""Analytics overview and report tests."""

from datetime import timedelta
from uuid import uuid4

import pytest
import pytest_asyncio

from servicedesk.core import AuthorizationException, ValidationException
from servicedesk.directory.domain import Role, User
from servicedesk.tickets.application.dto import TicketCreateRequest

from tests.conftest import T0, actor_for


async def open_ticket(container, world, type_id, title="Printer jam"):
    client = await actor_for(container, world, "client")
    return await container.ticket_service.create_ticket(client, TicketCreateRequest(
        project_id=world.support.id,
        type_id=type_id,
        title=title,
        description="Details",
        priority="wysoki",
    ))


@pytest_asyncio.fixture
async def activity(container, world, clock):
    """One resolved and rated incident, one breached incident, one question."""
    client = await actor_for(container, world, "client")

    resolved = await open_ticket(container, world, world.incident.id, "Resolved incident")
    clock.advance(minutes=30)
    await container.ticket_service.resolve(client, resolved.id, "Fixed")
    await container.ticket_service.rate(client, resolved.id, 4)

    clock.advance(days=1)
    breached = await open_ticket(container, world, world.incident.id, "Breached incident")
    question = await open_ticket(container, world, world.question.id, "Question")
    clock.advance(minutes=90)
    await container.sla_evaluator.scan_open_tickets()
    return resolved, breached, question


class TestOverview:
    async def test_counts(self, container, world, activity):
        analyst = await actor_for(container, world, "analyst")
        overview = await container.analytics_service.overview(analyst)

        assert overview["total_tickets"] == 3
        assert overview["resolved_tickets"] == 1
        assert overview["tickets_by_status"] == {"resolved": 1, "new": 2}
        assert overview["average_resolution_hours"] == pytest.approx(0.5)
        assert overview["sla_breaches"] == 1
        assert overview["satisfaction_distribution"] == {4: 1}
        assert [d["count"] for d in overview["tickets_over_time"]] == [1, 2]

    async def test_clients_are_refused(self, container, world):
        client = await actor_for(container, world, "client")
        with pytest.raises(AuthorizationException):
            await container.analytics_service.overview(client)

    async def test_access_follows_the_view_analytics_permission(self, container, world):
        auditor_role = await container.roles.save(
            Role(id=uuid4(), name="Auditor", permissions=frozenset({"VIEW_ANALYTICS"}))
        )
        auditor = await container.users.create(User(
            id=uuid4(), login="auditor", password_hash="x", role_id=auditor_role.id, role_name="Auditor"
        ))
        actor = await container.directory_service.load_actor(auditor.id)
        assert (await container.analytics_service.overview(actor))["total_tickets"] == 0

        manager = await actor_for(container, world, "manager")
        await container.analytics_service.overview(manager)

        specialist = await actor_for(container, world, "specialist")
        with pytest.raises(AuthorizationException):
            await container.analytics_service.overview(specialist)


class TestReport:
    async def test_filters_by_period_and_type(self, container, world, activity):
        resolved, breached, question = activity
        manager = await actor_for(container, world, "manager")

        report = await container.analytics_service.report(
            manager, start_date=T0 + timedelta(hours=12), type_id=world.incident.id
        )

        assert [t.id for t in report["tickets"]] == [breached.id]
        assert report["statistics"]["total_tickets"] == 1
        assert report["statistics"]["sla_breaches"] == 1
        assert report["statistics"]["by_priority"] == {"wysoki": 1}

    async def test_breaches_outside_selection_are_not_counted(self, container, world, activity):
        manager = await actor_for(container, world, "manager")
        report = await container.analytics_service.report(manager, end_date=T0 + timedelta(hours=1))

        assert report["statistics"]["total_tickets"] == 1
        assert report["statistics"]["sla_breaches"] == 0

    async def test_reversed_period_is_rejected(self, container, world):
        analyst = await actor_for(container, world, "analyst")
        with pytest.raises(ValidationException):
            await container.analytics_service.report(analyst, start_date=T0, end_date=T0 - timedelta(days=1))
