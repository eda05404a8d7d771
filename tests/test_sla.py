"""SLA calculator unit tests and breach detection scenarios."""

from datetime import timedelta
from pathlib import Path

import pytest
from pydantic import ValidationError

from servicedesk.config import BreachKind, SLAState
from servicedesk.container import ServiceContainer
from servicedesk.core import ConfigurationException
from servicedesk.sla.domain import SLACalculator, SLAConfig, SLAPolicy, describe_breach
from servicedesk.sla.infrastructure import SLAConfigManager
from servicedesk.tickets.application.dto import PostCreateRequest, TicketCreateRequest

from tests.conftest import T0, actor_for, user_id


class TestSLACalculator:
    def test_deadline_adds_budget(self):
        assert SLACalculator.calculate_deadline(T0, 90) == T0 + timedelta(minutes=90)

    def test_status_on_track_before_deadline(self):
        deadline = T0 + timedelta(minutes=60)
        assert SLACalculator.calculate_status(deadline, T0 + timedelta(minutes=59)) == SLAState.ON_TRACK

    def test_status_breached_after_deadline(self):
        deadline = T0 + timedelta(minutes=60)
        assert SLACalculator.calculate_status(deadline, T0 + timedelta(minutes=61)) == SLAState.BREACHED

    def test_status_met_uses_met_time_not_now(self):
        deadline = T0 + timedelta(minutes=60)
        met_at = T0 + timedelta(minutes=30)
        assert SLACalculator.calculate_status(deadline, T0 + timedelta(days=3), met_at) == SLAState.MET

    def test_exceeded_is_strict(self):
        assert not SLACalculator.is_exceeded(60, 60)
        assert SLACalculator.is_exceeded(60.01, 60)

    def test_remaining_minutes_goes_negative(self):
        deadline = T0 + timedelta(minutes=60)
        assert SLACalculator.remaining_minutes(deadline, T0 + timedelta(minutes=90)) == -30
        assert SLACalculator.remaining_minutes(deadline, T0, met_at=T0) is None

    def test_breach_description(self):
        text = describe_breach(BreachKind.CURRENT_RESOLUTION, 90.4, 60)
        assert text == "SLA breach: Current resolution time exceeded (90 minutes vs 60 minutes target)"


class TestSLAConfig:
    def test_lookup_by_type_and_priority(self):
        config = SLAConfig(policies=[SLAPolicy(ticket_type="Bug", priority="high", response_minutes=5, resolution_minutes=10)])
        assert config.get_policy("Bug", "high").resolution_minutes == 10
        assert config.get_policy("Bug", "low") is None
        assert config.get_policy(None, "high") is None

    def test_missing_priority_uses_default(self):
        config = SLAConfig(policies=[SLAPolicy(ticket_type="Bug", response_minutes=5, resolution_minutes=10)])
        assert config.get_policy("Bug", None) is not None

    def test_duplicate_keys_are_rejected(self):
        policy = {"ticket_type": "Bug", "priority": "high", "response_minutes": 1, "resolution_minutes": 2}
        with pytest.raises(ValidationError):
            SLAConfig(policies=[policy, policy])

    def test_manager_loads_yaml_and_keeps_last_good_config(self, tmp_path: Path):
        path = tmp_path / "sla.yaml"
        path.write_text(
            "policies:\n"
            "  - {ticket_type: Bug, priority: high, response_minutes: 5, resolution_minutes: 10}\n"
        )
        manager = SLAConfigManager()
        manager.load(path)
        assert len(manager.get_config().policies) == 1

        path.write_text("policies: [{ticket_type: Bug}]\n")
        assert manager.reload() is False
        assert len(manager.get_config().policies) == 1

    def test_invalid_file_fails_initial_load(self, tmp_path: Path):
        path = tmp_path / "sla.yaml"
        path.write_text("policies: [{ticket_type: Bug, response_minutes: -1, resolution_minutes: 1}]\n")
        with pytest.raises(ConfigurationException):
            SLAConfigManager().load(path)

    def test_missing_file_means_no_policies(self, tmp_path: Path):
        manager = SLAConfigManager()
        manager.load(tmp_path / "absent.yaml")
        assert manager.get_config().policies == []


async def open_ticket(container, world, priority="wysoki", type_id=None):
    client = await actor_for(container, world, "client")
    return await container.ticket_service.create_ticket(client, TicketCreateRequest(
        project_id=world.support.id,
        type_id=type_id or world.incident.id,
        title="Payroll export fails",
        description="Export button returns 500",
        priority=priority,
    ))


class TestBreachDetection:
    async def test_scan_records_current_resolution_breach_once(self, container, world, clock):
        ticket = await open_ticket(container, world)

        clock.advance(minutes=90)
        assert await container.sla_evaluator.scan_open_tickets() == 1

        clock.advance(minutes=30)
        assert await container.sla_evaluator.scan_open_tickets() == 0

        breaches = await container.breaches.list_for_ticket(ticket.id)
        assert len(breaches) == 1
        assert breaches[0].kind == BreachKind.CURRENT_RESOLUTION.value
        assert breaches[0].reference_at == T0

        history = [h.change for h in await container.history.list_for_ticket(ticket.id)]
        assert history.count("SLA breach: Current resolution time exceeded (90 minutes vs 60 minutes target)") == 1

    async def test_breach_notifies_notifying_roles(self, container, world, clock):
        await open_ticket(container, world)
        clock.advance(minutes=90)
        await container.sla_evaluator.scan_open_tickets()

        for login in ("specialist", "lead", "manager"):
            inbox = await container.notifications.list_for_recipient(user_id(world, login))
            assert [n.type for n in inbox if n.type == "sla_breach"] == ["sla_breach"], login
        assert await container.notifications.list_for_recipient(user_id(world, "analyst")) == []

    async def test_ticket_within_budget_is_not_breached(self, container, world, clock):
        await open_ticket(container, world)
        clock.advance(minutes=60)
        assert await container.sla_evaluator.scan_open_tickets() == 0

    async def test_no_policy_means_no_breach(self, container, world, clock):
        ticket = await open_ticket(container, world, type_id=world.question.id)
        clock.advance(days=30)

        assert await container.sla_evaluator.scan_open_tickets() == 0
        assert await container.breaches.list_for_ticket(ticket.id) == []

    async def test_late_first_response_is_a_response_breach(self, container, world, clock):
        ticket = await open_ticket(container, world)
        specialist = await actor_for(container, world, "specialist")

        clock.advance(minutes=45)
        await container.ticket_service.add_post(specialist, ticket.id, PostCreateRequest(content="On it"))

        breaches = await container.breaches.list_for_ticket(ticket.id)
        assert [b.kind for b in breaches] == [BreachKind.RESPONSE.value]
        assert breaches[0].attributed_to == specialist.user_id
        assert breaches[0].reference_at == T0 + timedelta(minutes=45)

    async def test_creator_comment_is_not_a_response(self, container, world, clock):
        ticket = await open_ticket(container, world)
        client = await actor_for(container, world, "client")

        clock.advance(minutes=45)
        await container.ticket_service.add_post(client, ticket.id, PostCreateRequest(content="Any news?"))

        assert await container.breaches.list_for_ticket(ticket.id) == []

    async def test_late_resolution_is_recorded_on_resolve(self, container, world, clock):
        ticket = await open_ticket(container, world)
        specialist = await actor_for(container, world, "specialist")

        clock.advance(minutes=75)
        await container.ticket_service.resolve(specialist, ticket.id, "Fixed the export")

        breaches = await container.breaches.list_for_ticket(ticket.id)
        assert [b.kind for b in breaches] == [BreachKind.RESOLUTION.value]
        assert breaches[0].target_minutes == 60
        # resolution breaches are recorded without notifying anyone
        inbox = await container.notifications.list_for_recipient(user_id(world, "manager"))
        assert [n for n in inbox if n.type == "sla_breach"] == []

    async def test_resolved_tickets_are_skipped_by_the_scan(self, container, world, clock):
        ticket = await open_ticket(container, world)
        specialist = await actor_for(container, world, "specialist")
        clock.advance(minutes=30)
        await container.ticket_service.resolve(specialist, ticket.id, None)

        clock.advance(days=2)
        assert await container.sla_evaluator.scan_open_tickets() == 0

    async def test_closed_tickets_are_skipped_by_the_scan(self, container, world, clock):
        ticket = await open_ticket(container, world)
        specialist = await actor_for(container, world, "specialist")
        clock.advance(minutes=10)
        await container.ticket_service.change_status(specialist, ticket.id, "closed")

        clock.advance(minutes=80)
        assert await container.sla_evaluator.scan_open_tickets() == 0
        assert await container.breaches.list_for_ticket(ticket.id) == []

    async def test_closing_a_late_resolved_ticket_records_resolution_breach(
        self, container, world, clock, session, storage
    ):
        ticket = await open_ticket(container, world)
        client = await actor_for(container, world, "client")

        # resolved while no policy was configured, so nothing was recorded yet
        unconfigured = ServiceContainer(session, SLAConfigManager(SLAConfig()), clock=clock, storage=storage)
        clock.advance(minutes=75)
        await unconfigured.ticket_service.resolve(client, ticket.id, "Restarted the exporter")
        assert await container.breaches.list_for_ticket(ticket.id) == []

        specialist = await actor_for(container, world, "specialist")
        clock.advance(minutes=5)
        await container.ticket_service.change_status(specialist, ticket.id, "closed")

        breaches = await container.breaches.list_for_ticket(ticket.id)
        assert [b.kind for b in breaches] == [BreachKind.RESOLUTION.value]
        assert breaches[0].reference_at == T0 + timedelta(minutes=75)
        assert breaches[0].elapsed_minutes == 75

    async def test_ticket_status_view(self, container, world, clock):
        ticket = await open_ticket(container, world)
        specialist = await actor_for(container, world, "specialist")
        clock.advance(minutes=10)
        await container.ticket_service.add_post(specialist, ticket.id, PostCreateRequest(content="Hi"))
        clock.advance(minutes=80)

        status = await container.sla_service.ticket_status(await container.tickets.get_by_id(ticket.id))

        assert status.has_policy
        assert status.response.state == SLAState.MET
        assert status.resolution.state == SLAState.BREACHED
        assert status.resolution.remaining_minutes == pytest.approx(-30)
