"""Unit tests for ticket lifecycle guards."""

from datetime import timedelta
from uuid import uuid4

import pytest

from servicedesk.config import TicketStatus
from servicedesk.core import InvalidTransitionException, ValidationException
from servicedesk.tickets.domain import Ticket

from tests.conftest import T0


def make_ticket(**overrides) -> Ticket:
    defaults = {
        "id": uuid4(),
        "title": "Printer on fire",
        "description": "Smoke everywhere",
        "creator_id": uuid4(),
        "project_id": uuid4(),
        "type_id": uuid4(),
        "created_at": T0,
    }
    defaults.update(overrides)
    return Ticket(**defaults)


class TestResolve:
    @pytest.mark.parametrize("status", ["new", "in_progress", "reopened"])
    def test_resolvable_statuses(self, status):
        ticket = make_ticket(status=status)
        resolver = uuid4()
        ticket.resolve(resolver, "Replaced toner", T0 + timedelta(hours=1))

        assert ticket.status == TicketStatus.RESOLVED.value
        assert ticket.resolved_by == resolver
        assert ticket.resolved_at == T0 + timedelta(hours=1)
        assert ticket.resolution == "Replaced toner"

    @pytest.mark.parametrize("status", ["resolved", "closed"])
    def test_resolving_twice_is_rejected(self, status):
        ticket = make_ticket(status=status)
        with pytest.raises(InvalidTransitionException):
            ticket.resolve(uuid4(), None, T0)


class TestReopen:
    def test_reopen_keeps_resolution_data(self):
        ticket = make_ticket()
        resolver = uuid4()
        ticket.resolve(resolver, "done", T0 + timedelta(minutes=10))
        ticket.reopen(uuid4(), "Still broken", T0 + timedelta(minutes=20))

        assert ticket.status == TicketStatus.REOPENED.value
        assert ticket.reopen_reason == "Still broken"
        assert ticket.resolved_by == resolver
        assert ticket.resolved_at == T0 + timedelta(minutes=10)

    @pytest.mark.parametrize("status", ["new", "in_progress", "reopened", "closed"])
    def test_only_resolved_tickets_reopen(self, status):
        with pytest.raises(InvalidTransitionException):
            make_ticket(status=status).reopen(uuid4(), None, T0)


class TestRateAndStatus:
    def test_rating_requires_resolved(self):
        with pytest.raises(InvalidTransitionException):
            make_ticket().rate(5, T0)

    @pytest.mark.parametrize("rating", [0, 6])
    def test_rating_range(self, rating):
        ticket = make_ticket(status="resolved")
        with pytest.raises(ValidationException):
            ticket.rate(rating, T0)

    def test_rating_overwrites(self):
        ticket = make_ticket(status="resolved")
        ticket.rate(2, T0)
        ticket.rate(4, T0)
        assert ticket.satisfaction_rating == 4

    def test_change_status_returns_previous(self):
        ticket = make_ticket()
        assert ticket.change_status("closed", T0) == "new"
        assert ticket.status == "closed"
        assert not ticket.is_open

    def test_unknown_status_is_rejected(self):
        with pytest.raises(ValidationException):
            make_ticket().change_status("archived", T0)

    def test_closed_ticket_cannot_be_rated_or_reopened(self):
        ticket = make_ticket(status="closed", resolved_at=T0)
        assert not ticket.is_resolved
        with pytest.raises(InvalidTransitionException):
            ticket.rate(5, T0)
        with pytest.raises(InvalidTransitionException):
            ticket.reopen(uuid4(), "still broken", T0)
