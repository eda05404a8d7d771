"""
Analytics Application Services
==============================

Aggregates are computed over the ticket list; breach counts come from the
SLA breach ledger rather than from history text.
"""

from collections import Counter
from datetime import date, datetime, timedelta
from typing import Dict, List, Optional
from uuid import UUID

from servicedesk.config import Permission, TicketStatus
from servicedesk.core import Clock, ValidationException, ensure_utc, utcnow
from servicedesk.directory.domain import AccessPolicy, Actor
from servicedesk.shared.infrastructure.logging import get_logger
from servicedesk.sla.application.services import IBreachRepository
from servicedesk.tickets.application.services import IFeedbackRepository, ITicketRepository
from servicedesk.tickets.domain import Ticket

logger = get_logger(__name__)

TREND_DAYS = 30


def average_resolution_hours(tickets: List[Ticket]) -> float:
    """Mean creation-to-resolution time, in hours, of resolved tickets."""
    durations = [
        (ensure_utc(t.resolved_at) - ensure_utc(t.created_at)).total_seconds() / 3600
        for t in tickets
        if t.status == TicketStatus.RESOLVED.value and t.resolved_at is not None
    ]
    if not durations:
        return 0.0
    return sum(durations) / len(durations)


class AnalyticsService:
    """Statistics for Analysts and Managers."""

    def __init__(
        self,
        ticket_repository: ITicketRepository,
        feedback_repository: IFeedbackRepository,
        breach_repository: IBreachRepository,
        policy: Optional[AccessPolicy] = None,
        clock: Clock = utcnow
    ):
        self._tickets = ticket_repository
        self._feedback = feedback_repository
        self._breaches = breach_repository
        self._policy = policy or AccessPolicy()
        self._clock = clock

    def _require_analyst(self, actor: Actor) -> None:
        self._policy.require(actor, Permission.VIEW_ANALYTICS, message="Insufficient permissions to view analytics")

    async def overview(self, actor: Actor) -> Dict:
        """Totals, status breakdown, resolution time, breaches, satisfaction and a 30 day trend."""
        self._require_analyst(actor)

        tickets = await self._tickets.list()
        by_status = Counter(t.status for t in tickets)

        today = self._clock().date()
        since = today - timedelta(days=TREND_DAYS)
        per_day: Counter = Counter(
            ensure_utc(t.created_at).date() for t in tickets
            if ensure_utc(t.created_at).date() >= since
        )

        return {
            "total_tickets": len(tickets),
            "resolved_tickets": by_status.get(TicketStatus.RESOLVED.value, 0),
            "tickets_by_status": dict(by_status),
            "average_resolution_hours": average_resolution_hours(tickets),
            "sla_breaches": await self._breaches.count(),
            "satisfaction_distribution": await self._feedback.rating_distribution(),
            "tickets_over_time": [
                {"date": day, "count": per_day[day]} for day in sorted(per_day)
            ],
        }

    async def report(
        self,
        actor: Actor,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
        type_id: Optional[UUID] = None
    ) -> Dict:
        """Tickets created in a period (optionally of one type) with their statistics."""
        self._require_analyst(actor)
        if start_date and end_date and ensure_utc(start_date) > ensure_utc(end_date):
            raise ValidationException("start_date must not be after end_date")

        tickets = await self._tickets.list()
        selected = [
            t for t in tickets
            if (start_date is None or ensure_utc(t.created_at) >= ensure_utc(start_date))
            and (end_date is None or ensure_utc(t.created_at) <= ensure_utc(end_date))
            and (type_id is None or t.type_id == type_id)
        ]

        statistics = {
            "total_tickets": len(selected),
            "by_status": dict(Counter(t.status for t in selected)),
            "by_priority": dict(Counter(t.priority for t in selected)),
            "average_resolution_hours": average_resolution_hours(selected),
            "sla_breaches": await self._breaches.count(ticket_ids=[t.id for t in selected]),
        }
        logger.info("Report generated", extra={"tickets": len(selected)})
        return {
            "start_date": start_date,
            "end_date": end_date,
            "type_id": type_id,
            "statistics": statistics,
            "tickets": selected,
        }
