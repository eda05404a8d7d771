"""
SLA Application Services
========================

SLAEvaluator checks one ticket against its policy and records every newly
detected breach exactly once. It runs as a post-commit hook after ticket
actions and, through scan_open_tickets, on a fixed interval.

Breach rules (elapsed minutes are measured from ticket creation):
- response: first post by someone other than the creator came too late
- resolution: the ticket was resolved too late
- current_resolution: the ticket is still open and already over budget;
  only this kind notifies the notifying roles

Each breach is keyed by (ticket, kind, reference time) in a ledger with a
unique constraint, so repeated evaluations never duplicate it.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from functools import partial
from typing import List, Optional
from uuid import UUID, uuid4

from servicedesk.config import OPEN_STATUSES, BreachKind, NotificationType, TicketStatus
from servicedesk.core import Clock, ensure_utc, minutes_between, utcnow
from servicedesk.directory.application.services import IUserRepository
from servicedesk.history.application.services import HistoryService
from servicedesk.notifications.application.services import NotificationFanout
from servicedesk.notifications.domain import NotificationEvent
from servicedesk.shared.infrastructure.hooks import PostCommitRunner
from servicedesk.shared.infrastructure.logging import get_logger
from servicedesk.sla.domain import (
    SLABreach,
    SLACalculator,
    SLAClock,
    SLAConfig,
    SLAPolicy,
    TicketSLAStatus,
    describe_breach,
)
from servicedesk.tickets.application.services import (
    IPostRepository,
    ITicketEvaluator,
    ITicketRepository,
)
from servicedesk.tickets.domain import Ticket

logger = get_logger(__name__)

RESOLVED_STATUSES = (TicketStatus.RESOLVED.value, TicketStatus.CLOSED.value)


# ========== Repository Interfaces ==========

class IBreachRepository(ABC):
    """Interface for the breach ledger."""

    @abstractmethod
    async def exists(self, ticket_id: UUID, kind: str, reference_at: datetime) -> bool:
        """Whether this breach was already recorded."""

    @abstractmethod
    async def create(self, breach: SLABreach) -> SLABreach:
        """Record a breach. Duplicates violate a unique constraint."""

    @abstractmethod
    async def list_for_ticket(self, ticket_id: UUID) -> List[SLABreach]:
        """Breaches of one ticket, oldest first."""

    @abstractmethod
    async def count(self, ticket_ids: Optional[List[UUID]] = None) -> int:
        """Number of recorded breaches, optionally limited to some tickets."""

    @abstractmethod
    async def delete_for_tickets(self, ticket_ids: List[UUID]) -> None:
        """Drop breaches of deleted tickets."""


class ISLAConfigProvider(ABC):
    """Interface for SLA configuration access."""

    @abstractmethod
    def get_config(self) -> SLAConfig:
        """Get current SLA configuration."""


# ========== Application Services ==========

class SLAEvaluator(ITicketEvaluator):
    """
    Detects SLA breaches for tickets and records them idempotently.
    """

    def __init__(
        self,
        ticket_repository: ITicketRepository,
        post_repository: IPostRepository,
        breach_repository: IBreachRepository,
        user_repository: IUserRepository,
        history: HistoryService,
        fanout: NotificationFanout,
        config_provider: ISLAConfigProvider,
        hooks: Optional[PostCommitRunner] = None,
        clock: Clock = utcnow
    ):
        self._tickets = ticket_repository
        self._posts = post_repository
        self._breaches = breach_repository
        self._users = user_repository
        self._history = history
        self._fanout = fanout
        self._config_provider = config_provider
        self._hooks = hooks
        self._clock = clock

    async def evaluate(self, ticket: Ticket) -> List[SLABreach]:
        """
        Check one ticket and record breaches not seen before.

        Returns:
            Breaches recorded by this call (empty when nothing new or no policy)
        """
        config = self._config_provider.get_config()
        policy = config.get_policy(ticket.type_name, ticket.priority)
        if policy is None:
            logger.debug(
                "No SLA policy for ticket",
                extra={"ticket_id": str(ticket.id), "ticket_type": ticket.type_name, "priority": ticket.priority}
            )
            return []

        recorded: List[SLABreach] = []

        first_response = await self._posts.first_response(ticket.id, ticket.creator_id)
        if first_response is not None:
            elapsed = minutes_between(ticket.created_at, first_response.created_at)
            if SLACalculator.is_exceeded(elapsed, policy.response_minutes):
                breach = await self._record(
                    ticket, BreachKind.RESPONSE,
                    reference_at=first_response.created_at,
                    elapsed=elapsed,
                    target=policy.response_minutes,
                    attributed_to=first_response.author_id,
                )
                if breach:
                    recorded.append(breach)

        if ticket.status in RESOLVED_STATUSES:
            if ticket.resolved_at is not None:
                elapsed = minutes_between(ticket.created_at, ticket.resolved_at)
                if SLACalculator.is_exceeded(elapsed, policy.resolution_minutes):
                    breach = await self._record(
                        ticket, BreachKind.RESOLUTION,
                        reference_at=ticket.resolved_at,
                        elapsed=elapsed,
                        target=policy.resolution_minutes,
                        attributed_to=ticket.resolved_by,
                    )
                    if breach:
                        recorded.append(breach)
        else:
            now = self._clock()
            elapsed = minutes_between(ticket.created_at, now)
            if SLACalculator.is_exceeded(elapsed, policy.resolution_minutes):
                breach = await self._record(
                    ticket, BreachKind.CURRENT_RESOLUTION,
                    reference_at=ticket.created_at,
                    elapsed=elapsed,
                    target=policy.resolution_minutes,
                    attributed_to=ticket.assignee_id or ticket.creator_id,
                    dated_at=now,
                )
                if breach:
                    recorded.append(breach)
                    await self._notify_breach(ticket, breach, config)

        return recorded

    async def scan_open_tickets(self) -> int:
        """
        Evaluate every open ticket, each in its own transaction.

        Returns:
            Number of breaches recorded during the scan
        """
        tickets = await self._tickets.list(statuses=list(OPEN_STATUSES))
        recorded: List[SLABreach] = []

        async def _evaluate(ticket: Ticket) -> None:
            recorded.extend(await self.evaluate(ticket))

        if self._hooks is not None:
            failures = await self._hooks.commit_then_run(
                *[(f"sla_scan:{t.id}", partial(_evaluate, t)) for t in tickets]
            )
        else:
            failures = 0
            for ticket in tickets:
                await _evaluate(ticket)

        logger.info(
            "SLA scan completed",
            extra={"tickets": len(tickets), "breaches": len(recorded), "failures": failures}
        )
        return len(recorded)

    async def _record(
        self,
        ticket: Ticket,
        kind: BreachKind,
        reference_at: datetime,
        elapsed: float,
        target: int,
        attributed_to: Optional[UUID],
        dated_at: Optional[datetime] = None
    ) -> Optional[SLABreach]:
        """Write the breach and its history line unless the ledger already has it."""
        reference_at = ensure_utc(reference_at)
        if await self._breaches.exists(ticket.id, kind.value, reference_at):
            return None

        breach = await self._breaches.create(SLABreach(
            id=uuid4(),
            ticket_id=ticket.id,
            kind=kind.value,
            reference_at=reference_at,
            detected_at=self._clock(),
            elapsed_minutes=elapsed,
            target_minutes=target,
            attributed_to=attributed_to,
        ))
        await self._history.record(
            ticket.id,
            attributed_to,
            describe_breach(kind, elapsed, target),
            at=dated_at or reference_at,
        )
        logger.warning(
            "SLA breach detected",
            extra={
                "ticket_id": str(ticket.id),
                "kind": kind.value,
                "elapsed_minutes": round(elapsed, 1),
                "target_minutes": target,
            }
        )
        return breach

    async def _notify_breach(self, ticket: Ticket, breach: SLABreach, config: SLAConfig) -> None:
        recipients = await self._users.list_ids_by_roles(config.notifying_roles)
        await self._fanout.publish(NotificationEvent(
            type=NotificationType.SLA_BREACH,
            actor_id=None,
            context={
                "title": ticket.title,
                "ticket_id": str(ticket.id),
                "minutes": int(breach.elapsed_minutes + 0.5),
            },
            direct_recipients=tuple(recipients),
            ticket_id=ticket.id,
        ))


class SLAService:
    """Read side: active policies and per-ticket SLA status."""

    def __init__(
        self,
        post_repository: IPostRepository,
        breach_repository: IBreachRepository,
        config_provider: ISLAConfigProvider,
        clock: Clock = utcnow
    ):
        self._posts = post_repository
        self._breaches = breach_repository
        self._config_provider = config_provider
        self._clock = clock

    def list_policies(self) -> List[SLAPolicy]:
        return list(self._config_provider.get_config().policies)

    async def ticket_status(self, ticket: Ticket) -> TicketSLAStatus:
        """
        Deadlines and states of both budgets for a ticket the caller may see.
        """
        config = self._config_provider.get_config()
        policy = config.get_policy(ticket.type_name, ticket.priority)
        status = TicketSLAStatus(
            ticket_id=ticket.id,
            ticket_type=ticket.type_name,
            priority=ticket.priority,
            has_policy=policy is not None,
            breaches=await self._breaches.list_for_ticket(ticket.id),
        )
        if policy is None:
            return status

        now = self._clock()
        first_response = await self._posts.first_response(ticket.id, ticket.creator_id)
        responded_at = first_response.created_at if first_response else None
        resolved_at = ticket.resolved_at if ticket.status in RESOLVED_STATUSES else None

        status.response = self._clock_for(ticket.created_at, policy.response_minutes, now, responded_at)
        status.resolution = self._clock_for(ticket.created_at, policy.resolution_minutes, now, resolved_at)
        return status

    @staticmethod
    def _clock_for(
        created_at: datetime,
        target: int,
        now: datetime,
        met_at: Optional[datetime]
    ) -> SLAClock:
        deadline = SLACalculator.calculate_deadline(created_at, target)
        return SLAClock(
            target_minutes=target,
            deadline=deadline,
            state=SLACalculator.calculate_status(deadline, now, met_at),
            met_at=met_at,
            remaining_minutes=SLACalculator.remaining_minutes(deadline, now, met_at),
        )
