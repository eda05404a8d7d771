"""
SLA Value Objects
=================

Immutable value objects for the SLA domain.

Policies are reference data keyed by (ticket type name, priority). They
are loaded from YAML and never mutated by ticket processing.
"""

from datetime import datetime, timedelta
from typing import Dict, List, Optional, Tuple

from pydantic import BaseModel, Field, PrivateAttr, field_validator, model_validator

from servicedesk.config import DEFAULT_PRIORITY, NOTIFYING_ROLES, BreachKind, SLAState
from servicedesk.core import ensure_utc


class SLAPolicy(BaseModel):
    """Response and resolution budgets, in minutes, for one (type, priority) pair."""
    ticket_type: str = Field(..., min_length=1, description="Ticket type name")
    priority: str = Field(DEFAULT_PRIORITY, min_length=1)
    response_minutes: int = Field(..., ge=0)
    resolution_minutes: int = Field(..., ge=0)

    model_config = {"frozen": True}

    @property
    def key(self) -> Tuple[str, str]:
        return self.ticket_type, self.priority


class SLAConfig(BaseModel):
    """
    SLA configuration loaded from YAML.

    Example:
        default_priority: normal
        notifying_roles: [Specialist, Manager]
        policies:
          - ticket_type: Bug
            priority: high
            response_minutes: 30
            resolution_minutes: 240
    """
    policies: List[SLAPolicy] = Field(default_factory=list)
    default_priority: str = Field(DEFAULT_PRIORITY, min_length=1)
    notifying_roles: List[str] = Field(
        default_factory=lambda: [r.value for r in NOTIFYING_ROLES],
        description="Roles told about current resolution breaches"
    )

    _index: Dict[Tuple[str, str], SLAPolicy] = PrivateAttr(default_factory=dict)

    @field_validator("policies")
    @classmethod
    def validate_unique_keys(cls, v: List[SLAPolicy]) -> List[SLAPolicy]:
        """One policy per (ticket type, priority)."""
        seen = set()
        for policy in v:
            if policy.key in seen:
                raise ValueError(f"Duplicate SLA policy for {policy.key}")
            seen.add(policy.key)
        return v

    @model_validator(mode="after")
    def build_index(self) -> "SLAConfig":
        self._index = {p.key: p for p in self.policies}
        return self

    def get_policy(self, ticket_type: Optional[str], priority: Optional[str]) -> Optional[SLAPolicy]:
        """Policy for a ticket; a missing priority falls back to the default."""
        if not ticket_type:
            return None
        return self._index.get((ticket_type, priority or self.default_priority))


class SLACalculator:
    """
    Pure functions for SLA calculations.

    Stateless utility class: all deadline and state arithmetic in one place.
    """

    @staticmethod
    def calculate_deadline(start: datetime, budget_minutes: int) -> datetime:
        return ensure_utc(start) + timedelta(minutes=budget_minutes)

    @staticmethod
    def calculate_status(
        deadline: datetime,
        current_time: datetime,
        met_at: Optional[datetime] = None
    ) -> SLAState:
        """
        Calculate the state of one budget.

        Args:
            deadline: The SLA deadline
            current_time: Current time for evaluation
            met_at: When the budget stopped running (first response / resolution)
        """
        if met_at is not None:
            return SLAState.MET if ensure_utc(met_at) <= ensure_utc(deadline) else SLAState.BREACHED
        if ensure_utc(current_time) > ensure_utc(deadline):
            return SLAState.BREACHED
        return SLAState.ON_TRACK

    @staticmethod
    def remaining_minutes(
        deadline: datetime,
        current_time: datetime,
        met_at: Optional[datetime] = None
    ) -> Optional[float]:
        """Minutes left before the deadline (negative once past); None once met."""
        if met_at is not None:
            return None
        return (ensure_utc(deadline) - ensure_utc(current_time)).total_seconds() / 60

    @staticmethod
    def is_exceeded(elapsed_minutes: float, budget_minutes: int) -> bool:
        """Strictly over budget."""
        return elapsed_minutes > budget_minutes


_BREACH_LABELS = {
    BreachKind.RESPONSE: "Response time exceeded",
    BreachKind.RESOLUTION: "Resolution time exceeded",
    BreachKind.CURRENT_RESOLUTION: "Current resolution time exceeded",
}


def describe_breach(kind: BreachKind, elapsed_minutes: float, target_minutes: int) -> str:
    """History text for a breach, e.g. 'SLA breach: Response time exceeded (95 minutes vs 60 minutes target)'."""
    return (
        f"SLA breach: {_BREACH_LABELS[kind]} "
        f"({int(elapsed_minutes + 0.5)} minutes vs {target_minutes} minutes target)"
    )
