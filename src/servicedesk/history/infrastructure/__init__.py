"""History infrastructure layer."""

from servicedesk.history.infrastructure.models import ChangeHistoryModel, EventLogModel
from servicedesk.history.infrastructure.repositories import (
    SQLAlchemyEventLogRepository,
    SQLAlchemyHistoryRepository,
)

__all__ = [
    "ChangeHistoryModel",
    "EventLogModel",
    "SQLAlchemyHistoryRepository",
    "SQLAlchemyEventLogRepository",
]
