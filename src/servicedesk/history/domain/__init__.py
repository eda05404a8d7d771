"""History domain layer."""

from servicedesk.history.domain.entities import ChangeHistoryEntry, EventLogEntry

__all__ = ["ChangeHistoryEntry", "EventLogEntry"]
