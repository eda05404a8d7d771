"""History application layer."""

from servicedesk.history.application.services import (
    EventLogService,
    HistoryService,
    IEventLogRepository,
    IEventRecorder,
    IHistoryRepository,
)

__all__ = [
    "HistoryService",
    "EventLogService",
    "IHistoryRepository",
    "IEventLogRepository",
    "IEventRecorder",
]
