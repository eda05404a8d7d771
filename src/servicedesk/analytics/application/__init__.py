"""Analytics application layer."""

from servicedesk.analytics.application.services import AnalyticsService, average_resolution_hours

__all__ = ["AnalyticsService", "average_resolution_hours"]
