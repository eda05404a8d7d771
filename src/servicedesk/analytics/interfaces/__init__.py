"""Analytics interfaces layer."""

from servicedesk.analytics.interfaces.controllers import analytics_router

__all__ = ["analytics_router"]
