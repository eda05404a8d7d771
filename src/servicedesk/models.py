"""
ORM Model Registry
==================

Importing this module registers every table with ``Base.metadata``.
"""

from servicedesk.directory.infrastructure.models import (  # noqa: F401
    ProjectModel,
    RoleModel,
    TicketTypeModel,
    UserModel,
)
from servicedesk.history.infrastructure.models import ChangeHistoryModel, EventLogModel  # noqa: F401
from servicedesk.notifications.infrastructure.models import NotificationModel, SubscriptionModel  # noqa: F401
from servicedesk.sla.infrastructure.models import SLABreachModel  # noqa: F401
from servicedesk.suggestions.infrastructure.models import SuggestionModel  # noqa: F401
from servicedesk.tickets.infrastructure.models import FeedbackModel, PostModel, TicketModel  # noqa: F401
