"""
SLA Infrastructure Layer
========================

- Models: breach ledger ORM model
- Repositories: Data access layer
- External: YAML config watcher and scheduler
"""

from servicedesk.sla.infrastructure.external import SLAConfigManager, SLAScheduler
from servicedesk.sla.infrastructure.models import SLABreachModel
from servicedesk.sla.infrastructure.repositories import SQLAlchemyBreachRepository

__all__ = [
    "SLABreachModel",
    "SQLAlchemyBreachRepository",
    "SLAConfigManager",
    "SLAScheduler",
]
