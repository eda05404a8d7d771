"""
SLA Application Layer
=====================

Contains:
- Services: breach evaluation and SLA status
- DTOs: response models for the SLA API
"""

from servicedesk.sla.application.services import (
    IBreachRepository,
    ISLAConfigProvider,
    SLAEvaluator,
    SLAService,
)

__all__ = [
    "SLAEvaluator",
    "SLAService",
    "IBreachRepository",
    "ISLAConfigProvider",
]
