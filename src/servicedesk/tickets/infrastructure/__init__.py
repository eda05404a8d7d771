"""
Tickets Infrastructure Layer
============================

- Models: SQLAlchemy ORM models
- Repositories: Data access layer
- Storage: local attachment blobs
"""

from servicedesk.tickets.infrastructure.models import FeedbackModel, PostModel, TicketModel
from servicedesk.tickets.infrastructure.repositories import (
    SQLAlchemyFeedbackRepository,
    SQLAlchemyPostRepository,
    SQLAlchemyTicketRepository,
)
from servicedesk.tickets.infrastructure.storage import LocalAttachmentStorage

__all__ = [
    "TicketModel",
    "PostModel",
    "FeedbackModel",
    "SQLAlchemyTicketRepository",
    "SQLAlchemyPostRepository",
    "SQLAlchemyFeedbackRepository",
    "LocalAttachmentStorage",
]
