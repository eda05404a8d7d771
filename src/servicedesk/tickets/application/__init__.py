"""Tickets application layer."""

from servicedesk.tickets.application.services import (
    IAttachmentStorage,
    IFeedbackRepository,
    IPostRepository,
    ITicketEvaluator,
    ITicketRepository,
    TicketService,
)

__all__ = [
    "TicketService",
    "ITicketRepository",
    "IPostRepository",
    "IFeedbackRepository",
    "IAttachmentStorage",
    "ITicketEvaluator",
]
