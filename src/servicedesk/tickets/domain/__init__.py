"""Tickets domain layer."""

from servicedesk.tickets.domain.entities import (
    RESOLVABLE_FROM,
    Attachment,
    Feedback,
    Post,
    Ticket,
)

__all__ = ["Ticket", "Post", "Feedback", "Attachment", "RESOLVABLE_FROM"]
