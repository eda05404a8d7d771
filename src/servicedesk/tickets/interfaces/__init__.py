"""
Tickets Interfaces Layer
========================

FastAPI routes for the ticket lifecycle, posts, attachments and feedback.
"""

from servicedesk.tickets.interfaces.controllers import tickets_router

__all__ = ["tickets_router"]
