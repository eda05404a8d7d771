"""Suggestions interfaces layer."""

from servicedesk.suggestions.interfaces.controllers import suggestions_router

__all__ = ["suggestions_router"]
