"""Suggestions application layer."""

from servicedesk.suggestions.application.services import ISuggestionRepository, SuggestionService

__all__ = ["SuggestionService", "ISuggestionRepository"]
