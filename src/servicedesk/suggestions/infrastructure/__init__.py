"""Suggestions infrastructure layer."""

from servicedesk.suggestions.infrastructure.models import SuggestionModel
from servicedesk.suggestions.infrastructure.repositories import SQLAlchemySuggestionRepository

__all__ = ["SuggestionModel", "SQLAlchemySuggestionRepository"]
