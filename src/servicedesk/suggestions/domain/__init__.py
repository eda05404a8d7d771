"""Suggestions domain layer."""

from servicedesk.suggestions.domain.entities import Suggestion

__all__ = ["Suggestion"]
