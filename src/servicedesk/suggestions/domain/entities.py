"""
Suggestion Domain Entities
==========================

Workflow:

    new ──assign──> assigned ──test(pass)──> ready_for_deployment ──deploy──> deployed
                        └──test(fail)──> needs_revision

Managers of suggestions may also set any status directly (needs_info,
rejected, ...). Deployment is only possible from ready_for_deployment.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional
from uuid import UUID

from servicedesk.config import VALID_SUGGESTION_STATUSES, SuggestionStatus
from servicedesk.core import InvalidTransitionException, ValidationException


@dataclass
class Suggestion:
    """An improvement proposal."""
    id: UUID
    content: str
    author_id: UUID
    created_at: datetime
    status: str = SuggestionStatus.NEW.value
    developer_id: Optional[UUID] = None
    additional_info: Optional[str] = None
    test_notes: Optional[str] = None
    updated_at: Optional[datetime] = None

    def assign(self, developer_id: UUID, at: datetime) -> None:
        self.developer_id = developer_id
        self.status = SuggestionStatus.ASSIGNED.value
        self.updated_at = at

    def change_status(self, status: str, additional_info: Optional[str], at: datetime) -> None:
        """
        Raises:
            ValidationException: unknown status
        """
        if status not in VALID_SUGGESTION_STATUSES:
            raise ValidationException(
                f"Invalid suggestion status '{status}'",
                {"allowed": list(VALID_SUGGESTION_STATUSES)}
            )
        self.status = status
        if additional_info:
            self.additional_info = additional_info
        self.updated_at = at

    def record_test(self, passed: bool, notes: Optional[str], at: datetime) -> None:
        self.status = (
            SuggestionStatus.READY_FOR_DEPLOYMENT.value if passed else SuggestionStatus.NEEDS_REVISION.value
        )
        self.test_notes = notes
        self.updated_at = at

    def deploy(self, at: datetime) -> None:
        """
        Raises:
            InvalidTransitionException: not ready for deployment
        """
        if self.status != SuggestionStatus.READY_FOR_DEPLOYMENT.value:
            raise InvalidTransitionException("suggestion", self.status, "deploy")
        self.status = SuggestionStatus.DEPLOYED.value
        self.updated_at = at
