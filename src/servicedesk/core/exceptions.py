"""
Core Exceptions
================

Custom exceptions for the application following clean architecture principles.

These exceptions define domain-specific errors that can be caught and handled
appropriately at the application boundaries. Each carries the HTTP status the
API layer reports for it.
"""

from typing import Optional


class ApplicationException(Exception):
    """Base exception for all application errors."""

    status_code: int = 500

    def __init__(self, message: str, details: Optional[dict] = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)


class DomainException(ApplicationException):
    """Base exception for domain logic violations."""

    status_code = 400


class InvalidTransitionException(DomainException):
    """Raised when a lifecycle action is not legal from the current status."""

    def __init__(
        self,
        entity: str,
        current_status: str,
        action: str,
        details: Optional[dict] = None
    ):
        self.entity = entity
        self.current_status = current_status
        self.action = action
        super().__init__(
            f"Cannot {action} {entity} in status '{current_status}'",
            details or {"current_status": current_status, "action": action}
        )


class RepositoryException(ApplicationException):
    """Base exception for repository/data access errors."""


class ValidationException(ApplicationException):
    """Exception for validation errors."""

    status_code = 400


class AuthenticationException(ApplicationException):
    """Missing, malformed or expired credentials."""

    status_code = 401


class AuthorizationException(ApplicationException):
    """Valid actor without the role or permission for the action."""

    status_code = 403


class ConflictException(ApplicationException):
    """A unique key (project key, login, subscription) is already taken."""

    status_code = 409


class ResourceNotFoundException(ApplicationException):
    """Exception when a requested resource is not found."""

    status_code = 404

    def __init__(
        self,
        resource_type: str,
        resource_id: Optional[str] = None,
        details: Optional[dict] = None
    ):
        self.resource_type = resource_type
        self.resource_id = resource_id
        message = f"{resource_type}"
        if resource_id:
            message += f" with id '{resource_id}'"
        message += " not found"
        super().__init__(message, details)


class ConfigurationException(ApplicationException):
    """Exception for configuration errors."""
