"""
Core Module
============

Shared core utilities and abstractions used across the application.

This module contains framework-agnostic code that defines the fundamental
building blocks of the system.
"""

from servicedesk.core.exceptions import (
    ApplicationException,
    DomainException,
    InvalidTransitionException,
    RepositoryException,
    ValidationException,
    AuthenticationException,
    AuthorizationException,
    ConflictException,
    ResourceNotFoundException,
    ConfigurationException,
)
from servicedesk.core.timeutils import Clock, utcnow, ensure_utc, minutes_between

__all__ = [
    "ApplicationException",
    "DomainException",
    "InvalidTransitionException",
    "RepositoryException",
    "ValidationException",
    "AuthenticationException",
    "AuthorizationException",
    "ConflictException",
    "ResourceNotFoundException",
    "ConfigurationException",
    "Clock",
    "utcnow",
    "ensure_utc",
    "minutes_between",
]
