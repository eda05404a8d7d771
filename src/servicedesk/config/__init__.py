"""
Configuration Module
====================

Application settings and configuration management using Pydantic.
"""

from enum import Enum
from functools import lru_cache
from pathlib import Path
from typing import List

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Uses Pydantic for validation and type safety.
    """

    # ========== Application ==========
    app_name: str = Field(default="servicedesk", description="Application name")
    app_version: str = Field(default="1.0.0", description="Application version")
    environment: str = Field(default="development", description="Environment name")
    debug: bool = Field(default=False, description="Enable debug mode")
    log_level: str = Field(default="INFO", description="Root log level")

    # ========== Server ==========
    host: str = Field(default="0.0.0.0", description="Server host")
    port: int = Field(default=8000, description="Server port", ge=1, le=65535)

    # ========== Database ==========
    database_url: str = Field(
        default="postgresql+asyncpg://localhost:5432/servicedesk",
        description="Database connection URL (async driver)"
    )
    db_pool_size: int = Field(default=5, description="Database connection pool size", ge=1)
    db_max_overflow: int = Field(default=10, description="Max overflow connections", ge=0)

    # ========== Authentication ==========
    jwt_secret_key: str = Field(default="change-me", description="JWT signing key")
    jwt_algorithm: str = Field(default="HS256", description="JWT signing algorithm")
    jwt_expire_hours: int = Field(default=24, description="Token lifetime in hours", ge=1)

    # ========== SLA Configuration ==========
    sla_config_path: Path = Field(
        default=Path("sla_config.yaml"),
        description="Path to SLA policy YAML file"
    )
    sla_evaluation_interval: int = Field(
        default=60,
        description="Seconds between periodic SLA scans (0 disables the scheduler)",
        ge=0
    )

    # ========== Directory ==========
    directory_seed_path: Path = Field(
        default=Path("directory_seed.yaml"),
        description="YAML with permissions, roles, ticket types and bootstrap users"
    )

    # ========== Attachments ==========
    upload_dir: Path = Field(default=Path("uploads"), description="Attachment storage directory")
    max_upload_bytes: int = Field(
        default=5 * 1024 * 1024,
        description="Maximum attachment size in bytes",
        ge=1
    )

    # ========== CORS ==========
    cors_origins: List[str] = Field(
        default=["http://localhost:3000"],
        description="Allowed CORS origins"
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        """Ensure environment is one of allowed values."""
        allowed = {"development", "staging", "production", "test"}
        if v not in allowed:
            raise ValueError(f"environment must be one of {allowed}")
        return v


@lru_cache()
def get_settings() -> Settings:
    """Returns cached Settings instance."""
    return Settings()


# Global settings instance
settings = get_settings()


# ========== Constants ==========

class TicketStatus(str, Enum):
    """Ticket lifecycle statuses."""
    NEW = "new"
    IN_PROGRESS = "in_progress"
    RESOLVED = "resolved"
    REOPENED = "reopened"
    CLOSED = "closed"


class RoleName(str, Enum):
    """Roles known to the access rules."""
    CLIENT = "Client"
    SPECIALIST = "Specialist"
    MANAGER = "Manager"
    ANALYST = "Analyst"
    DEVELOPER = "Developer"


class Permission(str, Enum):
    """Named capabilities granted through roles."""
    CREATE_TICKET = "CREATE_TICKET"
    VIEW_TICKET = "VIEW_TICKET"
    UPDATE_TICKET = "UPDATE_TICKET"
    CHANGE_STATUS = "CHANGE_STATUS"
    MANAGE_PROJECTS = "MANAGE_PROJECTS"
    MANAGE_USERS = "MANAGE_USERS"
    MANAGE_TICKET_TYPES = "MANAGE_TICKET_TYPES"
    GENERATE_REPORTS = "GENERATE_REPORTS"
    MANAGE_SUGGESTIONS = "MANAGE_SUGGESTIONS"
    VIEW_ANALYTICS = "VIEW_ANALYTICS"
    MANAGE_SYSTEM = "MANAGE_SYSTEM"
    MANAGE_PROJECT_AS_MANAGER = "MANAGE_PROJECT_AS_MANAGER"


class NotificationType(str, Enum):
    """Type tags carried by notifications."""
    NEW_TICKET = "new_ticket"
    TICKET_STATUS_CHANGE = "ticket_status_change"
    NEW_COMMENT = "new_comment"
    PROJECT_TICKET_COMMENT = "project_ticket_comment"
    TICKET_RESOLVED = "ticket_resolved"
    TICKET_REOPENED = "ticket_reopened"
    TICKET_ASSIGNED = "ticket_assigned"
    SLA_BREACH = "sla_breach"
    SATISFACTION_RATING = "satisfaction_rating"
    SUGGESTION_NEW = "suggestion_new"
    SUGGESTION_ASSIGNED = "suggestion_assigned"
    SUGGESTION_INFO_NEEDED = "suggestion_info_needed"
    SUGGESTION_TEST_FAILED = "suggestion_test_failed"
    SUGGESTION_DEPLOYED = "suggestion_deployed"


class NotificationStatus(str, Enum):
    """Read state of a notification."""
    UNREAD = "unread"
    READ = "read"


class BreachKind(str, Enum):
    """Kinds of SLA breach recorded in the breach ledger."""
    RESPONSE = "response"
    RESOLUTION = "resolution"
    CURRENT_RESOLUTION = "current_resolution"


class SLAState(str, Enum):
    """SLA clock states."""
    ON_TRACK = "on_track"
    BREACHED = "breached"
    MET = "met"


class SuggestionStatus(str, Enum):
    """Suggestion workflow statuses."""
    NEW = "new"
    ASSIGNED = "assigned"
    NEEDS_INFO = "needs_info"
    NEEDS_REVISION = "needs_revision"
    READY_FOR_DEPLOYMENT = "ready_for_deployment"
    DEPLOYED = "deployed"
    REJECTED = "rejected"


DEFAULT_PRIORITY = "normal"

# Roles whose holders hear about SLA breaches
NOTIFYING_ROLES = [RoleName.SPECIALIST, RoleName.MANAGER]

# Roles allowed to resolve or reopen tickets they did not create
RESOLVER_ROLES = [RoleName.SPECIALIST, RoleName.MANAGER]


# ========== Lists for validation ==========

VALID_STATUSES = [s.value for s in TicketStatus]
OPEN_STATUSES = [s.value for s in (TicketStatus.NEW, TicketStatus.IN_PROGRESS, TicketStatus.REOPENED)]
VALID_NOTIFICATION_TYPES = [t.value for t in NotificationType]
VALID_SUGGESTION_STATUSES = [s.value for s in SuggestionStatus]
