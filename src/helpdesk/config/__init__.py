"""
Configuration Module
====================

Application settings and shared enumerations.

Settings are loaded from environment variables (and an optional ``.env``
file) using Pydantic. Components receive the values they need through their
constructors; nothing reads settings from a module-level global.
"""

from enum import Enum
from functools import lru_cache
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Uses Pydantic for validation and type safety.
    """

    # ========== Application ==========
    app_name: str = Field(default="helpdesk-assignment", description="Application name")
    app_version: str = Field(default="1.0.0", description="Application version")
    environment: str = Field(default="development", description="Environment name")
    debug: bool = Field(default=False, description="Enable debug mode")
    log_level: str = Field(default="INFO", description="Root log level")

    # ========== Database ==========
    database_url: str = Field(
        default="postgresql+asyncpg://localhost:5432/helpdesk",
        description="Ticket store connection URL (async driver)"
    )
    db_pool_size: int = Field(default=5, description="Database connection pool size", ge=1)
    db_max_overflow: int = Field(default=10, description="Max overflow connections", ge=0)

    # ========== SLA ==========
    sla_warning_threshold_hours: float = Field(
        default=2.0,
        description="Hours before the SLA deadline at which warnings are sent",
        gt=0
    )
    sla_sweep_hour: int = Field(default=9, description="Hour of the daily SLA sweep", ge=0, le=23)
    sla_sweep_minute: int = Field(default=0, description="Minute of the daily SLA sweep", ge=0, le=59)

    # ========== AI analysis ==========
    openai_api_key: Optional[str] = Field(
        default=None,
        description="API key for the OpenAI-compatible analysis model"
    )
    llm_base_url: Optional[str] = Field(
        default=None,
        description="Override base URL for OpenAI-compatible providers"
    )
    llm_model: str = Field(default="gpt-4o-mini", description="Model used for ticket analysis")
    llm_temperature: float = Field(default=0.3, description="Sampling temperature", ge=0.0, le=1.0)
    llm_max_tokens: int = Field(default=800, description="Max tokens per analysis", ge=1, le=8000)
    mock_llm: bool = Field(
        default=False,
        description="Use canned analysis responses (no API calls)"
    )

    # ========== Notifications ==========
    notification_webhook_url: Optional[str] = Field(
        default=None,
        description="Endpoint receiving ticket notifications as JSON"
    )
    notification_timeout_seconds: float = Field(
        default=5.0,
        description="Timeout for notification delivery",
        ge=0.1,
        le=30
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
        allowed = {"development", "staging", "production"}
        if v not in allowed:
            raise ValueError(f"environment must be one of {allowed}")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        allowed = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in allowed:
            raise ValueError(f"log_level must be one of {allowed}")
        return v.upper()


@lru_cache()
def get_settings() -> Settings:
    """Returns cached Settings instance."""
    return Settings()


# ========== Constants ==========

class TicketStatus(str, Enum):
    """Ticket lifecycle statuses."""
    OPEN = "open"
    IN_PROGRESS = "in-progress"
    RESOLVED = "resolved"
    CLOSED = "closed"
    ESCALATED = "escalated"


class Priority(str, Enum):
    """Ticket priority levels."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


class TicketType(str, Enum):
    """Ticket categories."""
    TECHNICAL = "technical"
    BILLING = "billing"
    FEATURE_REQUEST = "feature-request"
    BUG_REPORT = "bug-report"
    GENERAL = "general"
    ACCOUNT = "account"


class UserRole(str, Enum):
    """User roles. Only moderators and admins receive assignments."""
    USER = "user"
    MODERATOR = "moderator"
    ADMIN = "admin"


class NotificationType(str, Enum):
    """Kinds of ticket notifications."""
    ASSIGNMENT = "assignment"
    ESCALATION = "escalation"
    SLA_WARNING = "sla-warning"
    RESOLUTION = "resolution"


class SLAState(str, Enum):
    """SLA status states."""
    ON_TRACK = "on_track"
    AT_RISK = "at_risk"
    BREACHED = "breached"


# ========== Lists for validation ==========

ACTIVE_STATUSES = (TicketStatus.OPEN, TicketStatus.IN_PROGRESS)
ASSIGNABLE_ROLES = (UserRole.MODERATOR, UserRole.ADMIN)
