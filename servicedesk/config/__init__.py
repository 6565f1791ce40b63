"""
Configuration Module
====================

Application settings and configuration management using Pydantic.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field, field_validator
from functools import lru_cache
from typing import List, Optional


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Uses Pydantic for validation and type safety.
    """

    # ========== Application ==========
    app_name: str = Field(default="servicedesk-sla", description="Application name")
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
        description="PostgreSQL connection URL (async)"
    )
    db_pool_size: int = Field(default=5, description="Database connection pool size", ge=1)
    db_max_overflow: int = Field(default=10, description="Max overflow connections", ge=0)

    # ========== Outbound Email ==========
    resend_api_key: Optional[str] = Field(
        default=None,
        description="API key for the transactional email provider"
    )
    email_api_url: str = Field(
        default="https://api.resend.com/emails",
        description="Email provider send endpoint"
    )
    support_from_email: str = Field(
        default="support@servicedesk.example.com",
        description="Sender address for escalation emails"
    )
    app_url: str = Field(
        default="https://servicedesk.example.com",
        description="Base URL used for deep links in emails"
    )
    email_timeout_seconds: float = Field(
        default=10.0,
        description="Timeout for email provider calls",
        gt=0,
        le=60
    )

    # ========== SLA / Escalation ==========
    lookup_timeout_seconds: float = Field(
        default=5.0,
        description="Default deadline for policy and directory lookups",
        gt=0,
        le=60
    )
    sla_warning_minutes: int = Field(
        default=60,
        description="Minutes before a deadline at which status turns to warning",
        ge=0
    )
    customer_service_group_key: str = Field(
        default="customer_service",
        description="Queue key whose members may work customer service tickets"
    )

    # ========== CORS ==========
    cors_origins: List[str] = Field(
        default=["http://localhost:3000", "http://localhost:5173"],
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
        allowed = {"development", "staging", "production"}
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

class Priority(str):
    """Ticket priority levels."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


class TicketStatus(str):
    """Ticket lifecycle statuses."""
    NEW = "new"
    OPEN = "open"
    IN_PROGRESS = "in_progress"
    PENDING = "pending"
    RESOLVED = "resolved"
    CLOSED = "closed"


class TicketType(str):
    """Ticket types with special handling."""
    INCIDENT = "incident"
    SERVICE_REQUEST = "service_request"
    CUSTOMER_SERVICE = "customer_service"


class DeadlineKind(str):
    """The two SLA clocks tracked per ticket."""
    FIRST_RESPONSE = "first_response"
    RESOLUTION = "resolution"


class DeadlineState(str):
    """Lifecycle of a single SLA deadline."""
    PENDING = "pending"        # no due date
    SCHEDULED = "scheduled"    # due date set, not yet marked
    MET = "met"
    BREACHED = "breached"


class SLAStatus(str):
    """Display status of a deadline."""
    WITHIN = "within"
    WARNING = "warning"
    BREACHED = "breached"
    MET = "met"


class AssigneeAction(str):
    """What an escalation does with the ticket's assignee."""
    KEEP = "keep"
    UNASSIGN = "unassign"
    SET = "set"


class Capability(str):
    """Actor capabilities that grant ticket work."""
    OPERATOR = "operator"
    ADMIN = "admin"


class WarningCode(str):
    """Codes attached to degraded best-effort steps."""
    SLA_EVENT_FAILED = "sla_event_failed"
    NOTIFICATION_FAILED = "notification_failed"
    NO_RECIPIENTS = "no_recipients"


# ========== Lists for validation ==========

VALID_DEADLINE_KINDS = [DeadlineKind.FIRST_RESPONSE, DeadlineKind.RESOLUTION]
VALID_ASSIGNEE_ACTIONS = [AssigneeAction.KEEP, AssigneeAction.UNASSIGN, AssigneeAction.SET]
WORK_CAPABILITIES = frozenset({Capability.OPERATOR, Capability.ADMIN})
