"""
Service Desk SLA - Main Application
===================================

SLA tracking and escalation engine for the helpdesk.

Modules:
- SLA: policy matching, first-response / resolution deadlines, breaches
- Escalation: manual rerouting of tickets with best-effort follow-ups
- Notifications: escalation emails through the transactional email provider
- Audit: append-only ticket and SLA event streams

Clean Architecture Layers:
- Interfaces: FastAPI controllers
- Application: Services and DTOs
- Domain: Entities and value objects
- Infrastructure: Database, email provider
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from servicedesk.config import settings
from servicedesk.infrastructure.database import close_database, create_tables, init_database

# Model modules register their tables on Base.metadata
import servicedesk.tickets.infrastructure.models  # noqa: F401
import servicedesk.sla.infrastructure.models  # noqa: F401
import servicedesk.audit.infrastructure.models  # noqa: F401

from servicedesk.audit.interfaces import audit_router
from servicedesk.escalation.interfaces import escalation_router
from servicedesk.notifications.interfaces import notifications_router
from servicedesk.sla.interfaces import sla_router

from servicedesk.shared.api.dependencies import close_email_client
from servicedesk.shared.api.exception_handlers import register_exception_handlers
from servicedesk.shared.api.middleware import (
    CorrelationIDMiddleware,
    LoggingMiddleware,
    MetricsMiddleware,
)
from servicedesk.shared.infrastructure.logging import get_logger, setup_logging

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator:
    """
    Application lifespan manager.

    STARTUP:
    1. Setup structured logging
    2. Initialize database
    3. Create database tables

    SHUTDOWN:
    1. Close the email client
    2. Close database connections
    """
    setup_logging(settings.log_level, settings.environment)
    logger.info("Starting Service Desk SLA", extra={
        "version": settings.app_version,
        "environment": settings.environment
    })

    init_database()

    # Use migrations in production; the service still starts without a
    # database so /health can report it
    try:
        await create_tables()
        app.state.database = "connected"
    except Exception as e:
        logger.warning("Database not available - running in degraded mode", extra={"error": str(e)})
        app.state.database = "unavailable"

    if not settings.resend_api_key:
        logger.warning("RESEND_API_KEY not set - escalation emails will fail")

    logger.info("Service Desk SLA started")

    yield

    logger.info("Shutting down Service Desk SLA")
    await close_email_client()
    await close_database()
    logger.info("Service Desk SLA shutdown complete")


app = FastAPI(
    title="Service Desk SLA API",
    description="""
    ## SLA tracking and escalation for the helpdesk

    ### SLA
    - `POST /sla/tickets/{id}/apply` - match a policy and set due dates
    - `POST /sla/tickets/{id}/first-response` - record the first response
    - `POST /sla/tickets/{id}/resolved` - record the resolution
    - `POST /sla/tickets/{id}/marks/correct` - correct a recorded mark
    - `GET /sla/tickets/{id}` - SLA status with countdowns
    - `GET /sla/tickets/{id}/events` - SLA event stream

    ### Escalation
    - `POST /escalations/tickets/{id}` - reroute and escalate a ticket

    ### Notifications
    - `POST /notifications/escalation` - send an escalation email

    ### Audit
    - `GET /audit/tickets/{id}/events` - ticket audit stream

    Callers are identified by the `X-Actor-Id`, `X-Actor-Email` and
    `X-Actor-Capabilities` headers set by the gateway.
    """,
    version=settings.app_version,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan
)

# === CORS Middleware ===
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# === Custom Middleware ===
# Added last runs first: correlation id must exist before logging reads it
app.add_middleware(LoggingMiddleware)
app.add_middleware(MetricsMiddleware)
app.add_middleware(CorrelationIDMiddleware)

register_exception_handlers(app)

# === Include Module Routers ===
app.include_router(sla_router)
app.include_router(escalation_router)
app.include_router(notifications_router)
app.include_router(audit_router)


@app.get("/health", tags=["Health"], responses={
    200: {
        "description": "Service is healthy",
        "content": {
            "application/json": {
                "example": {
                    "status": "healthy",
                    "version": "1.0.0",
                    "environment": "development",
                    "checks": {
                        "database": "connected",
                        "email_provider": "configured"
                    }
                }
            }
        }
    }
})
async def health_check(request: Request):
    """
    Health check endpoint for load balancers and orchestrators.

    Reports database availability at startup and whether the email
    provider is configured.
    """
    database = getattr(request.app.state, "database", "unknown")
    checks = {
        "database": database,
        "email_provider": "configured" if settings.resend_api_key else "not_configured",
    }
    return {
        "status": "healthy" if database == "connected" else "degraded",
        "version": settings.app_version,
        "environment": settings.environment,
        "checks": checks
    }


@app.get("/", tags=["Root"])
async def root():
    """Root endpoint with API information."""
    return {
        "service": "Service Desk SLA",
        "version": settings.app_version,
        "architecture": "Clean Architecture / Modular Monolith",
        "docs": "/docs",
        "health": "/health",
        "modules": {
            "sla": {"prefix": "/sla"},
            "escalation": {"prefix": "/escalations"},
            "notifications": {"prefix": "/notifications"},
            "audit": {"prefix": "/audit"}
        }
    }


# === Development Entry Point ===

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "servicedesk.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.environment == "development",
        log_level=settings.log_level.lower()
    )
