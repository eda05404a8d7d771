"""
Servicedesk - Main Application
==============================

Ticket tracking with SLA monitoring and notifications.

Modules:
- Directory: users, roles, projects, ticket types, authentication
- Tickets: lifecycle, comments, attachments, satisfaction feedback
- SLA: breach detection against per (type, priority) budgets
- Notifications: fanout to direct recipients and subscribers
- History: per-ticket change history and the system event log
- Analytics, Suggestions

Clean Architecture Layers:
- Interfaces: FastAPI controllers
- Application: Services and DTOs
- Domain: Entities and value objects
- Infrastructure: Database, YAML configuration, file storage, scheduler
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from servicedesk.analytics.interfaces import analytics_router
from servicedesk.config import settings
from servicedesk.container import ServiceContainer
from servicedesk.directory.infrastructure.seed import load_seed_file, seed_directory
from servicedesk.directory.interfaces import auth_router, directory_router
from servicedesk.history.interfaces import event_log_router
from servicedesk.infrastructure.database import (
    close_database,
    create_tables,
    get_session_context,
    init_database,
)
from servicedesk.notifications.interfaces import notifications_router
from servicedesk.shared.api.middleware import (
    CorrelationIDMiddleware,
    LoggingMiddleware,
    TimingMiddleware,
    register_exception_handlers,
)
from servicedesk.shared.infrastructure.logging import get_logger, log_latency, setup_logging
from servicedesk.sla.infrastructure import SLAConfigManager, SLAScheduler
from servicedesk.sla.interfaces import sla_router
from servicedesk.suggestions.interfaces import suggestions_router
from servicedesk.tickets.interfaces import tickets_router

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator:
    """
    Application lifespan manager.

    STARTUP:
    1. Setup structured logging
    2. Initialize database and create tables
    3. Seed the directory
    4. Load and watch SLA configuration
    5. Start SLA scheduler

    SHUTDOWN:
    1. Stop SLA scheduler
    2. Stop config watcher
    3. Close database connections
    """
    # === STARTUP ===
    setup_logging(settings.log_level, settings.environment)
    logger.info("Starting Servicedesk", extra={
        "version": settings.app_version,
        "environment": settings.environment
    })

    init_database()

    # Create tables (for development - use migrations in production)
    logger.info("Creating database tables")
    await create_tables()

    seed = load_seed_file(settings.directory_seed_path)
    if seed:
        async with get_session_context() as session:
            await seed_directory(session, seed)

    logger.info("Loading SLA configuration")
    sla_config = SLAConfigManager()
    sla_config.load(settings.sla_config_path)
    sla_config.start_watching()
    app.state.sla_config = sla_config

    async def sla_scan_job():
        """Background scan of open tickets."""
        async with get_session_context() as session:
            with log_latency(logger, "sla_scan"):
                await ServiceContainer(session, sla_config).sla_evaluator.scan_open_tickets()

    scheduler = SLAScheduler(interval_seconds=settings.sla_evaluation_interval)
    await scheduler.start(sla_scan_job)
    app.state.sla_scheduler = scheduler

    logger.info("Servicedesk started successfully")

    yield  # Application runs here

    # === SHUTDOWN ===
    logger.info("Shutting down Servicedesk")
    await scheduler.stop()
    sla_config.stop_watching()
    await close_database()
    logger.info("Servicedesk shutdown complete")


def create_app() -> FastAPI:
    """Build the FastAPI application with every module router."""
    app = FastAPI(
        title="Servicedesk API",
        description="""
    ## Ticket Tracking with SLA Monitoring

    - Projects with role based visibility and per-project ticket types
    - Ticket lifecycle: create, change status, resolve, reopen, rate, assign
    - SLA breach detection for response and resolution budgets
    - In-app notifications for direct recipients and subscribers
    - Change history, event log, analytics and reports
    """,
        version=settings.app_version,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan
    )
    app.state.settings = settings

    # === CORS Middleware ===
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # === Custom Middleware (from shared) ===
    app.add_middleware(TimingMiddleware)
    app.add_middleware(LoggingMiddleware)
    app.add_middleware(CorrelationIDMiddleware)
    register_exception_handlers(app)

    # === Include Module Routers ===
    app.include_router(auth_router)
    app.include_router(directory_router)
    app.include_router(tickets_router)
    app.include_router(sla_router)
    app.include_router(notifications_router)
    app.include_router(event_log_router)
    app.include_router(analytics_router)
    app.include_router(suggestions_router)

    @app.get("/health", tags=["Health"])
    async def health_check(request: Request):
        """Health check endpoint for load balancers and orchestrators."""
        scheduler = getattr(request.app.state, "sla_scheduler", None)
        sla_config = getattr(request.app.state, "sla_config", None)
        return {
            "status": "healthy",
            "version": settings.app_version,
            "environment": settings.environment,
            "checks": {
                "sla_config": "loaded" if sla_config is not None else "not_loaded",
                "sla_scheduler": "running" if scheduler and scheduler.is_running else "stopped",
            }
        }

    @app.get("/", tags=["Root"])
    async def root():
        """Root endpoint with API information."""
        return {
            "service": settings.app_name,
            "version": settings.app_version,
            "architecture": "Clean Architecture / Modular Monolith",
            "docs": "/docs",
            "health": "/health",
        }

    return app


app = create_app()


# === Development Entry Point ===

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "servicedesk.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.environment == "development",
        log_level="info"
    )
