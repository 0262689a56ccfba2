"""
Main FastAPI application entry point.
"""

from contextlib import asynccontextmanager
from typing import Dict

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
import logfire

from config import settings
from database import atomic, create_all_tables, get_db_context, get_db_info
from observability.logfire_config import LogfireConfig
from api.errors import register_exception_handlers
from api.routes import (
    auth_router,
    users_router,
    roles_router,
    teams_router,
    permissions_router,
    email_templates_router,
    notifications_router,
    mail_settings_router,
    datatables_router,
)
from services.roles import ensure_system_roles


def bootstrap_development_database() -> None:
    """Create tables, permissions and the super admin role for local development."""
    create_all_tables()
    with get_db_context() as db, atomic(db):
        ensure_system_roles(db)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.
    Handles startup and shutdown events.
    """
    # Initialize Logfire first so we can use structured logging
    LogfireConfig.initialize(token=settings.logfire_token)

    # Startup logging
    logfire.info(
        "Starting AdminKit API Server",
        environment=settings.environment,
        debug=settings.debug,
    )

    # Check database connection on startup
    db_info = get_db_info()
    if db_info['status'] == 'connected':
        logfire.info(
            "Database connection successful",
            url=db_info['url'],
            dialect=db_info['dialect'],
        )
        if settings.is_development:
            # Production schemas are managed by alembic
            bootstrap_development_database()
    else:
        logfire.error(
            "Database connection failed",
            url=db_info['url'],
            status=db_info['status'],
        )

    logfire.info("AdminKit API Server startup complete")

    yield

    # Shutdown
    logfire.info("Shutting down AdminKit API Server")


# Initialize FastAPI app
app = FastAPI(
    title="AdminKit API",
    description="Admin back office: users, roles, teams, email templates, notifications and DataTables",
    version="1.0.0",
    lifespan=lifespan,
    debug=settings.debug,
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)


# ============================================================================
# Health Check Endpoints
# ============================================================================

@app.get("/health", tags=["Health"])
async def health_check() -> Dict[str, str]:
    """
    Health check endpoint for load balancers and monitoring.

    Returns:
        dict: Health status of the application and database
    """
    db_info = get_db_info()
    db_connected = db_info["status"] == "connected"

    return {
        "status": "healthy" if db_connected else "degraded",
        "service": "adminkit-api",
        "version": "1.0.0",
        "database": "connected" if db_connected else "disconnected",
        "environment": settings.environment,
    }


@app.get("/", tags=["Root"])
async def root() -> Dict[str, str]:
    """
    Root endpoint - API information.

    Returns:
        dict: Basic API information
    """
    return {
        "name": "AdminKit API",
        "version": "1.0.0",
        "description": "Admin back office API",
        "docs": "/docs",
        "health": "/health",
    }


# ============================================================================
# API Routers
# ============================================================================

# Authentication (login issues bearer tokens)
app.include_router(auth_router)

# Administration endpoints (bearer token + matrix permission required)
app.include_router(users_router)
app.include_router(roles_router)
app.include_router(teams_router)
app.include_router(permissions_router)
app.include_router(email_templates_router)
app.include_router(notifications_router)
app.include_router(mail_settings_router)

# Server-driven DataTables
app.include_router(datatables_router)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.is_development,
        log_level=settings.log_level.lower(),
    )
