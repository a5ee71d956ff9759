"""
FastAPI Main Application
========================

Main FastAPI application instance with middleware, routes, and lifespan management.

Run with:
    uvicorn api.main:app --host 127.0.0.1 --port 5000
"""

import logging
from contextlib import asynccontextmanager
from typing import Dict, Any

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api.middleware.error_handler import setup_error_handlers
from api.middleware.rate_limiter import setup_rate_limiting
from api.routes import auth, health, tasks
from api.services.stores import create_stores
from config import DEFAULT_JWT_SECRET, get_settings


logger = logging.getLogger(__name__)

# Global application state - stores the document stores
app_state: Dict[str, Any] = {}


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan event handler for startup and shutdown.

    Startup:
    - Configures logging from settings
    - Creates the credential and task stores for dependency injection

    Shutdown:
    - Clears state
    """
    settings = get_settings()
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format=settings.log_format
    )

    logger.info("Starting TaskBoard API...")
    if settings.jwt_secret_key == DEFAULT_JWT_SECRET:
        logger.warning(
            "Using the built-in development JWT secret; "
            "set TASKBOARD_JWT_SECRET_KEY before deploying"
        )

    credential_store, task_store = create_stores(settings)
    app_state["credential_store"] = credential_store
    app_state["task_store"] = task_store

    logger.info(f"API running at http://{settings.api_host}:{settings.api_port}")
    logger.info(f"Docs available at http://{settings.api_host}:{settings.api_port}/api/docs")

    yield  # Application runs here

    logger.info("Shutting down TaskBoard API...")
    app_state.clear()


# Create FastAPI application
app = FastAPI(
    title="TaskBoard API",
    description="""
    Personal task manager backend.

    ## Authentication
    Task endpoints require a Bearer token in the Authorization header.
    Register or login to obtain one.
    """,
    version="1.0.0",
    lifespan=lifespan,
    docs_url="/api/docs",
    redoc_url="/api/redoc",
    openapi_url="/api/openapi.json"
)


# =============================================================================
# Middleware Setup (order matters - first added = outermost)
# =============================================================================

settings = get_settings()

# CORS middleware - allow the browser client to call the API
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=settings.cors_allow_credentials,
    allow_methods=["GET", "POST", "PUT", "DELETE"],
    allow_headers=["Authorization", "Content-Type"],
)

# Error handlers and fallback middleware
setup_error_handlers(app)

# Rate limiting setup
setup_rate_limiting(app)


# =============================================================================
# Router Registration
# =============================================================================

# Health check endpoints (no auth required)
app.include_router(
    health.router,
    prefix="/api",
    tags=["health"]
)

# Authentication endpoints
app.include_router(
    auth.router,
    prefix="/api/auth",
    tags=["auth"]
)

# Task endpoints (bearer token required)
app.include_router(
    tasks.router,
    prefix="/api/tasks",
    tags=["tasks"]
)


@app.get("/", tags=["root"])
def root():
    """API information and links."""
    return {
        "message": "TaskBoard API",
        "version": "1.0.0",
        "docs": "/api/docs",
        "health": "/api/health"
    }
