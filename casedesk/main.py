"""
CaseDesk - FastAPI Application
Legal case management: cases, participants, deadlines, attachments and
personal todo lists.
"""

import logging
import uuid
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from casedesk.core.config import get_settings
from casedesk.core.database import close_db, init_db
from casedesk.core.errors import setup_exception_handlers
from casedesk.core.logging_config import setup_logging
from casedesk.routers import (
    auth,
    case_events,
    case_types,
    dashboard,
    health,
    important_dates,
    individuals,
    legal_cases,
    legal_entities,
    media,
    participants,
    search,
    status_lists,
    statuses,
    tag_lists,
    tags,
    todos,
    users,
)


logger = logging.getLogger(__name__)


# =============================================================================
# Lifespan (Startup/Shutdown)
# =============================================================================

@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    logger.info("Starting %s v%s", settings.app_name, settings.app_version)
    await init_db()
    logger.info("Database ready")
    yield
    await close_db()
    logger.info("Shutdown complete")


# =============================================================================
# Application Factory
# =============================================================================

def create_app() -> FastAPI:
    """
    Application factory.
    Creates and configures the FastAPI application.
    """
    settings = get_settings()
    setup_logging(settings.log_level, settings.log_json_format, settings.log_file or None)

    tags_metadata = [
        {"name": "Health", "description": "Liveness and readiness probes."},
        {"name": "Authentication", "description": "Register, log in and out, current user."},
        {"name": "Legal Cases", "description": "Case records, status history and tags."},
        {"name": "Case Participants", "description": "Individuals and legal entities attached to a case."},
        {"name": "Case Events", "description": "Procedural events of a case."},
        {"name": "Important Dates", "description": "Deadlines of a case and the cross-case deadline list."},
        {"name": "Dashboard", "description": "Summary counts, deadline widgets and chart data."},
        {"name": "Media Library", "description": "Shared files not tied to a case."},
    ]

    app = FastAPI(
        title=settings.app_name,
        description=settings.app_description,
        version=settings.app_version,
        lifespan=lifespan,
        docs_url="/api/docs" if settings.enable_docs else None,
        redoc_url="/api/redoc" if settings.enable_docs else None,
        openapi_url="/api/openapi.json" if settings.enable_docs else None,
        openapi_tags=tags_metadata,
    )

    # =========================================================================
    # Middleware
    # =========================================================================
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def add_request_id(request: Request, call_next):
        request_id = request.headers.get("X-Request-Id", str(uuid.uuid4()))
        response = await call_next(request)
        response.headers["X-Request-Id"] = request_id
        return response

    setup_exception_handlers(app, debug=settings.debug)

    # =========================================================================
    # Register Routers
    # =========================================================================
    app.include_router(health.router, tags=["Health"])
    app.include_router(auth.router)
    app.include_router(users.router)

    # Case sub-resources go before the case router so the static
    # /api/legal-cases/important-dates/list path is matched first
    app.include_router(important_dates.router)
    app.include_router(participants.router)
    app.include_router(case_events.router)
    app.include_router(media.case_media_router)
    app.include_router(legal_cases.router)

    app.include_router(individuals.router)
    app.include_router(legal_entities.router)
    app.include_router(case_types.router)
    app.include_router(status_lists.router)
    app.include_router(statuses.router)
    app.include_router(tags.router)
    app.include_router(tag_lists.router)
    app.include_router(media.library_router)
    app.include_router(dashboard.router)
    app.include_router(todos.router)
    app.include_router(search.router)

    return app


# Create the app instance
app = create_app()


# =============================================================================
# Development Server
# =============================================================================

if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "casedesk.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )
