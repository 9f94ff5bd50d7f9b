"""
HTTP error helpers shared by the routers.

Field-level failures use the shape the frontend renders inline:
    {"message": "...", "errors": {"field": ["..."]}}
Anything unhandled becomes a 500 whose message can be shown in a toast.
"""

import logging
from typing import Optional

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.responses import JSONResponse


logger = logging.getLogger(__name__)

SERVER_ERROR_MESSAGE = "Ocurrió un error inesperado. Intente nuevamente."


def validation_error(errors: dict[str, str], message: Optional[str] = None) -> HTTPException:
    """Build a 422 carrying one message per field."""
    return HTTPException(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        detail={
            "message": message or next(iter(errors.values())),
            "errors": {field: [msg] for field, msg in errors.items()},
        },
    )


def not_found(resource: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"{resource} not found")


def setup_exception_handlers(app: FastAPI, debug: bool = False) -> None:
    """Register the catch-all handler for unexpected errors."""

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.error("Unhandled exception on %s %s: %s", request.method, request.url.path, exc, exc_info=True)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "error": "server_error",
                "message": str(exc) if debug else SERVER_ERROR_MESSAGE,
            },
        )
