"""
=============================================================================
PARQUES ADMIN - ERROR HANDLING MODULE
=============================================================================
Global exception handlers for secure, user-friendly error responses.

Features:
- Rejects malformed identifiers with 400 before any query runs
- Answers 503 when the schema lacks a table a primary query needs
- Catches unhandled exceptions
- Logs full stack trace server-side
- Returns sanitized error message to client

Usage:
    # In main.py
    from app.core.errors import register_exception_handlers
    register_exception_handlers(app)
=============================================================================
"""

import logging
import traceback

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from app.core.config import settings
from app.services.dependent_fetch import CollectionUnavailable
from app.utils.identifiers import InvalidIdentifierError

logger = logging.getLogger(__name__)


def register_exception_handlers(app: FastAPI) -> None:
    """Register global exception handlers on the FastAPI app."""

    @app.exception_handler(InvalidIdentifierError)
    async def invalid_identifier_handler(
        request: Request, exc: InvalidIdentifierError
    ):
        logger.info(
            "Rejected invalid identifier on %s %s: field=%s",
            request.method,
            request.url.path,
            exc.field,
        )
        return JSONResponse(
            status_code=400,
            content={
                "detail": str(exc),
                "error": "INVALID_IDENTIFIER",
                "field": exc.field,
            },
        )

    @app.exception_handler(CollectionUnavailable)
    async def collection_unavailable_handler(
        request: Request, exc: CollectionUnavailable
    ):
        logger.error(
            "Schema cannot serve %s %s: %s", request.method, request.url.path, exc
        )
        return JSONResponse(
            status_code=503,
            content={
                "detail": "Required data is not available in the connected database",
                "error": "SCHEMA_UNAVAILABLE",
            },
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        """
        Catch-all handler for unhandled exceptions.

        - Logs the full traceback for debugging
        - Returns a generic error message to prevent info leakage
        - In debug mode, includes more details
        """
        logger.error(
            "Unhandled exception on %s %s:\n%s",
            request.method,
            request.url.path,
            "".join(traceback.format_exception(type(exc), exc, exc.__traceback__)),
        )

        if settings.DEBUG:
            return JSONResponse(
                status_code=500,
                content={
                    "detail": "Internal Server Error",
                    "error": "INTERNAL_ERROR",
                    "error_type": type(exc).__name__,
                    "message": str(exc),
                    "path": request.url.path,
                },
            )
        return JSONResponse(
            status_code=500,
            content={
                "detail": "Internal Server Error",
                "error": "INTERNAL_ERROR",
                "message": "An unexpected error occurred. Please try again later.",
            },
        )
