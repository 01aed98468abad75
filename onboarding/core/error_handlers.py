"""Centralized exception handlers for the onboarding service."""
from __future__ import annotations

import logging
from typing import Dict, Optional, Tuple, Type

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from onboarding.core.database import DatabaseError
from onboarding.repository.conversation_repository import ConcurrentUpdateError
from onboarding.services.conversation_service import (
    ConversationNotFoundError,
    ConversationStateError,
)

logger = logging.getLogger(__name__)

# Most specific first: ConcurrentUpdateError is a DatabaseError
_DOMAIN_ERRORS: Dict[Type[Exception], Tuple[int, Optional[str]]] = {
    ConversationNotFoundError: (404, None),
    ConversationStateError: (409, None),
    ConcurrentUpdateError: (409, "The conversation was updated concurrently, please retry"),
    DatabaseError: (503, "Database unavailable"),
}


def _error(status_code: int, detail: str, headers: Optional[Dict[str, str]] = None) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"detail": detail}, headers=headers)


def _validation_detail(exc: RequestValidationError) -> str:
    messages = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
        message = error.get("msg", "Invalid input")
        messages.append(f"{location}: {message}" if location else message)
    return "; ".join(messages) or "Invalid request"


def register_exception_handlers(app: FastAPI) -> None:
    """Register handlers that answer every error with ``{"detail": <str>}``."""

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        return _error(exc.status_code, str(exc.detail), getattr(exc, "headers", None))

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        return _error(422, _validation_detail(exc))

    async def domain_error_handler(request: Request, exc: Exception) -> JSONResponse:
        for error_type, (status_code, detail) in _DOMAIN_ERRORS.items():
            if isinstance(exc, error_type):
                break
        else:  # pragma: no cover - only registered for the mapped types
            status_code, detail = 500, "Internal server error"
        if status_code >= 500 or isinstance(exc, ConcurrentUpdateError):
            logger.warning(
                "%s while processing %s %s: %s",
                type(exc).__name__,
                request.method,
                request.url.path,
                exc,
            )
        return _error(status_code, detail or str(exc))

    for error_type in _DOMAIN_ERRORS:
        app.add_exception_handler(error_type, domain_error_handler)

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled exception while processing %s %s", request.method, request.url.path)
        return _error(500, "Internal server error")


__all__ = ["register_exception_handlers"]
