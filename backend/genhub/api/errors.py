"""Map orchestrator exceptions to ``{"ok": false, "error": ...}`` responses."""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from genhub.services.errors import (
    ChainExhaustedError,
    ConfigurationError,
    GenerationError,
    InvalidInputError,
)

logger = logging.getLogger(__name__)


def error_response(status_code: int, message: str, **extra: Any) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"ok": False, "error": message, **extra})


def _validation_message(errors: list[Any]) -> str:
    if not errors:
        return "invalid request body"
    first = errors[0]
    field = ".".join(str(p) for p in first.get("loc", ()) if p != "body")
    return f"invalid {field or 'request body'}: {first.get('msg', '')}"


def register_error_handlers(app: FastAPI) -> None:
    """Handlers resolve by exception MRO, so subclasses win over GenerationError."""

    @app.exception_handler(InvalidInputError)
    async def _invalid_input(request: Request, exc: InvalidInputError):
        return error_response(400, str(exc))

    @app.exception_handler(RequestValidationError)
    async def _request_validation(request: Request, exc: RequestValidationError):
        return error_response(400, _validation_message(exc.errors()))

    @app.exception_handler(ValidationError)
    async def _body_validation(request: Request, exc: ValidationError):
        return error_response(400, _validation_message(exc.errors()))

    @app.exception_handler(ConfigurationError)
    async def _configuration(request: Request, exc: ConfigurationError):
        logger.error("%s %s: %s", request.method, request.url.path, exc)
        return error_response(500, str(exc))

    @app.exception_handler(ChainExhaustedError)
    async def _exhausted(request: Request, exc: ChainExhaustedError):
        return error_response(502, str(exc), attempts=exc.attempts)

    @app.exception_handler(GenerationError)
    async def _generation(request: Request, exc: GenerationError):
        logger.warning("%s %s: %s", request.method, request.url.path, exc)
        return error_response(502, str(exc))

    @app.exception_handler(asyncio.TimeoutError)
    async def _timeout(request: Request, exc: asyncio.TimeoutError):
        logger.error("%s %s: request deadline exceeded", request.method, request.url.path)
        return error_response(504, "request timed out")
