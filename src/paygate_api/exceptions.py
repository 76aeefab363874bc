"""FastAPI exception handlers for errors raised outside the webhook processor.

The processor maps its own failures; these handlers cover what can fail
before it runs (e.g. invalid configuration while building dependencies) and
guarantee that no exception reaches the server uncaught.

Usage:
    from paygate_api.exceptions import register_exception_handlers
    register_exception_handlers(app)
"""

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from paygate.models.errors import WebhookError
from paygate.services.response_mapper import map_error

logger = logging.getLogger(__name__)


async def webhook_error_handler(request: Request, exc: WebhookError) -> JSONResponse:
    """Convert a WebhookError into the standard webhook response."""
    logger.error("%s on %s [%s]: %s", type(exc).__name__, request.url.path, exc.code.value, exc.detail)
    mapped = map_error(exc)
    return JSONResponse(
        status_code=mapped.status_code,
        content=mapped.body.model_dump(mode="json", exclude_none=True),
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Return a 500 without exposing internal details; the provider retries."""
    logger.exception("Unhandled exception on %s: %s", request.url.path, exc)
    mapped = map_error(exc)
    return JSONResponse(
        status_code=mapped.status_code,
        content=mapped.body.model_dump(mode="json", exclude_none=True),
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Register all exception handlers with the FastAPI app."""
    app.add_exception_handler(WebhookError, webhook_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, generic_exception_handler)
