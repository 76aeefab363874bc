"""Correlation ID middleware for request tracing.

Takes the X-Correlation-ID header from the incoming request, or the
provider's request id, or generates a new one. The id is available to every
log line of the request via contextvars.
"""

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from paygate.utils.logging import clear_correlation_id, set_correlation_id

CORRELATION_ID_HEADER = "X-Correlation-ID"
# Sent by Stripe on webhook deliveries
PROVIDER_REQUEST_ID_HEADER = "Request-Id"


class CorrelationIdMiddleware(BaseHTTPMiddleware):
    """Middleware that manages correlation IDs for request tracing."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        incoming_id = request.headers.get(CORRELATION_ID_HEADER) or request.headers.get(
            PROVIDER_REQUEST_ID_HEADER
        )
        correlation_id = set_correlation_id(incoming_id)

        try:
            response = await call_next(request)
            response.headers[CORRELATION_ID_HEADER] = correlation_id
            return response
        finally:
            clear_correlation_id()
