"""FastAPI application for the paygate webhook receiver.

Endpoints:
- POST /webhook (alias /stripe-webhook): Stripe webhook deliveries
- GET /health: liveness probe
"""

import logging
import os

from fastapi import FastAPI
from mangum import Mangum

from paygate.utils.logging import configure_logging
from paygate_api import __version__
from paygate_api.exceptions import register_exception_handlers
from paygate_api.middleware.correlation import CorrelationIdMiddleware
from paygate_api.routes.health import router as health_router
from paygate_api.routes.webhooks import router as webhooks_router

logger = logging.getLogger(__name__)


def create_app() -> FastAPI:
    """Build the FastAPI application with routes, middleware and handlers."""
    application = FastAPI(
        title="Paygate Webhooks",
        description="Verifies and dispatches payment provider webhook events",
        version=__version__,
    )

    application.add_middleware(CorrelationIdMiddleware)

    # Every path yields a defined status code
    register_exception_handlers(application)

    application.include_router(health_router)
    application.include_router(webhooks_router)
    return application


try:
    configure_logging(os.environ.get("LOG_LEVEL", "INFO").upper())
except ValueError:
    configure_logging("INFO")
    logger.warning("Unknown LOG_LEVEL %r, using INFO", os.environ.get("LOG_LEVEL"))

app = create_app()

# Lambda handler - Mangum wraps FastAPI for AWS Lambda + API Gateway
handler = Mangum(app, lifespan="off")


def run_server(host: str = "0.0.0.0", port: int = 8080, reload: bool = False) -> None:
    """Run the FastAPI server.

    Args:
        host: Host to bind to (default: 0.0.0.0)
        port: Port to listen on (default: 8080)
        reload: Enable hot reload for development (default: False)
    """
    import uvicorn

    if reload:
        # Use string reference for reload mode (uvicorn requirement)
        uvicorn.run("paygate_api.main:app", host=host, port=port, reload=True)
    else:
        uvicorn.run(app, host=host, port=port)


if __name__ == "__main__":
    run_server()
