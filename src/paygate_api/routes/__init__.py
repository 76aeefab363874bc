"""API routes package.

- health: Health check endpoint
- webhooks: Payment provider webhook receiver

All routers are registered in main.py.
"""

from paygate_api.routes.health import router as health_router
from paygate_api.routes.webhooks import router as webhooks_router

__all__ = [
    "health_router",
    "webhooks_router",
]
