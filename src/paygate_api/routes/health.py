"""Health check endpoint."""

from typing import Any

from fastapi import APIRouter

from paygate_api import __version__

router = APIRouter(tags=["health"])


@router.get("/health")
async def health() -> dict[str, Any]:
    """Liveness probe; does not touch the ledger or the signing secret."""
    return {
        "status": "healthy",
        "version": __version__,
        "service": "paygate-webhooks",
    }
