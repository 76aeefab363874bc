"""Webhook endpoint for payment provider notifications.

Provides endpoints for:
- Stripe webhook events (checkout.session.completed, customer.subscription.*)

These endpoints do NOT require authentication headers: the payload signature
is verified against the shared webhook secret instead.
"""

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from paygate.services.response_mapper import WebhookResponse
from paygate.services.signature_verifier import SIGNATURE_HEADER
from paygate.services.webhook_processor import WebhookProcessor
from paygate_api.dependencies import get_webhook_processor

router = APIRouter(tags=["webhooks"])


@router.post(
    "/webhook",
    summary="Receive Stripe webhook events",
    description="""
Endpoint for Stripe webhook events. Handles:
- checkout.session.completed / checkout.session.async_payment_succeeded: grants the customer's entitlement
- customer.subscription.deleted / updated / paused: revokes access for unpaid, canceled or paused subscriptions

Other event types are acknowledged and ignored.

**Idempotent**: redelivered events (same event id) return 200 with 'duplicate, already processed'.
""",
    response_model=WebhookResponse,
    response_model_exclude_none=True,
    responses={
        200: {"description": "Event processed, acknowledged or ignored", "model": WebhookResponse},
        400: {"description": "Missing body, invalid signature or rejected event", "model": WebhookResponse},
        413: {"description": "Body larger than MAX_BODY_BYTES", "model": WebhookResponse},
        500: {"description": "Side effect or configuration failure; the provider retries", "model": WebhookResponse},
    },
)
@router.post("/stripe-webhook", include_in_schema=False)
async def handle_stripe_webhook(
    request: Request,
    processor: WebhookProcessor = Depends(get_webhook_processor),
) -> JSONResponse:
    """Handle an incoming Stripe webhook delivery.

    The body is read from the raw stream; it must not be parsed before the
    signature has been verified.
    """
    result = await processor.process(request.stream(), request.headers.get(SIGNATURE_HEADER))
    return JSONResponse(
        status_code=result.status_code,
        content=result.body.model_dump(mode="json", exclude_none=True),
    )
