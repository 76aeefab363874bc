"""End-to-end processing of one webhook delivery.

Runs body collection, signature verification, routing and response mapping
separately from HTTP routing concerns. This enables:
- Unit testing without HTTP overhead
- Reuse across transports (ASGI route, Lambda adapter)

Every failure is recovered here and mapped to a response; nothing escapes
to the transport layer.
"""

import asyncio
from collections.abc import AsyncIterator, Callable

from starlette.status import HTTP_200_OK

from paygate.models.enums import OutcomeKind
from paygate.models.errors import (
    IncompleteBodyError,
    PayloadTooLargeError,
    WebhookError,
    WebhookVerificationError,
)
from paygate.models.events import Event
from paygate.services.body_collector import collect_body
from paygate.services.event_router import EventRouter
from paygate.services.response_mapper import MappedResponse, map_error, map_outcome
from paygate.services.signature_verifier import DEFAULT_TOLERANCE_SECONDS, verify_signature
from paygate.utils.logging import get_logger, log_webhook_event

logger = get_logger(__name__)


class WebhookProcessor:
    """Processes provider webhook deliveries.

    Usage:
        processor = WebhookProcessor(router, secret_provider=lambda: "whsec_...")
        response = await processor.process(request.stream(), request.headers.get("Stripe-Signature"))
    """

    def __init__(
        self,
        router: EventRouter,
        secret_provider: Callable[[], str],
        *,
        tolerance_seconds: int = DEFAULT_TOLERANCE_SECONDS,
        ignored_status: int = HTTP_200_OK,
        max_body_bytes: int | None = None,
        clock: Callable[[], float] | None = None,
    ) -> None:
        self._router = router
        self._secret_provider = secret_provider
        self._tolerance_seconds = tolerance_seconds
        self._ignored_status = ignored_status
        self._max_body_bytes = max_body_bytes
        self._clock = clock

    async def process(
        self,
        stream: AsyncIterator[bytes] | None,
        signature_header: str | None,
    ) -> MappedResponse:
        """Verify and dispatch one delivery.

        Args:
            stream: Request body stream
            signature_header: Value of the Stripe-Signature header

        Returns:
            Status code and body to send back to the provider.
        """
        event: Event | None = None
        try:
            raw = await collect_body(stream, max_bytes=self._max_body_bytes)
            secret = await asyncio.to_thread(self._secret_provider)
            now = self._clock() if self._clock else None
            event = verify_signature(raw, signature_header, secret, self._tolerance_seconds, now=now)
            log_webhook_event(logger, event.type, event.id, result="received", livemode=event.livemode)
            outcome = await self._router.dispatch(event)
        except (IncompleteBodyError, PayloadTooLargeError) as e:
            logger.warning("Webhook body rejected [%s]: %s", e.code.value, e.detail)
            return map_error(e)
        except WebhookVerificationError as e:
            # detail never carries the secret or signature values
            logger.warning(
                "Webhook verification failed [%s]: %s (%s)",
                e.code.value,
                e.detail,
                e.recovery,
            )
            return map_error(e, event=event)
        except WebhookError as e:
            if event is not None:
                log_webhook_event(logger, event.type, event.id, result="error", error=e.message)
            logger.error("Webhook processing failed [%s]: %s (%s)", e.code.value, e.detail, e.recovery)
            return map_error(e, event=event)
        except Exception as e:
            logger.exception("Unhandled error while processing webhook: %s", e)
            return map_error(e, event=event)

        result = outcome.kind.value
        if outcome.kind is OutcomeKind.ACKNOWLEDGED and outcome.message.startswith("duplicate"):
            result = "duplicate"
        log_webhook_event(logger, event.type, event.id, result=result, reason=outcome.message)

        return map_outcome(outcome, ignored_status=self._ignored_status, event=event)
