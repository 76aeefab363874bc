"""Mapping of dispatch outcomes and errors to provider-facing responses.

The provider only looks at the status code: 2xx stops retries, anything
else schedules a retry. Status policy:

- processed, acknowledged -> 200
- ignored -> configurable (default 200), the same for every ignored outcome
- rejected -> 400
- transport and verification errors -> 400 (413 for oversized bodies)
- configuration, ledger, side-effect and unexpected errors -> 500
"""

from dataclasses import dataclass

from pydantic import BaseModel, Field
from starlette.status import (
    HTTP_200_OK,
    HTTP_400_BAD_REQUEST,
    HTTP_413_CONTENT_TOO_LARGE,
    HTTP_500_INTERNAL_SERVER_ERROR,
)

from paygate.models.enums import OutcomeKind
from paygate.models.errors import ERROR_MESSAGES, ErrorCode, WebhookError
from paygate.models.events import Event
from paygate.models.outcome import Outcome

ERROR_CODE_TO_HTTP_STATUS: dict[ErrorCode, int] = {
    # Transport errors
    ErrorCode.INCOMPLETE_BODY: HTTP_400_BAD_REQUEST,
    ErrorCode.PAYLOAD_TOO_LARGE: HTTP_413_CONTENT_TOO_LARGE,
    # Verification errors
    ErrorCode.MALFORMED_SIGNATURE_HEADER: HTTP_400_BAD_REQUEST,
    ErrorCode.STALE_SIGNATURE: HTTP_400_BAD_REQUEST,
    ErrorCode.SIGNATURE_MISMATCH: HTTP_400_BAD_REQUEST,
    ErrorCode.MALFORMED_PAYLOAD: HTTP_400_BAD_REQUEST,
    # Server-side errors -> provider retries
    ErrorCode.CONFIGURATION_MISSING: HTTP_500_INTERNAL_SERVER_ERROR,
    ErrorCode.FULFILLMENT_FAILED: HTTP_500_INTERNAL_SERVER_ERROR,
    ErrorCode.LEDGER_UNAVAILABLE: HTTP_500_INTERNAL_SERVER_ERROR,
    ErrorCode.INTERNAL: HTTP_500_INTERNAL_SERVER_ERROR,
}


class WebhookResponse(BaseModel):
    """JSON body returned for every webhook delivery."""

    received: bool
    message: str
    result: str = Field(..., description="Outcome kind or 'error'")
    event_id: str | None = None
    event_type: str | None = None
    error_code: ErrorCode | None = None


@dataclass(frozen=True)
class MappedResponse:
    status_code: int
    body: WebhookResponse


def status_for_outcome(outcome: Outcome, ignored_status: int = HTTP_200_OK) -> int:
    if outcome.kind is OutcomeKind.IGNORED:
        return ignored_status
    if outcome.kind is OutcomeKind.REJECTED:
        return HTTP_400_BAD_REQUEST
    return HTTP_200_OK


def map_outcome(
    outcome: Outcome,
    *,
    ignored_status: int = HTTP_200_OK,
    event: Event | None = None,
) -> MappedResponse:
    """Convert a handler outcome into a status code and body."""
    status_code = status_for_outcome(outcome, ignored_status)
    return MappedResponse(
        status_code=status_code,
        body=WebhookResponse(
            received=status_code < 300,
            message=outcome.message,
            result=outcome.kind.value,
            event_id=event.id if event else None,
            event_type=event.type if event else None,
        ),
    )


def map_error(exc: BaseException, *, event: Event | None = None) -> MappedResponse:
    """Convert an exception into a status code and a generic diagnostic.

    Only the standard message for the error code is exposed; exception
    details stay in the logs.
    """
    code = exc.code if isinstance(exc, WebhookError) else ErrorCode.INTERNAL
    return MappedResponse(
        status_code=ERROR_CODE_TO_HTTP_STATUS.get(code, HTTP_500_INTERNAL_SERVER_ERROR),
        body=WebhookResponse(
            received=False,
            message=ERROR_MESSAGES[code],
            result="error",
            event_id=event.id if event else None,
            event_type=event.type if event else None,
            error_code=code,
        ),
    )
