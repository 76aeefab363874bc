"""Standard error codes for the webhook receiver.

Every failure the receiver can report to the payment provider carries one of
these codes. The HTTP status for each code lives in the response mapper.
"""

from enum import Enum


class ErrorCode(str, Enum):
    """Error codes reported by the webhook receiver."""

    # Transport errors
    INCOMPLETE_BODY = "ERR_WEBHOOK_001"
    PAYLOAD_TOO_LARGE = "ERR_WEBHOOK_002"

    # Verification errors
    MALFORMED_SIGNATURE_HEADER = "ERR_WEBHOOK_003"
    STALE_SIGNATURE = "ERR_WEBHOOK_004"
    SIGNATURE_MISMATCH = "ERR_WEBHOOK_005"
    MALFORMED_PAYLOAD = "ERR_WEBHOOK_006"

    # Server-side errors
    CONFIGURATION_MISSING = "ERR_WEBHOOK_007"
    FULFILLMENT_FAILED = "ERR_WEBHOOK_008"
    LEDGER_UNAVAILABLE = "ERR_WEBHOOK_009"
    INTERNAL = "ERR_INTERNAL"


ERROR_MESSAGES: dict[ErrorCode, str] = {
    ErrorCode.INCOMPLETE_BODY: "Request body missing or incomplete",
    ErrorCode.PAYLOAD_TOO_LARGE: "Request body exceeds the accepted size",
    ErrorCode.MALFORMED_SIGNATURE_HEADER: "Signature header missing or malformed",
    ErrorCode.STALE_SIGNATURE: "Signature timestamp outside the tolerance window",
    ErrorCode.SIGNATURE_MISMATCH: "Invalid webhook signature",
    ErrorCode.MALFORMED_PAYLOAD: "Event payload is not a valid event document",
    ErrorCode.CONFIGURATION_MISSING: "Webhook receiver is not configured",
    ErrorCode.FULFILLMENT_FAILED: "Event side effect failed, retry later",
    ErrorCode.LEDGER_UNAVAILABLE: "Processed event ledger unavailable, retry later",
    ErrorCode.INTERNAL: "An unexpected error occurred",
}

# Operator hints, logged next to the error. Never sent with secret material.
ERROR_RECOVERY: dict[ErrorCode, str] = {
    ErrorCode.INCOMPLETE_BODY: "Check for proxies truncating request bodies",
    ErrorCode.PAYLOAD_TOO_LARGE: "Raise MAX_BODY_BYTES if the provider payloads grew",
    ErrorCode.MALFORMED_SIGNATURE_HEADER: "Ensure the endpoint only receives provider webhooks",
    ErrorCode.STALE_SIGNATURE: "Check server clock drift or replayed requests",
    ErrorCode.SIGNATURE_MISMATCH: "Verify webhook secret configuration",
    ErrorCode.MALFORMED_PAYLOAD: "Inspect the event in the provider dashboard",
    ErrorCode.CONFIGURATION_MISSING: "Set STRIPE_WEBHOOK_SIGNING_SECRET (or the SSM parameter) and STRIPE_PAYMENT_LINK_ID",
    ErrorCode.FULFILLMENT_FAILED: "The provider will retry; inspect entitlement store health",
    ErrorCode.LEDGER_UNAVAILABLE: "The provider will retry; inspect ledger table health",
    ErrorCode.INTERNAL: "Inspect service logs for the correlation id",
}


class WebhookError(Exception):
    """Base exception for webhook receiver failures.

    Subclasses pin the error code; ``detail`` is for logs only and is never
    sent back in the response body.
    """

    code: ErrorCode = ErrorCode.INTERNAL

    def __init__(self, detail: str | None = None):
        self.message = ERROR_MESSAGES[self.code]
        self.recovery = ERROR_RECOVERY[self.code]
        self.detail = detail
        super().__init__(detail or self.message)


class IncompleteBodyError(WebhookError):
    """The request body was absent or the stream ended abnormally."""

    code = ErrorCode.INCOMPLETE_BODY


class PayloadTooLargeError(WebhookError):
    """The request body exceeded the configured size bound."""

    code = ErrorCode.PAYLOAD_TOO_LARGE


class WebhookVerificationError(WebhookError):
    """Base class for authenticity and decoding failures."""

    code = ErrorCode.SIGNATURE_MISMATCH


class MalformedHeaderError(WebhookVerificationError):
    code = ErrorCode.MALFORMED_SIGNATURE_HEADER


class StaleSignatureError(WebhookVerificationError):
    code = ErrorCode.STALE_SIGNATURE


class SignatureMismatchError(WebhookVerificationError):
    code = ErrorCode.SIGNATURE_MISMATCH


class MalformedPayloadError(WebhookVerificationError):
    code = ErrorCode.MALFORMED_PAYLOAD


class ConfigurationError(WebhookError):
    """Required configuration is missing or invalid."""

    code = ErrorCode.CONFIGURATION_MISSING


class FulfillmentError(WebhookError):
    """A grant or revoke side effect failed."""

    code = ErrorCode.FULFILLMENT_FAILED


class LedgerError(WebhookError):
    """The processed event ledger could not be read or written."""

    code = ErrorCode.LEDGER_UNAVAILABLE
