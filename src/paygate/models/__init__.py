"""Pydantic models for paygate webhook processing."""

from .enums import (
    REVOKE_STATUSES,
    CheckoutMode,
    CheckoutPaymentStatus,
    LedgerAction,
    OutcomeKind,
    SubscriptionStatus,
)
from .errors import (
    ERROR_MESSAGES,
    ERROR_RECOVERY,
    ConfigurationError,
    ErrorCode,
    FulfillmentError,
    IncompleteBodyError,
    LedgerError,
    MalformedHeaderError,
    MalformedPayloadError,
    PayloadTooLargeError,
    SignatureMismatchError,
    StaleSignatureError,
    WebhookError,
    WebhookVerificationError,
)
from .events import (
    CheckoutSession,
    CustomerDetails,
    Event,
    EventData,
    SubscriptionRecord,
)
from .ledger import EntitlementGrant, ProcessedEvent
from .outcome import Outcome

__all__ = [
    # Enums
    "CheckoutMode",
    "CheckoutPaymentStatus",
    "LedgerAction",
    "OutcomeKind",
    "SubscriptionStatus",
    "REVOKE_STATUSES",
    # Errors
    "ERROR_MESSAGES",
    "ERROR_RECOVERY",
    "ConfigurationError",
    "ErrorCode",
    "FulfillmentError",
    "IncompleteBodyError",
    "LedgerError",
    "MalformedHeaderError",
    "MalformedPayloadError",
    "PayloadTooLargeError",
    "SignatureMismatchError",
    "StaleSignatureError",
    "WebhookError",
    "WebhookVerificationError",
    # Events
    "CheckoutSession",
    "CustomerDetails",
    "Event",
    "EventData",
    "SubscriptionRecord",
    # Ledger
    "EntitlementGrant",
    "ProcessedEvent",
    "Outcome",
]
