"""Webhook verification, dispatch and side-effect services."""

from .body_collector import collect_body
from .checkout_handler import CheckoutEventHandler
from .dynamodb import DynamoDBService, get_dynamodb_service, reset_dynamodb_service
from .entitlements import (
    DynamoDBEntitlementService,
    EntitlementService,
    InMemoryEntitlementService,
)
from .event_router import HANDLED_EVENT_TYPES, DefaultHandler, EventRouter
from .ledger import (
    DynamoDBEventLedger,
    InMemoryEventLedger,
    ProcessedEventLedger,
    run_once,
)
from .response_mapper import MappedResponse, WebhookResponse, map_error, map_outcome
from .signature_verifier import (
    SIGNATURE_HEADER,
    SignatureHeader,
    build_signature_header,
    compute_signature,
    parse_signature_header,
    verify_signature,
)
from .ssm_service import SSMService, SSMServiceError, get_ssm_service
from .subscription_handler import SubscriptionEventHandler
from .webhook_processor import WebhookProcessor

__all__ = [
    "collect_body",
    "CheckoutEventHandler",
    "DynamoDBService",
    "get_dynamodb_service",
    "reset_dynamodb_service",
    "DynamoDBEntitlementService",
    "EntitlementService",
    "InMemoryEntitlementService",
    "HANDLED_EVENT_TYPES",
    "DefaultHandler",
    "EventRouter",
    "DynamoDBEventLedger",
    "InMemoryEventLedger",
    "ProcessedEventLedger",
    "run_once",
    "MappedResponse",
    "WebhookResponse",
    "map_error",
    "map_outcome",
    "SIGNATURE_HEADER",
    "SignatureHeader",
    "build_signature_header",
    "compute_signature",
    "parse_signature_header",
    "verify_signature",
    "SSMService",
    "SSMServiceError",
    "get_ssm_service",
    "SubscriptionEventHandler",
    "WebhookProcessor",
]
