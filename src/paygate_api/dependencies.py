"""FastAPI dependency injection providers for webhook services.

Factory functions use @lru_cache so each service is built once per process
and shared across requests. The ledger is the only state shared between
requests.

Service Dependency Graph:
    WebhookSettings (from environment)
        ├── DynamoDBService (singleton via get_dynamodb_service)
        │       ├── DynamoDBEventLedger
        │       └── DynamoDBEntitlementService
        └── EventRouter
                ├── CheckoutEventHandler
                └── SubscriptionEventHandler
    WebhookProcessor (router + signing secret)

Testing:
    Use reset_services() to clear cached instances between tests.
"""

from functools import lru_cache

from paygate.config import WebhookSettings, require_product_reference, resolve_webhook_secret
from paygate.services.checkout_handler import CheckoutEventHandler
from paygate.services.dynamodb import get_dynamodb_service
from paygate.services.entitlements import (
    DynamoDBEntitlementService,
    EntitlementService,
    InMemoryEntitlementService,
)
from paygate.services.event_router import EventRouter
from paygate.services.ledger import (
    DynamoDBEventLedger,
    InMemoryEventLedger,
    ProcessedEventLedger,
)
from paygate.services.subscription_handler import SubscriptionEventHandler
from paygate.services.webhook_processor import WebhookProcessor


@lru_cache
def get_settings() -> WebhookSettings:
    """Get cached settings built from the environment.

    Raises:
        ConfigurationError: If the environment holds invalid values.
    """
    return WebhookSettings.from_env()


@lru_cache
def get_ledger() -> ProcessedEventLedger:
    settings = get_settings()
    if settings.ledger_backend == "memory":
        return InMemoryEventLedger()
    return DynamoDBEventLedger(get_dynamodb_service(settings.dynamodb_table_prefix))


@lru_cache
def get_entitlement_service() -> EntitlementService:
    settings = get_settings()
    if settings.entitlement_backend == "memory":
        return InMemoryEntitlementService()
    return DynamoDBEntitlementService(get_dynamodb_service(settings.dynamodb_table_prefix))


@lru_cache
def get_event_router() -> EventRouter:
    """Get cached EventRouter wired to the configured handlers.

    Raises:
        ConfigurationError: If STRIPE_PAYMENT_LINK_ID is not set. Nothing is
            cached, so every delivery fails until it is.
    """
    settings = get_settings()
    ledger = get_ledger()
    entitlements = get_entitlement_service()
    return EventRouter(
        checkout=CheckoutEventHandler(
            ledger,
            entitlements,
            expected_product_reference=require_product_reference(settings),
            minimum_amount=settings.minimum_amount,
        ),
        subscription=SubscriptionEventHandler(ledger, entitlements),
    )


@lru_cache
def get_webhook_processor() -> WebhookProcessor:
    """Get cached WebhookProcessor.

    The signing secret is resolved per delivery (SSM lookups are cached by
    the SSM service), so a missing secret fails requests with a server
    error instead of failing application startup.
    """
    settings = get_settings()
    return WebhookProcessor(
        get_event_router(),
        secret_provider=lambda: resolve_webhook_secret(settings),
        tolerance_seconds=settings.tolerance_seconds,
        ignored_status=settings.ignored_status_code,
        max_body_bytes=settings.max_body_bytes,
    )


def reset_services() -> None:
    """Clear all cached service instances.

    Call this in test fixtures to ensure clean state between tests.
    Also resets the underlying DynamoDB and SSM singletons.

    Example:
        @pytest.fixture(autouse=True)
        def reset_state():
            yield
            reset_services()
    """
    from paygate.services.dynamodb import reset_dynamodb_service
    from paygate.services.ssm_service import get_ssm_service

    get_settings.cache_clear()
    get_ledger.cache_clear()
    get_entitlement_service.cache_clear()
    get_event_router.cache_clear()
    get_webhook_processor.cache_clear()

    reset_dynamodb_service()
    get_ssm_service.cache_clear()
