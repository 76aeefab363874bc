"""Pytest configuration and fixtures for paygate webhook tests.

This module provides reusable fixtures for testing:
- DynamoDB mocking with moto
- Signed webhook payloads
- Sample checkout and subscription events
"""

import json
import os
import time
from typing import Any, Callable, Generator

import boto3
import pytest
from moto import mock_aws

from paygate.services.signature_verifier import build_signature_header

# === Environment Setup ===

os.environ.setdefault("AWS_DEFAULT_REGION", "eu-west-1")
if not os.environ.get("AWS_PROFILE") and not os.environ.get("AWS_ACCESS_KEY_ID"):
    os.environ.setdefault("AWS_ACCESS_KEY_ID", "testing")
    os.environ.setdefault("AWS_SECRET_ACCESS_KEY", "testing")

TEST_WEBHOOK_SECRET = "whsec_test_secret_for_testing"
TEST_PAYMENT_LINK = "plink_test_1ABC"
TEST_TABLE_PREFIX = "test-paygate"
TEST_CUSTOMER_ID = "cus_test_OWNER"

# Variables read by WebhookSettings.from_env(); cleared per test
SETTINGS_ENV_VARS = (
    "ENVIRONMENT",
    "STRIPE_WEBHOOK_SIGNING_SECRET",
    "WEBHOOK_SECRET_SSM_PARAMETER",
    "STRIPE_PAYMENT_LINK_ID",
    "MINIMUM_AMOUNT",
    "SIGNATURE_TOLERANCE_SECONDS",
    "IGNORED_STATUS_CODE",
    "MAX_BODY_BYTES",
    "LEDGER_BACKEND",
    "ENTITLEMENT_BACKEND",
    "DYNAMODB_TABLE_PREFIX",
    "LOG_LEVEL",
)


# === Service Reset ===


@pytest.fixture(autouse=True)
def reset_services_between_tests(monkeypatch: pytest.MonkeyPatch) -> Generator[None, None, None]:
    """Give every test fresh settings and service singletons."""
    from paygate_api.dependencies import reset_services

    for var in SETTINGS_ENV_VARS:
        monkeypatch.delenv(var, raising=False)

    reset_services()
    yield
    reset_services()


# === Configuration Fixtures ===


@pytest.fixture
def webhook_env(monkeypatch: pytest.MonkeyPatch) -> dict[str, str]:
    """Environment for an app using in-memory ledger and entitlements."""
    values = {
        "STRIPE_WEBHOOK_SIGNING_SECRET": TEST_WEBHOOK_SECRET,
        "STRIPE_PAYMENT_LINK_ID": TEST_PAYMENT_LINK,
        "MINIMUM_AMOUNT": "50",
        "LEDGER_BACKEND": "memory",
        "ENTITLEMENT_BACKEND": "memory",
    }
    for key, value in values.items():
        monkeypatch.setenv(key, value)
    return values


# === DynamoDB Fixtures ===


@pytest.fixture
def aws_credentials() -> None:
    """Mocked AWS Credentials for moto."""
    if not os.environ.get("AWS_PROFILE"):
        os.environ["AWS_ACCESS_KEY_ID"] = "testing"
        os.environ["AWS_SECRET_ACCESS_KEY"] = "testing"
        os.environ["AWS_SECURITY_TOKEN"] = "testing"
        os.environ["AWS_SESSION_TOKEN"] = "testing"
    os.environ["AWS_DEFAULT_REGION"] = "eu-west-1"


@pytest.fixture
def dynamodb_tables(aws_credentials: None) -> Generator[Any, None, None]:
    """Create the ledger and entitlement tables inside a moto mock."""
    with mock_aws():
        client = boto3.client("dynamodb", region_name="eu-west-1")

        client.create_table(
            TableName=f"{TEST_TABLE_PREFIX}-processed-events",
            KeySchema=[{"AttributeName": "event_id", "KeyType": "HASH"}],
            AttributeDefinitions=[{"AttributeName": "event_id", "AttributeType": "S"}],
            BillingMode="PAY_PER_REQUEST",
        )

        client.create_table(
            TableName=f"{TEST_TABLE_PREFIX}-entitlements",
            KeySchema=[{"AttributeName": "email", "KeyType": "HASH"}],
            AttributeDefinitions=[
                {"AttributeName": "email", "AttributeType": "S"},
                {"AttributeName": "customer_id", "AttributeType": "S"},
            ],
            GlobalSecondaryIndexes=[
                {
                    "IndexName": "customer_id-index",
                    "KeySchema": [{"AttributeName": "customer_id", "KeyType": "HASH"}],
                    "Projection": {"ProjectionType": "ALL"},
                },
            ],
            BillingMode="PAY_PER_REQUEST",
        )

        yield boto3.resource("dynamodb", region_name="eu-west-1")


# === Sample Event Fixtures ===


def make_checkout_event(
    event_id: str = "evt_checkout_123",
    *,
    event_type: str = "checkout.session.completed",
    **overrides: Any,
) -> dict[str, Any]:
    """Create a checkout.session.completed event document."""
    session: dict[str, Any] = {
        "id": "cs_test_abc123",
        "object": "checkout.session",
        "payment_status": "paid",
        "mode": "payment",
        "amount_total": 500,
        "currency": "usd",
        "payment_link": TEST_PAYMENT_LINK,
        "customer": TEST_CUSTOMER_ID,
        "customer_details": {"email": "buyer@example.com", "name": "Ada Buyer"},
    }
    session.update(overrides)
    return {
        "id": event_id,
        "object": "event",
        "type": event_type,
        "created": int(time.time()),
        "livemode": False,
        "data": {"object": session},
    }


def make_subscription_event(
    event_id: str = "evt_subscription_456",
    *,
    status: str = "canceled",
    event_type: str = "customer.subscription.deleted",
    customer: str = TEST_CUSTOMER_ID,
) -> dict[str, Any]:
    """Create a customer.subscription.* event document."""
    return {
        "id": event_id,
        "object": "event",
        "type": event_type,
        "created": int(time.time()),
        "livemode": False,
        "data": {
            "object": {
                "id": "sub_test_789",
                "object": "subscription",
                "customer": customer,
                "status": status,
            }
        },
    }


@pytest.fixture
def checkout_event() -> Callable[..., dict[str, Any]]:
    return make_checkout_event


@pytest.fixture
def subscription_event() -> Callable[..., dict[str, Any]]:
    return make_subscription_event


@pytest.fixture
def signed() -> Callable[..., tuple[bytes, dict[str, str]]]:
    """Serialize an event and build matching request headers."""

    def _signed(
        event: dict[str, Any],
        secret: str = TEST_WEBHOOK_SECRET,
        timestamp: int | None = None,
    ) -> tuple[bytes, dict[str, str]]:
        payload = json.dumps(event).encode("utf-8")
        headers = {
            "Content-Type": "application/json",
            "Stripe-Signature": build_signature_header(payload, secret, timestamp),
        }
        return payload, headers

    return _signed
