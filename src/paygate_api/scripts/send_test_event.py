#!/usr/bin/env python3
"""Send a signed sample event to a running webhook receiver.

Builds a provider-shaped event, signs it with the shared secret exactly the
way the provider does, and POSTs it. Useful to check a local or staging
deployment end to end without the provider's CLI.

Usage:
    paygate-send-test-event --url http://localhost:8080/webhook \\
        --type checkout.session.completed --amount 500 --email buyer@example.com

    paygate-send-test-event --type customer.subscription.deleted --customer cus_123

The secret defaults to STRIPE_WEBHOOK_SIGNING_SECRET.
"""

from __future__ import annotations

import argparse
import json
import os
import sys
import time
import uuid
from typing import Any

import httpx

from paygate.services.signature_verifier import SIGNATURE_HEADER, build_signature_header

CHECKOUT_TYPES = ("checkout.session.completed", "checkout.session.async_payment_succeeded")
SUBSCRIPTION_TYPES = (
    "customer.subscription.deleted",
    "customer.subscription.updated",
    "customer.subscription.paused",
)


def build_test_event(
    event_type: str,
    *,
    event_id: str | None = None,
    amount_total: int = 500,
    currency: str = "usd",
    email: str = "buyer@example.com",
    name: str | None = "Test Buyer",
    payment_link: str | None = None,
    customer_id: str = "cus_test_123",
    subscription_status: str = "canceled",
) -> dict[str, Any]:
    """Build a sample event document for ``event_type``."""
    if event_type in CHECKOUT_TYPES:
        data_object: dict[str, Any] = {
            "id": f"cs_test_{uuid.uuid4().hex[:16]}",
            "object": "checkout.session",
            "payment_status": "paid",
            "mode": "payment",
            "amount_total": amount_total,
            "currency": currency,
            "payment_link": payment_link,
            "customer": customer_id,
            "customer_details": {"email": email, "name": name},
        }
    elif event_type in SUBSCRIPTION_TYPES:
        data_object = {
            "id": f"sub_test_{uuid.uuid4().hex[:16]}",
            "object": "subscription",
            "customer": customer_id,
            "status": subscription_status,
        }
    else:
        data_object = {"id": f"obj_test_{uuid.uuid4().hex[:16]}"}

    return {
        "id": event_id or f"evt_test_{uuid.uuid4().hex[:16]}",
        "object": "event",
        "type": event_type,
        "created": int(time.time()),
        "livemode": False,
        "data": {"object": data_object},
    }


def send_test_event(
    url: str,
    secret: str,
    event: dict[str, Any],
    *,
    client: httpx.Client | None = None,
    timeout: float = 10.0,
) -> httpx.Response:
    """Sign ``event`` and POST it to ``url``.

    The body is serialized once and the exact bytes are both signed and sent.
    """
    payload = json.dumps(event).encode("utf-8")
    headers = {
        "Content-Type": "application/json",
        SIGNATURE_HEADER: build_signature_header(payload, secret),
    }
    if client is not None:
        return client.post(url, content=payload, headers=headers)
    with httpx.Client(timeout=timeout) as own_client:
        return own_client.post(url, content=payload, headers=headers)


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Send a signed sample event to a webhook receiver")
    parser.add_argument(
        "--url",
        default="http://localhost:8080/webhook",
        help="Receiver URL (default: http://localhost:8080/webhook)",
    )
    parser.add_argument(
        "--secret",
        default=os.environ.get("STRIPE_WEBHOOK_SIGNING_SECRET"),
        help="Signing secret (default: $STRIPE_WEBHOOK_SIGNING_SECRET)",
    )
    parser.add_argument("--type", dest="event_type", default="checkout.session.completed")
    parser.add_argument("--event-id", help="Reuse an event id to test duplicate handling")
    parser.add_argument("--amount", type=int, default=500, help="Amount in minor units")
    parser.add_argument("--currency", default="usd")
    parser.add_argument("--email", default="buyer@example.com")
    parser.add_argument(
        "--payment-link",
        default=os.environ.get("STRIPE_PAYMENT_LINK_ID"),
        help="Product reference (default: $STRIPE_PAYMENT_LINK_ID)",
    )
    parser.add_argument("--customer", default="cus_test_123", help="Provider customer id")
    parser.add_argument("--status", default="canceled", help="Subscription status")

    args = parser.parse_args(argv)

    if not args.secret:
        print("No signing secret: pass --secret or set STRIPE_WEBHOOK_SIGNING_SECRET", file=sys.stderr)
        return 2

    event = build_test_event(
        args.event_type,
        event_id=args.event_id,
        amount_total=args.amount,
        currency=args.currency,
        email=args.email,
        payment_link=args.payment_link,
        customer_id=args.customer,
        subscription_status=args.status,
    )

    try:
        response = send_test_event(args.url, args.secret, event)
    except httpx.HTTPError as e:
        print(f"Request failed: {e}", file=sys.stderr)
        return 1

    print(f"{event['type']} {event['id']} -> {response.status_code}")
    print(response.text)
    return 0 if response.is_success else 1


if __name__ == "__main__":
    sys.exit(main())
