"""Webhook signature verification (Stripe v1 scheme).

Security contract:
- Signatures are checked by the Stripe SDK (HMAC-SHA256 over
  ``{timestamp}.{raw body}``, constant-time comparison)
- Timestamps outside the tolerance window are rejected (replay protection)
- Error messages never include the secret or signature values

``compute_signature`` and ``build_signature_header`` sign payloads for the
test sender; they are not used on the verification path.
"""

import hashlib
import hmac
import json
import logging
import time
from dataclasses import dataclass

import stripe
from pydantic import ValidationError

from paygate.models.errors import (
    MalformedHeaderError,
    MalformedPayloadError,
    SignatureMismatchError,
    StaleSignatureError,
)
from paygate.models.events import Event

logger = logging.getLogger(__name__)

SIGNATURE_HEADER = "Stripe-Signature"
EXPECTED_SCHEME = "v1"
DEFAULT_TOLERANCE_SECONDS = 300


@dataclass(frozen=True)
class SignatureHeader:
    """Parsed ``t=<ts>,v1=<hex>[,v1=<hex>...]`` header."""

    timestamp: int
    signatures: tuple[str, ...]


def parse_signature_header(header_value: str | None) -> SignatureHeader:
    """Split a signature header into its timestamp and v1 signatures.

    Entries for other schemes (v0) are ignored.

    Raises:
        MalformedHeaderError: Header missing, no integer ``t``, or no v1 entry.
    """
    if not header_value:
        raise MalformedHeaderError("signature header missing")

    timestamp: int | None = None
    signatures: list[str] = []

    for item in header_value.split(","):
        key, sep, value = item.strip().partition("=")
        if not sep:
            continue
        if key == "t" and timestamp is None:
            try:
                timestamp = int(value)
            except ValueError:
                raise MalformedHeaderError("timestamp is not an integer") from None
        elif key == EXPECTED_SCHEME and value:
            signatures.append(value)

    if timestamp is None:
        raise MalformedHeaderError("no timestamp in signature header")
    if not signatures:
        raise MalformedHeaderError(f"no {EXPECTED_SCHEME} signatures in signature header")

    return SignatureHeader(timestamp=timestamp, signatures=tuple(signatures))


def compute_signature(raw: bytes, secret: str, timestamp: int) -> str:
    """Compute the hex HMAC-SHA256 the provider sends for ``raw``."""
    signed_payload = f"{timestamp}.".encode("utf-8") + raw
    return hmac.new(secret.encode("utf-8"), signed_payload, hashlib.sha256).hexdigest()


def build_signature_header(raw: bytes, secret: str, timestamp: int | None = None) -> str:
    """Build a signature header in the provider's encoding."""
    if timestamp is None:
        timestamp = int(time.time())
    return f"t={timestamp},{EXPECTED_SCHEME}={compute_signature(raw, secret, timestamp)}"


def decode_event(raw: bytes) -> Event:
    """Parse a verified body into an Event.

    Raises:
        MalformedPayloadError: Not JSON, not an object, or missing id/type.
    """
    try:
        document = json.loads(raw)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise MalformedPayloadError("payload is not valid JSON") from e

    if not isinstance(document, dict):
        raise MalformedPayloadError("payload is not a JSON object")

    try:
        return Event.model_validate(document)
    except ValidationError as e:
        fields = ", ".join(str(err["loc"][0]) for err in e.errors() if err["loc"])
        raise MalformedPayloadError(f"invalid event fields: {fields}") from e


def _provider_header(header: SignatureHeader) -> str:
    # The SDK compares str signatures with compare_digest, which rejects non-ASCII
    ascii_signatures = [sig for sig in header.signatures if sig.isascii()]
    if not ascii_signatures:
        raise SignatureMismatchError(f"no usable {EXPECTED_SCHEME} signatures")
    entries = [f"t={header.timestamp}", *(f"{EXPECTED_SCHEME}={sig}" for sig in ascii_signatures)]
    return ",".join(entries)


def verify_signature(
    raw: bytes,
    header_value: str | None,
    secret: str,
    tolerance_seconds: int = DEFAULT_TOLERANCE_SECONDS,
    *,
    now: float | None = None,
) -> Event:
    """Verify a webhook delivery and decode its event.

    The header is parsed and its age checked here, in both directions and
    against ``now``; the signature itself is checked by the Stripe SDK.

    Args:
        raw: Request body exactly as received
        header_value: Value of the Stripe-Signature header
        secret: Shared signing secret (whsec_xxx)
        tolerance_seconds: Maximum accepted age of the signed timestamp
        now: Current epoch seconds; defaults to the wall clock

    Returns:
        The decoded Event.

    Raises:
        MalformedHeaderError: Header structure invalid.
        StaleSignatureError: Timestamp outside the tolerance window.
        SignatureMismatchError: No provided signature matches.
        MalformedPayloadError: Body is not a valid event document.
    """
    header = parse_signature_header(header_value)

    current = time.time() if now is None else now
    if abs(current - header.timestamp) > tolerance_seconds:
        logger.warning(
            "Webhook timestamp outside tolerance: t=%d skew=%ds",
            header.timestamp,
            int(current - header.timestamp),
        )
        raise StaleSignatureError(f"timestamp skew exceeds {tolerance_seconds}s")

    try:
        payload = raw.decode("utf-8")
    except UnicodeDecodeError as e:
        raise SignatureMismatchError("payload is not UTF-8 and cannot be verified") from e

    try:
        # tolerance=None: the window was already enforced against ``now``
        stripe.WebhookSignature.verify_header(payload, _provider_header(header), secret, tolerance=None)
    except stripe.SignatureVerificationError as e:
        raise SignatureMismatchError(
            f"none of {len(header.signatures)} {EXPECTED_SCHEME} signatures matched"
        ) from e

    event = decode_event(raw)
    logger.debug("Webhook signature verified for event %s (%s)", event.id, event.type)
    return event
