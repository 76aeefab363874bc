"""Logging setup and helpers for webhook processing.

Every record carries the id of the request it belongs to, so one delivery
can be followed from signature check to side effect:

    set_correlation_id(request.headers.get("X-Correlation-ID"))
    logger = get_logger(__name__)
    log_webhook_event(logger, event.type, event.id, result="processed")

``CorrelationIdMiddleware`` sets and clears the id around each request.
"""

import logging
import uuid
from contextvars import ContextVar
from typing import Any

_correlation_id: ContextVar[str | None] = ContextVar("correlation_id", default=None)

NO_CORRELATION_ID = "no-correlation-id"
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

# Lifecycle results logged above INFO
_WARNING_RESULTS = frozenset({"duplicate", "ignored", "rejected"})


def generate_correlation_id() -> str:
    return uuid.uuid4().hex


def set_correlation_id(correlation_id: str | None = None) -> str:
    """Bind ``correlation_id`` (or a fresh one) to the current context.

    Returns:
        The id now in effect.
    """
    value = correlation_id or generate_correlation_id()
    _correlation_id.set(value)
    return value


def get_correlation_id() -> str | None:
    return _correlation_id.get()


def clear_correlation_id() -> None:
    _correlation_id.set(None)


class CorrelationIdFilter(logging.Filter):
    """Stamps ``record.correlation_id``; never drops a record."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.correlation_id = get_correlation_id() or NO_CORRELATION_ID
        return True


class StructuredFormatter(logging.Formatter):
    """Prefixes each line with ``[correlation_id]``."""

    def format(self, record: logging.LogRecord) -> str:
        correlation_id = getattr(record, "correlation_id", None) or get_correlation_id()
        return f"[{correlation_id or NO_CORRELATION_ID}] {super().format(record)}"


def configure_logging(level: str | int = "INFO") -> None:
    """Install the structured handler on the root logger.

    ``LOG_LEVEL=DEBUG`` takes the place of a debug switch and shows per-event
    detail. Calling this again only changes the level.

    Raises:
        ValueError: ``level`` is not a known logging level.
    """
    root = logging.getLogger()
    root.setLevel(level)

    if any(isinstance(h.formatter, StructuredFormatter) for h in root.handlers):
        return

    handler = logging.StreamHandler()
    handler.setFormatter(StructuredFormatter(LOG_FORMAT))
    handler.addFilter(CorrelationIdFilter())
    root.addHandler(handler)


def get_logger(name: str) -> logging.Logger:
    """``logging.getLogger`` with a CorrelationIdFilter attached once."""
    logger = logging.getLogger(name)
    if not any(isinstance(f, CorrelationIdFilter) for f in logger.filters):
        logger.addFilter(CorrelationIdFilter())
    return logger


def _render(title: str, fields: dict[str, Any]) -> str:
    return " | ".join([title, *(f"{key}={value}" for key, value in fields.items())])


def log_side_effect(
    logger: logging.Logger,
    action: str,
    event_id: str,
    *,
    customer: str | None = None,
    amount_total: int | None = None,
    currency: str | None = None,
    error: str | None = None,
    **extra: Any,
) -> None:
    """Log a grant or revoke side effect.

    Args:
        logger: Logger instance
        action: "grant_entitlement" or "revoke_entitlement"
        event_id: Event that triggered the side effect
        customer: Customer email or provider customer ID
        amount_total: Amount in minor units, for grants
        currency: Currency code, for grants
        error: Failure message; logs at ERROR when set
        **extra: Additional context fields
    """
    fields: dict[str, Any] = {"event_id": event_id}
    if customer:
        fields["customer"] = customer
    if amount_total is not None:
        fields["amount_total"] = amount_total
    if currency:
        fields["currency"] = currency
    if error:
        fields["error"] = error
    fields.update(extra)

    level = logging.ERROR if error else logging.INFO
    logger.log(level, _render(f"Side effect: {action}", fields), extra={"operation": action, **fields})


def log_webhook_event(
    logger: logging.Logger,
    event_type: str,
    event_id: str,
    *,
    result: str | None = None,
    reason: str | None = None,
    error: str | None = None,
    **extra: Any,
) -> None:
    """Log one step of a delivery's lifecycle.

    ``result`` is one of received, processed, acknowledged, duplicate,
    ignored, rejected or error and picks the level: error logs at ERROR;
    duplicate, ignored and rejected at WARNING; the rest at INFO.
    """
    fields: dict[str, Any] = {}
    if result:
        fields["result"] = result
    if reason:
        fields["reason"] = reason
    if error:
        fields["error"] = error

    if result == "error":
        level = logging.ERROR
    elif result in _WARNING_RESULTS:
        level = logging.WARNING
    else:
        level = logging.INFO

    logger.log(
        level,
        _render(f"Webhook event: {event_type} ({event_id})", fields),
        extra={"event_type": event_type, "event_id": event_id, **fields, **extra},
    )
