"""Enumeration types for paygate data models."""

from enum import Enum


class CheckoutPaymentStatus(str, Enum):
    """Payment status of a checkout session."""

    PAID = "paid"
    UNPAID = "unpaid"
    NO_PAYMENT_REQUIRED = "no_payment_required"


class CheckoutMode(str, Enum):
    """Mode a checkout session was created in."""

    PAYMENT = "payment"
    SUBSCRIPTION = "subscription"
    SETUP = "setup"


class SubscriptionStatus(str, Enum):
    """Subscription status as reported by the provider."""

    ACTIVE = "active"
    TRIALING = "trialing"
    PAST_DUE = "past_due"
    UNPAID = "unpaid"
    CANCELED = "canceled"
    PAUSED = "paused"
    INCOMPLETE = "incomplete"
    INCOMPLETE_EXPIRED = "incomplete_expired"


# Statuses that end a customer's access
REVOKE_STATUSES: frozenset[SubscriptionStatus] = frozenset(
    {
        SubscriptionStatus.UNPAID,
        SubscriptionStatus.CANCELED,
        SubscriptionStatus.PAUSED,
    }
)


class OutcomeKind(str, Enum):
    """Result of dispatching one event."""

    PROCESSED = "processed"
    ACKNOWLEDGED = "acknowledged"
    IGNORED = "ignored"
    REJECTED = "rejected"


class LedgerAction(str, Enum):
    """Side effect recorded against an event id."""

    GRANT = "grant"
    REVOKE = "revoke"
