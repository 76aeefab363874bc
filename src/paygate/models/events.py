"""Provider event models.

Field names follow the provider's wire format so payloads validate
without renaming. Unknown fields are ignored.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from .enums import CheckoutMode, CheckoutPaymentStatus, SubscriptionStatus


class EventData(BaseModel):
    """Envelope around the event's payload object."""

    model_config = ConfigDict(frozen=True)

    object: dict[str, Any] = Field(
        default_factory=dict,
        description="Payload object; its shape depends on the event type",
    )


class Event(BaseModel):
    """A verified provider event.

    The same ``id`` may be delivered more than once; handlers key their
    idempotency on it.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1, description="Provider event ID (evt_xxx)")
    type: str = Field(
        ...,
        min_length=1,
        description="Event type tag",
        examples=["checkout.session.completed"],
    )
    created: int | None = Field(default=None, description="Creation time, epoch seconds")
    livemode: bool = Field(default=False)
    api_version: str | None = Field(default=None)
    data: EventData = Field(default_factory=EventData)


class CustomerDetails(BaseModel):
    """Customer details captured by the checkout page."""

    model_config = ConfigDict(frozen=True)

    email: str | None = None
    name: str | None = None


class CheckoutSession(BaseModel):
    """Payload of checkout.session.* events."""

    model_config = ConfigDict(frozen=True)

    id: str
    payment_status: CheckoutPaymentStatus
    mode: CheckoutMode
    amount_total: int | None = Field(default=None, description="Minor currency units")
    currency: str | None = None
    payment_link: str | None = Field(
        default=None,
        description="Product reference the session was created from",
    )
    customer: str | None = Field(default=None, description="Provider customer ID")
    customer_details: CustomerDetails | None = None


class SubscriptionRecord(BaseModel):
    """Payload of customer.subscription.* events."""

    model_config = ConfigDict(frozen=True)

    id: str
    customer: str = Field(..., description="Provider customer ID (cus_xxx)")
    status: SubscriptionStatus
