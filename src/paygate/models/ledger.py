"""Processed event ledger and entitlement records."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from .enums import LedgerAction


class ProcessedEvent(BaseModel):
    """Ledger entry for an event whose side effect has been claimed.

    Used for:
    - Idempotency: an event id is claimed at most once
    - Auditing: track which deliveries triggered a side effect
    """

    model_config = ConfigDict(strict=True)

    event_id: str = Field(
        ...,
        description="Provider event ID (evt_xxx)",
        examples=["evt_1ABC123DEF456"],
    )
    event_type: str = Field(
        ...,
        description="Provider event type",
        examples=["checkout.session.completed", "customer.subscription.deleted"],
    )
    action: LedgerAction = Field(..., description="Side effect guarded by this entry")
    processed_at: datetime = Field(..., description="When the claim was recorded")


class EntitlementGrant(BaseModel):
    """Arguments of the grant side effect for a paid checkout."""

    model_config = ConfigDict(frozen=True)

    email: str
    name: str | None = None
    amount_total: int = Field(..., ge=0, description="Minor currency units")
    currency: str | None = None
    session_id: str
    customer_id: str | None = None
