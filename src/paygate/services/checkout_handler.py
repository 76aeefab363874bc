"""Handler for completed checkout sessions.

Validates the session against business preconditions, then grants the
customer's entitlement exactly once per event id.
"""

from paygate.models.enums import CheckoutMode, CheckoutPaymentStatus, LedgerAction
from paygate.models.errors import FulfillmentError
from paygate.models.events import CheckoutSession
from paygate.models.ledger import EntitlementGrant
from paygate.models.outcome import Outcome
from paygate.services.entitlements import EntitlementService
from paygate.services.ledger import ProcessedEventLedger, run_once
from paygate.utils.logging import get_logger, log_side_effect

logger = get_logger(__name__)

CHECKOUT_COMPLETED = "checkout.session.completed"

UNSUPPORTED_MODES = {CheckoutMode.SUBSCRIPTION, CheckoutMode.SETUP}


class CheckoutEventHandler:
    """Fulfills paid checkout sessions.

    Precondition failures are reported as outcomes, not exceptions:
    ``ignored`` for sessions that are simply not for us, ``rejected`` for
    sessions that should have qualified but carry incomplete or invalid data.
    """

    def __init__(
        self,
        ledger: ProcessedEventLedger,
        entitlements: EntitlementService,
        *,
        expected_product_reference: str,
        minimum_amount: int = 50,
    ) -> None:
        self._ledger = ledger
        self._entitlements = entitlements
        self._expected_product_reference = expected_product_reference
        self._minimum_amount = minimum_amount

    async def handle(
        self,
        session: CheckoutSession,
        event_id: str,
        event_type: str = CHECKOUT_COMPLETED,
    ) -> Outcome:
        """Validate a checkout session and grant its entitlement once.

        Args:
            session: Decoded checkout session payload
            event_id: Provider event ID used as the idempotency key
            event_type: Event type recorded in the ledger

        Returns:
            Outcome of the checks and the grant.

        Raises:
            FulfillmentError: The grant failed; the ledger claim was released.
        """
        # Sessions without a payment link never match
        if session.payment_link != self._expected_product_reference:
            return Outcome.ignored("product mismatch")

        if session.payment_status != CheckoutPaymentStatus.PAID or session.amount_total is None:
            return Outcome.ignored("not paid")

        customer = session.customer_details
        if customer is None or not customer.email:
            logger.warning(
                "Paid checkout session %s has no customer email (event %s)",
                session.id,
                event_id,
            )
            return Outcome.rejected("missing customer email")

        if session.mode in UNSUPPORTED_MODES:
            return Outcome.ignored("unsupported mode")

        if session.amount_total < self._minimum_amount:
            return Outcome.rejected("amount below threshold")

        grant = EntitlementGrant(
            email=customer.email,
            name=customer.name,
            amount_total=session.amount_total,
            currency=session.currency,
            session_id=session.id,
            customer_id=session.customer,
        )

        async def _grant() -> None:
            try:
                await self._entitlements.grant_entitlement(grant)
            except FulfillmentError as e:
                log_side_effect(logger, "grant_entitlement", event_id, customer=grant.email, error=str(e))
                raise
            log_side_effect(
                logger,
                "grant_entitlement",
                event_id,
                customer=grant.email,
                amount_total=grant.amount_total,
                currency=grant.currency,
            )

        if not await run_once(self._ledger, event_id, event_type, LedgerAction.GRANT, _grant):
            return Outcome.acknowledged("duplicate, already processed")

        logger.debug("Checkout session %s fulfilled for event %s", session.id, event_id)
        return Outcome.processed()
