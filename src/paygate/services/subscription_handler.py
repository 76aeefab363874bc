"""Handler for subscription status changes."""

from paygate.models.enums import REVOKE_STATUSES, LedgerAction
from paygate.models.errors import FulfillmentError
from paygate.models.events import SubscriptionRecord
from paygate.models.outcome import Outcome
from paygate.services.entitlements import EntitlementService
from paygate.services.ledger import ProcessedEventLedger, run_once
from paygate.utils.logging import get_logger, log_side_effect

logger = get_logger(__name__)

SUBSCRIPTION_UPDATED = "customer.subscription.updated"


class SubscriptionEventHandler:
    """Revokes access when a subscription becomes unpaid, canceled or paused."""

    def __init__(self, ledger: ProcessedEventLedger, entitlements: EntitlementService) -> None:
        self._ledger = ledger
        self._entitlements = entitlements

    async def handle(
        self,
        sub: SubscriptionRecord,
        event_id: str,
        event_type: str = SUBSCRIPTION_UPDATED,
    ) -> Outcome:
        """Revoke the customer's entitlement once if the status requires it.

        Raises:
            FulfillmentError: The revoke failed; the ledger claim was released.
        """
        if sub.status not in REVOKE_STATUSES:
            return Outcome.acknowledged("no action required")

        async def _revoke() -> None:
            try:
                await self._entitlements.revoke_entitlement(sub.customer)
            except FulfillmentError as e:
                log_side_effect(logger, "revoke_entitlement", event_id, customer=sub.customer, error=str(e))
                raise
            log_side_effect(
                logger,
                "revoke_entitlement",
                event_id,
                customer=sub.customer,
                subscription_status=sub.status.value,
            )

        if not await run_once(self._ledger, event_id, event_type, LedgerAction.REVOKE, _revoke):
            return Outcome.acknowledged("duplicate, already processed")

        return Outcome.processed("entitlement revoked")
