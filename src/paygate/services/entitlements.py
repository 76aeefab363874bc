"""Entitlement side effects: granting and revoking customer access.

The webhook core only depends on ``EntitlementService``; implementations
signal failure by raising ``FulfillmentError`` so the caller can compensate
its ledger claim and ask the provider to retry.
"""

import asyncio
import datetime as dt
import logging
from abc import ABC, abstractmethod
from typing import Any

from botocore.exceptions import BotoCoreError, ClientError

from paygate.models.errors import FulfillmentError
from paygate.models.ledger import EntitlementGrant
from paygate.services.dynamodb import DynamoDBService

logger = logging.getLogger(__name__)

STATUS_ACTIVE = "active"
STATUS_REVOKED = "revoked"


class EntitlementService(ABC):
    """Grants and revokes access for paying customers."""

    @abstractmethod
    async def grant_entitlement(self, grant: EntitlementGrant) -> None:
        """Unlock access for the customer who paid.

        Raises:
            FulfillmentError: If the grant could not be stored.
        """

    @abstractmethod
    async def revoke_entitlement(self, customer_id: str) -> None:
        """Remove access for a provider customer.

        Raises:
            FulfillmentError: If the revocation could not be stored.
        """


class InMemoryEntitlementService(EntitlementService):
    """Process-local entitlement store for development and tests."""

    def __init__(self) -> None:
        self.entitlements: dict[str, dict[str, Any]] = {}

    async def grant_entitlement(self, grant: EntitlementGrant) -> None:
        self.entitlements[grant.email] = {
            **grant.model_dump(),
            "status": STATUS_ACTIVE,
        }

    async def revoke_entitlement(self, customer_id: str) -> None:
        for record in self.entitlements.values():
            if record.get("customer_id") == customer_id:
                record["status"] = STATUS_REVOKED

    def is_active(self, email: str) -> bool:
        record = self.entitlements.get(email)
        return record is not None and record["status"] == STATUS_ACTIVE


class DynamoDBEntitlementService(EntitlementService):
    """Entitlements table keyed by customer email.

    ``customer_id-index`` is a sparse GSI: sessions without a provider
    customer ID can be granted but never revoked by customer.
    """

    TABLE = "entitlements"
    CUSTOMER_INDEX = "customer_id-index"

    def __init__(self, db: DynamoDBService) -> None:
        self._db = db

    async def grant_entitlement(self, grant: EntitlementGrant) -> None:
        now = dt.datetime.now(dt.UTC).isoformat()
        item: dict[str, Any] = {
            "email": grant.email,
            "status": STATUS_ACTIVE,
            "amount_total": grant.amount_total,
            "session_id": grant.session_id,
            "granted_at": now,
            "updated_at": now,
        }
        if grant.name:
            item["name"] = grant.name
        if grant.currency:
            item["currency"] = grant.currency
        if grant.customer_id:
            item["customer_id"] = grant.customer_id

        try:
            await asyncio.to_thread(self._db.put_item, self.TABLE, item)
        except (ClientError, BotoCoreError) as e:
            raise FulfillmentError(f"grant failed for session {grant.session_id}: {e}") from e

    async def revoke_entitlement(self, customer_id: str) -> None:
        try:
            records = await asyncio.to_thread(
                self._db.query_by_gsi,
                self.TABLE,
                self.CUSTOMER_INDEX,
                "customer_id",
                customer_id,
            )
            if not records:
                logger.warning("No entitlements found for customer %s, nothing to revoke", customer_id)
                return

            now = dt.datetime.now(dt.UTC).isoformat()
            for record in records:
                await asyncio.to_thread(
                    self._db.update_item,
                    self.TABLE,
                    {"email": record["email"]},
                    "SET #status = :status, revoked_at = :now, updated_at = :now",
                    {":status": STATUS_REVOKED, ":now": now},
                    {"#status": "status"},  # status is reserved word
                )
        except (ClientError, BotoCoreError) as e:
            raise FulfillmentError(f"revoke failed for customer {customer_id}: {e}") from e

        logger.info("Revoked %d entitlement(s) for customer %s", len(records), customer_id)
