"""Unit tests for the processed event ledger and run_once.

Test categories:
- In-memory ledger claim/release semantics
- DynamoDB ledger (moto)
- run_once compensation when the side effect fails
"""

import asyncio
from unittest.mock import MagicMock

import pytest
from botocore.exceptions import ClientError

from paygate.models.enums import LedgerAction
from paygate.models.errors import FulfillmentError, LedgerError
from paygate.services.dynamodb import DynamoDBService
from paygate.services.ledger import DynamoDBEventLedger, InMemoryEventLedger, run_once

TEST_TABLE_PREFIX = "test-paygate"
EVENT_TYPE = "checkout.session.completed"


def _client_error(code: str = "ProvisionedThroughputExceededException") -> ClientError:
    return ClientError({"Error": {"Code": code, "Message": "boom"}}, "PutItem")


# === In-memory ledger ===


class TestInMemoryEventLedger:
    @pytest.mark.asyncio
    async def test_first_claim_wins(self):
        ledger = InMemoryEventLedger()

        assert await ledger.claim("evt_1", EVENT_TYPE, LedgerAction.GRANT) is True
        assert await ledger.claim("evt_1", EVENT_TYPE, LedgerAction.GRANT) is False
        assert await ledger.is_processed("evt_1") is True

    @pytest.mark.asyncio
    async def test_claim_records_entry(self):
        ledger = InMemoryEventLedger()
        await ledger.claim("evt_1", EVENT_TYPE, LedgerAction.GRANT)

        entry = ledger.get("evt_1")
        assert entry is not None
        assert entry.event_type == EVENT_TYPE
        assert entry.action is LedgerAction.GRANT
        assert entry.processed_at.tzinfo is not None

    @pytest.mark.asyncio
    async def test_release_allows_new_claim(self):
        ledger = InMemoryEventLedger()
        await ledger.claim("evt_1", EVENT_TYPE, LedgerAction.GRANT)

        await ledger.release("evt_1")

        assert await ledger.is_processed("evt_1") is False
        assert await ledger.claim("evt_1", EVENT_TYPE, LedgerAction.GRANT) is True

    @pytest.mark.asyncio
    async def test_release_of_unknown_id_is_a_noop(self):
        ledger = InMemoryEventLedger()
        await ledger.release("evt_missing")
        assert await ledger.is_processed("evt_missing") is False

    @pytest.mark.asyncio
    async def test_concurrent_claims_have_exactly_one_winner(self):
        ledger = InMemoryEventLedger()

        results = await asyncio.gather(
            *(ledger.claim("evt_race", EVENT_TYPE, LedgerAction.GRANT) for _ in range(20))
        )

        assert results.count(True) == 1

    @pytest.mark.asyncio
    async def test_claims_from_threads_have_exactly_one_winner(self):
        ledger = InMemoryEventLedger()

        def _claim() -> bool:
            return asyncio.run(ledger.claim("evt_race", EVENT_TYPE, LedgerAction.GRANT))

        results = await asyncio.gather(*(asyncio.to_thread(_claim) for _ in range(10)))

        assert results.count(True) == 1


# === DynamoDB ledger ===


class TestDynamoDBEventLedger:
    @pytest.mark.asyncio
    async def test_claim_is_insert_if_absent(self, dynamodb_tables):
        ledger = DynamoDBEventLedger(DynamoDBService(TEST_TABLE_PREFIX))

        assert await ledger.claim("evt_1", EVENT_TYPE, LedgerAction.GRANT) is True
        assert await ledger.claim("evt_1", EVENT_TYPE, LedgerAction.GRANT) is False

    @pytest.mark.asyncio
    async def test_claim_stores_audit_fields(self, dynamodb_tables):
        ledger = DynamoDBEventLedger(DynamoDBService(TEST_TABLE_PREFIX))
        await ledger.claim("evt_1", "customer.subscription.deleted", LedgerAction.REVOKE)

        table = dynamodb_tables.Table(f"{TEST_TABLE_PREFIX}-processed-events")
        item = table.get_item(Key={"event_id": "evt_1"})["Item"]

        assert item["event_type"] == "customer.subscription.deleted"
        assert item["action"] == "revoke"
        assert "processed_at" in item

    @pytest.mark.asyncio
    async def test_release_and_reclaim(self, dynamodb_tables):
        ledger = DynamoDBEventLedger(DynamoDBService(TEST_TABLE_PREFIX))
        await ledger.claim("evt_1", EVENT_TYPE, LedgerAction.GRANT)

        await ledger.release("evt_1")

        assert await ledger.is_processed("evt_1") is False
        assert await ledger.claim("evt_1", EVENT_TYPE, LedgerAction.GRANT) is True

    @pytest.mark.asyncio
    async def test_is_processed(self, dynamodb_tables):
        ledger = DynamoDBEventLedger(DynamoDBService(TEST_TABLE_PREFIX))
        assert await ledger.is_processed("evt_1") is False

        await ledger.claim("evt_1", EVENT_TYPE, LedgerAction.GRANT)

        assert await ledger.is_processed("evt_1") is True

    @pytest.mark.asyncio
    async def test_store_failure_raises_ledger_error(self):
        db = MagicMock()
        db.put_item.side_effect = _client_error()
        ledger = DynamoDBEventLedger(db)

        with pytest.raises(LedgerError):
            await ledger.claim("evt_1", EVENT_TYPE, LedgerAction.GRANT)

    @pytest.mark.asyncio
    async def test_release_failure_raises_ledger_error(self):
        db = MagicMock()
        db.delete_item.side_effect = _client_error()
        ledger = DynamoDBEventLedger(db)

        with pytest.raises(LedgerError):
            await ledger.release("evt_1")


# === run_once ===


class TestRunOnce:
    @pytest.mark.asyncio
    async def test_runs_side_effect_once(self):
        ledger = InMemoryEventLedger()
        calls: list[str] = []

        async def effect() -> None:
            calls.append("ran")

        first = await run_once(ledger, "evt_1", EVENT_TYPE, LedgerAction.GRANT, effect)
        second = await run_once(ledger, "evt_1", EVENT_TYPE, LedgerAction.GRANT, effect)

        assert (first, second) == (True, False)
        assert calls == ["ran"]

    @pytest.mark.asyncio
    async def test_failed_side_effect_releases_claim(self):
        ledger = InMemoryEventLedger()

        async def failing() -> None:
            raise FulfillmentError("store down")

        with pytest.raises(FulfillmentError):
            await run_once(ledger, "evt_1", EVENT_TYPE, LedgerAction.GRANT, failing)

        assert await ledger.is_processed("evt_1") is False

    @pytest.mark.asyncio
    async def test_retry_after_failure_runs_side_effect(self):
        ledger = InMemoryEventLedger()
        attempts: list[int] = []

        async def flaky() -> None:
            attempts.append(1)
            if len(attempts) == 1:
                raise FulfillmentError("transient")

        with pytest.raises(FulfillmentError):
            await run_once(ledger, "evt_1", EVENT_TYPE, LedgerAction.GRANT, flaky)
        assert await run_once(ledger, "evt_1", EVENT_TYPE, LedgerAction.GRANT, flaky) is True

        assert len(attempts) == 2

    @pytest.mark.asyncio
    async def test_cancelled_side_effect_releases_claim(self):
        ledger = InMemoryEventLedger()
        started = asyncio.Event()

        async def slow() -> None:
            started.set()
            await asyncio.sleep(10)

        task = asyncio.create_task(run_once(ledger, "evt_1", EVENT_TYPE, LedgerAction.GRANT, slow))
        await started.wait()
        task.cancel()

        with pytest.raises(asyncio.CancelledError):
            await task
        assert await ledger.is_processed("evt_1") is False

    @pytest.mark.asyncio
    async def test_original_error_propagates_when_release_fails(self):
        db = MagicMock()
        db.put_item.return_value = True
        db.delete_item.side_effect = _client_error()
        ledger = DynamoDBEventLedger(db)

        async def failing() -> None:
            raise FulfillmentError("store down")

        with pytest.raises(FulfillmentError):
            await run_once(ledger, "evt_1", EVENT_TYPE, LedgerAction.GRANT, failing)
