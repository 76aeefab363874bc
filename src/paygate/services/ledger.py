"""Processed event ledger for idempotent side effects.

Providers deliver at least once, so the same event id can arrive several
times, possibly concurrently. Handlers ``claim`` an event id before running a
side effect; the claim is an atomic insert-if-absent, so exactly one delivery
wins. If the side effect fails the handler ``release``s the claim so the
provider's retry is processed instead of being swallowed as a duplicate.
"""

import asyncio
import datetime as dt
import logging
import threading
from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable

from botocore.exceptions import BotoCoreError, ClientError

from paygate.models.enums import LedgerAction
from paygate.models.errors import LedgerError
from paygate.models.ledger import ProcessedEvent
from paygate.services.dynamodb import DynamoDBService

logger = logging.getLogger(__name__)


class ProcessedEventLedger(ABC):
    """Set of event ids whose side effect has been claimed."""

    @abstractmethod
    async def claim(self, event_id: str, event_type: str, action: LedgerAction) -> bool:
        """Record ``event_id`` if absent.

        Returns:
            True if this call inserted the id, False if it was already present.
        """

    @abstractmethod
    async def release(self, event_id: str) -> None:
        """Remove a claim after its side effect failed."""

    @abstractmethod
    async def is_processed(self, event_id: str) -> bool:
        """Check whether ``event_id`` has been claimed."""


class InMemoryEventLedger(ProcessedEventLedger):
    """Process-local ledger for development and tests.

    Not shared between processes; use DynamoDBEventLedger in deployments
    with more than one worker.
    """

    def __init__(self) -> None:
        self._entries: dict[str, ProcessedEvent] = {}
        self._lock = threading.Lock()

    async def claim(self, event_id: str, event_type: str, action: LedgerAction) -> bool:
        with self._lock:
            if event_id in self._entries:
                return False
            self._entries[event_id] = ProcessedEvent(
                event_id=event_id,
                event_type=event_type,
                action=action,
                processed_at=dt.datetime.now(dt.UTC),
            )
            return True

    async def release(self, event_id: str) -> None:
        with self._lock:
            self._entries.pop(event_id, None)

    async def is_processed(self, event_id: str) -> bool:
        with self._lock:
            return event_id in self._entries

    def get(self, event_id: str) -> ProcessedEvent | None:
        with self._lock:
            return self._entries.get(event_id)


class DynamoDBEventLedger(ProcessedEventLedger):
    """Ledger backed by a DynamoDB table keyed on ``event_id``.

    Claims use a conditional put (``attribute_not_exists(event_id)``), which
    DynamoDB evaluates atomically per item.
    """

    TABLE = "processed-events"

    def __init__(self, db: DynamoDBService) -> None:
        self._db = db

    async def claim(self, event_id: str, event_type: str, action: LedgerAction) -> bool:
        entry = ProcessedEvent(
            event_id=event_id,
            event_type=event_type,
            action=action,
            processed_at=dt.datetime.now(dt.UTC),
        )
        try:
            inserted = await asyncio.to_thread(
                self._db.put_item,
                self.TABLE,
                entry.model_dump(mode="json"),
                "attribute_not_exists(event_id)",
            )
        except (ClientError, BotoCoreError) as e:
            logger.error("Ledger claim failed for %s: %s", event_id, e)
            raise LedgerError(f"claim failed for {event_id}") from e

        if not inserted:
            logger.info("Ledger already holds event %s", event_id)
        return inserted

    async def release(self, event_id: str) -> None:
        try:
            await asyncio.to_thread(self._db.delete_item, self.TABLE, {"event_id": event_id})
        except (ClientError, BotoCoreError) as e:
            logger.error("Ledger release failed for %s: %s", event_id, e)
            raise LedgerError(f"release failed for {event_id}") from e
        logger.info("Ledger claim released for %s", event_id)

    async def is_processed(self, event_id: str) -> bool:
        try:
            item = await asyncio.to_thread(self._db.get_item, self.TABLE, {"event_id": event_id})
        except (ClientError, BotoCoreError) as e:
            raise LedgerError(f"lookup failed for {event_id}") from e
        return item is not None


async def run_once(
    ledger: ProcessedEventLedger,
    event_id: str,
    event_type: str,
    action: LedgerAction,
    side_effect: Callable[[], Awaitable[None]],
) -> bool:
    """Run ``side_effect`` at most once per event id.

    The claim and the side effect behave as one unit: if the side effect
    raises (or the task is cancelled) the claim is released before the
    exception propagates.

    Returns:
        True if the side effect ran, False if the event was already claimed.
    """
    if not await ledger.claim(event_id, event_type, action):
        return False

    try:
        await side_effect()
    except BaseException:
        try:
            await ledger.release(event_id)
        except LedgerError:
            logger.error(
                "Could not release claim for %s; redeliveries will be treated as duplicates",
                event_id,
            )
        raise
    return True
