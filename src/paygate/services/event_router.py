"""Event routing by type tag.

The route table is fixed at construction. Each route names the payload model
the event's ``data.object`` is decoded into and the handler that receives it.
Unknown types go to ``DefaultHandler``. Routing performs no business checks.
"""

from collections.abc import Awaitable, Callable
from typing import Any

from pydantic import BaseModel, ValidationError

from paygate.models.errors import MalformedPayloadError
from paygate.models.events import CheckoutSession, Event, SubscriptionRecord
from paygate.models.outcome import Outcome
from paygate.services.checkout_handler import CheckoutEventHandler
from paygate.services.subscription_handler import SubscriptionEventHandler
from paygate.utils.logging import get_logger

logger = get_logger(__name__)

CHECKOUT_EVENT_TYPES = frozenset(
    {
        "checkout.session.completed",
        "checkout.session.async_payment_succeeded",
    }
)

SUBSCRIPTION_EVENT_TYPES = frozenset(
    {
        "customer.subscription.deleted",
        "customer.subscription.updated",
        "customer.subscription.paused",
    }
)

HANDLED_EVENT_TYPES = CHECKOUT_EVENT_TYPES | SUBSCRIPTION_EVENT_TYPES

HandlerFunc = Callable[[Any, str, str], Awaitable[Outcome]]


class DefaultHandler:
    """Acknowledges event types nobody subscribes to."""

    async def handle(self, event: Event) -> Outcome:
        logger.info("Unhandled event type %s (%s), acknowledging", event.type, event.id)
        return Outcome.acknowledged("unhandled type")


class EventRouter:
    """Maps an event's type to its handler."""

    def __init__(
        self,
        checkout: CheckoutEventHandler,
        subscription: SubscriptionEventHandler,
        default: DefaultHandler | None = None,
    ) -> None:
        self._default = default or DefaultHandler()
        self._routes: dict[str, tuple[type[BaseModel], HandlerFunc]] = {}
        for event_type in CHECKOUT_EVENT_TYPES:
            self._routes[event_type] = (CheckoutSession, checkout.handle)
        for event_type in SUBSCRIPTION_EVENT_TYPES:
            self._routes[event_type] = (SubscriptionRecord, subscription.handle)

    def handles(self, event_type: str) -> bool:
        return event_type in self._routes

    async def dispatch(self, event: Event) -> Outcome:
        """Decode the event payload and pass it to the matching handler.

        Raises:
            MalformedPayloadError: The payload does not fit the route's model.
        """
        route = self._routes.get(event.type)
        if route is None:
            return await self._default.handle(event)

        model, handle = route
        try:
            payload = model.model_validate(event.data.object)
        except ValidationError as e:
            fields = ", ".join(".".join(str(p) for p in err["loc"]) for err in e.errors())
            raise MalformedPayloadError(f"{event.type} payload invalid: {fields}") from e

        return await handle(payload, event.id, event.type)
