"""
Change Subscriptions

Keeps the per-household callbacks for every storage backend and pushes
snapshots to them. A callback that raises is logged and skipped; it
never stops delivery to the others or fails the write that triggered
the notification.

Bound-method callbacks are held weakly: when the object behind one is
garbage collected (a UI session that ended without closing its cache)
the subscription is dropped with it.
"""

import inspect
import weakref
from itertools import count
from typing import Any, Callable, Optional
from uuid import UUID

import structlog

from budget_tracker.services.storage.interface import Unsubscribe


EXPENSES_TOPIC = "expenses"
HOUSEHOLD_TOPIC = "household"

CallbackRef = Callable[[], Optional[Callable[[Any], None]]]


class SubscriptionHub:
    """Registry of (topic, household) -> callbacks."""

    def __init__(self):
        self._subscribers: dict[tuple[str, UUID], dict[int, CallbackRef]] = {}
        self._tokens = count()
        self._logger = structlog.get_logger(__name__)

    def subscribe(
        self,
        topic: str,
        household_id: UUID,
        callback: Callable[[Any], None],
    ) -> Unsubscribe:
        token = next(self._tokens)

        def unsubscribe() -> None:
            callbacks = self._subscribers.get((topic, household_id))
            if callbacks is None:
                return
            callbacks.pop(token, None)
            if not callbacks:
                del self._subscribers[(topic, household_id)]

        if inspect.ismethod(callback):
            ref = weakref.WeakMethod(callback, lambda _: unsubscribe())
        else:
            def ref() -> Callable[[Any], None]:
                return callback

        self._subscribers.setdefault((topic, household_id), {})[token] = ref
        return unsubscribe

    def has_subscribers(self, topic: str, household_id: UUID) -> bool:
        return bool(self._live_callbacks(topic, household_id))

    def _live_callbacks(self, topic: str, household_id: UUID) -> list[Callable[[Any], None]]:
        # copy: a callback may unsubscribe while we iterate
        refs = list(self._subscribers.get((topic, household_id), {}).values())
        return [callback for callback in (ref() for ref in refs) if callback is not None]

    def deliver(self, callback: Callable[[Any], None], payload: Any, topic: str, household_id: UUID) -> bool:
        """Call one subscriber. Returns False if it raised."""
        try:
            callback(payload)
            return True
        except Exception as e:
            self._logger.warning(
                "subscriber_failed",
                topic=topic,
                household_id=str(household_id),
                error=str(e),
            )
            return False

    def publish(self, topic: str, household_id: UUID, payload: Any) -> int:
        """Push a snapshot to every subscriber. Returns how many succeeded."""
        return sum(
            1 for callback in self._live_callbacks(topic, household_id)
            if self.deliver(callback, payload, topic, household_id)
        )
