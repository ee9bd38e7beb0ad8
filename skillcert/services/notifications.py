"""Lifecycle notification delivery.

The lifecycle controller calls ``notifier.publish(event)`` after every
successful state change.  Consumers (indexers, wallet UIs) are outside this
service, so delivery is fire-and-forget.

PRODUCER / CONSUMER
--------------------
  Producer (API):   LPUSH the event JSON onto ``events:credentials``
  Consumer (worker): BRPOP from the same list, dispatch by event type

LPUSH at the head and BRPOP from the tail gives FIFO order, so the worker
sees events in the order the state changes were applied.

A worker crash between BRPOP and the handler loses that event (at-most-once
on the consumer side).  Indexers that need completeness can rebuild from the
credential store, which stays authoritative.
"""

from __future__ import annotations

import json
import logging
from typing import Protocol, runtime_checkable

from skillcert.core.metrics import NOTIFICATION_QUEUE_DEPTH
from skillcert.db.redis import redis_pool
from skillcert.models.events import Event, event_from_dict, event_to_dict

logger = logging.getLogger(__name__)

EVENTS_QUEUE = "events:credentials"


@runtime_checkable
class Notifier(Protocol):
    async def publish(self, event: Event) -> None: ...
    async def dequeue(self, timeout: int = 0) -> Event | None: ...
    async def queue_length(self) -> int: ...


class InMemoryNotifier:
    """Per-process notifier for tests and local dev.

    ``published`` keeps every event ever published, in order, so tests can
    assert on exactly what was emitted; ``dequeue`` consumes a separate FIFO.
    """

    def __init__(self) -> None:
        self.published: list[Event] = []
        self._pending: list[Event] = []

    async def publish(self, event: Event) -> None:
        self.published.append(event)
        self._pending.append(event)
        NOTIFICATION_QUEUE_DEPTH.set(len(self._pending))

    async def dequeue(self, timeout: int = 0) -> Event | None:
        if not self._pending:
            return None
        event = self._pending.pop(0)
        NOTIFICATION_QUEUE_DEPTH.set(len(self._pending))
        return event

    async def queue_length(self) -> int:
        return len(self._pending)

    def clear(self) -> None:
        self.published.clear()
        self._pending.clear()
        NOTIFICATION_QUEUE_DEPTH.set(0)


class RedisNotifier:
    """Redis list-backed notifier shared by every API instance and the worker."""

    def __init__(self, redis_client, queue: str = EVENTS_QUEUE) -> None:
        self._redis = redis_client
        self._queue = queue

    async def publish(self, event: Event) -> None:
        await self._redis.lpush(self._queue, json.dumps(event_to_dict(event)))
        logger.debug(
            "Queued %s notification",
            event.type,
            extra={"event_type": event.type},
        )

    async def dequeue(self, timeout: int = 5) -> Event | None:
        result = await self._redis.brpop(self._queue, timeout=timeout)
        if result is None:
            return None
        _, payload = result
        return event_from_dict(json.loads(payload))

    async def queue_length(self) -> int:
        depth = await self._redis.llen(self._queue)
        NOTIFICATION_QUEUE_DEPTH.set(depth)
        return depth


# ---------------------------------------------------------------------------
# Module-level singleton
# ---------------------------------------------------------------------------

if redis_pool is not None:
    notifier: Notifier = RedisNotifier(redis_pool)
else:
    notifier = InMemoryNotifier()
