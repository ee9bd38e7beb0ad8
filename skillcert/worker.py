"""Notification relay worker.

RUN:  python -m skillcert.worker

Drains lifecycle notifications (InstitutionAuthorized, InstitutionRevoked,
CertificateMinted, CertificateRevoked) from the notifier queue in FIFO
order and dispatches each to the handler registered for its type.  The
built-in handlers write one structured log line per event, which is what
downstream indexers tail; register additional handlers to push elsewhere.

Same image as the API, different command:
  api:    uvicorn skillcert.main:app --host 0.0.0.0 --port 8000
  worker: python -m skillcert.worker
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Coroutine
from typing import Any

from skillcert.core.config import SETTINGS
from skillcert.core.logging import setup_logging
from skillcert.models.events import (
    CertificateMinted,
    CertificateRevoked,
    Event,
    InstitutionAuthorized,
    InstitutionRevoked,
)
from skillcert.services.notifications import Notifier, notifier

EventHandler = Callable[[Any], Coroutine[Any, Any, None]]

logger = logging.getLogger("skillcert.worker")

HANDLERS: dict[str, EventHandler] = {}


def register_handler(event_type: str):
    """Decorator: register a coroutine as the handler for an event type."""

    def decorator(func):
        HANDLERS[event_type] = func
        return func

    return decorator


@register_handler(InstitutionAuthorized.type)
async def handle_institution_authorized(event: InstitutionAuthorized) -> None:
    logger.info(
        "Institution authorized issuer=%s label=%r",
        event.issuer,
        event.label,
        extra={"event_type": event.type, "issuer": event.issuer},
    )


@register_handler(InstitutionRevoked.type)
async def handle_institution_revoked(event: InstitutionRevoked) -> None:
    logger.info(
        "Institution revoked issuer=%s",
        event.issuer,
        extra={"event_type": event.type, "issuer": event.issuer},
    )


@register_handler(CertificateMinted.type)
async def handle_certificate_minted(event: CertificateMinted) -> None:
    logger.info(
        "Certificate minted credential=%d skill=%r issuer=%s holder=%s",
        event.id,
        event.skill_name,
        event.issuer,
        event.holder,
        extra={
            "event_type": event.type,
            "credential_id": event.id,
            "issuer": event.issuer,
            "holder": event.holder,
        },
    )


@register_handler(CertificateRevoked.type)
async def handle_certificate_revoked(event: CertificateRevoked) -> None:
    logger.info(
        "Certificate revoked credential=%d reason=%r",
        event.id,
        event.reason,
        extra={"event_type": event.type, "credential_id": event.id},
    )


async def process_one(source: Notifier, *, timeout: int = 1) -> Event | None:
    """Dequeue and dispatch a single event. Returns it, or None if idle.

    A failing handler is logged and the event dropped; the credential store
    stays authoritative, so nothing is lost that an indexer cannot rebuild.
    """
    event = await source.dequeue(timeout=timeout)
    if event is None:
        return None

    handler = HANDLERS.get(event.type)
    if handler is None:
        logger.warning("No handler registered for event type=%s", event.type)
        return event

    try:
        await handler(event)
    except Exception:
        logger.exception("Handler for %s failed", event.type)
    return event


async def run_worker(source: Notifier = notifier) -> None:
    logger.info("Worker started; relaying event types: %s", sorted(HANDLERS))
    while True:
        if await process_one(source) is None:
            # InMemoryNotifier returns immediately when empty; Redis BRPOP
            # already blocked for the timeout.
            await asyncio.sleep(0.1)


if __name__ == "__main__":
    setup_logging(SETTINGS.log_level, json_format=SETTINGS.log_json)
    asyncio.run(run_worker())
