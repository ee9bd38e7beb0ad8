"""Lifecycle notifications.

Emitted after the state change they describe has been applied.  Consumers
(indexers, UIs) are external; delivery is fire-and-forget.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from typing import ClassVar


@dataclass(frozen=True, slots=True)
class InstitutionAuthorized:
    type: ClassVar[str] = "InstitutionAuthorized"

    issuer: str
    label: str
    occurred_at: int


@dataclass(frozen=True, slots=True)
class InstitutionRevoked:
    type: ClassVar[str] = "InstitutionRevoked"

    issuer: str
    occurred_at: int


@dataclass(frozen=True, slots=True)
class CertificateMinted:
    type: ClassVar[str] = "CertificateMinted"

    id: int
    holder: str
    issuer: str
    skill_name: str
    occurred_at: int


@dataclass(frozen=True, slots=True)
class CertificateRevoked:
    type: ClassVar[str] = "CertificateRevoked"

    id: int
    reason: str
    occurred_at: int


Event = InstitutionAuthorized | InstitutionRevoked | CertificateMinted | CertificateRevoked

EVENT_TYPES: dict[str, type[Event]] = {
    cls.type: cls
    for cls in (
        InstitutionAuthorized,
        InstitutionRevoked,
        CertificateMinted,
        CertificateRevoked,
    )
}


def event_to_dict(event: Event) -> dict:
    return {"type": event.type, **dataclasses.asdict(event)}


def event_from_dict(data: dict) -> Event:
    """Inverse of event_to_dict.  Raises KeyError for unknown event types."""
    fields = dict(data)
    cls = EVENT_TYPES[fields.pop("type")]
    return cls(**fields)
