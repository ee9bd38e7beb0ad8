from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class IssuerAuthorization:
    """Registry entry for an issuing institution.

    Entries are never deleted; revocation only clears ``authorized``.
    """

    issuer: str
    label: str
    authorized: bool
    updated_at: int
