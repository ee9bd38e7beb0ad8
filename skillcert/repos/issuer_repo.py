from __future__ import annotations

from dataclasses import replace
from typing import Protocol

from skillcert.models.issuer import IssuerAuthorization


class IssuerRepo(Protocol):
    async def get(self, issuer: str) -> IssuerAuthorization | None: ...
    async def upsert(self, entry: IssuerAuthorization) -> IssuerAuthorization | None: ...
    async def set_authorized(
        self, issuer: str, authorized: bool, updated_at: int
    ) -> IssuerAuthorization | None: ...
    async def restore(
        self, issuer: str, previous: IssuerAuthorization | None
    ) -> None: ...
    async def list_all(self) -> list[IssuerAuthorization]: ...


class InMemoryIssuerRepo:
    def __init__(self) -> None:
        self._by_issuer: dict[str, IssuerAuthorization] = {}

    async def get(self, issuer: str) -> IssuerAuthorization | None:
        return self._by_issuer.get(issuer)

    async def upsert(self, entry: IssuerAuthorization) -> IssuerAuthorization | None:
        """Insert, or overwrite an entry that is not currently authorized.
        Returns the stored entry, or None if the issuer is already authorized."""
        current = self._by_issuer.get(entry.issuer)
        if current is not None and current.authorized:
            return None
        self._by_issuer[entry.issuer] = entry
        return entry

    async def set_authorized(
        self, issuer: str, authorized: bool, updated_at: int
    ) -> IssuerAuthorization | None:
        """Toggle the flag only if it differs. Returns the updated entry, or
        None if the issuer is unknown or already in the requested state."""
        entry = self._by_issuer.get(issuer)
        if entry is None or entry.authorized == authorized:
            return None
        updated = replace(entry, authorized=authorized, updated_at=updated_at)
        self._by_issuer[issuer] = updated
        return updated

    async def restore(self, issuer: str, previous: IssuerAuthorization | None) -> None:
        """Put back the entry as it was before a change; None removes it."""
        if previous is None:
            self._by_issuer.pop(issuer, None)
        else:
            self._by_issuer[issuer] = previous

    async def list_all(self) -> list[IssuerAuthorization]:
        return sorted(self._by_issuer.values(), key=lambda e: e.issuer)
