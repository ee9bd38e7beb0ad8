from __future__ import annotations

from typing import Protocol

from skillcert.models.credential import CredentialRecord


class CredentialRepo(Protocol):
    async def put(self, record: CredentialRecord) -> None: ...
    async def get(self, credential_id: int) -> CredentialRecord | None: ...
    async def exists(self, credential_id: int) -> bool: ...
    async def deactivate(self, credential_id: int) -> CredentialRecord | None: ...
    async def list_by_holder(self, holder: str) -> list[int]: ...
    async def discard(self, credential_id: int) -> None: ...
    async def restore(self, record: CredentialRecord) -> None: ...


class InMemoryCredentialRepo:
    def __init__(self) -> None:
        self._by_id: dict[int, CredentialRecord] = {}
        self._by_holder: dict[str, list[int]] = {}

    async def put(self, record: CredentialRecord) -> None:
        """Store a new record and append it to the holder's index."""
        if record.id in self._by_id:
            raise ValueError(f"credential id {record.id} already exists")
        self._by_id[record.id] = record
        self._by_holder.setdefault(record.holder, []).append(record.id)

    async def get(self, credential_id: int) -> CredentialRecord | None:
        return self._by_id.get(credential_id)

    async def exists(self, credential_id: int) -> bool:
        return credential_id in self._by_id

    async def deactivate(self, credential_id: int) -> CredentialRecord | None:
        """Flip active to False. Returns the updated record, or None if the
        record doesn't exist or was already inactive."""
        record = self._by_id.get(credential_id)
        if record is None or not record.active:
            return None
        updated = record.revoked()
        self._by_id[credential_id] = updated
        return updated

    async def list_by_holder(self, holder: str) -> list[int]:
        return list(self._by_holder.get(holder, []))

    async def discard(self, credential_id: int) -> None:
        """Undo a ``put``: drop the record and its holder index entry."""
        record = self._by_id.pop(credential_id, None)
        if record is None:
            return
        ids = self._by_holder.get(record.holder, [])
        if credential_id in ids:
            ids.remove(credential_id)
        if not ids:
            self._by_holder.pop(record.holder, None)

    async def restore(self, record: CredentialRecord) -> None:
        """Undo a ``deactivate``: put back the record as it was read."""
        if record.id in self._by_id:
            self._by_id[record.id] = record
