from __future__ import annotations

from typing import Protocol


class OwnershipLedger(Protocol):
    async def assign(self, holder: str, credential_id: int) -> None: ...
    async def owner_of(self, credential_id: int) -> str | None: ...
    async def release(self, credential_id: int) -> None: ...


class InMemoryOwnershipLedger:
    """Records the initial holder of each credential.

    Transfers are not modeled; ``assign`` is called exactly once per mint,
    and ``release`` only undoes an assignment whose mint did not complete.
    """

    def __init__(self) -> None:
        self._owners: dict[int, str] = {}

    async def assign(self, holder: str, credential_id: int) -> None:
        if credential_id in self._owners:
            raise ValueError(f"credential {credential_id} already has an owner")
        self._owners[credential_id] = holder

    async def owner_of(self, credential_id: int) -> str | None:
        return self._owners.get(credential_id)

    async def release(self, credential_id: int) -> None:
        self._owners.pop(credential_id, None)
