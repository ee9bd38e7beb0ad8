"""PostgreSQL implementations of OwnershipLedger and IdAllocator."""

from __future__ import annotations

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from skillcert.db.tables import CredentialOwnerRow, credential_id_seq


class PgOwnershipLedger:
    """Satisfies the OwnershipLedger Protocol using PostgreSQL."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def assign(self, holder: str, credential_id: int) -> None:
        self._session.add(CredentialOwnerRow(credential_id=credential_id, holder=holder))
        await self._session.flush()

    async def owner_of(self, credential_id: int) -> str | None:
        stmt = select(CredentialOwnerRow.holder).where(
            CredentialOwnerRow.credential_id == credential_id
        )
        return (await self._session.execute(stmt)).scalar_one_or_none()

    async def release(self, credential_id: int) -> None:
        stmt = delete(CredentialOwnerRow).where(
            CredentialOwnerRow.credential_id == credential_id
        )
        await self._session.execute(stmt.execution_options(synchronize_session=False))


class PgIdAllocator:
    """Satisfies the IdAllocator Protocol with a database sequence.

    nextval() is non-transactional: a rolled-back mint burns its id, which
    keeps ids unique and increasing across concurrent writers.
    """

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def next(self) -> int:
        return int(await self._session.scalar(select(credential_id_seq.next_value())))
