"""PostgreSQL implementation of CredentialRepo."""

from __future__ import annotations

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from skillcert.db.tables import CredentialRow
from skillcert.models.credential import CredentialRecord


class PgCredentialRepo:
    """Satisfies the CredentialRepo Protocol using PostgreSQL.

    The holder index is the (holder, id) index on the credentials table;
    ids grow with mint order, so ordering by id is ordering by mint.
    """

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def put(self, record: CredentialRecord) -> None:
        row = CredentialRow(
            id=record.id,
            skill_name=record.skill_name,
            issuer_label=record.issuer_label,
            holder=record.holder,
            issuer=record.issuer,
            issued_at=record.issued_at,
            expires_at=record.expires_at,
            level=record.level,
            active=record.active,
        )
        self._session.add(row)
        await self._session.flush()

    async def get(self, credential_id: int) -> CredentialRecord | None:
        stmt = (
            select(CredentialRow)
            .where(CredentialRow.id == credential_id)
            .execution_options(populate_existing=True)
        )
        row = (await self._session.execute(stmt)).scalar_one_or_none()
        if row is None:
            return None
        return _row_to_record(row)

    async def exists(self, credential_id: int) -> bool:
        stmt = select(CredentialRow.id).where(CredentialRow.id == credential_id)
        return (await self._session.execute(stmt)).scalar_one_or_none() is not None

    async def deactivate(self, credential_id: int) -> CredentialRecord | None:
        """Atomically clear the active flag. Returns the updated record, or
        None if the record doesn't exist or was already inactive."""
        stmt = (
            update(CredentialRow)
            .where(CredentialRow.id == credential_id)
            .where(CredentialRow.active.is_(True))
            .values(active=False)
            .execution_options(synchronize_session=False)
        )
        result = await self._session.execute(stmt)
        if result.rowcount == 0:
            return None  # unknown, or a concurrent revoke won the race

        # populate_existing: the session may still hold the pre-update row
        reload = (
            select(CredentialRow)
            .where(CredentialRow.id == credential_id)
            .execution_options(populate_existing=True)
        )
        row = (await self._session.execute(reload)).scalar_one()
        return _row_to_record(row)

    async def list_by_holder(self, holder: str) -> list[int]:
        stmt = (
            select(CredentialRow.id)
            .where(CredentialRow.holder == holder)
            .order_by(CredentialRow.id)
        )
        return list((await self._session.execute(stmt)).scalars().all())

    async def discard(self, credential_id: int) -> None:
        """Undo a ``put``.  The owner row references the credential, so the
        ownership ledger must release it first."""
        stmt = delete(CredentialRow).where(CredentialRow.id == credential_id)
        await self._session.execute(stmt.execution_options(synchronize_session=False))

    async def restore(self, record: CredentialRecord) -> None:
        """Undo a ``deactivate``: write back the active flag as it was read."""
        stmt = (
            update(CredentialRow)
            .where(CredentialRow.id == record.id)
            .values(active=record.active)
            .execution_options(synchronize_session=False)
        )
        await self._session.execute(stmt)


def _row_to_record(row: CredentialRow) -> CredentialRecord:
    return CredentialRecord(
        id=row.id,
        skill_name=row.skill_name,
        issuer_label=row.issuer_label,
        holder=row.holder,
        issuer=row.issuer,
        issued_at=row.issued_at,
        expires_at=row.expires_at,
        level=row.level or "",
        active=row.active,
    )
