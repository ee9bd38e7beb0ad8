"""PostgreSQL implementation of IssuerRepo."""

from __future__ import annotations

from sqlalchemy import delete, select, update
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.ext.asyncio import AsyncSession

from skillcert.db.tables import IssuerRow
from skillcert.models.issuer import IssuerAuthorization


class PgIssuerRepo:
    """Satisfies the IssuerRepo Protocol using PostgreSQL."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get(self, issuer: str) -> IssuerAuthorization | None:
        # populate_existing: core UPDATE/INSERT statements bypass the identity map
        stmt = (
            select(IssuerRow)
            .where(IssuerRow.issuer == issuer)
            .execution_options(populate_existing=True)
        )
        row = (await self._session.execute(stmt)).scalar_one_or_none()
        if row is None:
            return None
        return _row_to_entry(row)

    async def upsert(self, entry: IssuerAuthorization) -> IssuerAuthorization | None:
        """Insert, or overwrite an unauthorized entry, in one statement.

        The conflict branch only fires while the stored row is unauthorized,
        so of two concurrent authorizations exactly one gets a row back.
        """
        stmt = insert(IssuerRow).values(
            issuer=entry.issuer,
            label=entry.label,
            authorized=entry.authorized,
            updated_at=entry.updated_at,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=[IssuerRow.issuer],
            set_={
                "label": stmt.excluded.label,
                "authorized": stmt.excluded.authorized,
                "updated_at": stmt.excluded.updated_at,
            },
            where=IssuerRow.authorized.is_(False),
        ).returning(IssuerRow.issuer)
        row = (await self._session.execute(stmt)).one_or_none()
        if row is None:
            return None
        return entry

    async def set_authorized(
        self, issuer: str, authorized: bool, updated_at: int
    ) -> IssuerAuthorization | None:
        """Atomically toggle the flag. Returns the updated entry, or None if
        the issuer is unknown or already in the requested state."""
        stmt = (
            update(IssuerRow)
            .where(IssuerRow.issuer == issuer)
            .where(IssuerRow.authorized.is_(not authorized))
            .values(authorized=authorized, updated_at=updated_at)
            .returning(IssuerRow.issuer, IssuerRow.label)
            .execution_options(synchronize_session=False)
        )
        row = (await self._session.execute(stmt)).one_or_none()
        if row is None:
            return None
        return IssuerAuthorization(
            issuer=row.issuer,
            label=row.label,
            authorized=authorized,
            updated_at=updated_at,
        )

    async def restore(self, issuer: str, previous: IssuerAuthorization | None) -> None:
        if previous is None:
            stmt = delete(IssuerRow).where(IssuerRow.issuer == issuer)
        else:
            stmt = (
                update(IssuerRow)
                .where(IssuerRow.issuer == issuer)
                .values(
                    label=previous.label,
                    authorized=previous.authorized,
                    updated_at=previous.updated_at,
                )
            )
        await self._session.execute(stmt.execution_options(synchronize_session=False))

    async def list_all(self) -> list[IssuerAuthorization]:
        stmt = (
            select(IssuerRow)
            .order_by(IssuerRow.issuer)
            .execution_options(populate_existing=True)
        )
        rows = (await self._session.execute(stmt)).scalars().all()
        return [_row_to_entry(row) for row in rows]


def _row_to_entry(row: IssuerRow) -> IssuerAuthorization:
    return IssuerAuthorization(
        issuer=row.issuer,
        label=row.label or "",
        authorized=row.authorized,
        updated_at=row.updated_at,
    )
