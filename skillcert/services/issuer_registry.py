"""Authorization registry: which principals may mint credentials.

Only the administrator fixed at startup may change the registry.  Entries
are never deleted; revoking an issuer clears its flag and leaves already
minted credentials untouched.  Their validity drops on the next verify
because verification reads the flag live.

A change whose notification cannot be published is rolled back to the
previous entry (or to no entry, for a first authorization) before the
error propagates.
"""

from __future__ import annotations

import logging

from skillcert.core.clock import Clock
from skillcert.core.errors import (
    AlreadyAuthorizedError,
    ForbiddenError,
    InvalidPrincipalError,
    NotAuthorizedError,
    log_rejection,
)
from skillcert.core.metrics import ISSUER_AUTHORIZATION_CHANGES
from skillcert.models.events import InstitutionAuthorized, InstitutionRevoked
from skillcert.models.issuer import IssuerAuthorization
from skillcert.models.principal import (
    MAX_PRINCIPAL_LENGTH,
    is_null_principal,
    is_valid_principal,
    normalize_principal,
)
from skillcert.repos.issuer_repo import IssuerRepo
from skillcert.services.notifications import Notifier

logger = logging.getLogger(__name__)


class IssuerRegistry:
    def __init__(
        self,
        repo: IssuerRepo,
        notifier: Notifier,
        clock: Clock,
        *,
        admin: str,
    ) -> None:
        if is_null_principal(admin):
            raise ValueError("admin must be a non-null identity")
        self._repo = repo
        self._notifier = notifier
        self._clock = clock
        self.admin = normalize_principal(admin)

    def is_admin(self, caller: str) -> bool:
        return normalize_principal(caller) == self.admin

    def _require_admin(self, caller: str, action: str) -> None:
        if not self.is_admin(caller):
            raise log_rejection(
                logger,
                ForbiddenError(f"only the administrator may {action} issuers"),
                principal=caller,
            )

    async def authorize(
        self, issuer: str, label: str = "", *, caller: str
    ) -> IssuerAuthorization:
        self._require_admin(caller, "authorize")

        if not is_valid_principal(issuer):
            raise log_rejection(
                logger,
                InvalidPrincipalError(
                    f"issuer must be a non-null identity of at most "
                    f"{MAX_PRINCIPAL_LENGTH} characters"
                ),
                principal=caller,
            )
        issuer = normalize_principal(issuer)

        previous = await self._repo.get(issuer)
        now = self._clock.now()
        entry = IssuerAuthorization(
            issuer=issuer, label=label.strip(), authorized=True, updated_at=now
        )
        # Conditional write: a concurrent authorize that got there first
        # leaves nothing to update.
        if await self._repo.upsert(entry) is None:
            raise log_rejection(
                logger,
                AlreadyAuthorizedError(f"issuer {issuer} is already authorized"),
                issuer=issuer,
            )

        try:
            await self._notifier.publish(
                InstitutionAuthorized(issuer=issuer, label=entry.label, occurred_at=now)
            )
        except Exception:
            logger.error(
                "Notification failed; undoing authorization of issuer=%s",
                issuer,
                extra={"issuer": issuer},
            )
            await self._repo.restore(issuer, previous)
            raise

        ISSUER_AUTHORIZATION_CHANGES.labels(action="authorized").inc()
        logger.info(
            "Authorized issuer=%s label=%r", issuer, entry.label, extra={"issuer": issuer}
        )
        return entry

    async def revoke(self, issuer: str, *, caller: str) -> IssuerAuthorization:
        self._require_admin(caller, "revoke")
        issuer = normalize_principal(issuer)

        previous = await self._repo.get(issuer)
        now = self._clock.now()
        updated = await self._repo.set_authorized(issuer, False, now)
        if updated is None:
            raise log_rejection(
                logger,
                NotAuthorizedError(f"issuer {issuer or '<blank>'} is not authorized"),
                issuer=issuer,
            )

        try:
            await self._notifier.publish(InstitutionRevoked(issuer=issuer, occurred_at=now))
        except Exception:
            logger.error(
                "Notification failed; undoing revocation of issuer=%s",
                issuer,
                extra={"issuer": issuer},
            )
            await self._repo.restore(issuer, previous)
            raise

        ISSUER_AUTHORIZATION_CHANGES.labels(action="revoked").inc()
        logger.info("Revoked issuer=%s", issuer, extra={"issuer": issuer})
        return updated

    async def is_authorized(self, issuer: str) -> bool:
        entry = await self._repo.get(normalize_principal(issuer))
        return entry is not None and entry.authorized

    async def get(self, issuer: str) -> IssuerAuthorization | None:
        return await self._repo.get(normalize_principal(issuer))

    async def list_issuers(
        self, *, authorized_only: bool = False
    ) -> list[IssuerAuthorization]:
        entries = await self._repo.list_all()
        if authorized_only:
            return [e for e in entries if e.authorized]
        return entries
