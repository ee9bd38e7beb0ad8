"""Credential lifecycle: mint, verify, revoke and holder queries.

Validity is never stored.  ``verify`` recomputes it on every call from three
live facts:

    record.active  AND  now <= record.expires_at  AND  issuer authorized now

so a credential turns invalid without any write when its issuer is
deauthorized or the clock passes its expiry, and turns valid again if the
issuer is re-authorized (revocation of the credential itself is final).

Every precondition is checked before the first write.  Mint then performs
allocate → store (record + holder index) → assign owner → notify; with the
PostgreSQL repos all of that runs inside the request's transaction.  If the
notification cannot be published the writes are undone before the error
propagates, so a mint or revoke either happens with its event or not at all.
An id allocated to an undone mint is not reused.
"""

from __future__ import annotations

import logging

from skillcert.core.clock import Clock
from skillcert.core.errors import (
    AlreadyRevokedError,
    CredentialNotFoundError,
    EmptySkillNameError,
    ForbiddenError,
    InvalidHolderError,
    InvalidValidityPeriodError,
    NotAuthorizedIssuerError,
    log_rejection,
)
from skillcert.core.metrics import (
    CREDENTIAL_VERIFICATIONS,
    CREDENTIALS_MINTED,
    CREDENTIALS_REVOKED,
)
from skillcert.models.credential import (
    MAX_VALIDITY_PERIOD,
    CredentialRecord,
    VerificationResult,
)
from skillcert.models.events import CertificateMinted, CertificateRevoked
from skillcert.models.principal import (
    MAX_PRINCIPAL_LENGTH,
    is_valid_principal,
    normalize_principal,
)
from skillcert.repos.credential_repo import CredentialRepo
from skillcert.repos.id_allocator import IdAllocator
from skillcert.repos.ownership_repo import OwnershipLedger
from skillcert.services.issuer_registry import IssuerRegistry
from skillcert.services.notifications import Notifier

logger = logging.getLogger(__name__)


class CredentialLifecycle:
    def __init__(
        self,
        *,
        ids: IdAllocator,
        credentials: CredentialRepo,
        registry: IssuerRegistry,
        ownership: OwnershipLedger,
        notifier: Notifier,
        clock: Clock,
    ) -> None:
        self._ids = ids
        self._credentials = credentials
        self.registry = registry
        self.ownership = ownership
        self._notifier = notifier
        self._clock = clock

    # ------------------------------------------------------------------
    # Mint
    # ------------------------------------------------------------------

    async def mint(
        self,
        caller: str,
        *,
        holder: str,
        skill_name: str,
        issuer_label: str = "",
        level: str = "",
        validity_period: int,
    ) -> int:
        """Issue a credential from ``caller`` to ``holder``. Returns its id."""
        caller = normalize_principal(caller)

        issuer_entry = await self.registry.get(caller)
        if issuer_entry is None or not issuer_entry.authorized:
            raise log_rejection(
                logger,
                NotAuthorizedIssuerError(
                    f"{caller or '<blank>'} is not an authorized issuer"
                ),
                principal=caller,
            )
        if not is_valid_principal(holder):
            raise log_rejection(
                logger,
                InvalidHolderError(
                    f"holder must be a non-null identity of at most "
                    f"{MAX_PRINCIPAL_LENGTH} characters"
                ),
                issuer=caller,
            )
        skill_name = (skill_name or "").strip()
        if not skill_name:
            raise log_rejection(
                logger, EmptySkillNameError("skill name must be non-empty"), issuer=caller
            )
        if (
            isinstance(validity_period, bool)
            or not isinstance(validity_period, int)
            or not 0 < validity_period <= MAX_VALIDITY_PERIOD
        ):
            raise log_rejection(
                logger,
                InvalidValidityPeriodError(
                    f"validity period must be between 1 and {MAX_VALIDITY_PERIOD} "
                    f"seconds (got {validity_period!r})"
                ),
                issuer=caller,
            )

        holder = normalize_principal(holder)
        label = (issuer_label or "").strip() or issuer_entry.label

        credential_id = await self._ids.next()
        record = CredentialRecord.new(
            id=credential_id,
            skill_name=skill_name,
            issuer_label=label,
            holder=holder,
            issuer=caller,
            issued_at=self._clock.now(),
            validity_period=validity_period,
            level=(level or "").strip(),
        )
        await self._credentials.put(record)
        await self.ownership.assign(holder, credential_id)
        try:
            await self._notifier.publish(
                CertificateMinted(
                    id=credential_id,
                    holder=holder,
                    issuer=caller,
                    skill_name=skill_name,
                    occurred_at=record.issued_at,
                )
            )
        except Exception:
            logger.error(
                "Notification failed; undoing mint of credential=%d",
                credential_id,
                extra={"credential_id": credential_id, "issuer": caller},
            )
            await self.ownership.release(credential_id)
            await self._credentials.discard(credential_id)
            raise

        CREDENTIALS_MINTED.inc()
        logger.info(
            "Minted credential=%d skill=%r issuer=%s holder=%s expires_at=%d",
            credential_id,
            skill_name,
            caller,
            holder,
            record.expires_at,
            extra={"credential_id": credential_id, "issuer": caller, "holder": holder},
        )
        return credential_id

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def get_credential(self, credential_id: int) -> CredentialRecord:
        record = await self._credentials.get(credential_id)
        if record is None:
            raise CredentialNotFoundError(credential_id)
        return record

    async def verify(self, credential_id: int) -> VerificationResult:
        """Recompute validity from the record, the clock and the registry."""
        record = await self.get_credential(credential_id)
        now = self._clock.now()
        expired = record.is_expired_at(now)
        issuer_authorized = await self.registry.is_authorized(record.issuer)
        is_valid = record.active and not expired and issuer_authorized

        if is_valid:
            outcome = "valid"
        elif not record.active:
            outcome = "revoked"
        elif expired:
            outcome = "expired"
        else:
            outcome = "issuer_unauthorized"
        CREDENTIAL_VERIFICATIONS.labels(result=outcome).inc()
        logger.debug(
            "Verified credential=%d result=%s",
            credential_id,
            outcome,
            extra={"credential_id": credential_id},
        )

        return VerificationResult(
            is_valid=is_valid,
            record=record,
            expired=expired,
            issuer_authorized=issuer_authorized,
            checked_at=now,
        )

    async def is_expired(self, credential_id: int) -> bool:
        """Expiry alone; ignores the active flag and issuer status."""
        record = await self.get_credential(credential_id)
        return record.is_expired_at(self._clock.now())

    async def get_holder_credentials(self, holder: str) -> list[int]:
        """Ids received by ``holder`` in mint order, revoked ones included."""
        return await self._credentials.list_by_holder(normalize_principal(holder))

    # ------------------------------------------------------------------
    # Revoke
    # ------------------------------------------------------------------

    async def revoke_credential(
        self, caller: str, credential_id: int, reason: str = ""
    ) -> CredentialRecord:
        """Permanently deactivate a credential.

        Allowed for the credential's own issuer and for the administrator.
        There is no way back: a second call fails with AlreadyRevokedError.
        """
        caller = normalize_principal(caller)
        record = await self._credentials.get(credential_id)
        if record is None:
            raise log_rejection(
                logger,
                CredentialNotFoundError(credential_id),
                credential_id=credential_id,
            )

        is_issuer = caller == record.issuer
        if not is_issuer and not self.registry.is_admin(caller):
            raise log_rejection(
                logger,
                ForbiddenError(
                    f"only the issuer or the administrator may revoke credential "
                    f"{credential_id}"
                ),
                credential_id=credential_id,
                principal=caller,
            )
        if not record.active:
            raise log_rejection(
                logger, AlreadyRevokedError(credential_id), credential_id=credential_id
            )

        updated = await self._credentials.deactivate(credential_id)
        if updated is None:
            raise log_rejection(
                logger, AlreadyRevokedError(credential_id), credential_id=credential_id
            )

        try:
            await self._notifier.publish(
                CertificateRevoked(
                    id=credential_id, reason=reason, occurred_at=self._clock.now()
                )
            )
        except Exception:
            logger.error(
                "Notification failed; undoing revocation of credential=%d",
                credential_id,
                extra={"credential_id": credential_id},
            )
            await self._credentials.restore(record)
            raise

        CREDENTIALS_REVOKED.labels(actor="issuer" if is_issuer else "admin").inc()
        logger.info(
            "Revoked credential=%d by=%s reason=%r",
            credential_id,
            caller,
            reason,
            extra={"credential_id": credential_id, "principal": caller},
        )
        return updated
