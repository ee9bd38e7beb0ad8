from __future__ import annotations

from dataclasses import dataclass, replace

# Expiry must fit the BIGINT timestamp columns; a century is plenty.
MAX_VALIDITY_PERIOD = 100 * 365 * 24 * 60 * 60


@dataclass(frozen=True, slots=True)
class CredentialRecord:
    """Issued skill credential.

    Every field except ``active`` is fixed at mint.  ``active`` only ever
    moves from True to False (see ``revoked``).
    """

    id: int
    skill_name: str
    issuer_label: str
    holder: str
    issuer: str
    issued_at: int
    expires_at: int
    level: str = ""
    active: bool = True

    @staticmethod
    def new(
        *,
        id: int,
        skill_name: str,
        issuer_label: str,
        holder: str,
        issuer: str,
        issued_at: int,
        validity_period: int,
        level: str = "",
    ) -> CredentialRecord:
        return CredentialRecord(
            id=id,
            skill_name=skill_name,
            issuer_label=issuer_label,
            holder=holder,
            issuer=issuer,
            issued_at=issued_at,
            expires_at=issued_at + validity_period,
            level=level,
        )

    def revoked(self) -> CredentialRecord:
        return replace(self, active=False)

    def is_expired_at(self, now: int) -> bool:
        return now > self.expires_at

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "skill_name": self.skill_name,
            "issuer_label": self.issuer_label,
            "holder": self.holder,
            "issuer": self.issuer,
            "issued_at": self.issued_at,
            "expires_at": self.expires_at,
            "level": self.level,
            "active": self.active,
        }


@dataclass(frozen=True, slots=True)
class VerificationResult:
    """Outcome of a live validity check.

    Unpacks as ``(is_valid, record)``.
    """

    is_valid: bool
    record: CredentialRecord
    expired: bool
    issuer_authorized: bool
    checked_at: int

    def __iter__(self):
        yield self.is_valid
        yield self.record
