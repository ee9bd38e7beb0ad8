"""skillcert error hierarchy.

Every error is a precondition violation raised before any state changes.
``code`` is the stable, machine-readable name returned to API clients.
"""

from __future__ import annotations

import logging

from skillcert.core.metrics import LIFECYCLE_REJECTIONS


class SkillCertError(Exception):
    """Base exception for all credential lifecycle errors."""

    code = "skillcert_error"


# --- Authorization registry ---


class InvalidPrincipalError(SkillCertError):
    """Issuer identity is null or blank."""

    code = "invalid_principal"


class AlreadyAuthorizedError(SkillCertError):
    """Issuer is already authorized."""

    code = "already_authorized"


class NotAuthorizedError(SkillCertError):
    """Issuer is not currently authorized, so it cannot be revoked."""

    code = "not_authorized"


# --- Mint preconditions ---


class NotAuthorizedIssuerError(SkillCertError):
    """Caller is not an authorized issuer."""

    code = "not_authorized_issuer"


class InvalidHolderError(SkillCertError):
    """Holder identity is null or blank."""

    code = "invalid_holder"


class EmptySkillNameError(SkillCertError):
    code = "empty_skill_name"


class InvalidValidityPeriodError(SkillCertError):
    """Validity period must be a strictly positive number of seconds."""

    code = "invalid_validity_period"


# --- Lookup and revocation ---


class CredentialNotFoundError(SkillCertError):
    code = "not_found"

    def __init__(self, credential_id: int) -> None:
        super().__init__(f"credential {credential_id} not found")
        self.credential_id = credential_id


class ForbiddenError(SkillCertError):
    """Caller lacks the privilege for this operation."""

    code = "forbidden"


class AlreadyRevokedError(SkillCertError):
    code = "already_revoked"

    def __init__(self, credential_id: int) -> None:
        super().__init__(f"credential {credential_id} is already revoked")
        self.credential_id = credential_id


def log_rejection(
    logger: logging.Logger, error: SkillCertError, **context: object
) -> SkillCertError:
    """Count and log a refused operation, then hand the error back to raise."""
    LIFECYCLE_REJECTIONS.labels(code=error.code).inc()
    logger.warning("Rejected %s: %s", error.code, error, extra=context)
    return error
