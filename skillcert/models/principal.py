from __future__ import annotations

from dataclasses import dataclass

ZERO_ADDRESS = "0x" + "0" * 40

# Width of every principal column (issuers.issuer, credentials.holder, ...).
MAX_PRINCIPAL_LENGTH = 255


def normalize_principal(value: str | None) -> str:
    """Strip surrounding whitespace; None becomes the empty identity."""
    return (value or "").strip()


def is_null_principal(value: str | None) -> bool:
    """True for blank identities and the all-zero address."""
    normalized = normalize_principal(value)
    return not normalized or normalized.lower() == ZERO_ADDRESS


def is_valid_principal(value: str | None) -> bool:
    """Non-null and short enough to store."""
    return (
        not is_null_principal(value)
        and len(normalize_principal(value)) <= MAX_PRINCIPAL_LENGTH
    )


@dataclass(frozen=True, slots=True)
class Principal:
    """Authenticated caller extracted from a validated bearer token.

    ``subject`` is the ``sub`` claim, compared verbatim against issuer and
    administrator identities.
    """

    subject: str
