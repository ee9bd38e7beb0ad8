"""Bearer token creation and validation (ES256).

The ``sub`` claim is the caller identity the lifecycle compares against
issuer and administrator principals.

Key material:
  - JWT_PUBLIC_KEY_PEM set: tokens are minted elsewhere (an identity
    provider) and only verified here.  create_access_token is unavailable.
  - unset (dev/test): an ephemeral EC key pair is generated on import.
"""

from __future__ import annotations

import uuid
from datetime import UTC, datetime, timedelta

import jwt
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ec

from skillcert.core.config import SETTINGS

ALGORITHM = "ES256"
ISSUER = "skillcert"
AUDIENCE = "skillcert"
ACCESS_TOKEN_TTL_MIN = 15

if SETTINGS.jwt_public_key_pem:
    _private_key: ec.EllipticCurvePrivateKey | None = None
    _public_key = serialization.load_pem_public_key(
        SETTINGS.jwt_public_key_pem.encode()
    )
    if not isinstance(_public_key, ec.EllipticCurvePublicKey):
        raise ValueError("JWT_PUBLIC_KEY_PEM must be an EC public key")
else:
    _private_key = ec.generate_private_key(ec.SECP256R1())
    _public_key = _private_key.public_key()


def create_access_token(
    *,
    sub: str,
    ttl_minutes: int = ACCESS_TOKEN_TTL_MIN,
) -> str:
    """Build and sign an access token with the local dev key."""
    if _private_key is None:
        raise RuntimeError(
            "JWT_PUBLIC_KEY_PEM is configured; tokens are issued externally"
        )
    now = datetime.now(UTC)
    payload = {
        "sub": sub,
        "iss": ISSUER,
        "aud": AUDIENCE,
        "exp": now + timedelta(minutes=ttl_minutes),
        "iat": now,
        "jti": str(uuid.uuid4()),
    }
    return jwt.encode(payload, _private_key, algorithm=ALGORITHM)


def decode_access_token(token: str) -> dict:
    """Verify signature and claims, return the payload.

    The algorithm is pinned to ES256.  Raises jwt.ExpiredSignatureError or
    jwt.InvalidTokenError on failure.
    """
    return jwt.decode(
        token,
        _public_key,
        algorithms=[ALGORITHM],
        issuer=ISSUER,
        audience=AUDIENCE,
        options={"require": ["sub", "exp", "iat", "jti"]},
    )
