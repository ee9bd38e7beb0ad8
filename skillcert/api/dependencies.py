from __future__ import annotations

import logging
from collections.abc import AsyncGenerator
from typing import Annotated

import jwt
from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.ext.asyncio import AsyncSession

from skillcert.core.clock import Clock, SystemClock
from skillcert.core.config import SETTINGS
from skillcert.db.engine import async_session_factory
from skillcert.models.principal import Principal
from skillcert.repos.credential_repo import InMemoryCredentialRepo
from skillcert.repos.id_allocator import InMemoryIdAllocator
from skillcert.repos.issuer_repo import InMemoryIssuerRepo
from skillcert.repos.ownership_repo import InMemoryOwnershipLedger
from skillcert.repos.pg_credential_repo import PgCredentialRepo
from skillcert.repos.pg_issuer_repo import PgIssuerRepo
from skillcert.repos.pg_ownership_repo import PgIdAllocator, PgOwnershipLedger
from skillcert.services import token_service
from skillcert.services.issuer_registry import IssuerRegistry
from skillcert.services.lifecycle import CredentialLifecycle
from skillcert.services.notifications import Notifier, notifier

logger = logging.getLogger(__name__)

# tokenUrl is informational only: tokens come from the identity provider.
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/oauth/token")


def require_user(
    raw_token: Annotated[str, Depends(oauth2_scheme)],
) -> Principal:
    """Extract and validate the bearer token. Returns the calling Principal."""
    try:
        claims = token_service.decode_access_token(raw_token)
    except jwt.ExpiredSignatureError:
        logger.warning("Expired token rejected")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token expired",
            headers={"WWW-Authenticate": "Bearer"},
        ) from None
    except jwt.InvalidTokenError as e:
        logger.warning("Invalid token rejected: %s", e)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token",
            headers={"WWW-Authenticate": "Bearer"},
        ) from None

    principal = Principal(subject=claims["sub"])
    logger.debug("Token validated for principal=%s", principal.subject)
    return principal


# ---------------------------------------------------------------------------
# Lifecycle wiring
# ---------------------------------------------------------------------------


def build_in_memory_lifecycle(
    clock: Clock | None = None,
    notifier_: Notifier | None = None,
    *,
    admin: str | None = None,
) -> CredentialLifecycle:
    """Assemble a lifecycle over fresh in-memory repositories."""
    clock = clock or SystemClock()
    notifier_ = notifier_ or notifier
    registry = IssuerRegistry(
        InMemoryIssuerRepo(),
        notifier_,
        clock,
        admin=admin or SETTINGS.admin_principal,
    )
    return CredentialLifecycle(
        ids=InMemoryIdAllocator(),
        credentials=InMemoryCredentialRepo(),
        registry=registry,
        ownership=InMemoryOwnershipLedger(),
        notifier=notifier_,
        clock=clock,
    )


def build_pg_lifecycle(
    session: AsyncSession, clock: Clock | None = None
) -> CredentialLifecycle:
    """Assemble a lifecycle whose repositories share one session/transaction."""
    clock = clock or SystemClock()
    registry = IssuerRegistry(
        PgIssuerRepo(session), notifier, clock, admin=SETTINGS.admin_principal
    )
    return CredentialLifecycle(
        ids=PgIdAllocator(session),
        credentials=PgCredentialRepo(session),
        registry=registry,
        ownership=PgOwnershipLedger(session),
        notifier=notifier,
        clock=clock,
    )


# Process-wide state when no DATABASE_URL is configured.
in_memory_lifecycle = build_in_memory_lifecycle()


async def get_lifecycle() -> AsyncGenerator[CredentialLifecycle, None]:
    """Request-scoped lifecycle.

    With PostgreSQL, one session per request: commit when the endpoint
    returns, roll back if it raises (including domain errors), so a request
    never leaves a partial mint behind.
    """
    if async_session_factory is None:
        yield in_memory_lifecycle
        return

    async with async_session_factory() as session:
        try:
            yield build_pg_lifecycle(session)
            await session.commit()
        except Exception:
            await session.rollback()
            raise
