"""Issuer registry endpoints.

- POST   /v1/issuers             authorize an issuer (administrator)
- DELETE /v1/issuers/{issuer}    revoke an issuer (administrator)
- GET    /v1/issuers             list registry entries (public)
- GET    /v1/issuers/{issuer}    authorization status (public)

Administrator checks happen in IssuerRegistry, not here, so the same rule
applies to every caller of the service layer.
"""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, Field

from skillcert.api.dependencies import get_lifecycle, require_user
from skillcert.models.issuer import IssuerAuthorization
from skillcert.models.principal import MAX_PRINCIPAL_LENGTH, Principal
from skillcert.services.lifecycle import CredentialLifecycle

router = APIRouter(prefix="/v1/issuers", tags=["issuers"])

Lifecycle = Annotated[CredentialLifecycle, Depends(get_lifecycle)]


class IssuerAuthorizeIn(BaseModel):
    issuer: str = Field(max_length=MAX_PRINCIPAL_LENGTH)
    label: str = Field(default="", max_length=255)


class IssuerOut(BaseModel):
    issuer: str
    label: str
    authorized: bool
    updated_at: int | None = None


def _to_out(entry: IssuerAuthorization) -> IssuerOut:
    return IssuerOut(
        issuer=entry.issuer,
        label=entry.label,
        authorized=entry.authorized,
        updated_at=entry.updated_at,
    )


@router.post("", response_model=IssuerOut, status_code=status.HTTP_201_CREATED)
async def authorize_issuer(
    body: IssuerAuthorizeIn,
    principal: Annotated[Principal, Depends(require_user)],
    lifecycle: Lifecycle,
) -> IssuerOut:
    entry = await lifecycle.registry.authorize(
        body.issuer, body.label, caller=principal.subject
    )
    return _to_out(entry)


@router.delete("/{issuer}", response_model=IssuerOut)
async def revoke_issuer(
    issuer: str,
    principal: Annotated[Principal, Depends(require_user)],
    lifecycle: Lifecycle,
) -> IssuerOut:
    entry = await lifecycle.registry.revoke(issuer, caller=principal.subject)
    return _to_out(entry)


@router.get("", response_model=list[IssuerOut])
async def list_issuers(
    lifecycle: Lifecycle,
    authorized_only: bool = False,
) -> list[IssuerOut]:
    entries = await lifecycle.registry.list_issuers(authorized_only=authorized_only)
    return [_to_out(e) for e in entries]


@router.get("/{issuer}", response_model=IssuerOut)
async def get_issuer(issuer: str, lifecycle: Lifecycle) -> IssuerOut:
    """Unknown issuers are reported as unauthorized rather than 404."""
    entry = await lifecycle.registry.get(issuer)
    if entry is None:
        return IssuerOut(issuer=issuer.strip(), label="", authorized=False)
    return _to_out(entry)
