"""Credential issuance, verification and revocation endpoints.

- POST /v1/credentials                      mint (authorized issuer)
- GET  /v1/credentials/{id}                 raw record (public)
- GET  /v1/credentials/{id}/verify          live validity check (public)
- GET  /v1/credentials/{id}/expired         expiry only (public)
- POST /v1/credentials/{id}/revoke          revoke (issuer or administrator)
- GET  /v1/holders/{holder}/credentials     holder portfolio (public)

Verification is public by design: a verifier only needs the credential id.
"""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, Field

from skillcert.api.dependencies import get_lifecycle, require_user
from skillcert.models.credential import CredentialRecord
from skillcert.models.principal import MAX_PRINCIPAL_LENGTH, Principal
from skillcert.services.lifecycle import CredentialLifecycle

router = APIRouter(prefix="/v1/credentials", tags=["credentials"])
holders_router = APIRouter(prefix="/v1/holders", tags=["credentials"])

Lifecycle = Annotated[CredentialLifecycle, Depends(get_lifecycle)]


class CredentialMintIn(BaseModel):
    holder: str = Field(max_length=MAX_PRINCIPAL_LENGTH)
    skill_name: str = Field(max_length=500)
    issuer_label: str = Field(default="", max_length=255)
    level: str = Field(default="", max_length=64)
    validity_period: int  # seconds; bounds are enforced by the lifecycle


class CredentialOut(BaseModel):
    id: int
    skill_name: str
    issuer_label: str
    holder: str
    issuer: str
    issued_at: int
    expires_at: int
    level: str
    active: bool

    @classmethod
    def from_record(cls, record: CredentialRecord) -> CredentialOut:
        return cls(**record.to_dict())


class CredentialVerifyOut(BaseModel):
    id: int
    valid: bool
    active: bool
    expired: bool
    issuer_authorized: bool
    checked_at: int
    credential: CredentialOut


class CredentialExpiredOut(BaseModel):
    id: int
    expired: bool


class CredentialRevokeIn(BaseModel):
    reason: str = Field(default="", max_length=1000)


class HolderCredentialsOut(BaseModel):
    holder: str
    credential_ids: list[int]


@router.post("", response_model=CredentialOut, status_code=status.HTTP_201_CREATED)
async def mint_credential(
    body: CredentialMintIn,
    principal: Annotated[Principal, Depends(require_user)],
    lifecycle: Lifecycle,
) -> CredentialOut:
    credential_id = await lifecycle.mint(
        principal.subject,
        holder=body.holder,
        skill_name=body.skill_name,
        issuer_label=body.issuer_label,
        level=body.level,
        validity_period=body.validity_period,
    )
    record = await lifecycle.get_credential(credential_id)
    return CredentialOut.from_record(record)


@router.get("/{credential_id}", response_model=CredentialOut)
async def get_credential(credential_id: int, lifecycle: Lifecycle) -> CredentialOut:
    return CredentialOut.from_record(await lifecycle.get_credential(credential_id))


@router.get("/{credential_id}/verify", response_model=CredentialVerifyOut)
async def verify_credential(
    credential_id: int, lifecycle: Lifecycle
) -> CredentialVerifyOut:
    result = await lifecycle.verify(credential_id)
    return CredentialVerifyOut(
        id=credential_id,
        valid=result.is_valid,
        active=result.record.active,
        expired=result.expired,
        issuer_authorized=result.issuer_authorized,
        checked_at=result.checked_at,
        credential=CredentialOut.from_record(result.record),
    )


@router.get("/{credential_id}/expired", response_model=CredentialExpiredOut)
async def credential_expired(
    credential_id: int, lifecycle: Lifecycle
) -> CredentialExpiredOut:
    return CredentialExpiredOut(
        id=credential_id, expired=await lifecycle.is_expired(credential_id)
    )


@router.post("/{credential_id}/revoke", response_model=CredentialOut)
async def revoke_credential(
    credential_id: int,
    principal: Annotated[Principal, Depends(require_user)],
    lifecycle: Lifecycle,
    body: CredentialRevokeIn | None = None,
) -> CredentialOut:
    reason = body.reason if body is not None else ""
    record = await lifecycle.revoke_credential(principal.subject, credential_id, reason)
    return CredentialOut.from_record(record)


@holders_router.get("/{holder}/credentials", response_model=HolderCredentialsOut)
async def holder_credentials(holder: str, lifecycle: Lifecycle) -> HolderCredentialsOut:
    ids = await lifecycle.get_holder_credentials(holder)
    return HolderCredentialsOut(holder=holder.strip(), credential_ids=ids)
