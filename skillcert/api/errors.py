"""Translate lifecycle errors into HTTP responses.

Services raise SkillCertError subclasses and know nothing about HTTP; this
handler is the single place that maps them to status codes.  The body keeps
FastAPI's ``detail`` key and adds the stable ``error`` code.
"""

from __future__ import annotations

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from skillcert.core.errors import (
    AlreadyAuthorizedError,
    AlreadyRevokedError,
    CredentialNotFoundError,
    EmptySkillNameError,
    ForbiddenError,
    InvalidHolderError,
    InvalidPrincipalError,
    InvalidValidityPeriodError,
    NotAuthorizedError,
    NotAuthorizedIssuerError,
    SkillCertError,
)

STATUS_BY_ERROR: dict[type[SkillCertError], int] = {
    InvalidPrincipalError: 422,
    InvalidHolderError: 422,
    EmptySkillNameError: 422,
    InvalidValidityPeriodError: 422,
    NotAuthorizedIssuerError: 403,
    ForbiddenError: 403,
    CredentialNotFoundError: 404,
    AlreadyAuthorizedError: 409,
    NotAuthorizedError: 409,
    AlreadyRevokedError: 409,
}


def status_for(error: SkillCertError) -> int:
    for cls in type(error).__mro__:
        if cls in STATUS_BY_ERROR:
            return STATUS_BY_ERROR[cls]  # type: ignore[index]
    return 400


async def skillcert_error_handler(
    _request: Request, exc: SkillCertError
) -> JSONResponse:
    return JSONResponse(
        status_code=status_for(exc),
        content={"detail": str(exc), "error": exc.code},
    )


def install_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(SkillCertError, skillcert_error_handler)  # type: ignore[arg-type]
