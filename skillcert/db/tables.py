"""SQLAlchemy table definitions.

These map to the frozen dataclass domain models in skillcert/models/.
Repos convert between rows and dataclasses; nothing outside skillcert/repos
touches a Row class.
"""

from __future__ import annotations

from sqlalchemy import (
    BigInteger,
    Boolean,
    CheckConstraint,
    ForeignKey,
    Index,
    Sequence,
    String,
)
from sqlalchemy.orm import Mapped, mapped_column

from skillcert.db.engine import Base

# Credential ids are allocated from this sequence, never from the table's
# max(id), so ids of rolled-back mints are skipped rather than reused.
credential_id_seq = Sequence("credential_id_seq", start=1, metadata=Base.metadata)


class IssuerRow(Base):
    __tablename__ = "issuers"

    issuer: Mapped[str] = mapped_column(String(255), primary_key=True)
    label: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    authorized: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    updated_at: Mapped[int] = mapped_column(BigInteger, nullable=False)


class CredentialRow(Base):
    __tablename__ = "credentials"

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=False)
    skill_name: Mapped[str] = mapped_column(String(500), nullable=False)
    issuer_label: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    holder: Mapped[str] = mapped_column(String(255), nullable=False)
    issuer: Mapped[str] = mapped_column(
        String(255), ForeignKey("issuers.issuer"), nullable=False
    )
    issued_at: Mapped[int] = mapped_column(BigInteger, nullable=False)
    expires_at: Mapped[int] = mapped_column(BigInteger, nullable=False)
    level: Mapped[str] = mapped_column(String(64), nullable=False, default="")
    active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    __table_args__ = (
        Index("ix_credentials_holder_id", "holder", "id"),
        CheckConstraint("expires_at > issued_at", name="ck_credentials_validity"),
    )


class CredentialOwnerRow(Base):
    __tablename__ = "credential_owners"

    credential_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("credentials.id"), primary_key=True
    )
    holder: Mapped[str] = mapped_column(String(255), nullable=False)
