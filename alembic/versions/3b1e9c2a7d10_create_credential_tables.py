"""create issuer, credential and ownership tables

Revision ID: 3b1e9c2a7d10
Revises:
Create Date: 2026-10-19 00:00:00.000000

"""

from collections.abc import Sequence

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "3b1e9c2a7d10"
down_revision: str | Sequence[str] | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    op.execute(sa.schema.CreateSequence(sa.Sequence("credential_id_seq", start=1)))

    op.create_table(
        "issuers",
        sa.Column("issuer", sa.String(length=255), primary_key=True),
        sa.Column("label", sa.String(length=255), nullable=False, server_default=""),
        sa.Column("authorized", sa.Boolean(), nullable=False),
        sa.Column("updated_at", sa.BigInteger(), nullable=False),
    )

    op.create_table(
        "credentials",
        sa.Column("id", sa.BigInteger(), primary_key=True, autoincrement=False),
        sa.Column("skill_name", sa.String(length=500), nullable=False),
        sa.Column(
            "issuer_label", sa.String(length=255), nullable=False, server_default=""
        ),
        sa.Column("holder", sa.String(length=255), nullable=False),
        sa.Column(
            "issuer",
            sa.String(length=255),
            sa.ForeignKey("issuers.issuer"),
            nullable=False,
        ),
        sa.Column("issued_at", sa.BigInteger(), nullable=False),
        sa.Column("expires_at", sa.BigInteger(), nullable=False),
        sa.Column("level", sa.String(length=64), nullable=False, server_default=""),
        sa.Column("active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.CheckConstraint("expires_at > issued_at", name="ck_credentials_validity"),
    )
    op.create_index("ix_credentials_holder_id", "credentials", ["holder", "id"])

    op.create_table(
        "credential_owners",
        sa.Column(
            "credential_id",
            sa.BigInteger(),
            sa.ForeignKey("credentials.id"),
            primary_key=True,
        ),
        sa.Column("holder", sa.String(length=255), nullable=False),
    )


def downgrade() -> None:
    op.drop_table("credential_owners")
    op.drop_index("ix_credentials_holder_id", table_name="credentials")
    op.drop_table("credentials")
    op.drop_table("issuers")
    op.execute(sa.schema.DropSequence(sa.Sequence("credential_id_seq")))
