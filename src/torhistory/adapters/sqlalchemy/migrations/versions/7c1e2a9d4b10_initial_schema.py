"""initial relay history schema

Revision ID: 7c1e2a9d4b10
Revises:
Create Date: 2026-10-18 09:12:44.000000

"""

from __future__ import annotations

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op

revision: str = "7c1e2a9d4b10"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None

VALUE_TABLES = (
    "fingerprint",
    "region",
    "city",
    "platform",
    "version",
    "contact",
    "exit_policy",
    "exit_policy_summary",
    "exit_policy_v6_summary",
)

RELAY_VALUE_COLUMNS = (
    ("region_id", "region"),
    ("city_id", "city"),
    ("platform_id", "platform"),
    ("version_id", "version"),
    ("contact_id", "contact"),
    ("exit_policy_id", "exit_policy"),
    ("exit_policy_summary_id", "exit_policy_summary"),
    ("exit_policy_v6_summary_id", "exit_policy_v6_summary"),
)


def upgrade() -> None:
    for name in VALUE_TABLES:
        op.create_table(
            name,
            sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
            sa.Column("value", sa.Text(), nullable=False),
            sa.PrimaryKeyConstraint("id", name=op.f(f"pk_{name}")),
            sa.UniqueConstraint("value", name=op.f(f"uq_{name}_value")),
        )

    op.create_table(
        "country",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("code", sa.String(length=8), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_country")),
        sa.UniqueConstraint("code", "name", name=op.f("uq_country_code_name")),
    )

    op.create_table(
        "relay",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("fingerprint_id", sa.Integer(), nullable=False),
        sa.Column("country_id", sa.Integer(), nullable=True),
        *(sa.Column(column, sa.Integer(), nullable=True) for column, _ in RELAY_VALUE_COLUMNS),
        sa.Column("nickname", sa.String(), nullable=False),
        sa.Column("last_changed_address_or_port", sa.String(), nullable=False),
        sa.Column("first_seen", sa.String(), nullable=False),
        sa.Column("record_time_inserted", sa.String(length=14), nullable=False),
        sa.Column("record_last_seen", sa.String(length=14), nullable=False),
        sa.Column("flags", sa.Text(), nullable=False),
        sa.Column("details", sa.Text(), nullable=False),
        sa.ForeignKeyConstraint(
            ["fingerprint_id"],
            ["fingerprint.id"],
            name=op.f("fk_relay_fingerprint_id_fingerprint"),
        ),
        sa.ForeignKeyConstraint(
            ["country_id"], ["country.id"], name=op.f("fk_relay_country_id_country")
        ),
        *(
            sa.ForeignKeyConstraint(
                [column], [f"{table}.id"], name=op.f(f"fk_relay_{column}_{table}")
            )
            for column, table in RELAY_VALUE_COLUMNS
        ),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_relay")),
    )
    op.create_index(
        "ix_relay_fingerprint_id_record_time_inserted",
        "relay",
        ["fingerprint_id", "record_time_inserted"],
        unique=False,
    )

    op.create_table(
        "relay_address",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("fingerprint_id", sa.Integer(), nullable=False),
        sa.Column(
            "role",
            sa.Enum("or", "exit", "dir", name="addressrole", native_enum=False, length=8),
            nullable=False,
        ),
        sa.Column("address", sa.String(), nullable=False),
        sa.Column("record_time_inserted", sa.String(length=14), nullable=False),
        sa.Column("record_last_seen", sa.String(length=14), nullable=False),
        sa.ForeignKeyConstraint(
            ["fingerprint_id"],
            ["fingerprint.id"],
            name=op.f("fk_relay_address_fingerprint_id_fingerprint"),
        ),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_relay_address")),
        sa.UniqueConstraint(
            "fingerprint_id",
            "role",
            "address",
            name=op.f("uq_relay_address_fingerprint_id_role_address"),
        ),
    )

    op.create_table(
        "consensus_import",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("version", sa.String(), nullable=False),
        sa.Column("build_revision", sa.String(), nullable=False),
        sa.Column("relays_published", sa.String(), nullable=False),
        sa.Column("bridges_published", sa.String(), nullable=False),
        sa.Column("dlts", sa.String(length=14), nullable=False),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_consensus_import")),
    )
    op.create_index(
        op.f("ix_consensus_import_dlts"), "consensus_import", ["dlts"], unique=False
    )


def downgrade() -> None:
    op.drop_index(op.f("ix_consensus_import_dlts"), table_name="consensus_import")
    op.drop_table("consensus_import")
    op.drop_table("relay_address")
    op.drop_index("ix_relay_fingerprint_id_record_time_inserted", table_name="relay")
    op.drop_table("relay")
    op.drop_table("country")
    for name in reversed(VALUE_TABLES):
        op.drop_table(name)
