"""Initial schema — groups, memberships, balances, debts.

Revision: 001_initial_schema
Created:  2026-10-18

Append-only:
  This file must NEVER be edited after it has been applied to any database.
  If a schema change is required, create a NEW migration file.

Creation order:
  1. groups
  2. memberships, balances, debts (all reference groups)
  3. Indexes

ON DELETE policies:
  memberships.group_id → RESTRICT
  balances.group_id    → RESTRICT
  debts.group_id       → RESTRICT
  (groups are never deleted)
"""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op

# ── Alembic revision identifiers ──────────────────────────────────────────
revision: str = "001_initial_schema"
down_revision: str | None = None      # first migration — no parent
branch_labels: tuple | None = None
depends_on: tuple | None = None


def upgrade() -> None:
    """Apply the full initial schema."""

    # ── Step 1: groups ─────────────────────────────────────────────────────
    # sqlite_autoincrement: ids are never reused on SQLite either.

    op.create_table(
        "groups",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.PrimaryKeyConstraint("id", name="pk_groups"),
        sa.CheckConstraint(
            "LENGTH(TRIM(name)) > 0",
            name="ck_groups_name_nonempty",
        ),
        sqlite_autoincrement=True,
    )

    # ── Step 2: memberships ────────────────────────────────────────────────
    # memberships.id doubles as the join order.

    op.create_table(
        "memberships",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column(
            "group_id",
            sa.Integer(),
            sa.ForeignKey("groups.id", ondelete="RESTRICT", name="fk_memberships_group"),
            nullable=False,
        ),
        sa.Column("member", sa.String(255), nullable=False),
        sa.Column(
            "joined_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.PrimaryKeyConstraint("id", name="pk_memberships"),
        sa.UniqueConstraint("group_id", "member", name="uq_memberships_group_member"),
        sqlite_autoincrement=True,
    )

    # ── Step 3: balances ───────────────────────────────────────────────────
    # Signed BIGINT. Sum per group is always zero (enforced by the service).

    op.create_table(
        "balances",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column(
            "group_id",
            sa.Integer(),
            sa.ForeignKey("groups.id", ondelete="RESTRICT", name="fk_balances_group"),
            nullable=False,
        ),
        sa.Column("member", sa.String(255), nullable=False),
        sa.Column("amount", sa.BigInteger(), nullable=False, server_default="0"),
        sa.PrimaryKeyConstraint("id", name="pk_balances"),
        sa.UniqueConstraint("group_id", "member", name="uq_balances_group_member"),
    )

    # ── Step 4: debts ──────────────────────────────────────────────────────

    op.create_table(
        "debts",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column(
            "group_id",
            sa.Integer(),
            sa.ForeignKey("groups.id", ondelete="RESTRICT", name="fk_debts_group"),
            nullable=False,
        ),
        sa.Column("debtor", sa.String(255), nullable=False),
        sa.Column("creditor", sa.String(255), nullable=False),
        sa.Column("amount", sa.BigInteger(), nullable=False, server_default="0"),
        sa.PrimaryKeyConstraint("id", name="pk_debts"),
        sa.UniqueConstraint(
            "group_id", "debtor", "creditor",
            name="uq_debts_group_debtor_creditor",
        ),
        sa.CheckConstraint("amount >= 0", name="ck_debts_amount_non_negative"),
    )

    # ── Step 5: indexes ────────────────────────────────────────────────────

    op.create_index("ix_memberships_group_id", "memberships", ["group_id"])
    op.create_index("ix_balances_group_id", "balances", ["group_id"])
    op.create_index("ix_debts_group_id", "debts", ["group_id"])


def downgrade() -> None:
    """
    Drop all objects created in upgrade(), in reverse dependency order.

    Provided for local development reset only.
    """
    op.drop_index("ix_debts_group_id",       table_name="debts")
    op.drop_index("ix_balances_group_id",    table_name="balances")
    op.drop_index("ix_memberships_group_id", table_name="memberships")

    op.drop_table("debts")
    op.drop_table("balances")
    op.drop_table("memberships")
    op.drop_table("groups")
