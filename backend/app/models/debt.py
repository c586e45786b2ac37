"""
models/debt.py — Debt graph edge table definition.

One row per (group, debtor, creditor): the amount owed directly by `debtor`
to `creditor`. A missing row reads as zero. The graph records how the net
balances arose; it is not required to be their transitive closure.

Key design points:
  - `amount` is a non-negative integer (CHECK below).
  - UNIQUE(group_id, debtor, creditor) keeps at most one edge per ordered
    pair. Both ledger_service.py (accumulate) and simplify_service.py
    (rewrite) go through that single row.
"""

from __future__ import annotations

from sqlalchemy import BigInteger, CheckConstraint, ForeignKey, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from backend.app.extensions import db


class Debt(db.Model):
    __tablename__ = "debts"

    __table_args__ = (
        UniqueConstraint(
            "group_id", "debtor", "creditor",
            name="uq_debts_group_debtor_creditor",
        ),
        CheckConstraint("amount >= 0", name="ck_debts_amount_non_negative"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)

    group_id: Mapped[int] = mapped_column(
        ForeignKey("groups.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )

    debtor: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )

    creditor: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )

    amount: Mapped[int] = mapped_column(
        BigInteger,
        nullable=False,
        default=0,
    )

    def __repr__(self) -> str:  # pragma: no cover
        return (
            f"<Debt group_id={self.group_id} "
            f"{self.debtor!r} -> {self.creditor!r} "
            f"amount={self.amount}>"
        )
