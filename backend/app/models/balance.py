"""
models/balance.py — Net balance table definition.

One row per (group, member) that has ever been touched by an expense or a
settlement. A missing row reads as zero.

Sign convention:
  amount > 0  the group owes this member (net creditor)
  amount < 0  this member owes the group (net debtor)

The sum of `amount` over a group is always zero. Only ledger_service.py
writes this table.
"""

from __future__ import annotations

from sqlalchemy import BigInteger, ForeignKey, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from backend.app.extensions import db

# BIGINT range. Balances and debt edges must stay inside it.
AMOUNT_MIN = -(2 ** 63)
AMOUNT_MAX = 2 ** 63 - 1


class Balance(db.Model):
    __tablename__ = "balances"

    __table_args__ = (
        UniqueConstraint("group_id", "member", name="uq_balances_group_member"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)

    group_id: Mapped[int] = mapped_column(
        ForeignKey("groups.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )

    member: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )

    # Signed integer units. Never Float.
    amount: Mapped[int] = mapped_column(
        BigInteger,
        nullable=False,
        default=0,
    )

    def __repr__(self) -> str:  # pragma: no cover
        return (
            f"<Balance group_id={self.group_id} "
            f"member={self.member!r} "
            f"amount={self.amount}>"
        )
