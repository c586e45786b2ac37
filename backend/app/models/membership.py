"""
models/membership.py — Group membership table definition.

No business logic. No imports from services or routes.

Members are opaque account identifiers (strings); there is no users table.
Insertion order is significant: the simplifier breaks ties by the order in
which members joined, so listing queries always ORDER BY memberships.id.
Rows are only ever inserted — there is no leave operation.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, String, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from backend.app.extensions import db


class Membership(db.Model):
    __tablename__ = "memberships"

    __table_args__ = (
        # A member can only belong to a group once.
        UniqueConstraint("group_id", "member", name="uq_memberships_group_member"),
        {"sqlite_autoincrement": True},
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

    joined_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )

    # ── Relationships ──────────────────────────────────────────────────────

    group: Mapped["Group"] = relationship(  # noqa: F821
        "Group",
        back_populates="memberships",
    )

    def __repr__(self) -> str:  # pragma: no cover
        return (
            f"<Membership id={self.id} "
            f"group_id={self.group_id} "
            f"member={self.member!r}>"
        )
