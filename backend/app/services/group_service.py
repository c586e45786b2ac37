"""
services/group_service.py — Group registry: creation, membership, lookup.

Rules enforced here:
  GROUP_NOT_FOUND (404)   — every operation on an unknown group id
  NOT_GROUP_MEMBER (403)  — reading group details requires membership

Membership semantics:
  - Members are added, never removed.
  - Insertion order is preserved and significant (simplifier tie-break).
  - Adding an existing member is a no-op, never an error.

Layer rules:
  - No Flask imports. Pure Python with a SQLAlchemy session parameter.
  - Commits are the route's responsibility — only flush here.
"""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import Session

from backend.app import events
from backend.app.errors import group_not_found, not_group_member
from backend.app.models.group import Group
from backend.app.models.membership import Membership


# ── Shared helpers (also used by the ledger and simplifier) ────────────────

def get_group_or_404(group_id: int, session: Session, for_update: bool = False) -> Group:
    """
    Returns the Group or raises GROUP_NOT_FOUND (404).

    With for_update=True the row is read SELECT ... FOR UPDATE so concurrent
    writers on other connections queue behind this transaction.
    """
    if for_update:
        group = session.execute(
            select(Group).where(Group.id == group_id).with_for_update()
        ).scalar_one_or_none()
    else:
        group = session.get(Group, group_id)

    if group is None:
        raise group_not_found(group_id)
    return group


def list_member_ids(group_id: int, session: Session) -> list[str]:
    """Members of an existing group in join order. Does not check the group exists."""
    stmt = (
        select(Membership.member)
        .where(Membership.group_id == group_id)
        .order_by(Membership.id.asc())
    )
    return list(session.execute(stmt).scalars().all())


def _membership_exists(group_id: int, member: str, session: Session) -> bool:
    membership = session.execute(
        select(Membership).where(
            Membership.group_id == group_id,
            Membership.member == member,
        )
    ).scalar_one_or_none()
    return membership is not None


def require_member(group_id: int, member: str, session: Session) -> None:
    """Raises NOT_GROUP_MEMBER (403) if `member` is not in the group."""
    if not _membership_exists(group_id, member, session):
        raise not_group_member(group_id)


def _add_member(group_id: int, member: str, session: Session) -> None:
    session.add(Membership(group_id=group_id, member=member))
    session.flush()
    events.emit(events.member_joined, group_id=group_id, member=member)


def _build_group_dict(group: Group, members: list[str]) -> dict:
    """Serialises a Group with its member list to a plain dict."""
    return {
        "id": group.id,
        "name": group.name,
        "created_at": group.created_at.isoformat() if group.created_at else None,
        "members": members,
    }


# ── Public service functions ───────────────────────────────────────────────

def create_group(
        name: str,
        caller: str,
        initial_members: list[str],
        session: Session,
) -> dict:
    """
    Creates a new group.

    Membership order: the caller first, then `initial_members` in the given
    order. Anyone already added (including the caller, or a repeated entry)
    is skipped.

    Emits group_created, then member_joined for each added member.

    Returns: dict with the new group id, name and ordered member list.
    """
    group = Group(name=name)
    session.add(group)
    session.flush()  # populate group.id before creating memberships

    events.emit(events.group_created, group_id=group.id, name=group.name)

    members: list[str] = []
    for member in [caller, *initial_members]:
        if member in members:
            continue
        _add_member(group.id, member, session)
        members.append(member)

    return _build_group_dict(group, members)


def join_group(group_id: int, caller: str, session: Session) -> dict:
    """
    Adds the caller to the group. Joining twice is a no-op.

    Raises:
      AppError(GROUP_NOT_FOUND, 404) — group does not exist

    Returns: {"group_id", "member", "joined"} where joined is False when the
    caller was already a member.
    """
    get_group_or_404(group_id, session)

    joined = not _membership_exists(group_id, caller, session)
    if joined:
        _add_member(group_id, caller, session)

    return {
        "group_id": group_id,
        "member": caller,
        "joined": joined,
    }


def is_member(group_id: int, member: str, session: Session) -> bool:
    """True if `member` belongs to the group. Raises GROUP_NOT_FOUND for unknown groups."""
    get_group_or_404(group_id, session)
    return _membership_exists(group_id, member, session)


def list_members(group_id: int, session: Session) -> list[str]:
    """Members in join order. Raises GROUP_NOT_FOUND for unknown groups."""
    get_group_or_404(group_id, session)
    return list_member_ids(group_id, session)


def get_group(group_id: int, caller: str, session: Session) -> dict:
    """
    Returns group details including the ordered member list.

    The caller must be a member (NOT_GROUP_MEMBER, 403).
    """
    group = get_group_or_404(group_id, session)
    require_member(group_id, caller, session)
    return _build_group_dict(group, list_member_ids(group_id, session))
