"""
services/simplify_service.py — Greedy debt simplification.

Replaces a group's debt graph with a smaller set of transfers that leaves
every member's net balance exactly where it was.

Algorithm (simplify_debts):
  1. Split members into creditors (balance > 0) and debtors (balance < 0,
     keyed by magnitude). Zero balances take no part.
  2. Sort both lists by amount, largest first. Python's sort is stable, so
     equal amounts keep group join order — the output is deterministic.
  3. Walk both lists with two cursors. Each step moves
     min(creditor remaining, debtor remaining) from the current debtor to the
     current creditor and advances whichever side reached zero (both on an
     exact match).

  Each step exhausts at least one side, so there are at most
  creditors + debtors - 1 edges, and each (debtor, creditor) pair appears at
  most once.

  This is the usual greedy heuristic. It is NOT guaranteed to produce the
  minimum number of transfers; that problem is NP-hard in general.

Layer rules:
  - simplify_debts() is pure: plain values in, plain dicts out.
  - simplify() writes only the `debts` table. Balances are never touched.
  - Commits are the route's responsibility — only flush here.
"""

from __future__ import annotations

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from backend.app import events
from backend.app.models.balance import Balance
from backend.app.models.debt import Debt
from backend.app.services.group_service import (
    get_group_or_404,
    list_member_ids,
    require_member,
)


def simplify_debts(balances: list[tuple[str, int]]) -> list[dict]:
    """
    Greedy debt simplification over ordered (member, net_balance) pairs.

    Args:
        balances: Net balances in group enumeration order. The order only
                  matters for breaking ties between equal amounts.
                  Must sum to zero for every balance to be accounted for.

    Returns:
        List of {"debtor": str, "creditor": str, "amount": int}.
        An empty list means every balance is already zero.
    """
    creditors = sorted(
        [[member, amount] for member, amount in balances if amount > 0],
        key=lambda entry: entry[1],
        reverse=True,
    )
    debtors = sorted(
        [[member, -amount] for member, amount in balances if amount < 0],
        key=lambda entry: entry[1],
        reverse=True,
    )

    edges: list[dict] = []
    i = j = 0

    while i < len(creditors) and j < len(debtors):
        creditor, credit = creditors[i]
        debtor, debt = debtors[j]

        amount = min(credit, debt)
        edges.append({
            "debtor": debtor,
            "creditor": creditor,
            "amount": amount,
        })

        creditors[i][1] = credit - amount
        debtors[j][1] = debt - amount

        if creditors[i][1] == 0:
            i += 1
        if debtors[j][1] == 0:
            j += 1

    return edges


def _member_balances(group_id: int, session: Session) -> list[tuple[str, int]]:
    """(member, balance) for every member in join order; missing rows read as zero."""
    rows = session.execute(
        select(Balance.member, Balance.amount).where(Balance.group_id == group_id)
    ).all()
    by_member = {member: amount for member, amount in rows}

    return [
        (member, by_member.get(member, 0))
        for member in list_member_ids(group_id, session)
    ]


def simplify(group_id: int, caller: str, session: Session) -> dict:
    """
    Rewrites the group's debt graph from its current net balances.

    The previous graph is discarded unconditionally, including the shape of
    any partial settlements. Only group members take part: balances held by
    non-member participants are not matched.

    Raises:
        AppError(GROUP_NOT_FOUND, 404)
        AppError(NOT_GROUP_MEMBER, 403)

    Returns:
        {"group_id": int, "debts": [edge, ...]} with the new graph.
    """
    get_group_or_404(group_id, session, for_update=True)
    require_member(group_id, caller, session)

    edges = simplify_debts(_member_balances(group_id, session))

    session.execute(delete(Debt).where(Debt.group_id == group_id))
    for edge in edges:
        session.add(Debt(
            group_id=group_id,
            debtor=edge["debtor"],
            creditor=edge["creditor"],
            amount=edge["amount"],
        ))
    session.flush()

    events.emit(events.debts_simplified, group_id=group_id)

    return {
        "group_id": group_id,
        "debts": edges,
    }
