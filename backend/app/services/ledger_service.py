"""
services/ledger_service.py — Net balances, debt graph, expenses, settlements.

This file and simplify_service.py are the only writers of the `balances` and
`debts` tables.

Rules enforced here:
  GROUP_NOT_FOUND (404)     — unknown group id
  NOT_GROUP_MEMBER (403)    — caller must be a group member
  INVALID_PARAMETERS (422)  — zero amount, empty participants, non-member
                              payer, split data mismatch, or a balance or
                              debt that would leave the BIGINT range
  INVALID_PAYMENT (422)     — settlement amount <= 0 or above recorded debt,
                              or a balance that would leave the BIGINT range
  TRANSFER_FAILED (502)     — payment rail declined or errored

Zero-sum guarantee:
  Every mutation moves the same amount into one member's balance and out of
  another's, so the sum of balances over a group never leaves zero. All
  validation (and for settlements, the rail call) happens before the first
  write: an operation either applies fully or raises with nothing changed.

Layer rules:
  - No Flask imports. Receives plain values and a SQLAlchemy session.
  - Commits are the route's responsibility — only flush here.
  - Callers hold locks.group_lock(group_id) around the call and the commit.
"""

from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.orm import Session

from backend.app import events
from backend.app.errors import (
    AppError,
    ErrorCode,
    invalid_parameters,
    invalid_payment,
    transfer_failed,
)
from backend.app.models.balance import AMOUNT_MAX, AMOUNT_MIN, Balance
from backend.app.models.debt import Debt
from backend.app.services.group_service import (
    get_group_or_404,
    list_member_ids,
    require_member,
)
from backend.app.services.payment_rail import PaymentRail, PaymentRailError
from backend.app.services.split_service import compute_shares

logger = logging.getLogger(__name__)


# ── Row access helpers ─────────────────────────────────────────────────────
# Missing rows read as zero; rows are created on first write.

def _get_balance_row(group_id: int, member: str, session: Session) -> Balance | None:
    return session.execute(
        select(Balance).where(
            Balance.group_id == group_id,
            Balance.member == member,
        )
    ).scalar_one_or_none()


def _get_debt_row(group_id: int, debtor: str, creditor: str, session: Session) -> Debt | None:
    return session.execute(
        select(Debt).where(
            Debt.group_id == group_id,
            Debt.debtor == debtor,
            Debt.creditor == creditor,
        )
    ).scalar_one_or_none()


def _fits(value: int) -> bool:
    return AMOUNT_MIN <= value <= AMOUNT_MAX


def _adjust_balance(group_id: int, member: str, delta: int, session: Session) -> None:
    row = _get_balance_row(group_id, member, session)
    current = row.amount if row is not None else 0
    if not _fits(current + delta):
        raise invalid_parameters(
            f"Balance of {member!r} would leave the storable range.",
            field="total_amount",
        )
    if row is None:
        row = Balance(group_id=group_id, member=member, amount=0)
        session.add(row)
    row.amount += delta
    session.flush()


def _adjust_debt(group_id: int, debtor: str, creditor: str, delta: int, session: Session) -> None:
    row = _get_debt_row(group_id, debtor, creditor, session)
    current = row.amount if row is not None else 0
    if not _fits(current + delta):
        raise invalid_parameters(
            f"Debt from {debtor!r} to {creditor!r} would leave the storable range.",
            field="total_amount",
        )
    if row is None:
        row = Debt(group_id=group_id, debtor=debtor, creditor=creditor, amount=0)
        session.add(row)
    row.amount += delta
    session.flush()


def _overflowing_balance(group_id: int, deltas: dict[str, int], session: Session) -> str | None:
    """First member whose balance would leave the BIGINT range after `deltas`."""
    for member, delta in deltas.items():
        row = _get_balance_row(group_id, member, session)
        if not _fits((row.amount if row is not None else 0) + delta):
            return member
    return None


def _check_expense_fits(
        group_id: int,
        payer: str,
        participants: list[str],
        shares: list[int],
        session: Session,
) -> None:
    # Runs before the first write.
    balance_deltas: dict[str, int] = {}
    debt_deltas: dict[str, int] = {}
    for participant, share in zip(participants, shares):
        if participant == payer:
            continue
        balance_deltas[participant] = balance_deltas.get(participant, 0) - share
        balance_deltas[payer] = balance_deltas.get(payer, 0) + share
        debt_deltas[participant] = debt_deltas.get(participant, 0) + share

    member = _overflowing_balance(group_id, balance_deltas, session)
    if member is not None:
        raise invalid_parameters(
            f"Expense would push the balance of {member!r} out of the storable range.",
            field="total_amount",
        )

    for debtor, delta in debt_deltas.items():
        row = _get_debt_row(group_id, debtor, payer, session)
        if not _fits((row.amount if row is not None else 0) + delta):
            raise invalid_parameters(
                f"Expense would push the debt from {debtor!r} to {payer!r} "
                f"out of the storable range.",
                field="total_amount",
            )


def _validate_expense(
        group_id: int,
        total_amount: int,
        payer: str,
        participants: list[str],
        member_ids: list[str],
        require_participant_membership: bool,
) -> None:
    if total_amount <= 0:
        raise invalid_parameters("Expense amount must be greater than zero.", field="total_amount")

    if total_amount > AMOUNT_MAX:
        raise invalid_parameters(
            f"Expense amount must be at most {AMOUNT_MAX}.",
            field="total_amount",
        )

    if not participants:
        raise invalid_parameters("An expense needs at least one participant.", field="participants")

    if payer not in member_ids:
        raise invalid_parameters(
            f"Payer {payer!r} is not a member of group {group_id}.",
            field="payer",
        )

    if require_participant_membership:
        member_set = set(member_ids)
        for participant in participants:
            if participant not in member_set:
                raise invalid_parameters(
                    f"Participant {participant!r} is not a member of group {group_id}.",
                    field="participants",
                )


# ── Queries ────────────────────────────────────────────────────────────────

def get_net_balance(group_id: int, member: str, session: Session) -> int:
    """Signed net balance of `member`; zero when never touched."""
    get_group_or_404(group_id, session)
    row = _get_balance_row(group_id, member, session)
    return row.amount if row is not None else 0


def get_debt(group_id: int, debtor: str, creditor: str, session: Session) -> int:
    """Amount `debtor` owes `creditor` directly; zero when no edge exists."""
    get_group_or_404(group_id, session)
    row = _get_debt_row(group_id, debtor, creditor, session)
    return row.amount if row is not None else 0


def get_balances(group_id: int, caller: str, session: Session) -> dict:
    """
    Every member's balance in join order, plus the group sum.

    Balances held by non-member participants (possible when participant
    membership is not enforced) are listed after the members.

    Raises:
        AppError(INTERNAL_ERROR, 500) if the stored balances do not sum to
        zero. That means the stored data is corrupt.
    """
    get_group_or_404(group_id, session)
    require_member(group_id, caller, session)

    rows = session.execute(
        select(Balance)
        .where(Balance.group_id == group_id)
        .order_by(Balance.id.asc())
    ).scalars().all()
    by_member = {row.member: row.amount for row in rows}

    ordered = list_member_ids(group_id, session)
    ordered += [member for member in by_member if member not in ordered]

    balance_sum = sum(by_member.values())
    if balance_sum != 0:
        raise AppError(
            ErrorCode.INTERNAL_ERROR,
            f"Balance integrity check failed: sum was {balance_sum} (expected 0). "
            f"Group {group_id} has inconsistent ledger data.",
            500,
        )

    return {
        "group_id": group_id,
        "balances": [
            {"member": member, "balance": by_member.get(member, 0)}
            for member in ordered
        ],
        "balance_sum": balance_sum,
    }


def get_debt_graph(group_id: int, caller: str, session: Session) -> dict:
    """All non-zero debt edges of the group, oldest edge first."""
    get_group_or_404(group_id, session)
    require_member(group_id, caller, session)

    rows = session.execute(
        select(Debt)
        .where(Debt.group_id == group_id, Debt.amount > 0)
        .order_by(Debt.id.asc())
    ).scalars().all()

    return {
        "group_id": group_id,
        "debts": [
            {"debtor": row.debtor, "creditor": row.creditor, "amount": row.amount}
            for row in rows
        ],
    }


# ── Mutations ──────────────────────────────────────────────────────────────

def record_expense(
        group_id: int,
        caller: str,
        data: dict,
        session: Session,
        require_participant_membership: bool = False,
) -> dict:
    """
    Applies an expense to the group's balances and debt graph.

    Args:
        group_id:  The group the expense belongs to.
        caller:    The member recording it.
        data:      Validated dict from RecordExpenseSchema. Keys:
                   total_amount, payer, participants, split_policy,
                   aux_data, description.
        require_participant_membership:
                   When True every participant must be a member. When False
                   only the payer is checked and a non-member participant
                   simply accrues balance and debt under their identifier.

    For every participant other than the payer, with share s:
        balance[participant] -= s
        balance[payer]       += s
        debt[participant][payer] += s
    The payer's own share creates no self-debt.

    Returns:
        Summary dict with the computed shares.
    """
    get_group_or_404(group_id, session, for_update=True)
    require_member(group_id, caller, session)

    total_amount: int = data["total_amount"]
    payer: str = data["payer"]
    participants: list[str] = list(data.get("participants") or [])
    description: str = data.get("description", "")

    member_ids = list_member_ids(group_id, session)
    _validate_expense(
        group_id,
        total_amount,
        payer,
        participants,
        member_ids,
        require_participant_membership,
    )

    shares = compute_shares(
        total_amount,
        participants,
        data["split_policy"],
        data.get("aux_data"),
    )
    _check_expense_fits(group_id, payer, participants, shares, session)

    for participant, share in zip(participants, shares):
        if participant == payer:
            continue
        _adjust_balance(group_id, participant, -share, session)
        _adjust_balance(group_id, payer, share, session)
        _adjust_debt(group_id, participant, payer, share, session)

    events.emit(
        events.expense_added,
        group_id=group_id,
        description=description,
        total_amount=total_amount,
    )

    return {
        "group_id": group_id,
        "description": description,
        "total_amount": total_amount,
        "payer": payer,
        "shares": [
            {"member": participant, "share": share}
            for participant, share in zip(participants, shares)
        ],
    }


def settle_debt(
        group_id: int,
        caller: str,
        creditor: str,
        amount: int,
        rail: PaymentRail,
        session: Session,
) -> dict:
    """
    Pays down the caller's direct debt to `creditor` through the payment rail.

    Order of operations:
      1. Validate: caller is a member, 0 < amount <= debt[caller][creditor].
      2. rail.transfer(caller, creditor, amount).
      3. Only after the rail confirms:
           debt[caller][creditor] -= amount
           balance[caller]        += amount
           balance[creditor]      -= amount

    Raises:
        AppError(INVALID_PAYMENT, 422)   — amount out of range
        AppError(TRANSFER_FAILED, 502)   — rail returned False or raised
                                           PaymentRailError; nothing written
    """
    get_group_or_404(group_id, session, for_update=True)
    require_member(group_id, caller, session)

    if amount <= 0:
        raise invalid_payment("Settlement amount must be greater than zero.")

    debt_row = _get_debt_row(group_id, caller, creditor, session)
    outstanding = debt_row.amount if debt_row is not None else 0
    if amount > outstanding:
        raise invalid_payment(
            f"Settlement of {amount} exceeds the recorded debt of {outstanding} "
            f"to {creditor!r}."
        )

    # Must hold before the rail moves any money.
    member = _overflowing_balance(group_id, {caller: amount, creditor: -amount}, session)
    if member is not None:
        raise invalid_payment(
            f"Settlement would push the balance of {member!r} out of the storable range."
        )

    try:
        transferred = rail.transfer(caller, creditor, amount)
    except PaymentRailError as exc:
        logger.warning(
            "payment rail error settling %d from %s to %s in group %d: %s",
            amount, caller, creditor, group_id, exc,
        )
        raise transfer_failed(f"The payment rail failed: {exc}") from exc

    if not transferred:
        logger.warning(
            "payment rail declined %d from %s to %s in group %d",
            amount, caller, creditor, group_id,
        )
        raise transfer_failed("The payment rail declined the transfer.")

    debt_row.amount -= amount
    _adjust_balance(group_id, caller, amount, session)
    _adjust_balance(group_id, creditor, -amount, session)

    events.emit(
        events.debt_settled,
        group_id=group_id,
        payer=caller,
        payee=creditor,
        amount=amount,
    )

    return {
        "group_id": group_id,
        "payer": caller,
        "payee": creditor,
        "amount": amount,
        "remaining_debt": debt_row.amount,
    }
