"""
services/split_service.py — Expense share computation.

compute_shares() is a pure function: no session, no Flask, no shared state.
It returns one share per participant, in participant order.

Policies:
  equal       total // n for every participant
  exact       aux_data holds each participant's share; must sum to total
  percentage  aux_data holds basis points (10000 = 100%); must sum to 10000;
              share = total * bps // 10000

Rounding:
  equal and percentage truncate. The remainder is NOT redistributed, so the
  shares can sum to less than the total (10 across 3 → [3, 3, 3]). The
  undistributed dust is simply never charged to anyone: the payer is credited
  only for what the other participants are debited, so balances still sum to
  zero.
"""

from __future__ import annotations

import enum

from backend.app.errors import invalid_parameters

BASIS_POINTS_TOTAL = 10_000


class SplitPolicy(str, enum.Enum):
    EQUAL      = "equal"
    EXACT      = "exact"
    PERCENTAGE = "percentage"


def _require_aux_per_participant(aux_data: list[int], participant_count: int) -> None:
    if len(aux_data) != participant_count:
        raise invalid_parameters(
            f"Expected {participant_count} split values, got {len(aux_data)}.",
            field="aux_data",
        )
    if any(value < 0 for value in aux_data):
        raise invalid_parameters(
            "Split values must not be negative.",
            field="aux_data",
        )


def _equal_shares(total_amount: int, participant_count: int) -> list[int]:
    share = total_amount // participant_count
    return [share] * participant_count


def _exact_shares(total_amount: int, aux_data: list[int], participant_count: int) -> list[int]:
    _require_aux_per_participant(aux_data, participant_count)

    if sum(aux_data) != total_amount:
        raise invalid_parameters(
            f"Exact shares sum to {sum(aux_data)}, expected {total_amount}.",
            field="aux_data",
        )
    return list(aux_data)


def _percentage_shares(total_amount: int, aux_data: list[int], participant_count: int) -> list[int]:
    _require_aux_per_participant(aux_data, participant_count)

    if sum(aux_data) != BASIS_POINTS_TOTAL:
        raise invalid_parameters(
            f"Percentages sum to {sum(aux_data)} basis points, expected {BASIS_POINTS_TOTAL}.",
            field="aux_data",
        )
    return [total_amount * bps // BASIS_POINTS_TOTAL for bps in aux_data]


def compute_shares(
        total_amount: int,
        participants: list[str],
        split_policy: SplitPolicy | str,
        aux_data: list[int] | None = None,
) -> list[int]:
    """
    Computes each participant's share of `total_amount`.

    Args:
        total_amount:  Positive integer amount of the expense.
        participants:  Members sharing the cost. Order is preserved.
        split_policy:  SplitPolicy or its string value.
        aux_data:      Per-participant shares (exact) or basis points
                       (percentage). Ignored for equal.

    Raises:
        AppError(INVALID_PARAMETERS, 422) for an empty participant list, an
        unknown policy, or aux_data that does not match the policy's rules.
    """
    participant_count = len(participants)
    if participant_count == 0:
        raise invalid_parameters("An expense needs at least one participant.", field="participants")

    try:
        policy = SplitPolicy(split_policy)
    except ValueError:
        raise invalid_parameters(
            f"Unknown split policy {split_policy!r}.",
            field="split_policy",
        )

    aux = list(aux_data or [])

    if policy is SplitPolicy.EQUAL:
        return _equal_shares(total_amount, participant_count)
    if policy is SplitPolicy.EXACT:
        return _exact_shares(total_amount, aux, participant_count)
    return _percentage_shares(total_amount, aux, participant_count)
