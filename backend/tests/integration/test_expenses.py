"""
tests/integration/test_expenses.py — Integration tests for recording expenses
and reading the resulting balances and debt graph.

Endpoints covered:
  POST /groups/:id/expenses                   → 201 / 400 / 403 / 404 / 422
  GET  /groups/:id/balances                   → 200 / 403
  GET  /groups/:id/balances/:member           → 200
  GET  /groups/:id/debts                      → 200
  GET  /groups/:id/debts/:debtor/:creditor    → 200

Invariants verified:
  - Balances always sum to zero
  - Each non-payer share becomes a debt from the participant to the payer
  - A rejected expense changes nothing
"""

from __future__ import annotations

import pytest

from backend.app import events
from backend.tests.integration.helpers import (
    API,
    auth_headers,
    balances_by_member,
    debt_graph,
    get_debt,
    make_group,
    record_expense,
)


def _trio(client, app) -> dict:
    return make_group(client, app, caller="owner", name="Vacanze", members=["alice", "bob"])


# ═══════════════════════════════════════════════════════════════════════════
# Split policies
# ═══════════════════════════════════════════════════════════════════════════

class TestSplitPolicies:

    def test_equal_split(self, client, app):
        group = _trio(client, app)

        resp = record_expense(client, app, group["id"], "owner", 30000, ["owner", "alice", "bob"])

        assert resp.status_code == 201
        data = resp.get_json()["data"]
        assert data["shares"] == [
            {"member": "owner", "share": 10000},
            {"member": "alice", "share": 10000},
            {"member": "bob", "share": 10000},
        ]
        assert balances_by_member(client, app, group["id"]) == {
            "owner": 20000, "alice": -10000, "bob": -10000,
        }
        assert debt_graph(client, app, group["id"]) == [
            {"debtor": "alice", "creditor": "owner", "amount": 10000},
            {"debtor": "bob", "creditor": "owner", "amount": 10000},
        ]

    def test_exact_split(self, client, app):
        group = _trio(client, app)

        resp = record_expense(
            client, app, group["id"], "owner", 30000, ["owner", "alice", "bob"],
            split_policy="exact", aux_data=[10000, 15000, 5000],
        )

        assert resp.status_code == 201
        assert balances_by_member(client, app, group["id"]) == {
            "owner": 20000, "alice": -15000, "bob": -5000,
        }

    def test_percentage_split(self, client, app):
        group = _trio(client, app)

        resp = record_expense(
            client, app, group["id"], "owner", 30000, ["owner", "alice", "bob"],
            split_policy="percentage", aux_data=[3000, 5000, 2000],
        )

        assert resp.status_code == 201
        assert balances_by_member(client, app, group["id"]) == {
            "owner": 21000, "alice": -15000, "bob": -6000,
        }
        assert get_debt(client, app, group["id"], "alice", "owner") == 15000
        assert get_debt(client, app, group["id"], "bob", "owner") == 6000

    def test_truncation_keeps_zero_sum(self, client, app):
        group = _trio(client, app)

        record_expense(client, app, group["id"], "owner", 10, ["owner", "alice", "bob"])

        assert balances_by_member(client, app, group["id"]) == {
            "owner": 6, "alice": -3, "bob": -3,
        }

    def test_payer_other_than_caller(self, client, app):
        group = _trio(client, app)

        resp = record_expense(
            client, app, group["id"], "owner", 90, ["owner", "alice", "bob"], payer="bob",
        )

        assert resp.status_code == 201
        assert balances_by_member(client, app, group["id"]) == {
            "owner": -30, "alice": -30, "bob": 60,
        }

    def test_repeated_expenses_accumulate_on_one_edge(self, client, app):
        group = _trio(client, app)

        record_expense(client, app, group["id"], "owner", 100, ["alice"], split_policy="exact", aux_data=[100])
        record_expense(client, app, group["id"], "owner", 50, ["alice"], split_policy="exact", aux_data=[50])

        assert debt_graph(client, app, group["id"]) == [
            {"debtor": "alice", "creditor": "owner", "amount": 150},
        ]

    def test_opposite_debts_are_kept_separately(self, client, app):
        group = _trio(client, app)

        record_expense(client, app, group["id"], "owner", 100, ["alice"], split_policy="exact", aux_data=[100])
        record_expense(client, app, group["id"], "alice", 40, ["owner"], split_policy="exact", aux_data=[40])

        assert get_debt(client, app, group["id"], "alice", "owner") == 100
        assert get_debt(client, app, group["id"], "owner", "alice") == 40
        assert balances_by_member(client, app, group["id"])["owner"] == 60


# ═══════════════════════════════════════════════════════════════════════════
# Rejections
# ═══════════════════════════════════════════════════════════════════════════

class TestRejectedExpenses:

    @pytest.mark.parametrize("kwargs, field", [
        ({"total_amount": 0, "participants": ["owner", "alice"]}, "total_amount"),
        ({"total_amount": 100, "participants": []}, "participants"),
        ({"total_amount": 100, "participants": ["alice"], "payer": "mallory"}, "payer"),
        ({"total_amount": 100, "participants": ["alice"], "split_policy": "weighted"}, "split_policy"),
        ({"total_amount": 100, "participants": ["owner", "alice"],
          "split_policy": "exact", "aux_data": [50, 49]}, "aux_data"),
        ({"total_amount": 100, "participants": ["owner", "alice"],
          "split_policy": "percentage", "aux_data": [5000]}, "aux_data"),
    ])
    def test_invalid_parameters(self, client, app, kwargs, field):
        group = _trio(client, app)

        resp = record_expense(client, app, group["id"], "owner", **kwargs)

        assert resp.status_code == 422
        err = resp.get_json()["error"]
        assert err["code"] == "INVALID_PARAMETERS"
        assert err["field"] == field
        assert debt_graph(client, app, group["id"]) == []
        assert set(balances_by_member(client, app, group["id"]).values()) == {0}

    def test_caller_not_member(self, client, app):
        group = _trio(client, app)

        resp = record_expense(client, app, group["id"], "mallory", 100, ["alice"], payer="owner")

        assert resp.status_code == 403
        assert resp.get_json()["error"]["code"] == "NOT_GROUP_MEMBER"

    def test_unknown_group(self, client, app):
        resp = record_expense(client, app, 999999, "owner", 100, ["alice"])

        assert resp.status_code == 404
        assert resp.get_json()["error"]["code"] == "GROUP_NOT_FOUND"

    def test_float_amount_is_a_schema_error(self, client, app):
        group = _trio(client, app)

        resp = record_expense(client, app, group["id"], "owner", 10.5, ["alice"])

        assert resp.status_code == 400
        err = resp.get_json()["error"]
        assert err["code"] == "INVALID_FIELD"
        assert err["field"] == "total_amount"

    def test_missing_split_policy(self, client, app):
        group = _trio(client, app)

        resp = client.post(
            f"{API}/{group['id']}/expenses",
            json={"total_amount": 100, "payer": "owner", "participants": ["alice"]},
            headers=auth_headers(app, "owner"),
        )

        assert resp.status_code == 400
        err = resp.get_json()["error"]
        assert err["code"] == "MISSING_FIELD"
        assert err["field"] == "split_policy"


# ═══════════════════════════════════════════════════════════════════════════
# BIGINT bounds
# ═══════════════════════════════════════════════════════════════════════════

BIGINT_MAX = 2 ** 63 - 1


class TestAmountBounds:

    def test_total_above_bigint_is_a_schema_error(self, client, app):
        group = _trio(client, app)

        resp = record_expense(client, app, group["id"], "owner", 2 ** 64, ["owner", "alice"])

        assert resp.status_code == 400
        err = resp.get_json()["error"]
        assert err["code"] == "INVALID_FIELD"
        assert err["field"] == "total_amount"
        assert debt_graph(client, app, group["id"]) == []

    def test_largest_storable_total_is_accepted(self, client, app):
        group = _trio(client, app)

        resp = record_expense(client, app, group["id"], "owner", BIGINT_MAX, ["alice"])

        assert resp.status_code == 201
        assert balances_by_member(client, app, group["id"]) == {
            "owner": BIGINT_MAX, "alice": -BIGINT_MAX, "bob": 0,
        }
        assert get_debt(client, app, group["id"], "alice", "owner") == BIGINT_MAX

    def test_accumulated_overflow_is_rejected_and_changes_nothing(self, client, app):
        group = _trio(client, app)
        first = record_expense(client, app, group["id"], "owner", BIGINT_MAX, ["alice"])
        assert first.status_code == 201

        resp = record_expense(client, app, group["id"], "owner", BIGINT_MAX, ["bob"])

        assert resp.status_code == 422
        err = resp.get_json()["error"]
        assert err["code"] == "INVALID_PARAMETERS"
        assert err["field"] == "total_amount"
        assert balances_by_member(client, app, group["id"]) == {
            "owner": BIGINT_MAX, "alice": -BIGINT_MAX, "bob": 0,
        }
        assert debt_graph(client, app, group["id"]) == [
            {"debtor": "alice", "creditor": "owner", "amount": BIGINT_MAX},
        ]

    def test_debt_edge_overflow_is_rejected(self, client, app):
        group = _trio(client, app)
        record_expense(client, app, group["id"], "owner", BIGINT_MAX, ["alice"])
        # Moves the balances back to zero but leaves alice -> owner at the ceiling.
        record_expense(client, app, group["id"], "alice", BIGINT_MAX, ["owner"])

        resp = record_expense(client, app, group["id"], "owner", 1, ["alice"])

        assert resp.status_code == 422
        assert resp.get_json()["error"]["code"] == "INVALID_PARAMETERS"
        assert get_debt(client, app, group["id"], "alice", "owner") == BIGINT_MAX
        assert set(balances_by_member(client, app, group["id"]).values()) == {0}


# ═══════════════════════════════════════════════════════════════════════════
# Non-member participants
# ═══════════════════════════════════════════════════════════════════════════

class TestNonMemberParticipants:

    def test_accrue_debt_by_default(self, client, app):
        group = _trio(client, app)

        resp = record_expense(client, app, group["id"], "owner", 100, ["owner", "stranger"])

        assert resp.status_code == 201
        balances = balances_by_member(client, app, group["id"])
        assert balances["stranger"] == -50
        assert balances["owner"] == 50
        assert list(balances) == ["owner", "alice", "bob", "stranger"]
        assert get_debt(client, app, group["id"], "stranger", "owner") == 50

    def test_rejected_when_membership_required(self, client, app, strict_participants):
        group = _trio(client, app)

        resp = record_expense(client, app, group["id"], "owner", 100, ["owner", "stranger"])

        assert resp.status_code == 422
        err = resp.get_json()["error"]
        assert err["code"] == "INVALID_PARAMETERS"
        assert err["field"] == "participants"


# ═══════════════════════════════════════════════════════════════════════════
# Queries
# ═══════════════════════════════════════════════════════════════════════════

class TestQueries:

    def test_untouched_member_balance_is_zero(self, client, app):
        group = _trio(client, app)

        resp = client.get(
            f"{API}/{group['id']}/balances/bob", headers=auth_headers(app, "owner"),
        )

        assert resp.status_code == 200
        assert resp.get_json()["data"] == {"group_id": group["id"], "member": "bob", "balance": 0}

    def test_single_balance_after_expense(self, client, app):
        group = _trio(client, app)
        record_expense(client, app, group["id"], "owner", 30000, ["owner", "alice", "bob"])

        resp = client.get(
            f"{API}/{group['id']}/balances/alice", headers=auth_headers(app, "owner"),
        )

        assert resp.get_json()["data"]["balance"] == -10000

    def test_absent_edge_is_zero(self, client, app):
        group = _trio(client, app)
        assert get_debt(client, app, group["id"], "alice", "bob") == 0

    def test_balances_require_membership(self, client, app):
        group = _trio(client, app)

        resp = client.get(f"{API}/{group['id']}/balances", headers=auth_headers(app, "mallory"))

        assert resp.status_code == 403
        assert resp.get_json()["error"]["code"] == "NOT_GROUP_MEMBER"

    def test_balances_unknown_group(self, client, app):
        resp = client.get(f"{API}/999999/balances/alice", headers=auth_headers(app, "owner"))

        assert resp.status_code == 404

    def test_groups_are_isolated(self, client, app):
        first = _trio(client, app)
        second = _trio(client, app)

        record_expense(client, app, first["id"], "owner", 300, ["owner", "alice", "bob"])

        assert set(balances_by_member(client, app, second["id"]).values()) == {0}
        assert debt_graph(client, app, second["id"]) == []


def test_expense_emits_signal(client, app):
    group = _trio(client, app)
    received = []

    def on_expense(sender, **payload):
        received.append(payload)

    events.expense_added.connect(on_expense)
    try:
        record_expense(client, app, group["id"], "owner", 90, ["owner", "alice"], description="Pizza")
    finally:
        events.expense_added.disconnect(on_expense)

    assert received == [{"group_id": group["id"], "description": "Pizza", "total_amount": 90}]


def test_failing_subscriber_does_not_fail_the_request(client, app):
    group = _trio(client, app)

    def broken(sender, **payload):
        raise RuntimeError("subscriber down")

    events.expense_added.connect(broken)
    try:
        resp = record_expense(client, app, group["id"], "owner", 90, ["owner", "alice"])
    finally:
        events.expense_added.disconnect(broken)

    assert resp.status_code == 201
    assert balances_by_member(client, app, group["id"])["alice"] == -45
