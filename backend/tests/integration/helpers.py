"""
tests/integration/helpers.py — Shared helper functions for integration tests.

  - token(app, member)          → signed access token for `member`
  - auth_headers(app, member)   → {"Authorization": "Bearer <token>"}
  - make_group(...)             → group data dict
  - join(...)                   → HTTP response
  - record_expense(...)         → HTTP response
  - settle(...)                 → HTTP response
  - balances_by_member(...)     → {member: balance}
  - debt_graph(...)             → list of edge dicts

These are plain functions (not pytest fixtures) so they can be called with
arbitrary arguments in any test without fixture parameterization overhead.
"""

from __future__ import annotations

from backend.app.services.auth_service import create_access_token

API = "/api/v1/groups"


def token(app, member: str) -> str:
    with app.app_context():
        return create_access_token(member)


def auth_headers(app, member: str) -> dict:
    """Returns the Authorization header dict for `member`."""
    return {"Authorization": f"Bearer {token(app, member)}"}


def make_group(
    client,
    app,
    caller: str = "owner",
    name: str = "Test Group",
    members: list[str] | None = None,
) -> dict:
    """
    Creates a group and returns the group data dict.
    The caller becomes the first member, followed by `members` in order.
    """
    body: dict = {"name": name}
    if members is not None:
        body["members"] = members

    resp = client.post(f"{API}/", json=body, headers=auth_headers(app, caller))
    assert resp.status_code == 201, f"make_group failed: {resp.get_json()}"
    return resp.get_json()["data"]


def join(client, app, group_id: int, caller: str):
    return client.post(f"{API}/{group_id}/join", headers=auth_headers(app, caller))


def record_expense(
    client,
    app,
    group_id: int,
    caller: str,
    total_amount: int,
    participants: list[str],
    payer: str | None = None,
    split_policy: str = "equal",
    aux_data: list[int] | None = None,
    description: str = "Test Expense",
):
    """
    Records an expense and returns the HTTP response.
    The payer defaults to the caller.
    """
    body: dict = {
        "total_amount": total_amount,
        "payer": payer if payer is not None else caller,
        "participants": participants,
        "split_policy": split_policy,
        "description": description,
    }
    if aux_data is not None:
        body["aux_data"] = aux_data

    return client.post(
        f"{API}/{group_id}/expenses",
        json=body,
        headers=auth_headers(app, caller),
    )


def settle(client, app, group_id: int, caller: str, creditor: str, amount):
    return client.post(
        f"{API}/{group_id}/settlements",
        json={"creditor": creditor, "amount": amount},
        headers=auth_headers(app, caller),
    )


def balances_by_member(client, app, group_id: int, caller: str = "owner") -> dict[str, int]:
    resp = client.get(f"{API}/{group_id}/balances", headers=auth_headers(app, caller))
    assert resp.status_code == 200, f"balances failed: {resp.get_json()}"
    data = resp.get_json()["data"]
    assert data["balance_sum"] == 0
    return {row["member"]: row["balance"] for row in data["balances"]}


def debt_graph(client, app, group_id: int, caller: str = "owner") -> list[dict]:
    resp = client.get(f"{API}/{group_id}/debts", headers=auth_headers(app, caller))
    assert resp.status_code == 200, f"debts failed: {resp.get_json()}"
    return resp.get_json()["data"]["debts"]


def get_debt(client, app, group_id: int, debtor: str, creditor: str, caller: str = "owner") -> int:
    resp = client.get(
        f"{API}/{group_id}/debts/{debtor}/{creditor}",
        headers=auth_headers(app, caller),
    )
    assert resp.status_code == 200, f"get_debt failed: {resp.get_json()}"
    return resp.get_json()["data"]["amount"]
