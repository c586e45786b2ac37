#!/usr/bin/env python3
"""
utils/demo.py — GroupLedger  ·  Pizza Night walkthrough
━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

Drives the HTTP API end to end against an in-memory database and a
TokenPaymentRail, printing the debt graph and net balances at each step.

Usage (run from project root):
  python -m backend.utils.demo
  python -m backend.utils.demo --total 120     # different pizza bill

Requires:  pip install -e .
"""

from __future__ import annotations

import argparse
import sys

from rich import box
from rich.console import Console
from rich.rule import Rule
from rich.table import Table
from rich.theme import Theme

from backend.app import create_app
from backend.app.extensions import db
from backend.app.services.auth_service import create_access_token
from backend.app.services.payment_rail import TokenPaymentRail


# ═══════════════════════════════════════════════════════════════════════════
#  THEME
# ═══════════════════════════════════════════════════════════════════════════

THEME = Theme({
    "hdr":     "bold bright_white",
    "dim":     "dim white",
    "muted":   "bright_black",
    "accent":  "bright_cyan",
    "good":    "bright_green",
    "warn":    "bright_yellow",
    "bad":     "bright_red",
    "border":  "bright_black",
})

con = Console(theme=THEME, highlight=False)

MEMBERS = ("owner", "alice", "bob")
WALLET_FUNDING = 1_000


# ═══════════════════════════════════════════════════════════════════════════
#  API CLIENT
# ═══════════════════════════════════════════════════════════════════════════

class DemoClient:
    """Thin wrapper over the Flask test client that signs each call as a member."""

    def __init__(self, app):
        self._app = app
        self._client = app.test_client()
        self._tokens: dict[str, str] = {}

    def _headers(self, member: str) -> dict:
        if member not in self._tokens:
            with self._app.app_context():
                self._tokens[member] = create_access_token(member)
        return {"Authorization": f"Bearer {self._tokens[member]}"}

    def call(self, method: str, path: str, member: str, body: dict | None = None) -> dict:
        resp = self._client.open(
            f"/api/v1/groups{path}",
            method=method,
            json=body,
            headers=self._headers(member),
        )
        payload = resp.get_json()
        if resp.status_code >= 400:
            err = payload["error"]
            raise RuntimeError(f"{method} {path} → {resp.status_code} {err['code']}: {err['message']}")
        return payload["data"]


# ═══════════════════════════════════════════════════════════════════════════
#  RENDER HELPERS
# ═══════════════════════════════════════════════════════════════════════════

def _amount_col(amount: int) -> str:
    return "good" if amount > 0 else "bad" if amount < 0 else "muted"


def render_graph(debts: list[dict], title: str) -> Table:
    tbl = Table(
        title=f"[muted]{title}[/]", title_justify="left",
        box=box.ROUNDED, border_style="border",
        show_header=True, header_style="bold dim",
        padding=(0, 2),
    )
    tbl.add_column("Debtor",   min_width=10)
    tbl.add_column("",         width=2, justify="center", style="muted")
    tbl.add_column("Creditor", min_width=10)
    tbl.add_column("Amount",   width=10, justify="right")

    if not debts:
        tbl.add_row("[muted]none[/]", "", "", "")
    for edge in debts:
        tbl.add_row(
            f"[hdr]{edge['debtor']}[/]",
            "→",
            f"[hdr]{edge['creditor']}[/]",
            f"[warn]{edge['amount']}[/]",
        )
    return tbl


def render_balances(balances: list[dict], rail: TokenPaymentRail, title: str) -> Table:
    tbl = Table(
        title=f"[muted]{title}[/]", title_justify="left",
        box=box.ROUNDED, border_style="border",
        show_header=True, header_style="bold dim",
        padding=(0, 2),
    )
    tbl.add_column("Member",  min_width=10)
    tbl.add_column("Net",     width=10, justify="right")
    tbl.add_column("Wallet",  width=10, justify="right")

    for row in balances:
        ac = _amount_col(row["balance"])
        tbl.add_row(
            f"[hdr]{row['member']}[/]",
            f"[{ac}]{row['balance']:+d}[/]",
            f"[dim]{rail.balance_of(row['member'])}[/]",
        )
    return tbl


def show_state(api: DemoClient, group_id: int, rail: TokenPaymentRail, label: str) -> None:
    graph = api.call("GET", f"/{group_id}/debts", "owner")
    balances = api.call("GET", f"/{group_id}/balances", "owner")
    con.print(render_graph(graph["debts"], f"Debt graph · {label}"))
    con.print(render_balances(balances["balances"], rail, f"Net balances · {label}"))
    con.print(f"  [dim]Balance sum[/]  [accent]{balances['balance_sum']}[/]\n")


# ═══════════════════════════════════════════════════════════════════════════
#  SCENARIO
# ═══════════════════════════════════════════════════════════════════════════

def run(total: int) -> None:
    rail = TokenPaymentRail({member: WALLET_FUNDING for member in MEMBERS})
    app = create_app("testing", payment_rail=rail)
    api = DemoClient(app)

    with app.app_context():
        db.create_all()

    con.print(Rule("[hdr]Pizza Night[/]", style="border"))

    group = api.call("POST", "/", "owner", {"name": "Pizza Night", "members": ["alice", "bob"]})
    group_id = group["id"]
    con.print(f"  [dim]Group[/]  [accent]#{group_id}[/]  [hdr]{group['name']}[/]  "
              f"[dim]members[/] {', '.join(group['members'])}\n")

    # ── Step 1: owner pays the pizza, split equally ───────────────────────
    expense = api.call("POST", f"/{group_id}/expenses", "owner", {
        "description": "Pizza",
        "total_amount": total,
        "payer": "owner",
        "participants": list(MEMBERS),
        "split_policy": "equal",
    })
    shares = ", ".join(f"{s['member']}={s['share']}" for s in expense["shares"])
    con.print(f"  [dim]Expense[/]  [hdr]{expense['description']}[/]  {total}  [muted]({shares})[/]\n")
    show_state(api, group_id, rail, "after pizza")

    # ── Step 2: simplify ──────────────────────────────────────────────────
    api.call("POST", f"/{group_id}/simplify", "owner")
    show_state(api, group_id, rail, "after simplify")

    # ── Step 3: alice covers drinks by exact amounts ──────────────────────
    drinks = total // 3
    api.call("POST", f"/{group_id}/expenses", "alice", {
        "description": "Drinks",
        "total_amount": drinks,
        "payer": "alice",
        "participants": ["owner", "bob"],
        "split_policy": "exact",
        "aux_data": [drinks // 2, drinks - drinks // 2],
    })
    show_state(api, group_id, rail, "after drinks")

    # ── Step 4: bob settles what he owes owner ────────────────────────────
    owed = api.call("GET", f"/{group_id}/debts/bob/owner", "bob")["amount"]
    if owed > 0:
        settlement = api.call("POST", f"/{group_id}/settlements", "bob",
                              {"creditor": "owner", "amount": owed})
        con.print(f"  [dim]Settled[/]  [hdr]{settlement['payer']}[/] → "
                  f"[hdr]{settlement['payee']}[/]  [good]{settlement['amount']}[/]  "
                  f"[muted]remaining {settlement['remaining_debt']}[/]\n")
    show_state(api, group_id, rail, "after settlement")


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="GroupLedger Pizza Night demo")
    parser.add_argument("--total", type=int, default=90, help="pizza bill (default 90)")
    args = parser.parse_args(argv)

    try:
        run(args.total)
    except RuntimeError as exc:
        con.print(f"  [bad]{exc}[/]")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
