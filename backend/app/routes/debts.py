"""
routes/debts.py — Debt graph route handlers.

Layer rules:
  - Parse, call ONE service, commit when mutating, return envelope.
  - simplify holds the group lock across the rewrite and the commit.

Endpoints (base url_prefix=/api/v1/groups):
  GET  /groups/:id/debts                       → 200  all non-zero edges
  GET  /groups/:id/debts/:debtor/:creditor     → 200  one edge; 0 when absent
  POST /groups/:id/simplify                    → 200  rewrite the graph greedily
"""

from __future__ import annotations

from flask import Blueprint, g, jsonify

from backend.app.extensions import db
from backend.app.locks import group_lock
from backend.app.middleware.auth_middleware import require_auth
from backend.app.services import ledger_service, simplify_service

debts_bp = Blueprint("debts", __name__)


@debts_bp.route("/<int:group_id>/debts", methods=["GET"])
@require_auth
def get_debt_graph(group_id: int):
    """GET /groups/:id/debts — Current debt graph. Caller must be a member."""
    result = ledger_service.get_debt_graph(
        group_id=group_id,
        caller=g.caller,
        session=db.session,
    )
    return jsonify({"data": result, "warnings": []}), 200


@debts_bp.route("/<int:group_id>/debts/<debtor>/<creditor>", methods=["GET"])
@require_auth
def get_debt(group_id: int, debtor: str, creditor: str):
    """GET /groups/:id/debts/:debtor/:creditor — Amount owed directly."""
    amount = ledger_service.get_debt(
        group_id=group_id,
        debtor=debtor,
        creditor=creditor,
        session=db.session,
    )
    return jsonify({
        "data": {
            "group_id": group_id,
            "debtor": debtor,
            "creditor": creditor,
            "amount": amount,
        },
        "warnings": [],
    }), 200


@debts_bp.route("/<int:group_id>/simplify", methods=["POST"])
@require_auth
def simplify(group_id: int):
    """POST /groups/:id/simplify — Replace the debt graph; balances are unchanged."""
    with group_lock(group_id):
        result = simplify_service.simplify(
            group_id=group_id,
            caller=g.caller,
            session=db.session,
        )
        db.session.commit()
    return jsonify({"data": result, "warnings": []}), 200
