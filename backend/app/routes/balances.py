"""
routes/balances.py — Net balance route handlers.

Layer rules:
  - Parse path params, call ONE service, return envelope.
  - No business logic. No DB queries. No bare SQL.

Endpoints (base url_prefix=/api/v1/groups):
  GET /groups/:id/balances            → 200  every member's balance + sum
  GET /groups/:id/balances/:member    → 200  one member's net balance
"""

from __future__ import annotations

from flask import Blueprint, g, jsonify

from backend.app.extensions import db
from backend.app.middleware.auth_middleware import require_auth
from backend.app.services import ledger_service

balances_bp = Blueprint("balances", __name__)


@balances_bp.route("/<int:group_id>/balances", methods=["GET"])
@require_auth
def get_balances(group_id: int):
    """
    GET /groups/:id/balances

    The caller must be a member. The service asserts the zero-sum invariant
    and raises INTERNAL_ERROR (500) if the stored balances violate it.
    """
    result = ledger_service.get_balances(
        group_id=group_id,
        caller=g.caller,
        session=db.session,
    )
    return jsonify({"data": result, "warnings": []}), 200


@balances_bp.route("/<int:group_id>/balances/<member>", methods=["GET"])
@require_auth
def get_net_balance(group_id: int, member: str):
    """GET /groups/:id/balances/:member — Signed net balance; 0 when untouched."""
    balance = ledger_service.get_net_balance(
        group_id=group_id,
        member=member,
        session=db.session,
    )
    return jsonify({
        "data": {"group_id": group_id, "member": member, "balance": balance},
        "warnings": [],
    }), 200
