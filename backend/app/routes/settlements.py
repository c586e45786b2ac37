"""
routes/settlements.py — Settlement route handler.

The debtor is always the authenticated caller (g.caller); only the creditor
and amount come from the body.

Layer rules:
  - Parse, validate, call ONE service, commit, return envelope.
  - The group lock is held across the payment-rail call and the commit.

Endpoints (base url_prefix=/api/v1/groups):
  POST   /groups/:id/settlements  → 201  settle part or all of a direct debt
"""

from __future__ import annotations

from flask import Blueprint, g, jsonify, request

from backend.app.extensions import db, get_payment_rail
from backend.app.locks import group_lock
from backend.app.middleware.auth_middleware import require_auth
from backend.app.schemas.settlement_schema import SettleDebtSchema
from backend.app.services import ledger_service

settlements_bp = Blueprint("settlements", __name__)


@settlements_bp.route("/<int:group_id>/settlements", methods=["POST"])
@require_auth
def settle_debt(group_id: int):
    """
    POST /groups/:id/settlements — Pay `amount` of the caller's debt to `creditor`.

    TRANSFER_FAILED (502) means the rail declined or errored and nothing
    was recorded; the caller may retry.
    """
    data = SettleDebtSchema().load(request.get_json(force=True) or {})
    with group_lock(group_id):
        result = ledger_service.settle_debt(
            group_id=group_id,
            caller=g.caller,
            creditor=data["creditor"],
            amount=data["amount"],
            rail=get_payment_rail(),
            session=db.session,
        )
        db.session.commit()
    return jsonify({"data": result, "warnings": []}), 201
