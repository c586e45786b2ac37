"""
routes/expenses.py — Expense route handler.

Expenses are not stored as records; recording one only changes balances and
the debt graph. There is therefore no list/get/edit/delete surface.

Layer rules:
  - Parse, validate, call ONE service, commit, return envelope.
  - The group lock is held across the service call AND the commit, so the
    next writer on this group reads committed state.

Endpoints (base url_prefix=/api/v1/groups):
  POST   /groups/:id/expenses   → 201  record an expense
"""

from __future__ import annotations

from flask import Blueprint, current_app, g, jsonify, request

from backend.app.extensions import db
from backend.app.locks import group_lock
from backend.app.middleware.auth_middleware import require_auth
from backend.app.schemas.expense_schema import RecordExpenseSchema
from backend.app.services import ledger_service

expenses_bp = Blueprint("expenses", __name__)


@expenses_bp.route("/<int:group_id>/expenses", methods=["POST"])
@require_auth
def record_expense(group_id: int):
    """
    POST /groups/:id/expenses — Apply an expense to the group's ledger.

    REQUIRE_PARTICIPANT_MEMBERSHIP decides whether non-member participants
    are rejected (True) or accrue debt under their identifier (False).
    """
    data = RecordExpenseSchema().load(request.get_json(force=True) or {})
    with group_lock(group_id):
        result = ledger_service.record_expense(
            group_id=group_id,
            caller=g.caller,
            data=data,
            session=db.session,
            require_participant_membership=current_app.config.get(
                "REQUIRE_PARTICIPANT_MEMBERSHIP", False
            ),
        )
        db.session.commit()
    return jsonify({"data": result, "warnings": []}), 201
