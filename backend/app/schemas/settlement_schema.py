"""
schemas/settlement_schema.py — Marshmallow schema for settling a debt.

Validation responsibility:
  - This file: field presence and types, plus the BIGINT ceiling on amount.
  - services/ledger_service.py:
      - INVALID_PAYMENT (422)  — amount <= 0 or above the recorded debt;
                                 needs the debt graph, so not checked here.
      - NOT_GROUP_MEMBER (403) — the payer is the authenticated caller
                                 (flask.g), never a body field.

Plain marshmallow.Schema, so unit tests load it without an app context.
"""

from __future__ import annotations

from marshmallow import Schema, fields, validate

from backend.app.models.balance import AMOUNT_MAX
from backend.app.schemas.group_schema import member_field


class SettleDebtSchema(Schema):
    """
    POST /groups/:id/settlements

    Pays down the caller's direct debt to `creditor`.

      creditor : required member identifier
      amount   : required integer
    """

    creditor = member_field(required=True)

    amount = fields.Int(
        required=True,
        strict=True,   # reject floats like 5.0 — integers only
        validate=validate.Range(
            max=AMOUNT_MAX,
            error="Amount must be at most {max}.",
        ),
    )
