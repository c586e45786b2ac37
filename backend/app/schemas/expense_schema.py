"""
schemas/expense_schema.py — Marshmallow schema for recording an expense.

Validation responsibility:
  - This file: field presence and types only (strict integers, strings,
    lists), plus the BIGINT ceiling on total_amount. Anything with ledger meaning is left to the service so it is
    reported as INVALID_PARAMETERS (422), exactly as for non-HTTP callers.
  - services/ledger_service.py:
      - total_amount > 0
      - participants non-empty
      - payer (and optionally every participant) is a group member
  - services/split_service.py:
      - split_policy is one of equal / exact / percentage
      - aux_data length, sign and sum rules

Plain marshmallow.Schema, so unit tests load it without an app context.
"""

from __future__ import annotations

from marshmallow import Schema, fields, validate

from backend.app.models.balance import AMOUNT_MAX
from backend.app.schemas.group_schema import member_field


class RecordExpenseSchema(Schema):
    """
    POST /groups/:id/expenses

    Field rules:
      total_amount : required integer (units are opaque)
      payer        : required member identifier
      participants : required list of member identifiers, order preserved
      split_policy : required string; "equal", "exact" or "percentage"
      aux_data     : integers — exact shares or basis points; defaults to []
      description  : opaque label, max 255 chars; defaults to ""
    """

    total_amount = fields.Int(
        required=True,
        strict=True,   # reject floats like 10.0 — integers only
        validate=validate.Range(
            max=AMOUNT_MAX,
            error="Amount must be at most {max}.",
        ),
    )

    payer = member_field(required=True)

    participants = fields.List(
        member_field(),
        required=True,
    )

    split_policy = fields.Str(required=True)

    aux_data = fields.List(
        fields.Int(strict=True),
        load_default=list,
    )

    description = fields.Str(
        load_default="",
        validate=validate.Length(
            max=255,
            error="Description must be at most 255 characters.",
        ),
    )
