"""
schemas/group_schema.py — Marshmallow schemas for group endpoints.

Validation responsibility:
  - This file: field types, string lengths, non-empty checks (including trim).
  - services/group_service.py:
      - GROUP_NOT_FOUND (requires DB lookup)
      - NOT_GROUP_MEMBER (requires DB lookup)
      - de-duplication of the initial member list

Plain marshmallow.Schema, so unit tests load it without an app context.
"""

from __future__ import annotations

from marshmallow import Schema, ValidationError, fields, validate


def _validate_non_empty_after_trim(value: str) -> None:
    """
    Raises ValidationError if the string is blank or contains only whitespace.
    Mirrors the DB CHECK(LENGTH(TRIM(...)) > 0) constraint at the API layer.
    """
    if not value.strip():
        raise ValidationError("This field must not be blank or contain only whitespace.")


def member_field(**kwargs) -> fields.Str:
    """A member identifier: opaque, non-blank, at most 255 characters."""
    return fields.Str(
        validate=[
            validate.Length(
                min=1,
                max=255,
                error="Member identifiers must be between 1 and 255 characters.",
            ),
            _validate_non_empty_after_trim,
        ],
        **kwargs,
    )


class CreateGroupSchema(Schema):
    """
    POST /groups

    name    : required, non-empty after trim, max 100 chars.
    members : optional list of member identifiers added after the caller.
              Duplicates and the caller's own identifier are allowed in the
              request; the service skips anyone already added.
    """

    name = fields.Str(
        required=True,
        validate=[
            validate.Length(
                min=1,
                max=100,
                error="Group name must be between 1 and 100 characters.",
            ),
            _validate_non_empty_after_trim,
        ],
    )

    members = fields.List(
        member_field(),
        load_default=list,
    )
