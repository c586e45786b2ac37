"""
routes/groups.py — Group registry route handlers.

Layer rules:
  - Parse, validate, call ONE service, commit, return envelope.
  - No business logic. No DB queries. No bare SQL.

Endpoints (base url_prefix=/api/v1/groups):
  POST   /groups                  → 201  create group (caller first, then members)
  GET    /groups/:id              → 200  group details + ordered members
  POST   /groups/:id/join         → 200  join group (idempotent)
  GET    /groups/:id/members      → 200  ordered member list
"""

from __future__ import annotations

from flask import Blueprint, g, jsonify, request

from backend.app.extensions import db
from backend.app.locks import group_lock
from backend.app.middleware.auth_middleware import require_auth
from backend.app.schemas.group_schema import CreateGroupSchema
from backend.app.services import group_service

groups_bp = Blueprint("groups", __name__)


@groups_bp.route("/", methods=["POST"])
@require_auth
def create_group():
    """POST /groups — Create a new group. Caller becomes the first member."""
    data = CreateGroupSchema().load(request.get_json(force=True) or {})
    result = group_service.create_group(
        name=data["name"],
        caller=g.caller,
        initial_members=data["members"],
        session=db.session,
    )
    db.session.commit()
    return jsonify({"data": result, "warnings": []}), 201


@groups_bp.route("/<int:group_id>", methods=["GET"])
@require_auth
def get_group(group_id: int):
    """GET /groups/:id — Group details with member list. Caller must be a member."""
    result = group_service.get_group(
        group_id=group_id,
        caller=g.caller,
        session=db.session,
    )
    return jsonify({"data": result, "warnings": []}), 200


@groups_bp.route("/<int:group_id>/join", methods=["POST"])
@require_auth
def join_group(group_id: int):
    """POST /groups/:id/join — Add the caller to the group. No-op if already a member."""
    with group_lock(group_id):
        result = group_service.join_group(
            group_id=group_id,
            caller=g.caller,
            session=db.session,
        )
        db.session.commit()
    return jsonify({"data": result, "warnings": []}), 200


@groups_bp.route("/<int:group_id>/members", methods=["GET"])
@require_auth
def list_members(group_id: int):
    """GET /groups/:id/members — Members in join order."""
    members = group_service.list_members(
        group_id=group_id,
        session=db.session,
    )
    return jsonify({
        "data": {"group_id": group_id, "members": members},
        "warnings": [],
    }), 200
