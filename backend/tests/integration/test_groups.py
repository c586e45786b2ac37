"""
tests/integration/test_groups.py — Integration tests for the group registry endpoints.

Endpoints covered:
  POST /groups                → 201
  GET  /groups/:id            → 200 / 403 / 404
  POST /groups/:id/join       → 200 (idempotent) / 404
  GET  /groups/:id/members    → 200 / 404
"""

from __future__ import annotations

from backend.tests.integration.helpers import API, auth_headers, join, make_group


# ═══════════════════════════════════════════════════════════════════════════
# Create
# ═══════════════════════════════════════════════════════════════════════════

class TestCreateGroup:

    def test_caller_is_first_member(self, client, app):
        group = make_group(client, app, caller="owner", name="Vacanze", members=["alice", "bob"])

        assert group["name"] == "Vacanze"
        assert group["members"] == ["owner", "alice", "bob"]
        assert isinstance(group["id"], int)
        assert group["created_at"] is not None

    def test_duplicates_and_caller_in_list_are_skipped(self, client, app):
        group = make_group(client, app, caller="owner", members=["alice", "owner", "alice", "bob"])
        assert group["members"] == ["owner", "alice", "bob"]

    def test_members_optional(self, client, app):
        group = make_group(client, app, caller="solo")
        assert group["members"] == ["solo"]

    def test_ids_are_distinct_and_increasing(self, client, app):
        first = make_group(client, app, name="One")
        second = make_group(client, app, name="Two")
        assert second["id"] > first["id"]

    def test_envelope_has_empty_warnings(self, client, app):
        resp = client.post(f"{API}/", json={"name": "Trip"}, headers=auth_headers(app, "owner"))
        assert resp.status_code == 201
        assert resp.get_json()["warnings"] == []

    def test_missing_name(self, client, app):
        resp = client.post(f"{API}/", json={}, headers=auth_headers(app, "owner"))

        assert resp.status_code == 400
        err = resp.get_json()["error"]
        assert err["code"] == "MISSING_FIELD"
        assert err["field"] == "name"

    def test_blank_name(self, client, app):
        resp = client.post(f"{API}/", json={"name": "   "}, headers=auth_headers(app, "owner"))

        assert resp.status_code == 400
        assert resp.get_json()["error"]["code"] == "INVALID_FIELD"

    def test_non_string_member(self, client, app):
        resp = client.post(
            f"{API}/",
            json={"name": "Trip", "members": ["alice", 7]},
            headers=auth_headers(app, "owner"),
        )

        assert resp.status_code == 400
        err = resp.get_json()["error"]
        assert err["code"] == "INVALID_FIELD"
        assert err["field"] == "members"


# ═══════════════════════════════════════════════════════════════════════════
# Read
# ═══════════════════════════════════════════════════════════════════════════

class TestGetGroup:

    def test_member_can_read(self, client, app):
        group = make_group(client, app, members=["alice"])

        resp = client.get(f"{API}/{group['id']}", headers=auth_headers(app, "alice"))

        assert resp.status_code == 200
        data = resp.get_json()["data"]
        assert data["id"] == group["id"]
        assert data["members"] == ["owner", "alice"]

    def test_non_member_forbidden(self, client, app):
        group = make_group(client, app)

        resp = client.get(f"{API}/{group['id']}", headers=auth_headers(app, "mallory"))

        assert resp.status_code == 403
        assert resp.get_json()["error"]["code"] == "NOT_GROUP_MEMBER"

    def test_unknown_group(self, client, app):
        resp = client.get(f"{API}/999999", headers=auth_headers(app, "owner"))

        assert resp.status_code == 404
        assert resp.get_json()["error"]["code"] == "GROUP_NOT_FOUND"


# ═══════════════════════════════════════════════════════════════════════════
# Join / members
# ═══════════════════════════════════════════════════════════════════════════

class TestJoinGroup:

    def test_join_appends_in_order(self, client, app):
        group = make_group(client, app, name="Vacanze", members=["alice", "bob"])

        resp = join(client, app, group["id"], "carol")

        assert resp.status_code == 200
        assert resp.get_json()["data"] == {
            "group_id": group["id"],
            "member": "carol",
            "joined": True,
        }

        members = client.get(
            f"{API}/{group['id']}/members", headers=auth_headers(app, "carol"),
        ).get_json()["data"]["members"]
        assert members == ["owner", "alice", "bob", "carol"]

    def test_join_twice_is_noop(self, client, app):
        group = make_group(client, app)

        join(client, app, group["id"], "carol")
        resp = join(client, app, group["id"], "carol")

        assert resp.status_code == 200
        assert resp.get_json()["data"]["joined"] is False

        members = client.get(
            f"{API}/{group['id']}/members", headers=auth_headers(app, "owner"),
        ).get_json()["data"]["members"]
        assert members.count("carol") == 1

    def test_existing_member_join_is_noop(self, client, app):
        group = make_group(client, app, members=["alice"])

        resp = join(client, app, group["id"], "alice")

        assert resp.get_json()["data"]["joined"] is False

    def test_join_unknown_group(self, client, app):
        resp = join(client, app, 999999, "carol")

        assert resp.status_code == 404
        assert resp.get_json()["error"]["code"] == "GROUP_NOT_FOUND"


class TestListMembers:

    def test_unknown_group(self, client, app):
        resp = client.get(f"{API}/999999/members", headers=auth_headers(app, "owner"))

        assert resp.status_code == 404
        assert resp.get_json()["error"]["code"] == "GROUP_NOT_FOUND"

    def test_readable_by_non_member(self, client, app):
        group = make_group(client, app, members=["alice"])

        resp = client.get(f"{API}/{group['id']}/members", headers=auth_headers(app, "outsider"))

        assert resp.status_code == 200
        assert resp.get_json()["data"]["members"] == ["owner", "alice"]


def test_unknown_route_keeps_http_status(client, app):
    resp = client.get("/api/v1/nowhere", headers=auth_headers(app, "owner"))
    assert resp.status_code == 404
