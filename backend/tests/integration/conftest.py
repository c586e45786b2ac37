"""
tests/integration/conftest.py — Fixtures for all integration tests.

Design:
  - Tests run against the testing config: in-memory SQLite unless
    TEST_DATABASE_URL points at a real database.
  - The app is created once per session using create_app("testing").
  - All tables are created once via db.create_all() at session start.
  - Between tests, all rows are deleted in FK-safe order so tests are isolated.
    Group ids keep increasing across tests (AUTOINCREMENT), which is fine:
    tests always use the id the API returned.

Plain helper functions (token, auth_headers, make_group, ...) live in
helpers.py so test modules can import them by name.
"""

from __future__ import annotations

import pytest
from sqlalchemy import text

from backend.app import create_app
from backend.app.extensions import PAYMENT_RAIL_KEY
from backend.app.extensions import db as _db
from backend.app.services.payment_rail import TokenPaymentRail


# ═══════════════════════════════════════════════════════════════════════════
# Session-scoped app fixture
# ═══════════════════════════════════════════════════════════════════════════

@pytest.fixture(scope="session")
def app():
    """
    Creates the Flask application in 'testing' mode once for the entire test session.

    Tables are created from the model metadata; they are dropped at teardown.
    """
    flask_app = create_app("testing")

    with flask_app.app_context():
        _db.create_all()

    yield flask_app

    with flask_app.app_context():
        _db.drop_all()


# ═══════════════════════════════════════════════════════════════════════════
# Function-scoped test isolation
# ═══════════════════════════════════════════════════════════════════════════

@pytest.fixture(autouse=True)
def clean_tables(app):
    """
    Deletes all rows after every test, children before groups.
    """
    yield

    with app.app_context():
        _db.session.rollback()  # discard any uncommitted state from a failed test

        with _db.engine.connect() as conn:
            conn.execute(text("DELETE FROM debts"))
            conn.execute(text("DELETE FROM balances"))
            conn.execute(text("DELETE FROM memberships"))
            conn.execute(text("DELETE FROM groups"))
            conn.commit()


# ═══════════════════════════════════════════════════════════════════════════
# Client and collaborator fixtures
# ═══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def client(app):
    """Flask test client. Each test gets a fresh client (function-scoped)."""
    return app.test_client()


@pytest.fixture
def token_rail(app):
    """
    Swaps the app's payment rail for an empty TokenPaymentRail for one test.

    Wallets start empty; the test mints what it needs.
    """
    original = app.extensions[PAYMENT_RAIL_KEY]
    rail = TokenPaymentRail()
    app.extensions[PAYMENT_RAIL_KEY] = rail
    yield rail
    app.extensions[PAYMENT_RAIL_KEY] = original


@pytest.fixture
def strict_participants(app):
    """Turns on REQUIRE_PARTICIPANT_MEMBERSHIP for one test."""
    app.config["REQUIRE_PARTICIPANT_MEMBERSHIP"] = True
    yield
    app.config["REQUIRE_PARTICIPANT_MEMBERSHIP"] = False
