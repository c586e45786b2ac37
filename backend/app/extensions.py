"""
extensions.py — Flask extension singletons.

Initialises SQLAlchemy as a module-level object so it can be
imported anywhere without creating circular dependencies.

Pattern:
    1. Create the extension object here (no app attached yet).
    2. Call init_app(app) inside the app factory in app/__init__.py.
    3. Import `db` from here wherever needed.

    from backend.app.extensions import db

The payment rail is not a Flask extension but is stored the same way, under
app.extensions["payment_rail"], so tests can swap it per app instance.
"""

from __future__ import annotations

from flask import current_app
from flask_sqlalchemy import SQLAlchemy

db = SQLAlchemy()


PAYMENT_RAIL_KEY = "payment_rail"


def init_payment_rail(app, rail=None) -> None:
    """
    Attaches a payment rail to the app.

    When `rail` is None the rail is built from app.config["PAYMENT_RAIL"].
    """
    from backend.app.services.payment_rail import build_payment_rail

    app.extensions[PAYMENT_RAIL_KEY] = rail if rail is not None else build_payment_rail(
        app.config.get("PAYMENT_RAIL", "approve")
    )


def get_payment_rail():
    """Returns the payment rail attached to the current app."""
    return current_app.extensions[PAYMENT_RAIL_KEY]
