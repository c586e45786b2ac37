"""
app/__init__.py — Flask application factory.

Pattern: create_app(config_name) creates and returns a configured Flask app.
         Nothing is initialised at import time — this enables:
           - Multiple isolated test app instances
           - Clean separation between app creation and app startup
           - Alembic to import the models without starting the server

Responsibilities:
  1. Load configuration from config_by_name[config_name]
  2. Configure logging level; subscribe the ledger event logger
  3. Initialise extensions (SQLAlchemy) and the payment rail
  4. Register all route blueprints under /api/v1
  5. Register global error handlers (AppError → JSON, Exception → 500)

Note on model imports:
  All model classes are imported inside create_app() so that SQLAlchemy's
  metadata is populated before Alembic or db.create_all() inspects it.
"""

from __future__ import annotations

import logging
import traceback

from flask import Flask, jsonify
from marshmallow import ValidationError

from backend.config import config_by_name, validate_production_config


# ── Application factory ────────────────────────────────────────────────────

def create_app(config_name: str = "development", payment_rail=None) -> Flask:
    """
    Creates and returns a configured Flask application instance.

    Args:
        config_name:  One of "development", "testing", "production".
                      Resolved via config_by_name in config.py.
        payment_rail: Optional PaymentRail instance. When omitted the rail
                      named by the PAYMENT_RAIL config value is built.

    Returns:
        A fully configured Flask app ready to serve requests.
    """
    app = Flask(__name__)

    # ── Configuration ──────────────────────────────────────────────────────
    config_class = config_by_name.get(config_name, config_by_name["development"])
    app.config.from_object(config_class)

    if config_name == "production":
        validate_production_config(app)  # raises ValueError if misconfigured

    _configure_logging(app)

    # ── Extensions ─────────────────────────────────────────────────────────
    # Import here (not at module top) to avoid circular imports.
    from backend.app.extensions import db, init_payment_rail
    db.init_app(app)
    init_payment_rail(app, payment_rail)

    # ── Model registration ─────────────────────────────────────────────────
    # The imports are intentionally unused by name — side effect is the point.
    with app.app_context():
        from backend.app.models import (  # noqa: F401
            balance,
            debt,
            group,
            membership,
        )

    # ── Blueprints ─────────────────────────────────────────────────────────
    _register_blueprints(app)

    # ── Error handlers ─────────────────────────────────────────────────────
    _register_error_handlers(app)

    return app


def _configure_logging(app: Flask) -> None:
    """
    Applies LOG_LEVEL to the app logger and the backend.app loggers, and
    subscribes the ledger event logger when LOG_LEDGER_EVENTS is set.
    """
    level = app.config.get("LOG_LEVEL", "INFO")
    app.logger.setLevel(level)
    logging.getLogger("backend.app").setLevel(level)

    if app.config.get("LOG_LEDGER_EVENTS"):
        from backend.app.events import connect_event_logging
        connect_event_logging()


def _register_blueprints(app: Flask) -> None:
    """
    Registers all route blueprints under the /api/v1/groups prefix.

    Every resource in this API is scoped to a group, so each route file only
    specifies the path relative to the group (e.g. "/<int:group_id>/debts").
    """
    from backend.app.routes.balances import balances_bp
    from backend.app.routes.debts import debts_bp
    from backend.app.routes.expenses import expenses_bp
    from backend.app.routes.groups import groups_bp
    from backend.app.routes.settlements import settlements_bp

    app.register_blueprint(groups_bp,      url_prefix="/api/v1/groups")
    app.register_blueprint(expenses_bp,    url_prefix="/api/v1/groups")
    app.register_blueprint(balances_bp,    url_prefix="/api/v1/groups")
    app.register_blueprint(debts_bp,       url_prefix="/api/v1/groups")
    app.register_blueprint(settlements_bp, url_prefix="/api/v1/groups")


def _register_error_handlers(app: Flask) -> None:
    """
    Registers global error handlers.

    Handlers:
      AppError        → structured JSON error envelope with the correct HTTP status
      ValidationError → marshmallow schema errors as MISSING_FIELD /
                        INVALID_FIELD responses (400)
      Exception       → generic INTERNAL_ERROR (500); full traceback logged

    Stack traces never leave the server.
    """
    from backend.app.errors import AppError, ErrorCode

    @app.errorhandler(AppError)
    def handle_app_error(error: AppError):
        """
        Converts an AppError raised anywhere in the request lifecycle
        (middleware, service, route) into the standard error envelope.

        Routes never catch AppError — they let it propagate here.
        """
        if error.http_status >= 500:
            app.logger.error("Request failed with %r", error)
        return jsonify(error.to_dict()), error.http_status

    @app.errorhandler(ValidationError)
    def handle_validation_error(error: ValidationError):
        """
        Converts marshmallow ValidationError into the standard error envelope.

        Only the FIRST field error is reported: one error, not many.
        """
        messages = error.messages  # e.g. {"amount": ["Not a valid integer."]}

        field = None
        raw_message = "Invalid input."
        code = ErrorCode.INVALID_FIELD

        if isinstance(messages, dict):
            for field_name, field_errors in messages.items():
                field = field_name if field_name != "_schema" else None
                raw_message = _first_message(field_errors)
                break
        elif isinstance(messages, list) and messages:
            raw_message = str(messages[0])

        if raw_message.startswith("Missing data for required field"):
            code = ErrorCode.MISSING_FIELD

        response_body = {
            "error": {
                "code": code,
                "message": raw_message,
            }
        }
        if field is not None:
            response_body["error"]["field"] = field

        return jsonify(response_body), 400

    @app.errorhandler(Exception)
    def handle_unexpected_error(error: Exception):
        """
        Catches all unhandled exceptions and returns a generic 500 response.

        HTTP exceptions raised by Flask itself (404 for unknown routes, 405)
        keep their own status.
        """
        from werkzeug.exceptions import HTTPException

        if isinstance(error, HTTPException):
            return error

        app.logger.error(
            "Unhandled exception: %s\n%s",
            str(error),
            traceback.format_exc(),
        )
        return jsonify({
            "error": {
                "code": ErrorCode.INTERNAL_ERROR,
                "message": "An unexpected error occurred. Please try again later.",
            }
        }), 500


def _first_message(field_errors) -> str:
    """
    Digs the first human-readable message out of a marshmallow error value.

    Nested fields (lists) produce dicts keyed by index, e.g.
    {"participants": {0: ["Not a valid string."]}}.
    """
    while isinstance(field_errors, dict) and field_errors:
        field_errors = next(iter(field_errors.values()))
    if isinstance(field_errors, list):
        return str(field_errors[0]) if field_errors else "Invalid value."
    return str(field_errors)
