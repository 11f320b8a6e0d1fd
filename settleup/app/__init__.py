"""
app/__init__.py — Flask application factory.

Pattern: create_app(config_name) creates and returns a configured Flask app.
         Nothing is initialised at import time — this enables:
           - Multiple isolated test app instances
           - Clean separation between app creation and app startup

Responsibilities:
  1. Load configuration from config_by_name[config_name]
  2. Configure logging from LOG_LEVEL
  3. Register all route blueprints under /api/v1
  4. Register global error handlers (AppError → JSON, ValidationError → 400,
     HTTP errors → JSON, Exception → 500)
  5. Register a JSON provider that serialises Decimal as string and model
     objects through their to_dict()
"""

from __future__ import annotations

import logging.config
import traceback
from decimal import Decimal

from flask import Flask, jsonify, request
from flask.json.provider import DefaultJSONProvider
from marshmallow import ValidationError
from werkzeug.exceptions import HTTPException

from settleup.config import config_by_name, validate_production_config


# ── Custom JSON provider ───────────────────────────────────────────────────
# Amounts are ints (paisa) and serialise natively. Decimal only appears for
# percentages and is sent as a string to keep its exact scale.

class DomainJSONProvider(DefaultJSONProvider):
    """
    Extends Flask's default JSON provider.

    Decimal("33.33") → "33.33"
    Model objects (SimplifiedDebt, SimplificationStep, ...) → obj.to_dict()
    """

    def default(self, o):
        if isinstance(o, Decimal):
            return str(o)
        if hasattr(o, "to_dict"):
            return o.to_dict()
        return super().default(o)


# ── Application factory ────────────────────────────────────────────────────

def create_app(config_name: str = "development") -> Flask:
    """
    Creates and returns a configured Flask application instance.

    Args:
        config_name: One of "development", "testing", "production".
                     Resolved via config_by_name in config.py.
                     Defaults to "development".

    Returns:
        A fully configured Flask app ready to serve requests.
    """
    app = Flask(__name__)
    app.json_provider_class = DomainJSONProvider
    app.json = DomainJSONProvider(app)

    # ── Configuration ──────────────────────────────────────────────────────
    config_class = config_by_name.get(config_name, config_by_name["development"])
    app.config.from_object(config_class)

    if config_name == "production":
        validate_production_config(app)  # raises ValueError if misconfigured

    _configure_logging(app)

    # ── Blueprints ─────────────────────────────────────────────────────────
    _register_blueprints(app)

    # ── Error handlers ─────────────────────────────────────────────────────
    _register_error_handlers(app)
    _register_cors(app)

    return app


def _configure_logging(app: Flask) -> None:
    """
    Routes every `settleup.*` module logger and the Flask app logger to
    stderr at LOG_LEVEL.
    """
    level = app.config.get("LOG_LEVEL", "INFO")
    logging.config.dictConfig({
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "default": {
                "format": "%(asctime)s %(levelname)s [%(name)s] %(message)s",
            },
        },
        "handlers": {
            "stderr": {
                "class": "logging.StreamHandler",
                "formatter": "default",
                "stream": "ext://sys.stderr",
            },
        },
        "loggers": {
            "settleup": {"level": level, "handlers": ["stderr"], "propagate": True},
        },
    })
    app.logger.setLevel(level)


def _register_blueprints(app: Flask) -> None:
    """
    Registers all route blueprints under the /api/v1 prefix.

    Blueprint names match the route files in app/routes/.
    """
    from settleup.app.routes.balances import balances_bp
    from settleup.app.routes.expenses import expenses_bp
    from settleup.app.routes.settlements import settlements_bp
    from settleup.app.routes.system import system_bp

    app.register_blueprint(balances_bp,    url_prefix="/api/v1")
    app.register_blueprint(settlements_bp, url_prefix="/api/v1/settlements")
    app.register_blueprint(expenses_bp,    url_prefix="/api/v1/expenses")
    app.register_blueprint(system_bp,      url_prefix="/api/v1")


def _first_error(messages) -> tuple[str | None, str]:
    """
    Walks marshmallow's nested messages down to the first leaf.

    {"balances": {"alice": {"value": ["Not a valid integer."]}}}
        → ("balances", "Not a valid integer.")
    """
    field = None
    node = messages
    while True:
        if isinstance(node, dict) and node:
            key, node = next(iter(node.items()))
            if field is None and key != "_schema":
                field = str(key)
        elif isinstance(node, list) and node:
            node = node[0]
        else:
            break
    return field, str(node) if node not in ({}, []) else "Invalid input."


def _register_error_handlers(app: Flask) -> None:
    """
    Registers global error handlers.

    Handlers:
      AppError        → structured JSON error envelope with the correct HTTP status
      ValidationError → marshmallow schema errors formatted as MISSING_FIELD /
                        INVALID_FIELD / registered-code responses (400)
      HTTPException   → NOT_FOUND (404), METHOD_NOT_ALLOWED (405), else INVALID_FIELD
      Exception       → generic INTERNAL_ERROR (500); full traceback logged

    Stack traces never leave the server.
    """
    from settleup.app.errors import AppError, ErrorCode

    registered_codes = {
        value for name, value in vars(ErrorCode).items() if not name.startswith("_")
    }

    @app.errorhandler(AppError)
    def handle_app_error(error: AppError):
        """Routes never catch AppError — they let it propagate here."""
        return jsonify(error.to_dict()), error.http_status

    @app.errorhandler(ValidationError)
    def handle_validation_error(error: ValidationError):
        """
        Returns the FIRST error only ("one error, not many").

        If the message is itself a registered ErrorCode constant it becomes
        the code; "Missing data for required field" becomes MISSING_FIELD;
        everything else is INVALID_FIELD.
        """
        field, raw_message = _first_error(error.messages)

        if raw_message in registered_codes:
            code = raw_message
            message = _code_to_message(code)
        elif raw_message.startswith("Missing data for required field"):
            code = ErrorCode.MISSING_FIELD
            message = raw_message
        else:
            code = ErrorCode.INVALID_FIELD
            message = raw_message

        response_body = {"error": {"code": code, "message": message}}
        if field is not None:
            response_body["error"]["field"] = field

        return jsonify(response_body), 400

    @app.errorhandler(HTTPException)
    def handle_http_error(error: HTTPException):
        code = {
            404: ErrorCode.NOT_FOUND,
            405: ErrorCode.METHOD_NOT_ALLOWED,
        }.get(error.code, ErrorCode.INVALID_FIELD)
        return jsonify({
            "error": {"code": code, "message": error.description},
        }), error.code

    @app.errorhandler(Exception)
    def handle_unexpected_error(error: Exception):
        """
        Catches all unhandled exceptions and returns a generic 500 response.
        The full traceback goes to the application logger.
        """
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


def _register_cors(app: Flask) -> None:
    """
    Adds CORS headers for browser-based local development.

    Enabled when DEBUG or TESTING is true so a frontend served from another
    local port can call the API.
    """

    @app.after_request
    def add_cors_headers(response):
        origin = request.headers.get("Origin")
        allow_all = bool(app.config.get("DEBUG") or app.config.get("TESTING"))

        if allow_all:
            response.headers["Access-Control-Allow-Origin"] = origin if origin else "*"
            response.headers["Vary"] = "Origin"
            response.headers["Access-Control-Allow-Methods"] = "GET, POST, OPTIONS"
            response.headers["Access-Control-Allow-Headers"] = "Content-Type"

        return response


def _code_to_message(code: str) -> str:
    """
    Returns a human-readable default message for a known error code.
    Used when a ValidationError message IS the error code constant itself.
    """
    _messages = {
        "INVALID_AMOUNT": "Amount is out of range. Amounts are whole numbers of minor units (paisa).",
        "UNSUPPORTED_CURRENCY": "currency must be one of INR, USD, EUR, GBP.",
        "INVALID_SPLIT_TYPE": "split_type must be 'equal', 'exact', 'percentage' or 'shares'.",
    }
    return _messages.get(code, "Invalid input.")
