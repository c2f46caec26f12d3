# betdesk/errors.py
# ------------------------------------------------------------
# Error taxonomy shared by services, policy and routes.
# Every class carries the HTTP status the JSON handlers use.
# ------------------------------------------------------------
import logging

from flask import Flask, jsonify

logger = logging.getLogger(__name__)


class BetdeskError(Exception):
    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(BetdeskError):
    """Bad or missing input, caught before anything is written."""
    status_code = 400


class AuthenticationError(BetdeskError):
    """Missing, invalid or expired credentials."""
    status_code = 401


class AuthorizationError(BetdeskError):
    """Caller lacks the role (or is targeting themselves)."""
    status_code = 403


class NotFoundError(BetdeskError):
    status_code = 404


class StoreError(BetdeskError):
    """Persistence failure; message is surfaced verbatim to the caller."""
    status_code = 500


class SagaError(BetdeskError):
    """A multi-step workflow stopped part-way."""
    status_code = 500

    def __init__(self, message: str, step: str, compensated: bool):
        super().__init__(message)
        self.step = step
        self.compensated = compensated


def register_error_handlers(app: Flask) -> None:
    """Turn domain errors into JSON `{ok: false, error}` responses."""

    @app.errorhandler(BetdeskError)
    def _handle_domain_error(e: BetdeskError):
        if e.status_code >= 500:
            logger.error(f"[error] {type(e).__name__}: {e.message}")
        return jsonify({"ok": False, "error": e.message}), e.status_code

    @app.errorhandler(404)
    def _not_found(e):
        return jsonify({"ok": False, "error": "Not found"}), 404

    @app.errorhandler(405)
    def _method_not_allowed(e):
        return jsonify({"ok": False, "error": "Method not allowed"}), 405
