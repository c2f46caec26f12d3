# betdesk/__init__.py
# ------------------------------------------------------------
# Flask application factory with layered registration:
# - register_extensions()
# - register_blueprints()
# - register_cli()
# - register_error_handlers()
# - register_auth_events()
#
# Notes:
# - load_dotenv() runs once at import time.
# - Config comes from FLASK_ENV unless a config object/name is passed.
# - Every screen answers JSON; unauthenticated requests get a JSON 401.
# ------------------------------------------------------------

import logging
import os

from dotenv import load_dotenv
from flask import Flask, jsonify

from . import config as config_module
from .errors import register_error_handlers
from .extensions import db, login_manager, migrate
from .identity import provider
from .models import User  # ensure models registered

# Load environment from .env exactly once
load_dotenv()

logger = logging.getLogger(__name__)

CONFIGS = {
    "development": config_module.Development,
    "production": config_module.Production,
    "testing": config_module.Testing,
}


def create_app(config=None) -> Flask:
    app = Flask(__name__)
    if config is None:
        config = os.getenv("FLASK_ENV", "development").lower()
    if isinstance(config, str):
        config = CONFIGS.get(config, config_module.Development)
    app.config.from_object(config)

    configure_logging(app)
    register_extensions(app)
    register_blueprints(app)
    register_cli(app)
    register_error_handlers(app)
    register_auth_events(app)
    return app


# ---------------------------
# Registrations (by concern)
# ---------------------------
def configure_logging(app: Flask) -> None:
    level = getattr(logging, str(app.config.get("LOG_LEVEL", "INFO")).upper(), logging.INFO)
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    logging.getLogger("betdesk").setLevel(level)


def register_extensions(app: Flask) -> None:
    """Initialize Flask extensions (db, migrate, login manager, identity)."""
    db.init_app(app)
    migrate.init_app(app, db)
    login_manager.init_app(app)
    provider.init_app(app)

    @login_manager.user_loader
    def load_user(session_id: str):
        return provider.load_cookie_user(session_id)

    @login_manager.unauthorized_handler
    def unauthorized():
        return jsonify({"ok": False, "error": "Authentication required"}), 401


def register_blueprints(app: Flask) -> None:
    """Register all blueprints. Keep imports local to avoid circulars."""
    from .main import main as main_blueprint
    from .auth import auth as auth_blueprint
    from .functions import functions as functions_blueprint

    app.register_blueprint(main_blueprint)            # /
    app.register_blueprint(auth_blueprint)            # /auth/...
    app.register_blueprint(functions_blueprint)       # /functions/...


def register_cli(app: Flask) -> None:
    from .cli import register_cli as _register_cli
    _register_cli(app)


_auth_log = None


def register_auth_events(app: Flask) -> None:
    """Log identity events; the provider is a module singleton, so subscribe once."""
    global _auth_log
    if _auth_log is not None:
        return

    def _log_event(event, session):
        who = session.user_id if session is not None else "-"
        logger.info(f"[auth] event={event} user={who}")

    _auth_log = provider.on_auth_state_change(_log_event)
