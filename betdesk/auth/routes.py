# betdesk/auth/routes.py
# ------------------------------------------------------------
# Authentication routes (JSON):
# - POST /auth/login          -> password sign-in, cookie + bearer token
# - POST /auth/logout         -> sign out (invalidates issued tokens)
# - POST /auth/register       -> self-serve signup (operator role)
# - GET  /auth/session        -> current session + profile/role
# - POST /auth/token/refresh  -> fresh token for a live one
# ------------------------------------------------------------

from flask import jsonify, request
from flask_login import current_user, login_user, logout_user

from ..errors import AuthenticationError
from ..extensions import db
from ..identity import provider
from ..models import User
from ..policy import viewer_for
from ..services.users import register_user
from ..utils.helpers import payload, text
from . import auth  # blueprint: defined in betdesk/auth/__init__.py


# ---------------------------
# Helpers
# ---------------------------
def bearer_token() -> str | None:
    header = request.headers.get("Authorization") or ""
    if header.lower().startswith("bearer "):
        return header[7:].strip() or None
    return None


def _viewer_payload(user: User) -> dict:
    viewer = viewer_for(user)
    profile = viewer.profile
    return {
        "profile": {"id": profile.id, "name": profile.name, "email": profile.email} if profile else None,
        "role": viewer.role.value,
        "is_admin": viewer.is_admin,
    }


# ---------------------------
# Login / logout
# ---------------------------
@auth.route("/login", methods=["POST"])
def login():
    data = payload()
    session = provider.sign_in_with_password(text(data, "email"), data.get("password") or "")
    user = db.session.get(User, session.user_id)
    login_user(user)
    return jsonify({"ok": True, "session": session.to_dict(), **_viewer_payload(user)})


@auth.route("/logout", methods=["POST"])
def logout():
    token = bearer_token()
    if token is None and current_user.is_authenticated:
        token = provider.session_for(current_user).access_token
    provider.sign_out(token)
    logout_user()
    return jsonify({"ok": True, "message": "You have been logged out"})


# ---------------------------
# Register
# ---------------------------
@auth.route("/register", methods=["POST"])
def register():
    data = payload()
    user = register_user(text(data, "email"), data.get("password") or "", text(data, "name"))
    login_user(user)
    session = provider.session_for(user)
    return jsonify({"ok": True, "session": session.to_dict(), **_viewer_payload(user)}), 201


# ---------------------------
# Session
# ---------------------------
@auth.route("/session", methods=["GET"])
def session_info():
    token = bearer_token()
    if token:
        session = provider.get_session(token)
        if session is None:
            raise AuthenticationError("Invalid token")
        user = db.session.get(User, session.user_id)
    elif current_user.is_authenticated:
        user = current_user
        session = provider.session_for(user)
    else:
        raise AuthenticationError("Not signed in")
    return jsonify({"ok": True, "session": session.to_dict(), **_viewer_payload(user)})


@auth.route("/token/refresh", methods=["POST"])
def token_refresh():
    token = bearer_token()
    if not token:
        raise AuthenticationError("Missing authorization header")
    session = provider.refresh_session(token)
    return jsonify({"ok": True, "session": session.to_dict()})
