# betdesk/identity.py
# ------------------------------------------------------------
# Password-based identity provider.
#
# - Sessions are signed, timed tokens (itsdangerous) carrying the user id
#   and the user's session epoch; sign-out bumps the epoch.
# - Subscribers get auth-state events (SIGNED_IN, SIGNED_OUT, ...).
# - The admin API (create/delete identity) is what the privileged
#   user-admin workflows build on.
# ------------------------------------------------------------
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable, List, Optional

from flask import Flask, current_app
from itsdangerous import BadSignature, SignatureExpired, URLSafeTimedSerializer
from sqlalchemy.exc import SQLAlchemyError

from .errors import AuthenticationError, NotFoundError, StoreError, ValidationError
from .extensions import db
from .models import User

logger = logging.getLogger(__name__)

SIGNED_IN = "SIGNED_IN"
SIGNED_OUT = "SIGNED_OUT"
TOKEN_REFRESHED = "TOKEN_REFRESHED"
USER_UPDATED = "USER_UPDATED"
USER_DELETED = "USER_DELETED"

Listener = Callable[[str, Optional["AuthSession"]], None]


@dataclass
class AuthSession:
    access_token: str
    user_id: str
    email: str
    expires_at: datetime

    def to_dict(self) -> dict:
        return {
            "access_token": self.access_token,
            "token_type": "bearer",
            "expires_at": self.expires_at.isoformat(),
            "user": {"id": self.user_id, "email": self.email},
        }


class Subscription:
    def __init__(self, provider: "IdentityProvider", callback: Listener):
        self._provider = provider
        self.callback = callback

    def unsubscribe(self) -> None:
        self._provider._listeners = [s for s in self._provider._listeners if s is not self]


def normalize_email(email: str | None) -> str:
    return (email or "").strip().lower()


class IdentityProvider:
    def __init__(self, app: Flask | None = None):
        self._listeners: List[Subscription] = []
        if app is not None:
            self.init_app(app)

    def init_app(self, app: Flask) -> None:
        app.extensions["betdesk_identity"] = self

    # ---------------------------
    # Tokens
    # ---------------------------
    def _serializer(self) -> URLSafeTimedSerializer:
        return URLSafeTimedSerializer(current_app.config["SECRET_KEY"])

    def _issue(self, user: User) -> AuthSession:
        salt = current_app.config["AUTH_TOKEN_SALT"]
        token = self._serializer().dumps({"uid": user.id, "epoch": user.session_epoch}, salt=salt)
        max_age = current_app.config["AUTH_TOKEN_MAX_AGE"]
        return AuthSession(
            access_token=token,
            user_id=user.id,
            email=user.email,
            expires_at=datetime.now(timezone.utc) + timedelta(seconds=max_age),
        )

    def _decode(self, token: str | None) -> tuple[dict, datetime] | None:
        """(payload, issued_at) for a valid token, else None."""
        if not token:
            return None
        salt = current_app.config["AUTH_TOKEN_SALT"]
        max_age = current_app.config["AUTH_TOKEN_MAX_AGE"]
        try:
            return self._serializer().loads(token, salt=salt, max_age=max_age, return_timestamp=True)
        except SignatureExpired:
            logger.info("[auth] Expired token presented")
            return None
        except BadSignature:
            return None

    # ---------------------------
    # Public API
    # ---------------------------
    def sign_in_with_password(self, email: str, password: str) -> AuthSession:
        email = normalize_email(email)
        if not email or not password:
            raise AuthenticationError("Email and password are required")
        user = User.query.filter_by(email=email).first()
        if not user or not user.check_password(password):
            logger.info(f"[auth] Failed sign-in for {email}")
            raise AuthenticationError("Invalid login credentials")
        session = self._issue(user)
        logger.info(f"[auth] Signed in user={user.id}")
        self._emit(SIGNED_IN, session)
        return session

    def sign_up(self, email: str, password: str, options: dict | None = None) -> User:
        """Self-service registration. `options` may carry `email_confirm`."""
        options = options or {}
        return self._create(email, password, bool(options.get("email_confirm", False)))

    def sign_out(self, session: AuthSession | str | None) -> None:
        token = session.access_token if isinstance(session, AuthSession) else session
        user = self.get_user(token)
        if user is None:
            return
        user.session_epoch = (user.session_epoch or 0) + 1
        self._commit()
        logger.info(f"[auth] Signed out user={user.id}")
        self._emit(SIGNED_OUT, None)

    def get_user(self, token: str | None) -> User | None:
        decoded = self._decode(token)
        if not decoded:
            return None
        payload = decoded[0]
        user = db.session.get(User, payload.get("uid"))
        if user is None or payload.get("epoch") != user.session_epoch:
            return None
        return user

    def get_session(self, token: str | None) -> AuthSession | None:
        """Re-hydrate a session from a persisted token (None if dead)."""
        user = self.get_user(token)
        if user is None:
            return None
        issued = self._decode(token)[1]
        if issued.tzinfo is None:
            issued = issued.replace(tzinfo=timezone.utc)
        return AuthSession(
            access_token=token,
            user_id=user.id,
            email=user.email,
            expires_at=issued + timedelta(seconds=current_app.config["AUTH_TOKEN_MAX_AGE"]),
        )

    def session_for(self, user: User) -> AuthSession:
        """Fresh token for an identity already authenticated another way (cookie login)."""
        return self._issue(user)

    def load_cookie_user(self, session_id: str | None) -> User | None:
        """Flask-Login loader for "<id>:<epoch>"; None once the epoch has moved."""
        user_id, _, epoch = (session_id or "").partition(":")
        user = db.session.get(User, user_id) if user_id else None
        if user is None or str(user.session_epoch or 0) != epoch:
            return None
        return user

    def refresh_session(self, token: str) -> AuthSession:
        user = self.get_user(token)
        if user is None:
            raise AuthenticationError("Invalid token")
        session = self._issue(user)
        self._emit(TOKEN_REFRESHED, session)
        return session

    def on_auth_state_change(self, callback: Listener) -> Subscription:
        sub = Subscription(self, callback)
        self._listeners.append(sub)
        return sub

    # ---------------------------
    # Admin API
    # ---------------------------
    def admin_create_user(self, email: str, password: str, email_confirm: bool = True) -> User:
        return self._create(email, password, email_confirm)

    def admin_delete_user(self, user_id: str) -> None:
        user = db.session.get(User, user_id)
        if user is None:
            raise NotFoundError("User not found")
        db.session.delete(user)
        self._commit()
        logger.info(f"[auth] Deleted identity user={user_id}")
        self._emit(USER_DELETED, None)

    def admin_update_user(self, user_id: str, *, email: str | None = None, password: str | None = None) -> User:
        user = db.session.get(User, user_id)
        if user is None:
            raise NotFoundError("User not found")
        if email:
            user.email = normalize_email(email)
        if password:
            user.set_password(password)
            user.session_epoch = (user.session_epoch or 0) + 1
        self._commit()
        self._emit(USER_UPDATED, None)
        return user

    # ---------------------------
    # Internals
    # ---------------------------
    def _create(self, email: str, password: str, confirmed: bool) -> User:
        email = normalize_email(email)
        if not email or not password:
            raise ValidationError("Email and password are required")
        min_len = current_app.config["MIN_PASSWORD_LENGTH"]
        if len(password) < min_len:
            raise ValidationError(f"Password should be at least {min_len} characters")
        if User.query.filter_by(email=email).first():
            raise ValidationError("A user with this email address has already been registered")
        user = User(email=email)
        user.set_password(password)
        if confirmed:
            user.email_confirmed_at = datetime.now(timezone.utc)
        db.session.add(user)
        self._commit()
        logger.info(f"[auth] Created identity user={user.id} confirmed={confirmed}")
        return user

    def _commit(self) -> None:
        try:
            db.session.commit()
        except SQLAlchemyError as e:
            db.session.rollback()
            logger.error(f"[auth] Identity write failed: {e}")
            raise StoreError(str(getattr(e, "orig", None) or e)) from e

    def _emit(self, event: str, session: AuthSession | None) -> None:
        for sub in list(self._listeners):
            try:
                sub.callback(event, session)
            except Exception as e:
                logger.error(f"[auth] Listener failed on {event}: {e}")


provider = IdentityProvider()
