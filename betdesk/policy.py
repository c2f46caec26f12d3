# betdesk/policy.py
# ------------------------------------------------------------
# Role-based access rules. Every read/write path goes through here:
#   - row visibility (operators: own rows only; admins: everything)
#   - admin-only pages (silent redirect to the landing page)
#   - self-protection on role change / profile deletion
#
# A profile with no role row is an operator everywhere.
# ------------------------------------------------------------
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from functools import wraps

from flask import redirect, url_for
from flask_login import current_user
from sqlalchemy import false

from .errors import AuthorizationError, NotFoundError
from .extensions import db
from .models import Account, AppRole, Bet, Deposit, Profile, UserRole

logger = logging.getLogger(__name__)

LANDING_ENDPOINT = "main.dashboard"
DEFAULT_SIGNUP_ROLE = AppRole.operator

# Column holding the owning profile id, per owned model
OWNER_COLUMNS = {
    Bet: "operator_id",
    Account: "operator_id",
    Deposit: "created_by",
}

ADMIN_ONLY_ENDPOINTS = frozenset({
    "main.finance_transactions",
    "main.finance_transaction_create",
    "main.finance_dre",
    "main.finance_cash_flow",
    "main.finance_banks",
    "main.finance_bank_create",
    "main.finance_bank_update",
    "main.analytics",
    "main.operators",
    "main.operator_role_update",
    "main.operator_delete",
    "main.user_create",
    "main.bookmakers",
    "main.bookmaker_create",
    "main.bookmaker_update",
    "main.bookmaker_delete",
    "main.software_tools",
    "main.software_tool_create",
    "main.software_tool_update",
    "main.software_tool_delete",
})


@dataclass(frozen=True)
class Viewer:
    profile: Profile | None
    roles: frozenset = field(default_factory=frozenset)

    @property
    def profile_id(self) -> str | None:
        return self.profile.id if self.profile is not None else None

    @property
    def role(self) -> AppRole:
        return effective_role(self.roles)

    @property
    def is_admin(self) -> bool:
        return self.role == AppRole.admin


# ---------------------------
# Role resolution
# ---------------------------
def effective_role(roles) -> AppRole:
    """admin iff any admin row exists; no rows (or only operator) -> operator."""
    values = {AppRole(r) for r in roles or ()}
    return AppRole.admin if AppRole.admin in values else AppRole.operator


def roles_for(profile_id: str | None) -> frozenset:
    if not profile_id:
        return frozenset()
    rows = db.session.query(UserRole.role).filter(UserRole.profile_id == profile_id).all()
    return frozenset(AppRole(r) for (r,) in rows)


def viewer_for(user) -> Viewer:
    """Build the viewer for an identity (or an anonymous viewer)."""
    profile = getattr(user, "profile", None) if user is not None else None
    if profile is None:
        return Viewer(profile=None)
    return Viewer(profile=profile, roles=roles_for(profile.id))


def current_viewer() -> Viewer:
    if not getattr(current_user, "is_authenticated", False):
        return Viewer(profile=None)
    return viewer_for(current_user)


# ---------------------------
# Row visibility
# ---------------------------
def owner_column(model):
    name = OWNER_COLUMNS.get(model)
    return getattr(model, name) if name else None


def scope_query(query, model, viewer: Viewer):
    """Restrict `query` to the rows `viewer` may see."""
    if viewer.is_admin:
        return query
    col = owner_column(model)
    if col is None:
        return query
    if viewer.profile_id is None:
        return query.filter(false())
    return query.filter(col == viewer.profile_id)


def can_view(row, viewer: Viewer) -> bool:
    if viewer.is_admin:
        return True
    name = OWNER_COLUMNS.get(type(row))
    if name is None:
        return True
    return viewer.profile_id is not None and getattr(row, name) == viewer.profile_id


def ensure_can_view(row, viewer: Viewer):
    # Foreign rows are reported as missing, never as forbidden.
    if row is None or not can_view(row, viewer):
        raise NotFoundError("Registro não encontrado")
    return row


def ensure_can_mutate(row, viewer: Viewer):
    if not can_view(row, viewer):
        logger.warning(f"[policy] profile={viewer.profile_id} denied write on {type(row).__tablename__}={row.id}")
        raise AuthorizationError("Você não tem permissão para alterar este registro")
    return row


def owner_for_new_row(viewer: Viewer, requested_owner: str | None) -> str:
    """Operators always own what they create; admins may assign an owner."""
    if viewer.profile_id is None:
        raise AuthorizationError("Perfil não encontrado")
    if requested_owner and requested_owner != viewer.profile_id:
        if not viewer.is_admin:
            raise AuthorizationError("Apenas administradores podem atribuir registros a outro operador")
        return requested_owner
    return viewer.profile_id


# ---------------------------
# Page / feature gating
# ---------------------------
def can_access_endpoint(endpoint: str | None, viewer: Viewer) -> bool:
    if endpoint in ADMIN_ONLY_ENDPOINTS:
        return viewer.is_admin
    return True


def admin_required(view):
    """Non-admins are silently sent to the landing page."""

    @wraps(view)
    def wrapper(*args, **kwargs):
        if not current_viewer().is_admin:
            return redirect(url_for(LANDING_ENDPOINT))
        return view(*args, **kwargs)

    return wrapper


def ensure_admin(viewer: Viewer, message: str = "Apenas administradores podem executar esta ação") -> None:
    if not viewer.is_admin:
        logger.warning(f"[policy] profile={viewer.profile_id} denied admin action")
        raise AuthorizationError(message)


# ---------------------------
# Self-protection
# ---------------------------
def ensure_can_change_role(viewer: Viewer, target_profile_id: str) -> None:
    ensure_admin(viewer)
    if target_profile_id == viewer.profile_id:
        raise AuthorizationError("Você não pode alterar sua própria permissão")


def ensure_can_delete_profile(viewer: Viewer, target_profile_id: str) -> None:
    ensure_admin(viewer)
    if target_profile_id == viewer.profile_id:
        raise AuthorizationError("Você não pode excluir sua própria conta")


def operator_row_actions(viewer: Viewer, profile_id: str) -> dict:
    """Enabled state of the operators-screen controls for one row."""
    is_self = profile_id == viewer.profile_id
    allowed = viewer.is_admin and not is_self
    return {"can_change_role": allowed, "can_delete": allowed}
