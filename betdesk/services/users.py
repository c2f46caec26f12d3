# betdesk/services/users.py
# ------------------------------------------------------------
# Profiles, roles and the multi-step user workflows.
#
#   register_user  identity -> profile + operator role
#   create_user    identity (confirmed) -> profile + chosen role
#   delete_user    profile + roles -> identity
#   reassign_role  delete-then-insert, one transaction
#
# Cross-system steps run as a Saga: a failed later step undoes the
# earlier ones. Steps that only touch our tables run in store.atomic().
# ------------------------------------------------------------
from __future__ import annotations

import logging

from ..errors import NotFoundError, ValidationError
from ..identity import provider
from ..models import AppRole, Profile, User
from ..policy import (
    DEFAULT_SIGNUP_ROLE, Viewer, effective_role, ensure_admin,
    ensure_can_change_role, ensure_can_delete_profile, operator_row_actions,
)
from ..store import store
from ..utils.helpers import text
from .saga import Saga

logger = logging.getLogger(__name__)

ROLE_LABELS = {AppRole.admin: "Administrador", AppRole.operator: "Operador"}


def _role(value) -> AppRole:
    try:
        return AppRole(value)
    except ValueError:
        raise ValidationError("Invalid role. Must be 'admin' or 'operator'") from None


def _insert_profile(user: User, name: str, role: AppRole) -> Profile:
    with store.atomic():
        profile = store.insert("profiles", {"user_id": user.id, "name": name, "email": user.email})
        store.insert("user_roles", {"profile_id": profile.id, "role": role})
    return profile


def _identity_saga(saga_name: str, name: str, role: AppRole, create_identity) -> dict:
    saga = Saga(saga_name)
    saga.step(
        "identity",
        lambda ctx: create_identity(),
        compensate=lambda ctx: provider.admin_delete_user(ctx["identity"].id),
    )
    saga.step(
        "profile",
        lambda ctx: _insert_profile(ctx["identity"], name, role),
        failure="Failed to create profile",
    )
    return saga.run()


# ---------------------------
# Sign-up / admin creation
# ---------------------------
def register_user(email: str, password: str, name: str | None = None) -> User:
    """Self-service sign-up; new profiles are operators."""
    name = (name or "").strip() or (email or "").split("@")[0]
    ctx = _identity_saga(
        "register-user", name, DEFAULT_SIGNUP_ROLE,
        lambda: provider.sign_up(email, password, {"email_confirm": False}),
    )
    user = ctx["identity"]
    logger.info(f"[users] Registered user={user.id} profile={ctx['profile'].id}")
    return user


def create_user(viewer: Viewer, data: dict) -> dict:
    """Admin-created user: confirmed identity, profile, and the chosen role."""
    ensure_admin(viewer, "Only admins can create users")
    email, password, name, role = (text(data, k) for k in ("email", "password", "name", "role"))
    if not (email and password and name and role):
        raise ValidationError("Missing required fields: email, password, name, role")
    role = _role(role)

    ctx = _identity_saga(
        "create-user", name, role,
        lambda: provider.admin_create_user(email, password, email_confirm=True),
    )
    user = ctx["identity"]
    logger.info(f"[users] Admin {viewer.profile_id} created user={user.id} role={role.value}")
    return {"id": user.id, "email": user.email, "name": name, "role": role.value}


# ---------------------------
# Deletion
# ---------------------------
def _snapshot(profile: Profile) -> dict:
    roles = store.select("user_roles", where={"profile_id": profile.id})
    return {
        "profile": {
            "id": profile.id,
            "user_id": profile.user_id,
            "name": profile.name,
            "email": profile.email,
            "created_at": profile.created_at,
        },
        "roles": [{"id": r.id, "role": r.role, "created_at": r.created_at} for r in roles],
    }


def _remove_profile(snapshot: dict) -> dict:
    pid = snapshot["profile"]["id"]
    with store.atomic():
        store.delete("user_roles", {"profile_id": pid})
        store.delete("profiles", {"id": pid})
    return snapshot


def _restore_profile(snapshot: dict) -> None:
    with store.atomic():
        store.insert("profiles", snapshot["profile"])
        for r in snapshot["roles"]:
            store.insert("user_roles", {**r, "profile_id": snapshot["profile"]["id"]})
    logger.warning(f"[users] Restored profile={snapshot['profile']['id']} after failed identity delete")


def delete_user(viewer: Viewer, profile_id: str | None) -> None:
    """Remove roles + profile, then the identity. Bets/accounts are kept."""
    ensure_admin(viewer, "Only admins can delete users")
    if not profile_id:
        raise ValidationError("Profile ID is required")
    ensure_can_delete_profile(viewer, profile_id)
    found = store.select("profiles", where={"id": profile_id}, limit=1)
    if not found:
        raise NotFoundError("User not found")
    snapshot = _snapshot(found[0])

    saga = Saga("delete-user")
    saga.step(
        "profile",
        lambda ctx: _remove_profile(snapshot),
        compensate=lambda ctx: _restore_profile(snapshot),
    )
    saga.step(
        "identity",
        lambda ctx: provider.admin_delete_user(snapshot["profile"]["user_id"]),
        failure="Failed to delete auth user",
    )
    saga.run()
    logger.info(f"[users] Admin {viewer.profile_id} deleted profile={profile_id}")


# ---------------------------
# Roles
# ---------------------------
def reassign_role(viewer: Viewer, profile_id: str, new_role) -> AppRole:
    ensure_can_change_role(viewer, profile_id)
    role = _role(new_role)
    store.get("profiles", profile_id)
    with store.atomic():
        store.delete("user_roles", {"profile_id": profile_id})
        store.insert("user_roles", {"profile_id": profile_id, "role": role})
    logger.info(f"[roles] profile={profile_id} -> {role.value} by {viewer.profile_id}")
    return role


# ---------------------------
# Operators screen
# ---------------------------
def profile_names() -> dict:
    return {p.id: p.name for p in store.select("profiles")}


def list_operators(viewer: Viewer, search: str | None = None, role: str | None = None) -> dict:
    """Profiles with their effective role; search hits name or email."""
    ensure_admin(viewer)
    profiles = store.select("profiles", order_by=[("name", "asc")])
    roles: dict[str, list] = {}
    for r in store.select("user_roles"):
        roles.setdefault(r.profile_id, []).append(r.role)

    rows = []
    for p in profiles:
        eff = effective_role(roles.get(p.id, ()))
        rows.append({
            "id": p.id,
            "name": p.name,
            "email": p.email,
            "role": eff.value,
            "role_label": ROLE_LABELS[eff],
            "created_at": p.created_at.isoformat() if p.created_at else None,
            **operator_row_actions(viewer, p.id),
        })

    counts = {
        "total": len(rows),
        "admins": sum(1 for r in rows if r["role"] == AppRole.admin.value),
        "operators": sum(1 for r in rows if r["role"] == AppRole.operator.value),
    }

    term = (search or "").strip().casefold()
    if term:
        rows = [
            r for r in rows
            if term in (r["name"] or "").casefold() or term in (r["email"] or "").casefold()
        ]
    if role and role != "all":
        rows = [r for r in rows if r["role"] == _role(role).value]
    return {"operators": rows, "counts": counts}


def bootstrap_admin(email: str, password: str, name: str) -> User:
    """First administrator, from the CLI (no viewer exists yet)."""
    ctx = _identity_saga(
        "create-admin", name, AppRole.admin,
        lambda: provider.admin_create_user(email, password, email_confirm=True),
    )
    return ctx["identity"]
