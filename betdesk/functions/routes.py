# betdesk/functions/routes.py
# ------------------------------------------------------------
# POST /functions/create-user  {email, password, name, role}
# POST /functions/delete-user  {profileId}
#
# The caller is authenticated from the Authorization header (not the
# cookie) and the admin role is re-checked here, independent of the
# UI gating. Responses are {"success": ...} or {"error": ...}.
# ------------------------------------------------------------
import logging

from flask import jsonify, request

from ..auth.routes import bearer_token
from ..errors import BetdeskError
from ..identity import provider
from ..policy import viewer_for
from ..services import users as user_service
from . import functions

logger = logging.getLogger(__name__)


def _error(message: str, status: int):
    return jsonify({"error": message}), status


def _json_body() -> dict:
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


@functions.route("/create-user", methods=["POST"])
def create_user():
    if not request.headers.get("Authorization"):
        return _error("Missing authorization header", 401)
    user = provider.get_user(bearer_token())
    if user is None:
        return _error("Unauthorized", 401)
    viewer = viewer_for(user)
    if viewer.profile is None:
        return _error("Profile not found", 403)
    if not viewer.is_admin:
        return _error("Only admins can create users", 403)

    try:
        created = user_service.create_user(viewer, _json_body())
    except BetdeskError as e:
        return _error(e.message, e.status_code)
    return jsonify({"success": True, "user": created})


@functions.route("/delete-user", methods=["POST"])
def delete_user():
    if not request.headers.get("Authorization"):
        return _error("No authorization header", 401)
    user = provider.get_user(bearer_token())
    if user is None:
        return _error("Invalid token", 401)
    viewer = viewer_for(user)
    if viewer.profile is None:
        return _error("Profile not found", 404)
    if not viewer.is_admin:
        return _error("Only admins can delete users", 403)

    profile_id = _json_body().get("profileId")
    if not profile_id:
        return _error("Profile ID is required", 400)
    if profile_id == viewer.profile_id:
        logger.warning(f"[users] profile={viewer.profile_id} tried to delete itself")
        return _error("You cannot delete your own account", 400)

    try:
        user_service.delete_user(viewer, profile_id)
    except BetdeskError as e:
        return _error(e.message, e.status_code)
    return jsonify({"success": True})
