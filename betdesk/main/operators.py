# betdesk/main/operators.py
# ---------------------------------
# Operator management (admin only): listing with search / role filter,
# role reassignment, profile deletion and admin user creation.

from flask import jsonify, request
from flask_login import login_required

from ..policy import admin_required, current_viewer
from ..services import users as user_service
from ..utils.helpers import payload, text
from . import main


@main.route("/operators", methods=["GET"], endpoint="operators")
@login_required
@admin_required
def operators():
    data = user_service.list_operators(
        current_viewer(),
        search=request.args.get("q"),
        role=request.args.get("role"),
    )
    return jsonify(data)


@main.route("/operators/<profile_id>/role", methods=["POST"], endpoint="operator_role_update")
@login_required
@admin_required
def operator_role_update(profile_id):
    role = user_service.reassign_role(current_viewer(), profile_id, text(payload(), "role"))
    return jsonify({"ok": True, "message": "Permissão atualizada!", "role": role.value})


@main.route("/operators/<profile_id>/delete", methods=["POST"], endpoint="operator_delete")
@login_required
@admin_required
def operator_delete(profile_id):
    user_service.delete_user(current_viewer(), profile_id)
    return jsonify({"ok": True, "message": "Operador excluído!"})


@main.route("/users/new", methods=["POST"], endpoint="user_create")
@login_required
@admin_required
def user_create():
    user = user_service.create_user(current_viewer(), payload())
    return jsonify({"ok": True, "message": "Usuário criado com sucesso!", "user": user}), 201
