# betdesk/main/catalogs.py
# ---------------------------------
# Bookmakers ("Casas") and software tools (admin only).

from flask import jsonify
from flask_login import login_required

from ..policy import admin_required
from ..services import catalogs as catalog_service
from ..utils.helpers import payload
from . import main


def _list(table):
    return jsonify({"items": [catalog_service.entry_to_dict(o) for o in catalog_service.list_catalog(table)]})


def _create(table):
    obj = catalog_service.create_entry(table, payload())
    return jsonify({"ok": True, "item": catalog_service.entry_to_dict(obj)}), 201


def _update(table, entry_id):
    obj = catalog_service.update_entry(table, entry_id, payload())
    return jsonify({"ok": True, "item": catalog_service.entry_to_dict(obj)})


def _delete(table, entry_id):
    catalog_service.delete_entry(table, entry_id)
    return jsonify({"ok": True})


# ---------------------------
# Bookmakers
# ---------------------------
@main.route("/bookmakers", methods=["GET"], endpoint="bookmakers")
@login_required
@admin_required
def bookmakers():
    return _list("bookmakers")


@main.route("/bookmakers", methods=["POST"], endpoint="bookmaker_create")
@login_required
@admin_required
def bookmaker_create():
    return _create("bookmakers")


@main.route("/bookmakers/<entry_id>/update", methods=["POST"], endpoint="bookmaker_update")
@login_required
@admin_required
def bookmaker_update(entry_id):
    return _update("bookmakers", entry_id)


@main.route("/bookmakers/<entry_id>/delete", methods=["POST"], endpoint="bookmaker_delete")
@login_required
@admin_required
def bookmaker_delete(entry_id):
    return _delete("bookmakers", entry_id)


# ---------------------------
# Software tools
# ---------------------------
@main.route("/software-tools", methods=["GET"], endpoint="software_tools")
@login_required
@admin_required
def software_tools():
    return _list("software_tools")


@main.route("/software-tools", methods=["POST"], endpoint="software_tool_create")
@login_required
@admin_required
def software_tool_create():
    return _create("software_tools")


@main.route("/software-tools/<entry_id>/update", methods=["POST"], endpoint="software_tool_update")
@login_required
@admin_required
def software_tool_update(entry_id):
    return _update("software_tools", entry_id)


@main.route("/software-tools/<entry_id>/delete", methods=["POST"], endpoint="software_tool_delete")
@login_required
@admin_required
def software_tool_delete(entry_id):
    return _delete("software_tools", entry_id)
