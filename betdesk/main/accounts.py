# betdesk/main/accounts.py
# ---------------------------------
# Create / Update / Delete betting accounts. Operators only ever see
# and touch their own; admins see every operator's.

from flask import jsonify, request
from flask_login import login_required

from ..models import ACCOUNT_STATUS_LABELS, AccountStatus
from ..policy import current_viewer
from ..services import accounts as account_service
from ..services.stats import summarize_accounts
from ..services.users import profile_names
from ..utils.format import brl
from ..utils.helpers import parse_enum, payload
from . import main


@main.route("/accounts", methods=["GET"], endpoint="accounts")
@login_required
def accounts():
    viewer = current_viewer()
    status = None
    if request.args.get("status"):
        status = parse_enum(AccountStatus, request.args.get("status"), "Status")
    rows = account_service.list_accounts(viewer, status)
    names = profile_names() if viewer.is_admin else {viewer.profile_id: getattr(viewer.profile, "name", None)}

    grouped = {s.value: [] for s in AccountStatus}
    for a in rows:
        grouped[a.current_status.value].append(account_service.account_to_dict(a, names))

    summary = summarize_accounts(rows)
    return jsonify({
        "groups": [
            {"status": s.value, "label": ACCOUNT_STATUS_LABELS[s], "accounts": grouped[s.value]}
            for s in AccountStatus
            if grouped[s.value]
        ],
        "summary": {
            **summary,
            "total_balance": float(summary["total_balance"]),
            "total_deposited": float(summary["total_deposited"]),
            "total_balance_fmt": brl(summary["total_balance"]),
        },
    })


@main.route("/accounts", methods=["POST"], endpoint="account_create")
@login_required
def account_create():
    acc = account_service.create_account(current_viewer(), payload())
    return jsonify({"ok": True, "message": "Conta criada com sucesso!", "account": account_service.account_to_dict(acc)}), 201


@main.route("/accounts/<account_id>/update", methods=["POST"], endpoint="account_update")
@login_required
def account_update(account_id):
    acc = account_service.update_account(current_viewer(), account_id, payload())
    return jsonify({"ok": True, "message": "Conta atualizada!", "account": account_service.account_to_dict(acc)})


@main.route("/accounts/<account_id>/delete", methods=["POST"], endpoint="account_delete")
@login_required
def account_delete(account_id):
    account_service.delete_account(current_viewer(), account_id)
    return jsonify({"ok": True})
