# betdesk/main/deposits.py
# ---------------------------------
# Deposits into betting accounts (operators see the ones they made).

from flask import jsonify
from flask_login import login_required

from ..policy import current_viewer
from ..services import deposits as deposit_service
from ..utils.format import brl
from ..utils.helpers import payload
from . import main


@main.route("/deposits", methods=["GET"], endpoint="deposits")
@login_required
def deposits():
    viewer = current_viewer()
    rows = deposit_service.list_deposits(viewer)
    total = deposit_service.deposits_total(rows)
    return jsonify({
        "deposits": [deposit_service.deposit_to_dict(d) for d in rows],
        "accounts": [
            {"id": a.id, "login_nick": a.login_nick, "bookmaker": a.bookmaker.name if a.bookmaker else None}
            for a in deposit_service.deposit_accounts(viewer)
        ],
        "total": float(total),
        "total_fmt": brl(total),
    })


@main.route("/deposits", methods=["POST"], endpoint="deposit_create")
@login_required
def deposit_create():
    dep = deposit_service.create_deposit(current_viewer(), payload())
    return jsonify({"ok": True, "message": "Depósito registrado!", "deposit": deposit_service.deposit_to_dict(dep)}), 201
