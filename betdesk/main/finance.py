# betdesk/main/finance.py
# ---------------------------------
# Company finances (admin only): transactions, DRE, Caixa, bank balances.
# Month is picked with ?month=YYYY-MM (defaults to the current month).

from flask import jsonify, request
from flask_login import login_required

from ..models import TRANSACTION_TYPE_LABELS, TransactionType
from ..policy import admin_required
from ..services import finance as finance_service
from ..services.dre import cash_flow_for_month, dre_for_month, parse_month_key, recent_month_keys
from ..utils.format import brl
from ..utils.helpers import payload
from . import main


def _selected_month():
    year, month = parse_month_key(request.args.get("month"))
    return year, month, f"{year:04d}-{month:02d}"


def _fmt_fields(data: dict) -> dict:
    return {**data, **{f"{k}_fmt": brl(v) for k, v in data.items()}}


# ---------------------------
# Transactions
# ---------------------------
@main.route("/finance/transactions", methods=["GET"], endpoint="finance_transactions")
@login_required
@admin_required
def finance_transactions():
    year, month, key = _selected_month()
    rows = finance_service.list_transactions(year, month)
    return jsonify({
        "month": key,
        "months": recent_month_keys(),
        "transactions": [finance_service.transaction_to_dict(t) for t in rows],
        "types": [{"value": t.value, "label": TRANSACTION_TYPE_LABELS[t]} for t in TransactionType],
        "banks": [b.bank_name for b in finance_service.list_banks()],
    })


@main.route("/finance/transactions", methods=["POST"], endpoint="finance_transaction_create")
@login_required
@admin_required
def finance_transaction_create():
    txn = finance_service.create_transaction(payload())
    return jsonify({"ok": True, "message": "Transação registrada!", "transaction": finance_service.transaction_to_dict(txn)}), 201


# ---------------------------
# Statements
# ---------------------------
@main.route("/finance/dre", methods=["GET"], endpoint="finance_dre")
@login_required
@admin_required
def finance_dre():
    year, month, key = _selected_month()
    statement = dre_for_month(year, month).to_dict()
    return jsonify({"month": key, "dre": _fmt_fields(statement)})


@main.route("/finance/cash-flow", methods=["GET"], endpoint="finance_cash_flow")
@login_required
@admin_required
def finance_cash_flow():
    year, month, key = _selected_month()
    statement = cash_flow_for_month(year, month).to_dict()
    return jsonify({"month": key, "cash_flow": _fmt_fields(statement)})


# ---------------------------
# Bank balances
# ---------------------------
@main.route("/finance/banks", methods=["GET"], endpoint="finance_banks")
@login_required
@admin_required
def finance_banks():
    banks = finance_service.list_banks()
    total = finance_service.banks_total(banks)
    return jsonify({
        "banks": [finance_service.bank_to_dict(b) for b in banks],
        "total": float(total),
        "total_fmt": brl(total),
    })


@main.route("/finance/banks", methods=["POST"], endpoint="finance_bank_create")
@login_required
@admin_required
def finance_bank_create():
    bank = finance_service.create_bank(payload())
    return jsonify({"ok": True, "bank": finance_service.bank_to_dict(bank)}), 201


@main.route("/finance/banks/<bank_id>/update", methods=["POST"], endpoint="finance_bank_update")
@login_required
@admin_required
def finance_bank_update(bank_id):
    bank = finance_service.update_bank_balance(bank_id, payload())
    return jsonify({"ok": True, "bank": finance_service.bank_to_dict(bank)})
