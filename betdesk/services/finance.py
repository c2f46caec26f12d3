# betdesk/services/finance.py
# ------------------------------------------------------------
# Company ledger entries (transactions) and manual bank balances.
# Admin-only; callers gate access before reaching here.
# ------------------------------------------------------------
from __future__ import annotations

import logging
from datetime import date
from decimal import Decimal

from flask import current_app

from ..errors import ValidationError
from ..models import BankBalance, Transaction, TransactionType, TRANSACTION_TYPE_LABELS
from ..store import store
from ..utils.format import brl
from ..utils.helpers import clean, parse_bool, parse_date, parse_decimal, parse_enum, text
from .dre import month_range

logger = logging.getLogger(__name__)

RECURRING_CATEGORY = "recorrente"


def list_transactions(year: int | None = None, month: int | None = None) -> list[Transaction]:
    gte = lte = None
    if year and month:
        start, end = month_range(year, month)
        gte, lte = {"date": start}, {"date": end}
    return store.select(
        "transactions", gte=gte, lte=lte,
        order_by=[("date", "desc"), ("created_at", "desc")],
    )


def create_transaction(data: dict) -> Transaction:
    txn_type = parse_enum(TransactionType, data.get("type"), "Tipo")
    amount = parse_decimal(data.get("amount"), "Valor")
    if amount == 0:
        raise ValidationError("Valor não pode ser zero")
    category = clean(data.get("category"))

    # Operating costs filed under the "recorrente" category are fixed costs
    if "is_recurring" in data:
        recurring = parse_bool(data.get("is_recurring"))
    else:
        recurring = (
            txn_type == TransactionType.custo_operacional
            and (category or "").casefold() == RECURRING_CATEGORY
        )

    txn = store.insert("transactions", {
        "date": parse_date(data.get("date"), "Data", default=date.today()),
        "type": txn_type,
        "category": category,
        "amount": amount,
        "description": clean(data.get("description")),
        "bank_name": text(data, "bank_name") or current_app.config["DEFAULT_BANK_NAME"],
        "is_recurring": recurring,
        "related_operator_id": text(data, "related_operator_id"),
        "related_account_id": text(data, "related_account_id"),
    })
    logger.info(f"[finance] Transaction {txn.type.value} amount={txn.amount} recurring={txn.is_recurring}")
    return txn


def transaction_to_dict(t: Transaction) -> dict:
    return {
        "id": t.id,
        "date": t.date.isoformat(),
        "type": t.type.value,
        "type_label": TRANSACTION_TYPE_LABELS[t.type],
        "category": t.category,
        "amount": float(t.amount),
        "amount_fmt": brl(t.amount),
        "description": t.description,
        "bank_name": t.bank_name,
        "is_recurring": bool(t.is_recurring),
        "related_operator_id": t.related_operator_id,
        "related_account_id": t.related_account_id,
    }


# ---------------------------
# Bank balances
# ---------------------------
def list_banks() -> list[BankBalance]:
    return store.select("bank_balances", order_by=[("bank_name", "asc")])


def create_bank(data: dict) -> BankBalance:
    name = text(data, "bank_name")
    if not name:
        raise ValidationError("Nome do banco é obrigatório")
    if store.select("bank_balances", where={"bank_name": name}, limit=1):
        raise ValidationError("Banco já cadastrado")
    balance = parse_decimal(data.get("current_balance"), "Saldo", required=False) or Decimal(0)
    bank = store.insert("bank_balances", {"bank_name": name, "current_balance": balance})
    logger.info(f"[finance] Bank {name} created balance={balance}")
    return bank


def update_bank_balance(bank_id: str, data: dict) -> BankBalance:
    bank = store.get("bank_balances", bank_id)
    bank.current_balance = parse_decimal(data.get("current_balance"), "Saldo")
    store.save(bank)
    logger.info(f"[finance] Bank {bank.bank_name} balance set to {bank.current_balance}")
    return bank


def banks_total(banks) -> Decimal:
    return sum((Decimal(b.current_balance or 0) for b in banks), Decimal(0))


def bank_to_dict(b: BankBalance) -> dict:
    return {
        "id": b.id,
        "bank_name": b.bank_name,
        "current_balance": float(b.current_balance or 0),
        "current_balance_fmt": brl(b.current_balance),
        "updated_at": b.updated_at.isoformat() if b.updated_at else None,
    }
