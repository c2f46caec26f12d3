# betdesk/services/deposits.py
# ------------------------------------------------------------
# Deposits into betting accounts.
# The deposit row and the account balance bump are written in one
# transaction; the account row is locked while it is updated.
# ------------------------------------------------------------
from __future__ import annotations

import logging
from datetime import date
from decimal import Decimal

from flask import current_app

from ..errors import ValidationError
from ..models import AccountStatus, Deposit
from ..policy import Viewer
from ..store import store
from ..utils.format import brl
from ..utils.helpers import clean, parse_date, parse_decimal, text

logger = logging.getLogger(__name__)


def list_deposits(viewer: Viewer, limit: int | None = None) -> list[Deposit]:
    if limit is None:
        limit = current_app.config["DEPOSIT_LIST_LIMIT"]
    return store.select(
        "deposits",
        order_by=[("date", "desc"), ("created_at", "desc")],
        limit=limit, viewer=viewer,
    )


def deposit_accounts(viewer: Viewer) -> list:
    """Accounts a deposit can target: visible and in use."""
    return store.select(
        "accounts", where={"current_status": AccountStatus.em_uso},
        order_by=[("login_nick", "asc")], viewer=viewer,
    )


def create_deposit(viewer: Viewer, data: dict) -> Deposit:
    if viewer.profile_id is None:
        raise ValidationError("Usuário não encontrado")
    account_id = text(data, "account_id")
    if not account_id:
        raise ValidationError("Conta é obrigatória")
    amount = parse_decimal(data.get("amount"), "Valor")
    if amount <= 0:
        raise ValidationError("Valor inválido")
    when = parse_date(data.get("date"), "Data", default=date.today())

    with store.atomic():
        account = store.get("accounts", account_id, viewer=viewer, for_update=True)
        if account.current_status != AccountStatus.em_uso:
            raise ValidationError("Depósitos só podem ser feitos em contas em uso")
        deposit = store.insert("deposits", {
            "date": when,
            "account_id": account.id,
            "amount": amount,
            "description": clean(data.get("description")),
            "created_by": viewer.profile_id,
        })
        account.current_balance = Decimal(account.current_balance or 0) + amount
        account.total_deposited = Decimal(account.total_deposited or 0) + amount
        store.save(account)

    logger.info(f"[deposit] account={account.id} amount={amount} by={viewer.profile_id}")
    return deposit


def deposits_total(deposits) -> Decimal:
    return sum((Decimal(d.amount) for d in deposits), Decimal(0))


def deposit_to_dict(d: Deposit) -> dict:
    acc = d.account
    return {
        "id": d.id,
        "date": d.date.isoformat(),
        "account_id": d.account_id,
        "account": acc.login_nick if acc else None,
        "bookmaker": acc.bookmaker.name if acc and acc.bookmaker else None,
        "amount": float(d.amount),
        "amount_fmt": brl(d.amount),
        "description": d.description,
        "created_by": d.created_by,
    }
