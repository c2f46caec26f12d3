# betdesk/services/accounts.py
# ------------------------------------------------------------
# Betting accounts (a login at a bookmaker, owned by one operator).
# limitation_date is only kept while the status is "limitada".
# ------------------------------------------------------------
from __future__ import annotations

import logging
from datetime import date

from ..errors import ValidationError
from ..models import ACCOUNT_STATUS_LABELS, Account, AccountStatus
from ..policy import Viewer, ensure_can_mutate, owner_for_new_row
from ..store import store
from ..utils.format import brl
from ..utils.helpers import clean, parse_date, parse_decimal, parse_enum, text

logger = logging.getLogger(__name__)

BALANCE_FIELDS = ("current_balance", "pending_balance", "total_volume", "initial_month_balance")


def list_accounts(viewer: Viewer, status: AccountStatus | None = None) -> list[Account]:
    where = {"current_status": status} if status else None
    return store.select(
        "accounts", where=where,
        order_by=[("current_status", "asc"), ("login_nick", "asc")],
        viewer=viewer,
    )


def _apply_form(acc: Account, data: dict, creating: bool) -> None:
    def given(name):
        return creating or name in data

    if given("bookmaker_id"):
        bookmaker_id = text(data, "bookmaker_id")
        if not bookmaker_id:
            raise ValidationError("Casa de apostas é obrigatória")
        store.get("bookmakers", bookmaker_id)
        acc.bookmaker_id = bookmaker_id
    if given("login_nick"):
        nick = text(data, "login_nick")
        if not nick:
            raise ValidationError("Login é obrigatório")
        acc.login_nick = nick
    if given("purchase_price"):
        price = parse_decimal(data.get("purchase_price"), "Preço de compra", required=False)
        acc.purchase_price = price or 0
    if given("acquisition_date"):
        acc.acquisition_date = parse_date(data.get("acquisition_date"), "Data de aquisição", default=date.today())
    if given("vendor_name"):
        acc.vendor_name = clean(data.get("vendor_name"))
    if given("notes"):
        acc.notes = clean(data.get("notes"))
    for name in BALANCE_FIELDS:
        if name in data:
            setattr(acc, name, parse_decimal(data.get(name), name, required=False) or 0)

    if given("current_status") or "limitation_date" in data:
        status = parse_enum(
            AccountStatus, data.get("current_status"), "Status",
            default=acc.current_status or AccountStatus.em_uso,
        )
        limitation = parse_date(data.get("limitation_date"), "Data de limitação", required=False)
        if limitation is None and status == AccountStatus.limitada:
            limitation = acc.limitation_date or date.today()
        acc.set_status(status, limitation)


def create_account(viewer: Viewer, data: dict) -> Account:
    acc = Account(operator_id=owner_for_new_row(viewer, text(data, "operator_id")))
    _apply_form(acc, data, creating=True)
    store.save(acc)
    logger.info(f"[accounts] Created account={acc.id} operator={acc.operator_id} status={acc.current_status.value}")
    return acc


def update_account(viewer: Viewer, account_id: str, data: dict) -> Account:
    acc = store.get("accounts", account_id, viewer=viewer)
    ensure_can_mutate(acc, viewer)
    _apply_form(acc, data, creating=False)
    store.save(acc)
    logger.info(f"[accounts] Updated account={acc.id} status={acc.current_status.value}")
    return acc


def delete_account(viewer: Viewer, account_id: str) -> None:
    acc = store.get("accounts", account_id, viewer=viewer)
    ensure_can_mutate(acc, viewer)
    if store.select("bets", where={"account_id": acc.id}, limit=1):
        raise ValidationError("Conta possui apostas registradas e não pode ser excluída")
    store.delete("accounts", {"id": acc.id})
    logger.info(f"[accounts] Deleted account={account_id}")


def account_to_dict(a: Account, operator_names: dict | None = None) -> dict:
    return {
        "id": a.id,
        "bookmaker_id": a.bookmaker_id,
        "bookmaker": a.bookmaker.name if a.bookmaker else None,
        "operator_id": a.operator_id,
        "operator": (operator_names or {}).get(a.operator_id),
        "login_nick": a.login_nick,
        "current_status": a.current_status.value,
        "status_label": ACCOUNT_STATUS_LABELS[a.current_status],
        "purchase_price": float(a.purchase_price or 0),
        "acquisition_date": a.acquisition_date.isoformat() if a.acquisition_date else None,
        "limitation_date": a.limitation_date.isoformat() if a.limitation_date else None,
        "vendor_name": a.vendor_name,
        "current_balance": float(a.current_balance or 0),
        "current_balance_fmt": brl(a.current_balance),
        "pending_balance": float(a.pending_balance or 0),
        "total_deposited": float(a.total_deposited or 0),
        "total_volume": float(a.total_volume or 0),
        "initial_month_balance": float(a.initial_month_balance or 0),
        "notes": a.notes,
    }
