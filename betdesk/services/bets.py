# betdesk/services/bets.py
# ------------------------------------------------------------
# Bet register: validate -> derive profit -> write.
#
# - profit is recomputed from (stake, odds, result) on every write
# - bookmaker_id is copied from the chosen account
# - new bets only go on accounts that are "em_uso"
# ------------------------------------------------------------
from __future__ import annotations

import logging
from datetime import date
from decimal import ROUND_HALF_UP, Decimal

from flask import current_app

from ..errors import ValidationError
from ..models import (
    AccountStatus, Bet, BetResult, MarketTime, BET_RESULT_LABELS,
    MARKET_TIME_LABELS, SOFTWARE_OPTIONS, SPORT_OPTIONS,
)
from ..policy import Viewer, ensure_can_mutate, owner_for_new_row
from ..store import store
from ..utils.format import brl
from ..utils.helpers import CENT, clean, parse_date, parse_decimal, parse_enum, text
from .profit import calculate_profit

logger = logging.getLogger(__name__)

ODDS_PLACES = Decimal("0.001")


def parse_bet_form(data: dict, *, partial_of: Bet | None = None) -> dict:
    """Validated bet fields. With `partial_of`, missing fields keep the stored value."""

    def pick(name):
        value = data.get(name)
        if partial_of is not None and (value is None or str(value).strip() == ""):
            return getattr(partial_of, name)
        return value

    stake = parse_decimal(pick("stake"), "Stake")
    if stake <= 0:
        raise ValidationError("Stake deve ser maior que zero")
    odds = parse_decimal(pick("odds"), "Odd", places=ODDS_PLACES)
    if odds < 1:
        raise ValidationError("Odd deve ser maior ou igual a 1")

    fields = {
        "date": parse_date(pick("date"), "Data", default=date.today()),
        "account_id": clean(pick("account_id")),
        "stake": stake,
        "odds": odds,
        "result": parse_enum(BetResult, pick("result"), "Resultado"),
        "market_time": parse_enum(MarketTime, pick("market_time"), "Tempo", default=MarketTime.jogo_todo),
        "sport": clean(pick("sport")) or "Futebol",
        "software_tool": clean(pick("software_tool")) or "Outros",
        "expected_value": parse_decimal(pick("expected_value"), "EV", required=False),
        "teams": clean(pick("teams")),
        "bet_description": clean(pick("bet_description")),
    }
    if not fields["account_id"]:
        raise ValidationError("Conta é obrigatória")
    return fields


def _with_profit(fields: dict) -> dict:
    # stored at cents; half results on odd cents round half up
    profit = calculate_profit(fields["stake"], fields["odds"], fields["result"])
    fields["profit"] = profit.quantize(CENT, rounding=ROUND_HALF_UP)
    return fields


# ---------------------------
# Reads
# ---------------------------
def list_bets(viewer: Viewer, *, start: date | None = None, end: date | None = None,
              limit: int | None = None) -> list[Bet]:
    """Newest first, scoped to the viewer; `limit` defaults to BET_LIST_LIMIT."""
    gte = {"date": start} if start else None
    lte = {"date": end} if end else None
    if limit is None:
        limit = current_app.config["BET_LIST_LIMIT"]
    return store.select(
        "bets", gte=gte, lte=lte,
        order_by=[("date", "desc"), ("created_at", "desc")],
        limit=limit, viewer=viewer,
    )


def period_bets(viewer: Viewer, start: date | None = None, end: date | None = None) -> list[Bet]:
    """Every visible bet in the window (no row limit), for aggregates."""
    gte = {"date": start} if start else None
    lte = {"date": end} if end else None
    return store.select("bets", gte=gte, lte=lte, viewer=viewer)


def bet_options(viewer: Viewer) -> dict:
    """Choices for the bet form."""
    accounts = store.select(
        "accounts", where={"current_status": AccountStatus.em_uso},
        order_by=[("login_nick", "asc")], viewer=viewer,
    )
    tools = store.select("software_tools", where={"active": True}, order_by=[("name", "asc")])
    return {
        "accounts": [
            {
                "id": a.id,
                "login_nick": a.login_nick,
                "bookmaker_id": a.bookmaker_id,
                "bookmaker": a.bookmaker.name if a.bookmaker else None,
            }
            for a in accounts
        ],
        "results": [{"value": r.value, "label": BET_RESULT_LABELS[r]} for r in BetResult],
        "market_times": [{"value": m.value, "label": MARKET_TIME_LABELS[m]} for m in MarketTime],
        "sports": SPORT_OPTIONS,
        "software_tools": [t.name for t in tools] or SOFTWARE_OPTIONS,
    }


# ---------------------------
# Writes
# ---------------------------
def _account_in_use(viewer: Viewer, account_id: str):
    account = store.get("accounts", account_id, viewer=viewer)
    if account.current_status != AccountStatus.em_uso:
        raise ValidationError("Apostas só podem ser registradas em contas em uso")
    return account


def create_bet(viewer: Viewer, data: dict) -> Bet:
    fields = _with_profit(parse_bet_form(data))
    operator_id = owner_for_new_row(viewer, text(data, "operator_id"))

    account = _account_in_use(viewer, fields["account_id"])

    bet = store.insert("bets", {
        **fields,
        "operator_id": operator_id,
        "bookmaker_id": account.bookmaker_id,
    })
    logger.info(f"[bets] Created bet={bet.id} operator={operator_id} result={bet.result.value} profit={bet.profit}")
    return bet


def update_bet(viewer: Viewer, bet_id: str, data: dict) -> Bet:
    bet = store.get("bets", bet_id, viewer=viewer)
    ensure_can_mutate(bet, viewer)
    fields = _with_profit(parse_bet_form(data, partial_of=bet))

    if fields["account_id"] != bet.account_id:
        account = _account_in_use(viewer, fields["account_id"])
        fields["bookmaker_id"] = account.bookmaker_id

    for name, value in fields.items():
        setattr(bet, name, value)
    store.save(bet)
    logger.info(f"[bets] Updated bet={bet.id} result={bet.result.value} profit={bet.profit}")
    return bet


def delete_bet(viewer: Viewer, bet_id: str) -> None:
    bet = store.get("bets", bet_id, viewer=viewer)
    ensure_can_mutate(bet, viewer)
    store.delete("bets", {"id": bet.id})
    logger.info(f"[bets] Deleted bet={bet_id}")


def bet_to_dict(b: Bet) -> dict:
    return {
        "id": b.id,
        "date": b.date.isoformat(),
        "operator_id": b.operator_id,
        "account_id": b.account_id,
        "account": b.account.login_nick if b.account else None,
        "bookmaker_id": b.bookmaker_id,
        "bookmaker": b.bookmaker.name if b.bookmaker else None,
        "stake": float(b.stake),
        "odds": float(b.odds),
        "result": b.result.value,
        "result_label": BET_RESULT_LABELS[b.result],
        "profit": float(b.profit),
        "profit_fmt": brl(b.profit),
        "market_time": b.market_time.value,
        "sport": b.sport,
        "software_tool": b.software_tool,
        "expected_value": float(b.expected_value) if b.expected_value is not None else None,
        "teams": b.teams,
        "bet_description": b.bet_description,
        "created_at": b.created_at.isoformat() if b.created_at else None,
    }
