# betdesk/services/stats.py
# ------------------------------------------------------------
# Pure reductions over bet records (model rows or plain dicts):
#   - compute_stats: volume, profit, count, win rate, EV, ROI
#   - breakdowns by software / sport / bookmaker / operator
#   - dashboard carousel sections and display ordering
#
# Pending bets: compute_stats counts them (profit 0, stake in volume,
# never a win). Callers that want settled-only figures pass
# include_pending=False.
# ------------------------------------------------------------
from __future__ import annotations

from collections import OrderedDict
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Callable, Iterable, Mapping

from ..models import AccountStatus, BetResult

ZERO = Decimal(0)
HUNDRED = Decimal(100)

OTHERS_LABEL = "Outros"
UNKNOWN_LABEL = "Desconhecido"
ALL_SECTION_LABEL = "Geral"

WIN_RESULTS = frozenset({BetResult.green, BetResult.meio_green})


def _field(rec, name: str, default=None):
    if isinstance(rec, Mapping):
        return rec.get(name, default)
    return getattr(rec, name, default)


def _money(value) -> Decimal:
    if value is None or value == "":
        return ZERO
    return value if isinstance(value, Decimal) else Decimal(str(value))


def _result(rec) -> BetResult:
    return BetResult(_field(rec, "result"))


@dataclass
class BetStats:
    total_volume: Decimal = ZERO
    total_profit: Decimal = ZERO
    total_bets: int = 0
    win_rate: Decimal = ZERO
    expected_value: Decimal = ZERO
    roi: Decimal = ZERO

    def to_dict(self) -> dict:
        return {
            "total_volume": float(self.total_volume),
            "total_profit": float(self.total_profit),
            "total_bets": self.total_bets,
            "win_rate": float(self.win_rate),
            "expected_value": float(self.expected_value),
            "roi": float(self.roi),
        }


@dataclass
class GroupStats:
    key: str | None
    label: str
    stats: BetStats

    def to_dict(self) -> dict:
        return {"key": self.key, "label": self.label, **self.stats.to_dict()}


def compute_stats(bets: Iterable, include_pending: bool = True) -> BetStats:
    volume = ZERO
    profit = ZERO
    ev = ZERO
    count = 0
    wins = 0
    for b in bets:
        result = _result(b)
        if result == BetResult.pendente and not include_pending:
            continue
        count += 1
        volume += _money(_field(b, "stake"))
        profit += _money(_field(b, "profit"))
        ev += _money(_field(b, "expected_value"))
        if result in WIN_RESULTS:
            wins += 1

    win_rate = (Decimal(wins) / Decimal(count)) * HUNDRED if count else ZERO
    roi = (profit / volume) * HUNDRED if volume else ZERO
    return BetStats(
        total_volume=volume,
        total_profit=profit,
        total_bets=count,
        win_rate=win_rate,
        expected_value=ev,
        roi=roi,
    )


# ---------------------------
# Breakdowns
# ---------------------------
def _group(bets: Iterable, key_fn: Callable) -> "OrderedDict[str | None, list]":
    groups: "OrderedDict[str | None, list]" = OrderedDict()
    for b in bets:
        groups.setdefault(key_fn(b), []).append(b)
    return groups


def _by_label(items: list[GroupStats]) -> list[GroupStats]:
    return sorted(items, key=lambda g: (g.label.casefold(), g.label))


def _by_profit_desc(items: list[GroupStats]) -> list[GroupStats]:
    # stable: ties keep label order
    return sorted(_by_label(items), key=lambda g: g.stats.total_profit, reverse=True)


def _text_key(name: str) -> Callable:
    def key(b):
        value = (_field(b, name) or "").strip()
        return value or OTHERS_LABEL
    return key


software_label = _text_key("software_tool")


def breakdown_by_software(bets: Iterable) -> list[GroupStats]:
    """Per software tool; blank tools fall into "Outros". Alphabetical."""
    groups = _group(bets, software_label)
    return _by_label([GroupStats(k, k, compute_stats(v)) for k, v in groups.items()])


def breakdown_by_sport(bets: Iterable) -> list[GroupStats]:
    groups = _group(bets, _text_key("sport"))
    return _by_profit_desc([GroupStats(k, k, compute_stats(v)) for k, v in groups.items()])


def breakdown_by_operator(bets: Iterable, names: Mapping[str, str] | None = None) -> list[GroupStats]:
    """Per operator_id, labelled from `names`; best profit first."""
    names = names or {}
    groups = _group(bets, lambda b: _field(b, "operator_id"))
    return _by_profit_desc([
        GroupStats(k, names.get(k) or UNKNOWN_LABEL, compute_stats(v))
        for k, v in groups.items()
    ])


def breakdown_by_bookmaker(bets: Iterable, names: Mapping[str, str] | None = None) -> list[GroupStats]:
    names = names or {}
    groups = _group(bets, lambda b: _field(b, "bookmaker_id"))
    return _by_profit_desc([
        GroupStats(k, names.get(k) or UNKNOWN_LABEL, compute_stats(v))
        for k, v in groups.items()
    ])


# ---------------------------
# Dashboard helpers
# ---------------------------
def positive_units(bets: Iterable) -> Decimal:
    """Total profit expressed in average-stake units."""
    bets = list(bets)
    if not bets:
        return ZERO
    total_stake = sum((_money(_field(b, "stake")) for b in bets), ZERO)
    avg_stake = total_stake / Decimal(len(bets))
    if not avg_stake:
        return ZERO
    total_profit = sum((_money(_field(b, "profit")) for b in bets), ZERO)
    return total_profit / avg_stake


def dashboard_sections(bets: Iterable) -> list[GroupStats]:
    """The "Geral" section, then one section per software tool (alphabetical)."""
    bets = list(bets)
    sections = [GroupStats(None, ALL_SECTION_LABEL, compute_stats(bets))]
    if bets:
        sections.extend(breakdown_by_software(bets))
    return sections


def _sortable_date(value) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, str):
        return date.fromisoformat(value[:10])
    return value or date.min


def _sortable_datetime(value) -> datetime:
    if isinstance(value, datetime):
        return value.replace(tzinfo=None)
    if isinstance(value, str):
        return datetime.fromisoformat(value).replace(tzinfo=None)
    return datetime.min


def sort_bets_for_display(bets: Iterable) -> list:
    """Pending bets on top, then newest date, then newest entry."""
    ordered = sorted(
        bets,
        key=lambda b: (_sortable_date(_field(b, "date")), _sortable_datetime(_field(b, "created_at"))),
        reverse=True,
    )
    return sorted(ordered, key=lambda b: _result(b) != BetResult.pendente)


# ---------------------------
# Accounts
# ---------------------------
def summarize_accounts(accounts: Iterable) -> dict:
    counts = {s.value: 0 for s in AccountStatus}
    balance = ZERO
    deposited = ZERO
    total = 0
    for a in accounts:
        total += 1
        counts[AccountStatus(_field(a, "current_status")).value] += 1
        balance += _money(_field(a, "current_balance"))
        deposited += _money(_field(a, "total_deposited"))
    return {
        "total": total,
        "by_status": counts,
        "total_balance": balance,
        "total_deposited": deposited,
    }
