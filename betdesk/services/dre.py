# betdesk/services/dre.py
# ------------------------------------------------------------
# Monthly P&L (DRE) and cash-flow ("Caixa") statements.
#
# compose_* are pure; *_inputs_for_month gather the period figures
# from the store (first..last calendar day, inclusive).
#
# Capital movements (aporte / retirada) are reported next to the
# result but never enter net_profit.
# ------------------------------------------------------------
from __future__ import annotations

import calendar
from dataclasses import asdict, dataclass
from datetime import date
from decimal import Decimal

from sqlalchemy import func

from ..extensions import db
from ..models import Account, AccountStatus, Bet, Deposit, Transaction, TransactionType

ZERO = Decimal(0)


def month_range(year: int, month: int) -> tuple[date, date]:
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, 1), date(year, month, last_day)


def parse_month_key(key: str | None, today: date | None = None) -> tuple[int, int]:
    """'2025-03' -> (2025, 3); blank or malformed -> current month."""
    today = today or date.today()
    try:
        y, m = (key or "").split("-")
        y, m = int(y), int(m)
        if 1 <= m <= 12:
            return y, m
    except ValueError:
        pass
    return today.year, today.month


def recent_month_keys(count: int = 12, today: date | None = None) -> list[str]:
    """The month selector: current month first, going back `count` months."""
    today = today or date.today()
    y, m = today.year, today.month
    keys = []
    for _ in range(count):
        keys.append(f"{y:04d}-{m:02d}")
        y, m = (y - 1, 12) if m == 1 else (y, m - 1)
    return keys


@dataclass
class DreStatement:
    revenue: Decimal
    variable_costs: Decimal
    fixed_costs: Decimal
    investments: Decimal
    withdrawals: Decimal
    net_profit: Decimal

    def to_dict(self) -> dict:
        return {k: float(v) for k, v in asdict(self).items()}


@dataclass
class CashFlowStatement:
    investments: Decimal
    revenue: Decimal
    withdrawals: Decimal
    other_costs: Decimal
    saldo: Decimal
    deposits: Decimal  # informational; redistribution into betting accounts

    def to_dict(self) -> dict:
        return {k: float(v) for k, v in asdict(self).items()}


def compose_dre(revenue, variable_costs, fixed_costs, investments, withdrawals) -> DreStatement:
    revenue = Decimal(revenue)
    variable_costs = Decimal(variable_costs)
    fixed_costs = Decimal(fixed_costs)
    return DreStatement(
        revenue=revenue,
        variable_costs=variable_costs,
        fixed_costs=fixed_costs,
        investments=Decimal(investments),
        withdrawals=Decimal(withdrawals),
        net_profit=revenue - variable_costs - fixed_costs,
    )


def compose_cash_flow(investments, revenue, withdrawals, other_costs, deposits) -> CashFlowStatement:
    investments = Decimal(investments)
    revenue = Decimal(revenue)
    withdrawals = Decimal(withdrawals)
    other_costs = Decimal(other_costs)
    return CashFlowStatement(
        investments=investments,
        revenue=revenue,
        withdrawals=withdrawals,
        other_costs=other_costs,
        saldo=investments + revenue - withdrawals - other_costs,
        deposits=Decimal(deposits),
    )


# ---------------------------
# Period gathering
# ---------------------------
def _scalar(q) -> Decimal:
    return Decimal(q.scalar() or 0)


def _period_transactions(start: date, end: date) -> list[Transaction]:
    return (
        db.session.query(Transaction)
        .filter(Transaction.date >= start, Transaction.date <= end)
        .all()
    )


def bet_revenue(start: date, end: date) -> Decimal:
    """All bets in the period, every operator; pending ones add 0."""
    return _scalar(
        db.session.query(func.coalesce(func.sum(Bet.profit), 0))
        .filter(Bet.date >= start, Bet.date <= end)
    )


def limited_accounts_cost(start: date, end: date) -> Decimal:
    return _scalar(
        db.session.query(func.coalesce(func.sum(Account.purchase_price), 0))
        .filter(
            Account.current_status == AccountStatus.limitada,
            Account.limitation_date >= start,
            Account.limitation_date <= end,
        )
    )


def deposits_total(start: date, end: date) -> Decimal:
    return _scalar(
        db.session.query(func.coalesce(func.sum(Deposit.amount), 0))
        .filter(Deposit.date >= start, Deposit.date <= end)
    )


def _transaction_totals(txns) -> dict:
    fixed = investments = withdrawals = other = ZERO
    for t in txns:
        amount = Decimal(t.amount or 0)
        if t.is_recurring:
            fixed += abs(amount)
        if t.type == TransactionType.aporte:
            investments += amount
        elif t.type == TransactionType.retirada:
            withdrawals += abs(amount)
        else:
            other += abs(amount)
    return {"fixed": fixed, "investments": investments, "withdrawals": withdrawals, "other": other}


def dre_inputs_for_month(year: int, month: int) -> dict:
    start, end = month_range(year, month)
    totals = _transaction_totals(_period_transactions(start, end))
    return {
        "revenue": bet_revenue(start, end),
        "variable_costs": limited_accounts_cost(start, end),
        "fixed_costs": totals["fixed"],
        "investments": totals["investments"],
        "withdrawals": totals["withdrawals"],
    }


def cash_flow_inputs_for_month(year: int, month: int) -> dict:
    start, end = month_range(year, month)
    totals = _transaction_totals(_period_transactions(start, end))
    return {
        "investments": totals["investments"],
        "revenue": bet_revenue(start, end),
        "withdrawals": totals["withdrawals"],
        "other_costs": totals["other"],
        "deposits": deposits_total(start, end),
    }


def dre_for_month(year: int, month: int) -> DreStatement:
    return compose_dre(**dre_inputs_for_month(year, month))


def cash_flow_for_month(year: int, month: int) -> CashFlowStatement:
    return compose_cash_flow(**cash_flow_inputs_for_month(year, month))
