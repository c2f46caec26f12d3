from datetime import date
from decimal import Decimal

import pytest

from betdesk.extensions import db
from betdesk.models import AccountStatus, BetResult, Deposit, TransactionType
from betdesk.services.dre import (
    cash_flow_for_month, compose_cash_flow, compose_dre, dre_for_month,
    dre_inputs_for_month, month_range, parse_month_key, recent_month_keys,
)
from betdesk.services.finance import create_transaction


class TestComposers:
    def test_net_profit_ignores_capital_movements(self):
        dre = compose_dre(revenue=1000, variable_costs=300, fixed_costs=200,
                          investments=5000, withdrawals=800)
        assert dre.net_profit == Decimal(500)
        same = compose_dre(1000, 300, 200, 0, 0)
        assert same.net_profit == dre.net_profit

    def test_negative_result(self):
        assert compose_dre(-100, 50, 25, 0, 0).net_profit == Decimal(-175)

    def test_cash_flow_saldo_excludes_deposits(self):
        caixa = compose_cash_flow(investments=1000, revenue=250, withdrawals=100,
                                  other_costs=50, deposits=9999)
        assert caixa.saldo == Decimal(1100)
        assert caixa.deposits == Decimal(9999)


@pytest.mark.parametrize(
    "year, month, last",
    [(2024, 2, 29), (2025, 2, 28), (2025, 12, 31), (2025, 4, 30)],
)
def test_month_range_is_inclusive(year, month, last):
    assert month_range(year, month) == (date(year, month, 1), date(year, month, last))


def test_month_key_parsing_falls_back_to_today():
    today = date(2025, 6, 15)
    assert parse_month_key("2025-03", today) == (2025, 3)
    assert parse_month_key("2025-13", today) == (2025, 6)
    assert parse_month_key("garbage", today) == (2025, 6)
    assert parse_month_key(None, today) == (2025, 6)


def test_recent_month_keys_cross_year():
    assert recent_month_keys(3, date(2025, 2, 10)) == ["2025-02", "2025-01", "2024-12"]


class TestPeriodGathering:
    @pytest.fixture
    def march(self, admin, operator, make_account, make_bet):
        inside = make_account(operator)
        make_bet(inside, "100", "2.0", BetResult.green, on=date(2025, 3, 1))
        make_bet(inside, "50", "3.0", BetResult.red, on=date(2025, 3, 31))
        make_bet(inside, "70", "1.5", BetResult.pendente, on=date(2025, 3, 15))
        make_bet(inside, "500", "2.0", BetResult.green, on=date(2025, 4, 1))

        make_account(admin, AccountStatus.limitada, purchase_price=Decimal("120"),
                     limitation_date=date(2025, 3, 10))
        make_account(admin, AccountStatus.limitada, purchase_price=Decimal("999"),
                     limitation_date=date(2025, 2, 28))
        make_account(admin, AccountStatus.em_uso, purchase_price=Decimal("80"))

        db.session.add(Deposit(date=date(2025, 3, 5), account_id=inside.id,
                               amount=Decimal("300"), created_by=operator.profile.id))
        db.session.commit()

        for txn in (
            {"date": "2025-03-02", "type": "aporte", "amount": "2000"},
            {"date": "2025-03-03", "type": "retirada", "amount": "-400"},
            {"date": "2025-03-04", "type": "custo_operacional", "amount": "-150", "category": "Recorrente"},
            {"date": "2025-03-05", "type": "custo_operacional", "amount": "-60", "category": "avulso"},
            {"date": "2025-04-01", "type": "custo_operacional", "amount": "-1000", "category": "recorrente"},
        ):
            create_transaction(txn)

    def test_dre_inputs(self, march):
        inputs = dre_inputs_for_month(2025, 3)
        assert inputs == {
            "revenue": Decimal("50"),
            "variable_costs": Decimal("120"),
            "fixed_costs": Decimal("150"),
            "investments": Decimal("2000"),
            "withdrawals": Decimal("400"),
        }
        assert dre_for_month(2025, 3).net_profit == Decimal("-220")

    def test_cash_flow(self, march):
        caixa = cash_flow_for_month(2025, 3)
        assert caixa.other_costs == Decimal("210")
        assert caixa.deposits == Decimal("300")
        # 2000 + 50 - 400 - 210
        assert caixa.saldo == Decimal("1440")

    def test_empty_month(self, app):
        dre = dre_for_month(2030, 1)
        assert dre.net_profit == 0
        assert dre.to_dict()["revenue"] == 0.0


def test_recurring_flag_defaults_from_category(app):
    flagged = create_transaction({"type": "custo_operacional", "amount": "-10", "category": "RECORRENTE"})
    plain = create_transaction({"type": "custo_operacional", "amount": "-10", "category": "luz"})
    explicit = create_transaction({"type": "custo_operacional", "amount": "-10", "is_recurring": "true"})
    assert flagged.is_recurring is True
    assert plain.is_recurring is False
    assert explicit.is_recurring is True
    assert flagged.type == TransactionType.custo_operacional
    assert flagged.bank_name == "Inter"
