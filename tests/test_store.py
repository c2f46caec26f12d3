from datetime import date
from decimal import Decimal

import pytest

from betdesk.errors import NotFoundError, StoreError
from betdesk.models import AccountStatus, BankBalance, Bookmaker


@pytest.fixture
def bookmakers(store):
    for name, active in (("Betano", True), ("Pinnacle", False), ("Bet365", True)):
        store.insert("bookmakers", {"name": name, "active": active})


class TestSelect:
    def test_equality_in_and_order(self, store, bookmakers):
        active = store.select("bookmakers", where={"active": True}, order_by=[("name", "asc")])
        assert [b.name for b in active] == ["Bet365", "Betano"]
        some = store.select("bookmakers", where={"name": ["Pinnacle", "Betano"]}, order_by=[("name", "desc")])
        assert [b.name for b in some] == ["Pinnacle", "Betano"]

    def test_limit(self, store, bookmakers):
        assert len(store.select("bookmakers", limit=2)) == 2

    def test_null_filter(self, store, bookmakers):
        store.update("bookmakers", {"name": "Betano"}, {"logo_url": "https://x/logo.png"})
        rows = store.select("bookmakers", where={"logo_url": None})
        assert sorted(b.name for b in rows) == ["Bet365", "Pinnacle"]

    def test_date_range(self, store, operator, make_account):
        for day in (1, 15, 31):
            make_account(operator, acquisition_date=date(2025, 1, day))
        rows = store.select("accounts", gte={"acquisition_date": date(2025, 1, 2)},
                            lte={"acquisition_date": date(2025, 1, 31)})
        assert len(rows) == 2

    def test_unknown_table_and_column(self, store):
        with pytest.raises(StoreError):
            store.select("nope")
        with pytest.raises(StoreError):
            store.select("bookmakers", where={"colour": "red"})


class TestWrites:
    def test_get_missing(self, store):
        with pytest.raises(NotFoundError):
            store.get("bookmakers", "missing")

    def test_update_and_delete_counts(self, store, bookmakers):
        assert store.update("bookmakers", {"active": True}, {"active": False}) == 2
        assert store.select("bookmakers", where={"active": True}) == []
        assert store.delete("bookmakers", {"name": "Pinnacle"}) == 1
        assert len(store.select("bookmakers")) == 2

    def test_unique_violation_surfaces_as_store_error(self, store):
        store.insert("bank_balances", {"bank_name": "Inter", "current_balance": Decimal("10")})
        with pytest.raises(StoreError):
            store.insert("bank_balances", {"bank_name": "Inter"})
        assert len(store.select("bank_balances")) == 1

    def test_atomic_rolls_back_everything(self, store):
        with pytest.raises(RuntimeError):
            with store.atomic():
                store.insert("bookmakers", {"name": "KTO"})
                store.insert("bank_balances", {"bank_name": "Nubank"})
                raise RuntimeError("boom")
        assert Bookmaker.query.count() == 0
        assert BankBalance.query.count() == 0

    def test_nested_atomic_commits_once(self, store):
        with store.atomic():
            store.insert("bookmakers", {"name": "KTO"})
            with store.atomic():
                store.insert("bookmakers", {"name": "Betfair"})
        assert Bookmaker.query.count() == 2

    def test_account_status_filter(self, store, operator, make_account):
        make_account(operator, AccountStatus.limitada, limitation_date=date(2025, 2, 1))
        make_account(operator)
        assert len(store.select("accounts", where={"current_status": AccountStatus.em_uso})) == 1
