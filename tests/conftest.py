# tests/conftest.py
from datetime import date
from decimal import Decimal
from uuid import uuid4

import pytest

from betdesk import create_app
from betdesk.extensions import db
from betdesk.identity import provider
from betdesk.models import (
    Account, AccountStatus, AppRole, Bet, BetResult, Bookmaker, Profile, User, UserRole,
)
from betdesk.services.profit import calculate_profit
from betdesk.store import store as record_store

PASSWORD = "secret123"


@pytest.fixture
def app():
    app = create_app("testing")
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def store(app):
    return record_store


@pytest.fixture
def make_user(app):
    def _make(name="Operador", email=None, role=AppRole.operator, password=PASSWORD):
        email = email or f"{uuid4().hex[:8]}@example.com"
        user = User(email=email)
        user.set_password(password)
        db.session.add(user)
        db.session.flush()
        profile = Profile(user_id=user.id, name=name, email=email)
        db.session.add(profile)
        db.session.flush()
        if role is not None:
            db.session.add(UserRole(profile_id=profile.id, role=role))
        db.session.commit()
        return user

    return _make


@pytest.fixture
def admin(make_user):
    return make_user(name="Admin", email="admin@example.com", role=AppRole.admin)


@pytest.fixture
def operator(make_user):
    return make_user(name="Operador", email="op@example.com")


@pytest.fixture
def bookmaker(app):
    bm = Bookmaker(name="Bet365", active=True)
    db.session.add(bm)
    db.session.commit()
    return bm


@pytest.fixture
def make_account(app, bookmaker):
    def _make(owner: User, status=AccountStatus.em_uso, **kw):
        acc = Account(
            bookmaker_id=bookmaker.id,
            operator_id=owner.profile.id,
            login_nick=kw.pop("login_nick", f"nick-{uuid4().hex[:6]}"),
            current_status=status,
            acquisition_date=kw.pop("acquisition_date", date(2025, 1, 2)),
            **kw,
        )
        db.session.add(acc)
        db.session.commit()
        return acc

    return _make


@pytest.fixture
def make_bet(app):
    def _make(account: Account, stake="100", odds="2.0", result=BetResult.green, on=None, **kw):
        stake, odds = Decimal(stake), Decimal(odds)
        bet = Bet(
            date=on or date.today(),
            operator_id=account.operator_id,
            account_id=account.id,
            bookmaker_id=account.bookmaker_id,
            stake=stake,
            odds=odds,
            result=result,
            profit=calculate_profit(stake, odds, result),
            sport=kw.pop("sport", "Futebol"),
            software_tool=kw.pop("software_tool", "Live"),
            **kw,
        )
        db.session.add(bet)
        db.session.commit()
        return bet

    return _make


@pytest.fixture
def login(client):
    def _login(user: User, password=PASSWORD):
        resp = client.post("/auth/login", json={"email": user.email, "password": password})
        assert resp.status_code == 200, resp.get_json()
        return resp.get_json()["session"]["access_token"]

    return _login


@pytest.fixture
def token_for(app):
    def _token(user: User) -> str:
        return provider.session_for(user).access_token

    return _token
