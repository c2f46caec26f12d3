from __future__ import annotations
from datetime import datetime
from enum import Enum
from uuid import uuid4

from flask_login import UserMixin
from werkzeug.security import generate_password_hash, check_password_hash

from sqlalchemy import text
from .extensions import db


def _new_id() -> str:
    return uuid4().hex


def _enum(enum_cls, name: str):
    # Store enum *values* ("1_tempo"), not member names.
    return db.Enum(
        enum_cls,
        name=name,
        native_enum=False,
        values_callable=lambda e: [m.value for m in e],
    )


# --------------------------
# Enums (Python)
# --------------------------
class AppRole(str, Enum):
    admin = "admin"
    operator = "operator"


class AccountStatus(str, Enum):
    em_uso = "em_uso"
    limitada = "limitada"
    cevando = "cevando"
    transferida = "transferida"


class BetResult(str, Enum):
    green = "green"
    red = "red"
    void = "void"
    meio_green = "meio_green"
    meio_red = "meio_red"
    pendente = "pendente"


class TransactionType(str, Enum):
    aporte = "aporte"
    retirada = "retirada"
    custo_operacional = "custo_operacional"
    compra_conta = "compra_conta"
    correcao = "correcao"
    recebido = "recebido"


class MarketTime(str, Enum):
    jogo_todo = "jogo_todo"
    first_half = "1_tempo"
    second_half = "2_tempo"


# --------------------------
# Display labels (pt-BR)
# --------------------------
ACCOUNT_STATUS_LABELS = {
    AccountStatus.em_uso: "Em Uso",
    AccountStatus.limitada: "Limitada",
    AccountStatus.cevando: "Cevando",
    AccountStatus.transferida: "Transferida",
}

BET_RESULT_LABELS = {
    BetResult.green: "Green",
    BetResult.red: "Red",
    BetResult.void: "Void",
    BetResult.meio_green: "Meio Green",
    BetResult.meio_red: "Meio Red",
    BetResult.pendente: "Pendente",
}

TRANSACTION_TYPE_LABELS = {
    TransactionType.aporte: "Aporte",
    TransactionType.retirada: "Retirada",
    TransactionType.custo_operacional: "Custo Operacional",
    TransactionType.compra_conta: "Compra de Conta",
    TransactionType.correcao: "Correção",
    TransactionType.recebido: "Recebido",
}

MARKET_TIME_LABELS = {
    MarketTime.jogo_todo: "Jogo Todo",
    MarketTime.first_half: "1º Tempo",
    MarketTime.second_half: "2º Tempo",
}

SPORT_OPTIONS = [
    "Futebol", "Basquete", "Tênis", "Vôlei", "Hóquei",
    "Beisebol", "MMA", "eSports", "Outros",
]

SOFTWARE_OPTIONS = [
    "Live", "Capper", "Trademate", "Rebel Betting",
    "Oddsmonkey", "BetBurger", "Manual", "Outros",
]


# --------------------------
# Identity (auth accounts)
# --------------------------
class User(UserMixin, db.Model):
    __tablename__ = "users"

    id = db.Column(db.String(32), primary_key=True, default=_new_id)
    email = db.Column(db.String(255), unique=True, index=True, nullable=False)
    password_hash = db.Column(db.String(255), nullable=False)
    email_confirmed_at = db.Column(db.DateTime(timezone=True), nullable=True)
    # bumped on sign-out; tokens carrying an older epoch are dead
    session_epoch = db.Column(db.Integer, nullable=False, default=0, server_default=text("0"))
    created_at = db.Column(db.DateTime(timezone=True), default=datetime.utcnow, nullable=False)

    profile = db.relationship("Profile", back_populates="user", uselist=False)

    def set_password(self, password: str) -> None:
        self.password_hash = generate_password_hash(password)

    def check_password(self, password: str) -> bool:
        return check_password_hash(self.password_hash, password)

    def get_id(self) -> str:
        # "<id>:<epoch>"; a bumped epoch ends cookie sessions as well
        return f"{self.id}:{self.session_epoch or 0}"


# --------------------------
# Profiles & roles
# --------------------------
class Profile(db.Model):
    __tablename__ = "profiles"

    id = db.Column(db.String(32), primary_key=True, default=_new_id)
    user_id = db.Column(db.String(32), db.ForeignKey("users.id"), unique=True, nullable=False)
    name = db.Column(db.String(120), nullable=False)
    email = db.Column(db.String(255), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), default=datetime.utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), default=datetime.utcnow, onupdate=datetime.utcnow)

    user = db.relationship("User", back_populates="profile")


class UserRole(db.Model):
    __tablename__ = "user_roles"

    id = db.Column(db.String(32), primary_key=True, default=_new_id)
    # No unique constraint: single-role semantics live in the reassignment workflow.
    profile_id = db.Column(db.String(32), db.ForeignKey("profiles.id"), index=True, nullable=False)
    role = db.Column(_enum(AppRole, "app_role_enum"), nullable=False)
    created_at = db.Column(db.DateTime(timezone=True), default=datetime.utcnow)


# --------------------------
# Catalogs
# --------------------------
class Bookmaker(db.Model):
    __tablename__ = "bookmakers"

    id = db.Column(db.String(32), primary_key=True, default=_new_id)
    name = db.Column(db.String(120), nullable=False)
    logo_url = db.Column(db.Text)
    active = db.Column(db.Boolean, nullable=False, default=True, server_default=text("true"))
    created_at = db.Column(db.DateTime(timezone=True), default=datetime.utcnow)


class SoftwareTool(db.Model):
    __tablename__ = "software_tools"

    id = db.Column(db.String(32), primary_key=True, default=_new_id)
    name = db.Column(db.String(120), nullable=False)
    active = db.Column(db.Boolean, nullable=False, default=True, server_default=text("true"))
    created_at = db.Column(db.DateTime(timezone=True), default=datetime.utcnow)


# --------------------------
# Betting accounts
# --------------------------
class Account(db.Model):
    __tablename__ = "accounts"
    __table_args__ = (
        db.Index("ix_accounts_operator_status", "operator_id", "current_status"),
    )

    id = db.Column(db.String(32), primary_key=True, default=_new_id)
    bookmaker_id = db.Column(db.String(32), db.ForeignKey("bookmakers.id"), nullable=False)
    # no FK: accounts survive the deletion of their operator's profile
    operator_id = db.Column(db.String(32), index=True, nullable=False)
    login_nick = db.Column(db.String(120), nullable=False)

    current_status = db.Column(
        _enum(AccountStatus, "account_status_enum"),
        nullable=False,
        default=AccountStatus.em_uso,
    )
    purchase_price = db.Column(db.Numeric(14, 2), nullable=False, default=0, server_default=text("0"))
    acquisition_date = db.Column(db.Date, nullable=False)
    limitation_date = db.Column(db.Date, nullable=True)  # only meaningful when limitada
    vendor_name = db.Column(db.Text)

    current_balance = db.Column(db.Numeric(14, 2), nullable=False, default=0, server_default=text("0"))
    pending_balance = db.Column(db.Numeric(14, 2), nullable=False, default=0, server_default=text("0"))
    total_deposited = db.Column(db.Numeric(14, 2), nullable=False, default=0, server_default=text("0"))
    total_volume = db.Column(db.Numeric(14, 2), nullable=False, default=0, server_default=text("0"))
    initial_month_balance = db.Column(db.Numeric(14, 2), nullable=False, default=0, server_default=text("0"))
    notes = db.Column(db.Text)

    created_at = db.Column(db.DateTime(timezone=True), default=datetime.utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), default=datetime.utcnow, onupdate=datetime.utcnow)

    bookmaker = db.relationship("Bookmaker", lazy="joined")

    def set_status(self, status: AccountStatus, limitation_date=None) -> None:
        """Keep limitation_date only while the account is limitada."""
        self.current_status = status
        self.limitation_date = limitation_date if status == AccountStatus.limitada else None


# --------------------------
# Bets
# --------------------------
class Bet(db.Model):
    __tablename__ = "bets"
    __table_args__ = (
        db.Index("ix_bets_operator_date", "operator_id", "date"),
    )

    id = db.Column(db.String(32), primary_key=True, default=_new_id)
    date = db.Column(db.Date, nullable=False, index=True)
    operator_id = db.Column(db.String(32), nullable=False)
    account_id = db.Column(db.String(32), db.ForeignKey("accounts.id"), nullable=False)
    bookmaker_id = db.Column(db.String(32), db.ForeignKey("bookmakers.id"), nullable=False)

    stake = db.Column(db.Numeric(14, 2), nullable=False)
    odds = db.Column(db.Numeric(10, 3), nullable=False)
    result = db.Column(_enum(BetResult, "bet_result_enum"), nullable=False)
    profit = db.Column(db.Numeric(14, 2), nullable=False)  # cached calculate_profit(stake, odds, result)

    market_time = db.Column(
        _enum(MarketTime, "market_time_enum"),
        nullable=False,
        default=MarketTime.jogo_todo,
    )
    sport = db.Column(db.String(60), nullable=False)
    software_tool = db.Column(db.String(120), nullable=False)
    expected_value = db.Column(db.Numeric(14, 2), nullable=True)
    teams = db.Column(db.Text)
    bet_description = db.Column(db.Text)

    created_at = db.Column(db.DateTime(timezone=True), default=datetime.utcnow)

    account = db.relationship("Account", lazy="joined")
    bookmaker = db.relationship("Bookmaker", lazy="joined")


# --------------------------
# Deposits
# --------------------------
class Deposit(db.Model):
    __tablename__ = "deposits"

    id = db.Column(db.String(32), primary_key=True, default=_new_id)
    date = db.Column(db.Date, nullable=False, index=True)
    account_id = db.Column(db.String(32), db.ForeignKey("accounts.id"), nullable=False)
    amount = db.Column(db.Numeric(14, 2), nullable=False)
    description = db.Column(db.Text)
    created_by = db.Column(db.String(32), index=True, nullable=False)
    created_at = db.Column(db.DateTime(timezone=True), default=datetime.utcnow)

    account = db.relationship("Account", lazy="joined")


# --------------------------
# Company cash flow
# --------------------------
class Transaction(db.Model):
    __tablename__ = "transactions"

    id = db.Column(db.String(32), primary_key=True, default=_new_id)
    date = db.Column(db.Date, nullable=False, index=True)
    type = db.Column(_enum(TransactionType, "transaction_type_enum"), nullable=False)
    category = db.Column(db.String(120))
    amount = db.Column(db.Numeric(14, 2), nullable=False)  # signed
    description = db.Column(db.Text)
    bank_name = db.Column(db.String(120))
    is_recurring = db.Column(db.Boolean, nullable=False, default=False, server_default=text("false"))

    related_operator_id = db.Column(db.String(32), nullable=True)
    related_account_id = db.Column(db.String(32), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), default=datetime.utcnow)


class BankBalance(db.Model):
    __tablename__ = "bank_balances"

    id = db.Column(db.String(32), primary_key=True, default=_new_id)
    bank_name = db.Column(db.String(120), unique=True, nullable=False)
    current_balance = db.Column(db.Numeric(14, 2), nullable=False, default=0, server_default=text("0"))
    updated_at = db.Column(db.DateTime(timezone=True), default=datetime.utcnow, onupdate=datetime.utcnow)
