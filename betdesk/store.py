# betdesk/store.py
# ------------------------------------------------------------
# Generic per-table access over the SQLAlchemy models:
#   select / get / insert / update / delete  (+ atomic())
#
# - Every list/report read passes `viewer=` so the access policy
#   scopes the query in one place.
# - Writes commit immediately unless they run inside `atomic()`,
#   in which case the outermost block commits or rolls back once.
# - SQLAlchemy failures are rolled back and re-raised as StoreError
#   with the driver message intact.
# ------------------------------------------------------------
from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Any, Mapping, Optional, Sequence, Tuple

from flask import g
from sqlalchemy.exc import SQLAlchemyError

from .errors import NotFoundError, StoreError
from .extensions import db
from .models import (
    Account, BankBalance, Bet, Bookmaker, Deposit, Profile,
    SoftwareTool, Transaction, User, UserRole,
)

logger = logging.getLogger(__name__)

TABLES = {
    "users": User,
    "profiles": Profile,
    "user_roles": UserRole,
    "bookmakers": Bookmaker,
    "software_tools": SoftwareTool,
    "accounts": Account,
    "bets": Bet,
    "deposits": Deposit,
    "transactions": Transaction,
    "bank_balances": BankBalance,
}

OrderBy = Sequence[Tuple[str, str]]


def model_for(table: str):
    try:
        return TABLES[table]
    except KeyError:
        raise StoreError(f"Unknown table: {table}") from None


def _column(model, name: str):
    col = getattr(model, name, None)
    if col is None:
        raise StoreError(f"Unknown column {model.__tablename__}.{name}")
    return col


class RecordStore:
    @property
    def _depth(self) -> int:
        return g.get("_store_depth", 0)

    @_depth.setter
    def _depth(self, value: int) -> None:
        g._store_depth = value

    # ---------------------------
    # Query building
    # ---------------------------
    def query(self, table: str, *, where: Mapping[str, Any] | None = None,
              gte: Mapping[str, Any] | None = None, lte: Mapping[str, Any] | None = None,
              viewer=None):
        """Filtered (but not yet ordered/limited) query for `table`."""
        from .policy import scope_query

        model = model_for(table)
        q = db.session.query(model)
        for name, value in (where or {}).items():
            col = _column(model, name)
            if isinstance(value, (list, tuple, set, frozenset)):
                q = q.filter(col.in_(list(value)))
            elif value is None:
                q = q.filter(col.is_(None))
            else:
                q = q.filter(col == value)
        for name, value in (gte or {}).items():
            q = q.filter(_column(model, name) >= value)
        for name, value in (lte or {}).items():
            q = q.filter(_column(model, name) <= value)
        if viewer is not None:
            q = scope_query(q, model, viewer)
        return q

    def select(self, table: str, *, where=None, gte=None, lte=None,
               order_by: OrderBy | None = None, limit: Optional[int] = None,
               viewer=None) -> list:
        model = model_for(table)
        q = self.query(table, where=where, gte=gte, lte=lte, viewer=viewer)
        for name, direction in (order_by or ()):
            col = _column(model, name)
            q = q.order_by(col.desc() if direction == "desc" else col.asc())
        if limit:
            q = q.limit(limit)
        try:
            return q.all()
        except SQLAlchemyError as e:
            self._fail("select", table, e)

    def get(self, table: str, row_id: str, *, viewer=None, for_update: bool = False):
        """Single row by id; invisible rows look exactly like missing ones."""
        q = self.query(table, where={"id": row_id}, viewer=viewer)
        if for_update:
            q = q.with_for_update()
        try:
            row = q.one_or_none()
        except SQLAlchemyError as e:
            self._fail("get", table, e)
        if row is None:
            raise NotFoundError(f"{table} row not found")
        return row

    # ---------------------------
    # Writes
    # ---------------------------
    def insert(self, table: str, row: Mapping[str, Any]):
        model = model_for(table)
        obj = model(**row)
        try:
            db.session.add(obj)
            db.session.flush()
        except SQLAlchemyError as e:
            self._fail("insert", table, e)
        self._commit_unless_atomic(table)
        return obj

    def update(self, table: str, where: Mapping[str, Any], patch: Mapping[str, Any]) -> int:
        rows = self.select(table, where=where)
        try:
            for obj in rows:
                for name, value in patch.items():
                    _column(type(obj), name)
                    setattr(obj, name, value)
            db.session.flush()
        except SQLAlchemyError as e:
            self._fail("update", table, e)
        self._commit_unless_atomic(table)
        return len(rows)

    def delete(self, table: str, where: Mapping[str, Any]) -> int:
        rows = self.select(table, where=where)
        try:
            for obj in rows:
                db.session.delete(obj)
            db.session.flush()
        except SQLAlchemyError as e:
            self._fail("delete", table, e)
        self._commit_unless_atomic(table)
        return len(rows)

    def save(self, obj):
        """Persist in-place attribute changes on an already loaded row."""
        try:
            db.session.add(obj)
            db.session.flush()
        except SQLAlchemyError as e:
            self._fail("save", type(obj).__tablename__, e)
        self._commit_unless_atomic(type(obj).__tablename__)
        return obj

    @contextmanager
    def atomic(self):
        """All writes inside commit together or not at all."""
        self._depth += 1
        try:
            yield self
        except Exception:
            self._depth -= 1
            if self._depth == 0:
                db.session.rollback()
            raise
        self._depth -= 1
        if self._depth == 0:
            try:
                db.session.commit()
            except SQLAlchemyError as e:
                self._fail("commit", "atomic", e)

    # ---------------------------
    # Internals
    # ---------------------------
    def _commit_unless_atomic(self, table: str) -> None:
        if self._depth:
            return
        try:
            db.session.commit()
        except SQLAlchemyError as e:
            self._fail("commit", table, e)

    def _fail(self, op: str, table: str, e: SQLAlchemyError):
        # inside atomic() the outermost block owns the rollback
        if not self._depth:
            db.session.rollback()
        msg = str(getattr(e, "orig", None) or e)
        logger.error(f"[store] {op} {table} failed: {msg}")
        raise StoreError(msg) from e


store = RecordStore()
