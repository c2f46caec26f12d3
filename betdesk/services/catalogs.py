# betdesk/services/catalogs.py
# Admin-managed catalogs: bookmakers and software tools.
from __future__ import annotations

import logging

from ..errors import ValidationError
from ..store import store
from ..utils.helpers import clean, parse_bool, text

logger = logging.getLogger(__name__)

# table -> fields an admin may edit (besides name/active)
CATALOGS = {
    "bookmakers": ("logo_url",),
    "software_tools": (),
}


def list_catalog(table: str, active_only: bool = False) -> list:
    where = {"active": True} if active_only else None
    return store.select(table, where=where, order_by=[("name", "asc")])


def create_entry(table: str, data: dict):
    name = text(data, "name")
    if not name:
        raise ValidationError("Nome é obrigatório")
    row = {"name": name, "active": parse_bool(data.get("active", True))}
    for extra in CATALOGS[table]:
        row[extra] = clean(data.get(extra))
    obj = store.insert(table, row)
    logger.info(f"[catalog] {table} created {name}")
    return obj


def update_entry(table: str, entry_id: str, data: dict):
    obj = store.get(table, entry_id)
    if "name" in data:
        name = text(data, "name")
        if not name:
            raise ValidationError("Nome é obrigatório")
        obj.name = name
    if "active" in data:
        obj.active = parse_bool(data.get("active"))
    for extra in CATALOGS[table]:
        if extra in data:
            setattr(obj, extra, clean(data.get(extra)))
    store.save(obj)
    return obj


def delete_entry(table: str, entry_id: str) -> None:
    obj = store.get(table, entry_id)
    if table == "bookmakers" and (
        store.select("accounts", where={"bookmaker_id": obj.id}, limit=1)
        or store.select("bets", where={"bookmaker_id": obj.id}, limit=1)
    ):
        raise ValidationError("Casa em uso por contas ou apostas; desative-a em vez de excluir")
    store.delete(table, {"id": obj.id})
    logger.info(f"[catalog] {table} deleted {entry_id}")


def entry_to_dict(obj) -> dict:
    out = {"id": obj.id, "name": obj.name, "active": bool(obj.active)}
    if hasattr(obj, "logo_url"):
        out["logo_url"] = obj.logo_url
    return out
