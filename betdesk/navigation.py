# betdesk/navigation.py
# Sidebar menu. Items carrying "roles" are only shown to those roles.
from flask import url_for

from .policy import Viewer, can_access_endpoint

MENU = [
    {"label": "Principal", "section": True},
    {"label": "Dashboard", "icon": "layout-dashboard", "endpoint": "main.dashboard"},
    {"label": "Apostas", "icon": "receipt", "endpoint": "main.bets"},
    {"label": "Contas", "icon": "wallet", "endpoint": "main.accounts"},
    {"label": "Depósitos", "icon": "piggy-bank", "endpoint": "main.deposits"},
    {"label": "Administração", "section": True, "roles": ["admin"]},
    {
        "label": "Financeiro",
        "icon": "landmark",
        "endpoint": "#",
        "roles": ["admin"],
        "children": [
            {"label": "Transações", "endpoint": "main.finance_transactions"},
            {"label": "DRE", "endpoint": "main.finance_dre"},
            {"label": "Caixa", "endpoint": "main.finance_cash_flow"},
            {"label": "Bancos", "endpoint": "main.finance_banks"},
        ],
    },
    {"label": "Analytics", "icon": "bar-chart-3", "endpoint": "main.analytics", "roles": ["admin"]},
    {"label": "Operadores", "icon": "users", "endpoint": "main.operators", "roles": ["admin"]},
    {"label": "Casas", "icon": "building-2", "endpoint": "main.bookmakers", "roles": ["admin"]},
    {"label": "Softwares", "icon": "monitor", "endpoint": "main.software_tools", "roles": ["admin"]},
]


def _allowed(item: dict, viewer: Viewer) -> bool:
    roles = item.get("roles")
    if roles and viewer.role.value not in roles:
        return False
    endpoint = item.get("endpoint")
    return not endpoint or endpoint == "#" or can_access_endpoint(endpoint, viewer)


def menu_for(viewer: Viewer) -> list[dict]:
    """MENU filtered for `viewer`, with resolved hrefs."""

    def walk(items: list[dict]) -> list[dict]:
        out: list[dict] = []
        for it in items:
            if not _allowed(it, viewer):
                continue
            new_it = {k: v for k, v in it.items() if k not in ("roles", "children")}
            endpoint = it.get("endpoint")
            if endpoint and endpoint != "#":
                new_it["href"] = url_for(endpoint)
            if "children" in it:
                new_it["children"] = walk(it["children"])
            out.append(new_it)
        return out

    return walk(MENU)
