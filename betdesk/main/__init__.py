# betdesk/main/__init__.py
# ---------------------------------
# Single blueprint named `main`; feature modules register their routes on import.

from flask import Blueprint

main = Blueprint("main", __name__)

# Route modules (keep these imports at the end)
from . import dashboard, bets, accounts, deposits, finance, analytics, operators, catalogs  # noqa: E402,F401
