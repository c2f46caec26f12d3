# betdesk/functions/__init__.py
# Privileged user-admin operations, called with a bearer token.
from flask import Blueprint

functions = Blueprint("functions", __name__, url_prefix="/functions")

from . import routes  # noqa: E402,F401
