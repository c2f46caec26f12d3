# betdesk/cli.py
from decimal import Decimal

import click

from .errors import BetdeskError
from .extensions import db
from .models import SOFTWARE_OPTIONS, BankBalance, Bookmaker, SoftwareTool

SEED_BOOKMAKERS = ["Bet365", "Betano", "Pinnacle", "Sportingbet", "Betfair", "KTO"]


def register_cli(app):
    @app.cli.command("seed-min")
    def seed_min():
        """Dev-only: seed bookmakers, software tools and the default bank."""

        def get_or_create(model, defaults=None, **filters):
            obj = db.session.query(model).filter_by(**filters).one_or_none()
            if obj:
                return obj
            params = {**filters, **(defaults or {})}
            obj = model(**params)
            db.session.add(obj)
            return obj

        for name in SEED_BOOKMAKERS:
            get_or_create(Bookmaker, name=name, defaults=dict(active=True))

        for name in SOFTWARE_OPTIONS:
            if name != "Outros":
                get_or_create(SoftwareTool, name=name, defaults=dict(active=True))

        get_or_create(BankBalance, bank_name=app.config["DEFAULT_BANK_NAME"],
                      defaults=dict(current_balance=Decimal("0.00")))

        db.session.commit()
        print("✅ Seeded minimal data.")

    @app.cli.command("create-admin")
    @click.argument("email")
    @click.argument("password")
    @click.argument("name")
    def create_admin(email, password, name):
        """Bootstrap an administrator (identity + profile + admin role)."""
        from .services.users import bootstrap_admin

        try:
            user = bootstrap_admin(email, password, name)
        except BetdeskError as e:
            raise click.ClickException(e.message) from e
        print(f"✅ Admin {user.email} created.")
