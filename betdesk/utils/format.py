# betdesk/utils/format.py
from decimal import Decimal


def brl(value) -> str:
    """R$ 1.234,56 (negative as -R$ 1.234,56)."""
    amount = Decimal(value or 0)
    sign = "-" if amount < 0 else ""
    body = f"{abs(amount):,.2f}".replace(",", "_").replace(".", ",").replace("_", ".")
    return f"{sign}R$ {body}"


def percent(value, places: int = 2) -> str:
    return f"{float(value or 0):.{places}f}%"
