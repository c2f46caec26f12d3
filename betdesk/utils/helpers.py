# betdesk/utils/helpers.py
# ------------------------------------------------------------
# Request payload parsing shared by the route modules.
# Every parser raises ValidationError with a user-facing message.
# ------------------------------------------------------------
from __future__ import annotations

from datetime import date
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

from flask import request

from ..errors import ValidationError

CENT = Decimal("0.01")


def payload() -> dict:
    """JSON body if present, else the submitted form."""
    data = request.get_json(silent=True)
    if isinstance(data, dict):
        return data
    return request.form.to_dict()


def clean(value) -> str | None:
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def text(data: dict, name: str) -> str | None:
    return clean(data.get(name))


def parse_decimal(value, field: str, *, places: Decimal | None = CENT, required: bool = True) -> Decimal | None:
    """Accepts 1234.5, "1234.5" and the pt-BR "1.234,50"."""
    if value is None or str(value).strip() == "":
        if required:
            raise ValidationError(f"{field} é obrigatório")
        return None
    raw = str(value).strip()
    if "," in raw:
        raw = raw.replace(".", "").replace(",", ".")
    try:
        num = Decimal(raw)
    except InvalidOperation:
        raise ValidationError(f"{field} inválido") from None
    if not num.is_finite():
        raise ValidationError(f"{field} inválido")
    return num.quantize(places, rounding=ROUND_HALF_UP) if places else num


def parse_date(value, field: str = "data", *, required: bool = True, default: date | None = None) -> date | None:
    if value is None or str(value).strip() == "":
        if required and default is None:
            raise ValidationError(f"{field} é obrigatória")
        return default
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value).strip()[:10])
    except ValueError:
        raise ValidationError(f"{field} inválida") from None


def parse_enum(enum_cls, value, field: str, *, default=None):
    if isinstance(value, enum_cls):
        return value
    if value is None or str(value).strip() == "":
        if default is None:
            raise ValidationError(f"{field} é obrigatório")
        return default
    try:
        return enum_cls(str(value).strip())
    except ValueError:
        raise ValidationError(f"{field} inválido: {value}") from None


def parse_bool(value) -> bool:
    if isinstance(value, bool):
        return value
    return str(value or "").strip().lower() in ("1", "true", "on", "yes", "sim")
