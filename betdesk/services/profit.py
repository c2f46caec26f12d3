# betdesk/services/profit.py
from decimal import Decimal

from ..models import BetResult

TWO = Decimal(2)


def _dec(value) -> Decimal:
    return value if isinstance(value, Decimal) else Decimal(str(value))


def calculate_profit(stake, odds, result) -> Decimal:
    """
    Signed profit of a bet. Callers validate stake > 0 and odds >= 1;
    nothing is checked here.
    """
    stake = _dec(stake)
    odds = _dec(odds)
    result = BetResult(result)

    if result == BetResult.green:
        return stake * (odds - 1)
    if result == BetResult.red:
        return -stake
    if result == BetResult.void:
        return Decimal(0)
    if result == BetResult.meio_green:
        return stake * (odds - 1) / TWO
    if result == BetResult.meio_red:
        return -stake / TWO
    if result == BetResult.pendente:
        # unsettled: provisional zero until the result is known
        return Decimal(0)
    raise ValueError(f"Unhandled bet result: {result!r}")
