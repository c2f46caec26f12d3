from decimal import Decimal

import pytest

from betdesk.models import BetResult
from betdesk.services.profit import calculate_profit


@pytest.mark.parametrize(
    "result, expected",
    [
        (BetResult.green, Decimal("110.00")),
        (BetResult.red, Decimal("-100")),
        (BetResult.void, Decimal("0")),
        (BetResult.meio_green, Decimal("55.00")),
        (BetResult.meio_red, Decimal("-50")),
        (BetResult.pendente, Decimal("0")),
    ],
)
def test_profit_table(result, expected):
    assert calculate_profit(Decimal("100"), Decimal("2.10"), result) == expected


@pytest.mark.parametrize("stake, odds", [("1", "1"), ("37.50", "1.85"), ("250", "3.333")])
def test_loss_and_half_win_relations(stake, odds):
    stake, odds = Decimal(stake), Decimal(odds)
    assert calculate_profit(stake, odds, BetResult.red) == -stake
    assert calculate_profit(stake, odds, BetResult.meio_red) == -stake / 2
    green = calculate_profit(stake, odds, BetResult.green)
    assert green == stake * (odds - 1)
    assert calculate_profit(stake, odds, BetResult.meio_green) == green / 2


@pytest.mark.parametrize("result", [BetResult.void, BetResult.pendente])
def test_unsettled_and_void_are_zero_regardless_of_inputs(result):
    assert calculate_profit(Decimal("999"), Decimal("15.5"), result) == 0


def test_string_results_are_coerced():
    assert calculate_profit(100, 2, "green") == Decimal("100")
    assert calculate_profit("50", "3.0", "red") == Decimal("-50")


def test_unknown_result_raises():
    with pytest.raises(ValueError):
        calculate_profit(10, 2, "win")
