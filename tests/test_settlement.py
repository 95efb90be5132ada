import pytest

from carequity.calculations.settlement import financial_status, hand_back_warning, settlement_figure


def test_settlement_adds_two_months_interest() -> None:
    s = settlement_figure(10000.0, 12.0)
    assert s.principal_remaining == 10000.0
    assert s.interest_penalty == pytest.approx(200.0)
    assert s.total_settlement == pytest.approx(10200.0)


def test_settlement_never_negative() -> None:
    s = settlement_figure(-50.0, 12.0)
    assert s.total_settlement == 0.0


def test_financial_status_threshold() -> None:
    assert financial_status(250.0) == 'winning'
    assert financial_status(-250.0) == 'losing'
    assert financial_status(200.0) == 'breakeven'
    assert financial_status(-200.0) == 'breakeven'
    assert financial_status(150.0, threshold=100.0) == 'winning'


def test_hand_back_warning_only_when_selling_nets_cash() -> None:
    warning = hand_back_warning(12000.0, 10000.0)
    assert warning == {'hand_back_value': 0.0, 'sell_value': 2000.0, 'lost_money': 2000.0}
    assert hand_back_warning(9000.0, 10000.0) is None
