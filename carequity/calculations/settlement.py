"""Settlement figure, financial status and PCP hand-back helpers."""

from __future__ import annotations

from dataclasses import dataclass

from carequity.calculations.amortization import monthly_rate
from carequity.config import DEFAULT_CONFIG

STATUS_WINNING = 'winning'
STATUS_LOSING = 'losing'
STATUS_BREAKEVEN = 'breakeven'


@dataclass(frozen=True)
class Settlement:
    principal_remaining: float
    interest_penalty: float
    total_settlement: float


def settlement_figure(
    balance: float,
    annual_rate_percent: float,
    *,
    penalty_months: float = DEFAULT_CONFIG.settlement_penalty_months,
) -> Settlement:
    """Cost to clear the finance today, including the early settlement interest charge."""
    principal = max(0.0, float(balance))
    penalty = max(0.0, principal * monthly_rate(annual_rate_percent) * float(penalty_months))
    return Settlement(
        principal_remaining=principal,
        interest_penalty=penalty,
        total_settlement=principal + penalty,
    )


def financial_status(cash_position: float, threshold: float = DEFAULT_CONFIG.status_threshold) -> str:
    if cash_position > threshold:
        return STATUS_WINNING
    if cash_position < -threshold:
        return STATUS_LOSING
    return STATUS_BREAKEVEN


def hand_back_warning(trade_in_value: float, settlement: float) -> dict[str, float] | None:
    """What handing the keys back forfeits versus selling, when selling nets cash."""
    cash_position = float(trade_in_value) - float(settlement)
    if cash_position <= 0:
        return None
    return {
        'hand_back_value': 0.0,
        'sell_value': cash_position,
        'lost_money': cash_position,
    }
