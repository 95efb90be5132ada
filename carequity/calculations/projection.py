"""Month-by-month value, balance and equity projection."""

from __future__ import annotations

from dataclasses import replace
from datetime import date, datetime

import numpy as np
import pandas as pd

from carequity.calculations.amortization import balance_at_month
from carequity.calculations.swap_window import analyze
from carequity.calculations.valuation import current_value, resolve_vehicle
from carequity.config import DEFAULT_CONFIG, EngineConfig
from carequity.models.agreement import FinancingAgreement, VehicleIdentity
from carequity.models.errors import ValidationError
from carequity.models.projection import CashPosition, MonthlyProjectionPoint
from carequity.models.valuation_providers import ValuationProvider
from carequity.utils.date_utils import add_months, months_between, resolve_as_of
from carequity.utils.logging import get_logger

LOGGER = get_logger(__name__)

PROJECTION_COLUMNS = [
    'month_index',
    'date',
    'market_value',
    'private_sale_value',
    'loan_balance',
    'trade_in_equity',
    'private_equity',
    'is_break_even_month',
    'is_optimal_month',
    'is_contract_end',
]


def private_sale_value(market_value: float, config: EngineConfig = DEFAULT_CONFIG) -> float:
    """Expected private-sale proceeds; never below the trade-in figure."""
    return float(market_value) * (1.0 + config.private_sale_markup)


def projection_horizon(term_months: int, months_elapsed: int, config: EngineConfig = DEFAULT_CONFIG) -> int:
    """Last month index projected: the full contract and at least a year past now."""
    return max(int(term_months), int(months_elapsed) + config.horizon_extension_months)


def generate_projections(
    agreement: FinancingAgreement,
    vehicle: VehicleIdentity,
    *,
    as_of: pd.Timestamp | datetime | date | str | None = None,
    provider: ValuationProvider | None = None,
    config: EngineConfig = DEFAULT_CONFIG,
) -> list[MonthlyProjectionPoint]:
    """Build the projection series from month 0 to the horizon, inclusive.

    Break-even and optimal-month flags come from the trade-in channel.
    """
    if agreement.start_date is None:
        raise ValidationError('start_date', 'is required to build a projection')

    now = resolve_as_of(as_of)
    start = agreement.start_date
    vehicle = resolve_vehicle(vehicle, provider)
    elapsed = months_between(start, now)
    horizon = projection_horizon(agreement.term_months, elapsed, config)

    points: list[MonthlyProjectionPoint] = []
    for month in range(horizon + 1):
        point_date = add_months(start, month)
        value = current_value(agreement.purchase_price, start, point_date, vehicle)
        private_value = private_sale_value(value, config)
        balance = balance_at_month(agreement, month, value)
        points.append(
            MonthlyProjectionPoint(
                month_index=month,
                date=point_date,
                market_value=value,
                private_sale_value=private_value,
                loan_balance=balance,
                cash_position=CashPosition(trade_in=value - balance, private=private_value - balance),
                is_contract_end=month == agreement.term_months,
            )
        )

    analysis = analyze(points, 'trade_in', current_month=elapsed)
    if analysis.swap_window.exists:
        optimal_month = analysis.swap_window.peak_month
    else:
        # no positive window: the least-negative month is still the best time to sell
        trade_in = np.array([p.cash_position.trade_in for p in points], dtype=float)
        optimal_month = int(np.argmax(trade_in))

    LOGGER.debug(
        'Projected %s months; break-even=%s optimal=%s.',
        len(points),
        analysis.break_even_month,
        optimal_month,
    )
    return [
        replace(
            p,
            is_break_even_month=p.month_index == analysis.break_even_month,
            is_optimal_month=p.month_index == optimal_month,
        )
        for p in points
    ]


def projections_to_frame(points: list[MonthlyProjectionPoint]) -> pd.DataFrame:
    """Flatten a projection series into one row per month."""
    rows = [
        {
            'month_index': p.month_index,
            'date': p.date,
            'market_value': p.market_value,
            'private_sale_value': p.private_sale_value,
            'loan_balance': p.loan_balance,
            'trade_in_equity': p.cash_position.trade_in,
            'private_equity': p.cash_position.private,
            'is_break_even_month': p.is_break_even_month,
            'is_optimal_month': p.is_optimal_month,
            'is_contract_end': p.is_contract_end,
        }
        for p in points
    ]
    return pd.DataFrame(rows, columns=PROJECTION_COLUMNS)
