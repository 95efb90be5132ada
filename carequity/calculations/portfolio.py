"""Fleet-level totals across vehicle summaries."""

from __future__ import annotations

from datetime import date, datetime

import numpy as np
import pandas as pd

from carequity.calculations.financial_model import calculate_financial_model
from carequity.config import DEFAULT_CONFIG, EngineConfig
from carequity.models.errors import EquityEngineError
from carequity.models.portfolio import (
    PortfolioEntry,
    PortfolioFailure,
    PortfolioResult,
    PortfolioSnapshot,
    VehicleModelSummary,
)
from carequity.models.valuation_providers import ValuationProvider
from carequity.utils.date_utils import resolve_as_of
from carequity.utils.logging import get_logger

LOGGER = get_logger(__name__)

PORTFOLIO_COLUMNS = [
    'vehicle_id',
    'ownership_type',
    'current_value',
    'loan_balance',
    'equity',
    'monthly_payment',
    'total_paid',
    'depreciation_rate_percent',
    'financial_status',
    'break_even_date',
    'projected_equity_at_maturity',
]


def aggregate(models: list[VehicleModelSummary]) -> PortfolioSnapshot:
    """Sum values, balances and payments; average depreciation unweighted."""
    if not models:
        return PortfolioSnapshot(
            total_value=0.0,
            total_loan_balance=0.0,
            total_equity=0.0,
            total_monthly_payments=0.0,
            avg_depreciation_rate_percent=0.0,
            vehicle_count=0,
        )
    total_value = float(sum(m.current_value for m in models))
    total_loan_balance = float(sum(m.loan_balance for m in models))
    avg_depreciation = float(np.mean([m.depreciation_rate_percent for m in models]))
    return PortfolioSnapshot(
        total_value=total_value,
        total_loan_balance=total_loan_balance,
        total_equity=total_value - total_loan_balance,
        total_monthly_payments=float(sum(m.monthly_payment for m in models)),
        avg_depreciation_rate_percent=avg_depreciation if np.isfinite(avg_depreciation) else 0.0,
        vehicle_count=len(models),
    )


def build_portfolio(
    entries: list[PortfolioEntry],
    *,
    as_of: pd.Timestamp | datetime | date | str | None = None,
    provider: ValuationProvider | None = None,
    config: EngineConfig = DEFAULT_CONFIG,
) -> PortfolioResult:
    """Model every entry and aggregate the ones that succeed.

    A failing entry is logged and reported in `failures`; it does not stop the others.
    """
    now = resolve_as_of(as_of)
    models: list[VehicleModelSummary] = []
    failures: list[PortfolioFailure] = []
    for entry in entries:
        try:
            models.append(
                calculate_financial_model(
                    entry.agreement,
                    entry.vehicle,
                    as_of=now,
                    provider=provider,
                    config=config,
                    vehicle_id=entry.vehicle_id,
                )
            )
        except EquityEngineError as exc:
            LOGGER.warning('Skipping vehicle %s: %s', entry.vehicle_id, exc)
            failures.append(
                PortfolioFailure(
                    vehicle_id=entry.vehicle_id,
                    error_type=type(exc).__name__,
                    message=str(exc),
                    field=getattr(exc, 'field', None),
                )
            )
    return PortfolioResult(snapshot=aggregate(models), models=models, failures=failures)


def portfolio_frame(models: list[VehicleModelSummary]) -> pd.DataFrame:
    """One row per vehicle summary."""
    rows = [
        {
            'vehicle_id': m.vehicle_id,
            'ownership_type': m.ownership_type.value,
            'current_value': m.current_value,
            'loan_balance': m.loan_balance,
            'equity': m.equity,
            'monthly_payment': m.monthly_payment,
            'total_paid': m.total_paid,
            'depreciation_rate_percent': m.depreciation_rate_percent,
            'financial_status': m.financial_status,
            'break_even_date': m.break_even_date,
            'projected_equity_at_maturity': m.projected_equity_at_maturity,
        }
        for m in models
    ]
    return pd.DataFrame(rows, columns=PORTFOLIO_COLUMNS)
