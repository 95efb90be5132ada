"""Single-vehicle financial summary combining valuation, ownership and projection."""

from __future__ import annotations

from datetime import date, datetime

import pandas as pd

from carequity.calculations.amortization import ownership_position
from carequity.calculations.projection import generate_projections
from carequity.calculations.settlement import financial_status
from carequity.calculations.swap_window import analyze
from carequity.calculations.valuation import current_value, resolve_vehicle
from carequity.config import DEFAULT_CONFIG, EngineConfig
from carequity.models.agreement import FinancingAgreement, OwnershipType, VehicleIdentity
from carequity.models.errors import InsufficientData, ValuationUnavailable
from carequity.models.portfolio import VehicleModelSummary
from carequity.models.valuation_providers import ValuationProvider
from carequity.utils.date_utils import months_between, resolve_as_of
from carequity.utils.logging import get_logger

LOGGER = get_logger(__name__)


def _resolve_current_value(agreement: FinancingAgreement, vehicle: VehicleIdentity, as_of: pd.Timestamp) -> float:
    try:
        return current_value(agreement.purchase_price, agreement.start_date, as_of, vehicle)
    except ValuationUnavailable as exc:
        if agreement.ownership_type is OwnershipType.LEASE and agreement.residual_value is None:
            raise InsufficientData('Lease has no residual_value and no current market value.') from exc
        raise


def depreciation_rate_percent(purchase_price: float, value: float) -> float:
    price = float(purchase_price)
    if price <= 0:
        return 0.0
    return (price - float(value)) / price * 100.0


def calculate_financial_model(
    agreement: FinancingAgreement,
    vehicle: VehicleIdentity,
    *,
    as_of: pd.Timestamp | datetime | date | str | None = None,
    provider: ValuationProvider | None = None,
    config: EngineConfig = DEFAULT_CONFIG,
    vehicle_id: str | None = None,
) -> VehicleModelSummary:
    """Current value, balance, equity and projection outlook for one agreement."""
    now = resolve_as_of(as_of)
    vehicle = resolve_vehicle(vehicle, provider)
    value = _resolve_current_value(agreement, vehicle, now)
    position = ownership_position(agreement, value, now)
    equity = value - position.loan_balance

    months_elapsed = 0
    points = []
    swap_window = None
    break_even_date = None
    projected_equity_at_maturity = equity
    if agreement.start_date is not None:
        months_elapsed = max(months_between(agreement.start_date, now), 0)
        points = generate_projections(agreement, vehicle, as_of=now, config=config)
        swap_window = analyze(points, 'trade_in', current_month=months_elapsed).swap_window
        break_even = next((p for p in points if p.is_break_even_month), None)
        break_even_date = break_even.date if break_even is not None else None
        maturity = next((p for p in points if p.month_index == agreement.term_months), None)
        if maturity is not None:
            projected_equity_at_maturity = maturity.cash_position.trade_in
    else:
        LOGGER.debug('Agreement has no start_date; summary built without a projection.')

    purchase_price = float(agreement.purchase_price)
    # total cost adds (value - price), so depreciation lowers it
    total_cost = position.total_paid + (value - purchase_price)
    monthly_cost = position.monthly_payment + (purchase_price - value) / max(months_elapsed, 1)

    return VehicleModelSummary(
        ownership_type=agreement.ownership_type,
        purchase_price=purchase_price,
        current_value=value,
        loan_balance=position.loan_balance,
        equity=equity,
        monthly_payment=position.monthly_payment,
        total_paid=position.total_paid,
        remaining_term=position.remaining_term,
        payments_made=position.payments_made,
        balloon_due=position.balloon,
        total_cost=total_cost,
        monthly_cost_of_ownership=monthly_cost,
        depreciation_rate_percent=depreciation_rate_percent(purchase_price, value),
        financial_status=financial_status(equity, config.status_threshold),
        break_even_date=break_even_date,
        projected_equity_at_maturity=projected_equity_at_maturity,
        swap_window=swap_window,
        projections=tuple(points),
        vehicle_id=vehicle_id,
    )
