"""Vehicle market value: external anchor or fallback depreciation curve."""

from __future__ import annotations

import math
from datetime import date, datetime

import pandas as pd

from carequity.models.agreement import VehicleIdentity
from carequity.models.errors import ValuationUnavailable
from carequity.models.valuation_providers import ValuationProvider
from carequity.utils.date_utils import months_between, resolve_as_of
from carequity.utils.logging import get_logger

LOGGER = get_logger(__name__)

MAX_DEPRECIATION_RATE = 0.70


def depreciation_rate(months_owned: float) -> float:
    """Cumulative depreciation fraction after `months_owned` months.

    Year 1 loses 20%, year 2 15%, year 3 10% (all linear within the year), then 5% per
    completed year; capped at 70%.
    """
    m = max(0.0, float(months_owned))
    if m <= 12:
        rate = 0.20 * (m / 12)
    elif m <= 24:
        rate = 0.20 + 0.15 * ((m - 12) / 12)
    elif m <= 36:
        rate = 0.35 + 0.10 * ((m - 24) / 12)
    else:
        rate = 0.45 + 0.05 * math.floor((m - 36) / 12)
    return min(rate, MAX_DEPRECIATION_RATE)


def value_at_month(purchase_price: float, months_owned: int, vehicle: VehicleIdentity | None = None) -> float:
    """Market value `months_owned` months after purchase.

    A calibrated external value is returned as-is for every month; only the fallback
    curve varies with time.
    """
    if vehicle is not None and vehicle.has_calibrated_value:
        return float(vehicle.api_calibrated_value)
    return float(purchase_price) * (1 - depreciation_rate(months_owned))


def resolve_vehicle(vehicle: VehicleIdentity, provider: ValuationProvider | None = None) -> VehicleIdentity:
    """Attach the provider's figure when the vehicle has no usable calibrated value."""
    if vehicle.has_calibrated_value or provider is None:
        return vehicle
    value = provider.resolve(vehicle.make, vehicle.model, vehicle.year, vehicle.mileage)
    if value is None or not math.isfinite(float(value)) or float(value) <= 0:
        LOGGER.debug('No provider valuation for %s %s %s; using depreciation curve.', vehicle.year, vehicle.make, vehicle.model)
        return vehicle
    return vehicle.with_calibrated_value(float(value))


def current_value(
    purchase_price: float,
    start_date: pd.Timestamp | datetime | date | str | None,
    as_of: pd.Timestamp | datetime | date | str | None,
    vehicle: VehicleIdentity | None = None,
    *,
    provider: ValuationProvider | None = None,
) -> float:
    """Value of the vehicle at `as_of` (today when omitted)."""
    if vehicle is not None:
        vehicle = resolve_vehicle(vehicle, provider)
        if vehicle.has_calibrated_value:
            return float(vehicle.api_calibrated_value)
    if start_date is None or pd.isna(start_date):
        raise ValuationUnavailable('No market valuation available and no start_date for the depreciation curve.')

    months_owned = months_between(start_date, resolve_as_of(as_of))
    if months_owned < 0:
        LOGGER.warning('Valuation date precedes start_date by %s months; clamping to purchase value.', -months_owned)
        months_owned = 0
    return value_at_month(purchase_price, months_owned)
