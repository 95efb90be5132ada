"""Estimated PCP balloon (guaranteed minimum future value) from residual tables."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime

import numpy as np
import pandas as pd

from carequity.utils.date_utils import resolve_as_of

CATEGORY_STANDARD = 'Standard'
CATEGORY_LUXURY = 'Luxury'
CATEGORY_EXOTIC = 'Sports/Exotic'
CATEGORY_ELECTRIC = 'Electric'

# fraction of purchase price retained at each term (months)
RESIDUAL_VALUE_TABLE: dict[str, dict[int, float]] = {
    CATEGORY_STANDARD: {12: 0.75, 24: 0.65, 36: 0.55, 48: 0.48, 60: 0.42},
    CATEGORY_LUXURY: {12: 0.78, 24: 0.68, 36: 0.58, 48: 0.50, 60: 0.44},
    CATEGORY_EXOTIC: {12: 0.85, 24: 0.77, 36: 0.70, 48: 0.65, 60: 0.60},
    CATEGORY_ELECTRIC: {12: 0.75, 24: 0.65, 36: 0.55, 48: 0.48, 60: 0.43},
}

BASE_ANNUAL_MILEAGE = 12_000
HIGH_MILEAGE_PENALTY = 0.015
LOW_MILEAGE_BONUS = 0.010
NEW_VEHICLE_BONUS = 0.02
OLD_VEHICLE_PENALTY = -0.03
CONDITION_ADJUSTMENTS = {'excellent': 0.03, 'good': 0.0, 'fair': -0.03, 'poor': -0.06}
ESTIMATE_VARIANCE = 0.05

_EXOTIC_MAKES = {'ferrari', 'porsche', 'lamborghini', 'corvette', 'mclaren', 'aston martin'}
_EXOTIC_MODELS = ('911', 'corvette', 'amg', 'gt-r', 'nsx')
_LUXURY_MAKES = {
    'range rover', 'mercedes', 'mercedes-benz', 'bmw', 'audi', 'lexus',
    'bentley', 'rolls-royce', 'jaguar', 'maserati',
}
_LUXURY_MODELS = ('range rover', 's-class', '7 series', 'a8', 'x5', 'q7', 'gle', 'cayenne', 'escalade')
_ELECTRIC_MAKES = {'tesla', 'polestar', 'rivian', 'lucid'}
_ELECTRIC_MODELS = ('leaf', 'e-tron', 'i3', 'i4', 'taycan', 'electric', 'ev', 'id.4', 'mach-e')


@dataclass(frozen=True)
class BalloonEstimate:
    estimated: float
    min: float
    max: float
    category: str
    base_residual_percent: float = 0.0
    base_residual_value: float = 0.0
    adjustments: dict[str, float] = field(default_factory=dict)
    error: str | None = None

    @property
    def total_adjustment_factor(self) -> float:
        factor = 1.0
        for name, adj in self.adjustments.items():
            factor *= adj if name == 'market_trend' else 1.0 + adj
        return factor


def classify_vehicle_for_residual(make: str | None, model: str | None) -> str:
    """Exotic, then luxury, then electric; anything else is standard."""
    if not make or not model:
        return CATEGORY_STANDARD
    make_l = make.strip().lower()
    model_l = model.strip().lower()
    if make_l in _EXOTIC_MAKES or any(k in model_l for k in _EXOTIC_MODELS):
        return CATEGORY_EXOTIC
    if make_l in _LUXURY_MAKES or any(k in model_l for k in _LUXURY_MODELS):
        return CATEGORY_LUXURY
    if make_l in _ELECTRIC_MAKES or any(k in model_l for k in _ELECTRIC_MODELS):
        return CATEGORY_ELECTRIC
    return CATEGORY_STANDARD


def residual_value_percent(category: str, term_months: int) -> float:
    """Residual fraction for a term, clamped at the table ends and linear in between."""
    table = RESIDUAL_VALUE_TABLE.get(category, RESIDUAL_VALUE_TABLE[CATEGORY_STANDARD])
    terms = np.array(sorted(table), dtype=float)
    values = np.array([table[int(t)] for t in terms], dtype=float)
    return float(np.interp(float(term_months), terms, values))


def mileage_adjustment(current_mileage: float | None, vehicle_age: float | None) -> float:
    if not current_mileage or not vehicle_age or vehicle_age <= 0:
        return 0.0
    expected = BASE_ANNUAL_MILEAGE * vehicle_age
    pct_diff = (float(current_mileage) - expected) / expected
    increments = int(np.floor(abs(pct_diff) / 0.10))
    if pct_diff > 0:
        return -increments * HIGH_MILEAGE_PENALTY
    if pct_diff < 0:
        return increments * LOW_MILEAGE_BONUS
    return 0.0


def age_adjustment(vehicle_age: float | None) -> float:
    if vehicle_age is None:
        return 0.0
    if vehicle_age < 2:
        return NEW_VEHICLE_BONUS
    if vehicle_age > 5:
        return OLD_VEHICLE_PENALTY
    return 0.0


def condition_adjustment(condition: str | None) -> float:
    if not condition:
        return 0.0
    return CONDITION_ADJUSTMENTS.get(condition.strip().lower(), 0.0)


def estimate_balloon_payment(
    purchase_price: float,
    term_months: int,
    make: str | None,
    model: str | None,
    year: int | None = None,
    current_mileage: float | None = None,
    condition: str | None = None,
    *,
    as_of: pd.Timestamp | datetime | date | str | None = None,
    market_trend: float = 1.0,
) -> BalloonEstimate:
    """Estimate the balloon for a PCP from purchase price, term and vehicle class.

    Invalid price or term yields a zero estimate carrying an `error` message.
    """
    category = classify_vehicle_for_residual(make, model)
    if not purchase_price or purchase_price <= 0:
        return BalloonEstimate(0.0, 0.0, 0.0, category, error='Purchase price is required')
    if not term_months or term_months <= 0:
        return BalloonEstimate(0.0, 0.0, 0.0, category, error='Term is required')

    base_pct = residual_value_percent(category, term_months)
    base_value = float(purchase_price) * base_pct

    vehicle_age = resolve_as_of(as_of).year - int(year) if year else None
    adjustments = {
        'mileage': mileage_adjustment(current_mileage, vehicle_age),
        'age': age_adjustment(vehicle_age),
        'condition': condition_adjustment(condition),
        'market_trend': float(market_trend),
    }
    adjusted = (
        base_value
        * (1 + adjustments['mileage'])
        * (1 + adjustments['age'])
        * (1 + adjustments['condition'])
        * adjustments['market_trend']
    )
    estimated = float(round(adjusted))
    return BalloonEstimate(
        estimated=estimated,
        min=float(round(estimated * (1 - ESTIMATE_VARIANCE))),
        max=float(round(estimated * (1 + ESTIMATE_VARIANCE))),
        category=category,
        base_residual_percent=base_pct * 100.0,
        base_residual_value=base_value,
        adjustments=adjustments,
    )
