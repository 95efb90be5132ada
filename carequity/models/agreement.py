"""Financing agreement and vehicle identity domain models."""

from __future__ import annotations

import math
from dataclasses import dataclass, replace
from enum import Enum

import pandas as pd

from carequity.models.errors import ValidationError


class OwnershipType(str, Enum):
    CASH = 'cash'
    LOAN = 'loan'
    PCP = 'pcp'
    TRADEIN = 'tradein'
    LEASE = 'lease'
    COMPANY = 'company'
    FLEET = 'fleet'

    @classmethod
    def parse(cls, value: OwnershipType | str) -> OwnershipType:
        if isinstance(value, cls):
            return value
        key = str(value).strip().lower()
        try:
            return cls(key)
        except ValueError:
            allowed = ', '.join(m.value for m in cls)
            raise ValidationError('ownership_type', f'unknown value {value!r} (expected one of {allowed})') from None

    @property
    def is_credit(self) -> bool:
        """Ownership types whose balance amortizes against a principal."""
        return self in (OwnershipType.LOAN, OwnershipType.PCP, OwnershipType.TRADEIN)

    @property
    def is_employer_funded(self) -> bool:
        return self in (OwnershipType.COMPANY, OwnershipType.FLEET)


def _optional_timestamp(value) -> pd.Timestamp | None:
    if value is None:
        return None
    ts = pd.Timestamp(value)
    if pd.isna(ts):
        return None
    if ts.tz is not None:
        ts = ts.tz_convert(None)
    return ts.normalize()


def _check_amount(field: str, value: float | None, *, allow_none: bool = True) -> None:
    if value is None:
        if not allow_none:
            raise ValidationError(field, 'is required')
        return
    if not math.isfinite(float(value)):
        raise ValidationError(field, f'must be a finite number, got {value!r}')
    if float(value) < 0:
        raise ValidationError(field, f'must be >= 0, got {value!r}')


@dataclass(frozen=True)
class FinancingAgreement:
    """A single vehicle finance agreement, validated on construction.

    `loan_amount` falls back to `purchase_price - deposit`; for PCP agreements a missing
    `balloon_payment` is derived from `guaranteed_future_value_percent`. An explicit balloon
    is checked against the principal here; a derived one when it is first computed.
    """

    purchase_price: float
    start_date: pd.Timestamp | None
    ownership_type: OwnershipType
    deposit: float = 0.0
    loan_amount: float | None = None
    interest_rate_annual_percent: float = 7.0
    term_months: int = 60
    balloon_payment: float | None = None
    guaranteed_future_value_percent: float | None = None
    monthly_payment_override: float | None = None
    first_payment_date: pd.Timestamp | None = None
    rolled_over_debt: float = 0.0
    residual_value: float | None = None
    annual_mileage_cap: float | None = None
    mileage: float | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, 'ownership_type', OwnershipType.parse(self.ownership_type))
        object.__setattr__(self, 'start_date', _optional_timestamp(self.start_date))
        object.__setattr__(self, 'first_payment_date', _optional_timestamp(self.first_payment_date))
        self.validate()

    def validate(self) -> None:
        _check_amount('purchase_price', self.purchase_price, allow_none=False)
        _check_amount('deposit', self.deposit, allow_none=False)
        if float(self.deposit) > float(self.purchase_price):
            raise ValidationError(
                'deposit',
                f'deposit {self.deposit} exceeds purchase_price {self.purchase_price}',
            )
        if self.term_months is None:
            raise ValidationError('term_months', 'is required')
        if int(self.term_months) != self.term_months or int(self.term_months) <= 0:
            raise ValidationError('term_months', f'must be a positive whole number, got {self.term_months!r}')
        _check_amount('interest_rate_annual_percent', self.interest_rate_annual_percent, allow_none=False)
        _check_amount('loan_amount', self.loan_amount)
        _check_amount('balloon_payment', self.balloon_payment)
        _check_amount('guaranteed_future_value_percent', self.guaranteed_future_value_percent)
        _check_amount('monthly_payment_override', self.monthly_payment_override)
        _check_amount('rolled_over_debt', self.rolled_over_debt, allow_none=False)
        _check_amount('residual_value', self.residual_value)
        _check_amount('annual_mileage_cap', self.annual_mileage_cap)
        _check_amount('mileage', self.mileage)
        if self.ownership_type.is_credit and self.balloon_payment:
            principal = (
                float(self.loan_amount)
                if self.loan_amount is not None
                else float(self.purchase_price) - float(self.deposit)
            )
            if float(self.balloon_payment) > principal:
                raise ValidationError(
                    'balloon_payment',
                    f'balloon {self.balloon_payment} exceeds financed principal {principal:.2f}',
                )


@dataclass(frozen=True)
class VehicleIdentity:
    """What the valuation side knows about the car.

    `api_calibrated_value` is an external valuation snapshot; values <= 0 are treated
    as absent.
    """

    make: str
    model: str
    year: int | None = None
    mileage: float | None = None
    body_class: str | None = None
    annual_mileage: float | None = None
    api_calibrated_value: float | None = None

    def __post_init__(self) -> None:
        _check_amount('mileage', self.mileage)
        _check_amount('annual_mileage', self.annual_mileage)
        if self.api_calibrated_value is not None and not math.isfinite(float(self.api_calibrated_value)):
            raise ValidationError('api_calibrated_value', 'must be a finite number')

    @property
    def has_calibrated_value(self) -> bool:
        return self.api_calibrated_value is not None and float(self.api_calibrated_value) > 0

    def with_calibrated_value(self, value: float | None) -> VehicleIdentity:
        return replace(self, api_calibrated_value=value)
