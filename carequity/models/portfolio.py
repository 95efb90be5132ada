"""Single-vehicle summary and portfolio aggregate models."""

from __future__ import annotations

from dataclasses import dataclass, field

import pandas as pd

from carequity.models.agreement import FinancingAgreement, OwnershipType, VehicleIdentity
from carequity.models.projection import MonthlyProjectionPoint, SwapWindow


@dataclass(frozen=True)
class PortfolioEntry:
    """One agreement/vehicle pair as held by the caller."""

    vehicle_id: str
    agreement: FinancingAgreement
    vehicle: VehicleIdentity


@dataclass(frozen=True)
class VehicleModelSummary:
    """Point-in-time financial picture of one vehicle plus its projection."""

    ownership_type: OwnershipType
    purchase_price: float
    current_value: float
    loan_balance: float
    equity: float
    monthly_payment: float
    total_paid: float
    remaining_term: int
    payments_made: int
    balloon_due: float
    total_cost: float
    monthly_cost_of_ownership: float
    depreciation_rate_percent: float
    financial_status: str
    break_even_date: pd.Timestamp | None = None
    projected_equity_at_maturity: float = 0.0
    swap_window: SwapWindow | None = None
    projections: tuple[MonthlyProjectionPoint, ...] = ()
    vehicle_id: str | None = None


@dataclass(frozen=True)
class PortfolioSnapshot:
    total_value: float
    total_loan_balance: float
    total_equity: float
    total_monthly_payments: float
    avg_depreciation_rate_percent: float
    vehicle_count: int


@dataclass(frozen=True)
class PortfolioFailure:
    vehicle_id: str
    error_type: str
    message: str
    field: str | None = None


@dataclass(frozen=True)
class PortfolioResult:
    snapshot: PortfolioSnapshot
    models: list[VehicleModelSummary] = field(default_factory=list)
    failures: list[PortfolioFailure] = field(default_factory=list)
