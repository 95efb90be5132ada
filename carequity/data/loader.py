"""Excel loader and schema normalization for agreement tables."""

from __future__ import annotations

import re

import pandas as pd

from carequity.config import DEFAULT_CONFIG, EngineConfig
from carequity.data.validator import DATE_COLUMNS, NUMERIC_COLUMNS, validate_agreements
from carequity.models.agreement import FinancingAgreement, VehicleIdentity
from carequity.models.errors import ValidationError
from carequity.models.portfolio import PortfolioEntry
from carequity.utils.logging import get_logger

LOGGER = get_logger(__name__)

AGREEMENTS_SHEET = 'Agreements'

AGREEMENT_COLUMN_MAP = {
    'id': 'vehicle_id',
    'car_id': 'vehicle_id',
    'purchase_date': 'start_date',
    'interest_rate': 'interest_rate_annual_percent',
    'apr': 'interest_rate_annual_percent',
    'term': 'term_months',
    'monthly_payment': 'monthly_payment_override',
    'gfv_percent': 'guaranteed_future_value_percent',
    'balloon': 'balloon_payment',
    'type': 'body_class',
}


def _normalize_columns(df: pd.DataFrame) -> pd.DataFrame:
    out = df.copy()
    out.columns = [re.sub(r'[\s\-]+', '_', str(c).strip().lower()) for c in out.columns]
    return out


def _optional(row: pd.Series, col: str) -> object | None:
    if col not in row.index:
        return None
    value = row[col]
    if value is None or pd.isna(value):
        return None
    return value


def _optional_float(row: pd.Series, col: str) -> float | None:
    value = _optional(row, col)
    return None if value is None else float(value)


def _row_to_entry(row: pd.Series) -> PortfolioEntry:
    year = _optional(row, 'year')
    agreement = FinancingAgreement(
        purchase_price=float(row['purchase_price']),
        start_date=row['start_date'],
        ownership_type=str(row['ownership_type']),
        deposit=float(row['deposit']),
        loan_amount=_optional_float(row, 'loan_amount'),
        interest_rate_annual_percent=float(row['interest_rate_annual_percent']),
        term_months=int(row['term_months']),
        balloon_payment=_optional_float(row, 'balloon_payment'),
        guaranteed_future_value_percent=_optional_float(row, 'guaranteed_future_value_percent'),
        monthly_payment_override=_optional_float(row, 'monthly_payment_override'),
        first_payment_date=_optional(row, 'first_payment_date'),
        rolled_over_debt=float(row['rolled_over_debt']),
        residual_value=_optional_float(row, 'residual_value'),
        annual_mileage_cap=_optional_float(row, 'annual_mileage_cap'),
        mileage=_optional_float(row, 'mileage'),
    )
    vehicle = VehicleIdentity(
        make=str(row['make']).strip(),
        model=str(row['model']).strip(),
        year=None if year is None else int(year),
        mileage=_optional_float(row, 'mileage'),
        body_class=_optional(row, 'body_class'),
        annual_mileage=_optional_float(row, 'annual_mileage'),
        api_calibrated_value=_optional_float(row, 'api_calibrated_value'),
    )
    return PortfolioEntry(vehicle_id=str(row['vehicle_id']), agreement=agreement, vehicle=vehicle)


def agreements_from_frame(df: pd.DataFrame, config: EngineConfig = DEFAULT_CONFIG) -> list[PortfolioEntry]:
    """Normalize, validate and convert an agreement table into portfolio entries.

    Rows that cannot form a valid agreement are logged and excluded.
    """
    agreements = _normalize_columns(df).rename(columns=AGREEMENT_COLUMN_MAP)

    for col in DATE_COLUMNS:
        if col in agreements.columns:
            agreements[col] = pd.to_datetime(agreements[col])
    for col in NUMERIC_COLUMNS:
        if col in agreements.columns:
            agreements[col] = pd.to_numeric(agreements[col])
    if 'vehicle_id' in agreements.columns:
        agreements['vehicle_id'] = agreements['vehicle_id'].astype(str).str.strip()
    if 'ownership_type' in agreements.columns:
        agreements['ownership_type'] = agreements['ownership_type'].astype(str).str.strip().str.lower()

    for warning in validate_agreements(agreements):
        LOGGER.warning(warning)

    defaults = {
        'deposit': 0.0,
        'rolled_over_debt': 0.0,
        'interest_rate_annual_percent': config.default_interest_rate_percent,
        'term_months': config.default_term_months,
    }
    for col, default in defaults.items():
        if col not in agreements.columns:
            agreements[col] = default
        agreements[col] = agreements[col].fillna(default)

    invalid_deposit_mask = agreements['deposit'] > agreements['purchase_price']
    if invalid_deposit_mask.any():
        agreements = agreements.loc[~invalid_deposit_mask].copy()

    entries: list[PortfolioEntry] = []
    for _, row in agreements.iterrows():
        try:
            entries.append(_row_to_entry(row))
        except ValidationError as exc:
            LOGGER.warning('Excluding vehicle %s: %s', row['vehicle_id'], exc)
    return entries


def load_agreements_workbook(
    path: str,
    sheet_name: str = AGREEMENTS_SHEET,
    config: EngineConfig = DEFAULT_CONFIG,
) -> list[PortfolioEntry]:
    """Load, normalize, and validate an agreement sheet from a workbook."""
    raw = pd.read_excel(path, sheet_name=sheet_name)
    return agreements_from_frame(raw, config)
