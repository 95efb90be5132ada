"""Input data validation for agreement tables."""

from __future__ import annotations

import pandas as pd

from carequity.models.agreement import OwnershipType

AGREEMENT_REQUIRED_COLUMNS = [
    'vehicle_id',
    'make',
    'model',
    'purchase_price',
    'start_date',
    'ownership_type',
]

NUMERIC_COLUMNS = [
    'purchase_price',
    'deposit',
    'loan_amount',
    'interest_rate_annual_percent',
    'term_months',
    'balloon_payment',
    'guaranteed_future_value_percent',
    'monthly_payment_override',
    'rolled_over_debt',
    'residual_value',
    'annual_mileage_cap',
    'mileage',
    'year',
    'annual_mileage',
    'api_calibrated_value',
]

DATE_COLUMNS = ['start_date', 'first_payment_date']


def _missing_columns(df: pd.DataFrame, required: list[str]) -> list[str]:
    cols = set(df.columns)
    return [col for col in required if col not in cols]


def validate_agreements(df: pd.DataFrame) -> list[str]:
    """Validate normalized agreement data and return non-fatal warnings."""
    missing = _missing_columns(df, AGREEMENT_REQUIRED_COLUMNS)
    if missing:
        raise ValueError(f'Missing required agreement columns: {missing}')

    warnings: list[str] = []

    if df['vehicle_id'].duplicated().any():
        raise ValueError('Duplicate vehicle_id values found.')

    if df[AGREEMENT_REQUIRED_COLUMNS].isna().any().any():
        raise ValueError('Agreements contain nulls in required columns.')

    for col in DATE_COLUMNS:
        if col in df.columns and not pd.api.types.is_datetime64_any_dtype(df[col]):
            raise ValueError(f'Column {col} must be datetime64 dtype.')

    for col in NUMERIC_COLUMNS:
        if col in df.columns and not pd.api.types.is_numeric_dtype(df[col]):
            raise ValueError(f'Column {col} must be numeric dtype.')

    allowed = {m.value for m in OwnershipType}
    unknown = sorted(set(df['ownership_type'].astype(str).str.strip().str.lower()) - allowed)
    if unknown:
        raise ValueError(f'Unknown ownership_type values: {unknown}')

    if 'deposit' in df.columns:
        over_deposit = int((df['deposit'].fillna(0.0) > df['purchase_price']).sum())
        if over_deposit:
            warnings.append(f'{over_deposit} agreements have deposit > purchase_price and will be excluded.')

    zero_price = int((df['purchase_price'] == 0).sum())
    if zero_price:
        warnings.append(f'{zero_price} agreements have zero purchase_price.')

    if 'interest_rate_annual_percent' in df.columns:
        high_rate = int((df['interest_rate_annual_percent'] > 30.0).sum())
        if high_rate:
            warnings.append(f'{high_rate} agreements have interest rate above 30%.')

    return warnings
