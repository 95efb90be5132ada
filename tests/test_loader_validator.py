import logging

import pandas as pd
import pytest

from carequity.data.loader import load_agreements_workbook
from carequity.data.validator import validate_agreements
from carequity.models.agreement import OwnershipType


def _write_agreements(path) -> None:
    agreements = pd.DataFrame(
        {
            'Vehicle ID': ['A1', 'A2', 'A3', 'A4'],
            'Make': ['Ford', 'BMW', 'Kia', 'Audi'],
            'Model': ['Focus', 'X5', 'Ceed', 'A3'],
            'Purchase Price': [18000, 50000, 12000, 20000],
            'Purchase Date': ['2024-01-15', '2023-06-01', '2024-03-01', '2024-01-01'],
            'Ownership Type': ['Loan', 'PCP', 'cash', 'pcp'],
            'Deposit': [2000, 5000, 15000, 0],
            'APR': [6.9, 7.9, None, 5.0],
            'Term': [48, 36, None, 0],
            'Balloon': [None, 20000, None, None],
        }
    )
    with pd.ExcelWriter(path, engine='openpyxl') as writer:
        agreements.to_excel(writer, sheet_name='Agreements', index=False)


def test_loader_normalizes_and_builds_entries(tmp_path, caplog) -> None:
    path = tmp_path / 'agreements.xlsx'
    _write_agreements(path)

    with caplog.at_level(logging.WARNING):
        entries = load_agreements_workbook(str(path))

    assert [e.vehicle_id for e in entries] == ['A1', 'A2']
    loan = entries[0].agreement
    assert loan.ownership_type is OwnershipType.LOAN
    assert loan.start_date == pd.Timestamp('2024-01-15')
    assert loan.interest_rate_annual_percent == pytest.approx(6.9)
    assert loan.term_months == 48
    assert loan.balloon_payment is None
    pcp = entries[1].agreement
    assert pcp.ownership_type is OwnershipType.PCP
    assert pcp.balloon_payment == 20000.0
    assert entries[1].vehicle.make == 'BMW'
    assert 'deposit > purchase_price' in caplog.text
    assert 'A4' in caplog.text


def test_validator_rejects_missing_columns() -> None:
    df = pd.DataFrame({'vehicle_id': ['A1'], 'purchase_price': [1000.0]})
    with pytest.raises(ValueError, match='Missing required agreement columns'):
        validate_agreements(df)


def _valid_frame() -> pd.DataFrame:
    return pd.DataFrame(
        {
            'vehicle_id': ['A1', 'A2'],
            'make': ['Ford', 'Kia'],
            'model': ['Focus', 'Ceed'],
            'purchase_price': [18000.0, 12000.0],
            'start_date': pd.to_datetime(['2024-01-15', '2024-03-01']),
            'ownership_type': ['loan', 'cash'],
        }
    )


def test_validator_rejects_duplicate_ids() -> None:
    df = _valid_frame()
    df['vehicle_id'] = ['A1', 'A1']
    with pytest.raises(ValueError, match='Duplicate vehicle_id'):
        validate_agreements(df)


def test_validator_rejects_unknown_ownership_type() -> None:
    df = _valid_frame()
    df['ownership_type'] = ['loan', 'rental']
    with pytest.raises(ValueError, match='Unknown ownership_type'):
        validate_agreements(df)


def test_validator_requires_datetime_dates() -> None:
    df = _valid_frame()
    df['start_date'] = ['2024-01-15', '2024-03-01']
    with pytest.raises(ValueError, match='datetime64'):
        validate_agreements(df)


def test_validator_warns_on_high_rate() -> None:
    df = _valid_frame()
    df['interest_rate_annual_percent'] = [35.0, 5.0]
    warnings = validate_agreements(df)
    assert any('above 30%' in w for w in warnings)
