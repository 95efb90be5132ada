import pytest

from carequity.calculations.financial_model import calculate_financial_model
from carequity.calculations.portfolio import PORTFOLIO_COLUMNS, aggregate, build_portfolio, portfolio_frame
from carequity.models.agreement import FinancingAgreement, VehicleIdentity
from carequity.models.portfolio import PortfolioEntry

VEHICLE = VehicleIdentity(make='Honda', model='Jazz', year=2023)


def _entries() -> list[PortfolioEntry]:
    cash = FinancingAgreement(purchase_price=10000.0, start_date='2024-01-15', ownership_type='cash')
    loan = FinancingAgreement(
        purchase_price=20000.0,
        start_date='2023-01-15',
        ownership_type='loan',
        deposit=2000.0,
        interest_rate_annual_percent=5.0,
        term_months=48,
    )
    broken_lease = FinancingAgreement(purchase_price=30000.0, start_date=None, ownership_type='lease')
    return [
        PortfolioEntry('cash-1', cash, VEHICLE),
        PortfolioEntry('loan-1', loan, VEHICLE),
        PortfolioEntry('lease-1', broken_lease, VEHICLE),
    ]


def test_aggregate_empty_is_all_zero() -> None:
    snap = aggregate([])
    assert snap.vehicle_count == 0
    assert snap.total_value == 0.0
    assert snap.avg_depreciation_rate_percent == 0.0


def test_aggregate_sums_and_unweighted_average() -> None:
    entries = _entries()[:2]
    models = [calculate_financial_model(e.agreement, e.vehicle, as_of='2025-01-15') for e in entries]
    snap = aggregate(models)
    assert snap.vehicle_count == 2
    assert snap.total_value == pytest.approx(models[0].current_value + models[1].current_value)
    assert snap.total_loan_balance == pytest.approx(models[1].loan_balance)
    assert snap.total_equity == pytest.approx(snap.total_value - snap.total_loan_balance)
    assert snap.total_monthly_payments == pytest.approx(models[1].monthly_payment)
    # 20% after one year, 35% after two
    assert snap.avg_depreciation_rate_percent == pytest.approx((20.0 + 35.0) / 2)


def test_build_portfolio_skips_failed_entries() -> None:
    result = build_portfolio(_entries(), as_of='2025-01-15')
    assert result.snapshot.vehicle_count == 2
    assert [m.vehicle_id for m in result.models] == ['cash-1', 'loan-1']
    assert len(result.failures) == 1
    failure = result.failures[0]
    assert failure.vehicle_id == 'lease-1'
    assert failure.error_type == 'InsufficientData'


def test_portfolio_frame_has_one_row_per_model() -> None:
    result = build_portfolio(_entries(), as_of='2025-01-15')
    frame = portfolio_frame(result.models)
    assert frame.columns.tolist() == PORTFOLIO_COLUMNS
    assert frame['vehicle_id'].tolist() == ['cash-1', 'loan-1']
    assert frame['ownership_type'].tolist() == ['cash', 'loan']
