import pandas as pd
import pytest

from carequity.config import EngineConfig
from carequity.models.agreement import FinancingAgreement, OwnershipType, VehicleIdentity
from carequity.models.errors import ValidationError


def _kwargs(**overrides) -> dict:
    base = {
        'purchase_price': 20000.0,
        'start_date': '2024-03-01',
        'ownership_type': 'loan',
        'deposit': 2000.0,
        'interest_rate_annual_percent': 5.9,
        'term_months': 36,
    }
    base.update(overrides)
    return base


def test_agreement_coerces_types() -> None:
    agreement = FinancingAgreement(**_kwargs(ownership_type=' PCP ', first_payment_date='2024-04-01 10:30'))
    assert agreement.ownership_type is OwnershipType.PCP
    assert agreement.start_date == pd.Timestamp('2024-03-01')
    assert agreement.first_payment_date == pd.Timestamp('2024-04-01')


@pytest.mark.parametrize(
    'overrides, field',
    [
        ({'purchase_price': -1.0}, 'purchase_price'),
        ({'deposit': 25000.0}, 'deposit'),
        ({'deposit': -5.0}, 'deposit'),
        ({'term_months': 0}, 'term_months'),
        ({'term_months': -12}, 'term_months'),
        ({'interest_rate_annual_percent': -0.5}, 'interest_rate_annual_percent'),
        ({'balloon_payment': -100.0}, 'balloon_payment'),
        ({'balloon_payment': 19000.0}, 'balloon_payment'),
        ({'loan_amount': 5000.0, 'balloon_payment': 6000.0}, 'balloon_payment'),
        ({'term_months': None}, 'term_months'),
        ({'ownership_type': 'rental'}, 'ownership_type'),
    ],
)
def test_invalid_agreements_name_the_field(overrides, field) -> None:
    with pytest.raises(ValidationError) as excinfo:
        FinancingAgreement(**_kwargs(**overrides))
    assert excinfo.value.field == field
    assert isinstance(excinfo.value, ValueError)


def test_deposit_equal_to_price_is_allowed() -> None:
    assert FinancingAgreement(**_kwargs(ownership_type='cash', deposit=20000.0)).deposit == 20000.0


def test_balloon_only_checked_for_credit_agreements() -> None:
    lease = FinancingAgreement(**_kwargs(ownership_type='lease', balloon_payment=50000.0))
    assert lease.balloon_payment == 50000.0


def test_ownership_type_helpers() -> None:
    assert OwnershipType.TRADEIN.is_credit
    assert not OwnershipType.LEASE.is_credit
    assert OwnershipType.FLEET.is_employer_funded


def test_vehicle_identity_calibrated_value_flag() -> None:
    vehicle = VehicleIdentity(make='Kia', model='Niro', year=2023)
    assert not vehicle.has_calibrated_value
    assert vehicle.with_calibrated_value(18000.0).has_calibrated_value
    assert not vehicle.with_calibrated_value(-1.0).has_calibrated_value


def test_engine_config_rejects_negative_markup() -> None:
    with pytest.raises(ValueError, match='private_sale_markup'):
        EngineConfig(private_sale_markup=-0.01)
