"""Loan amortization and ownership-type dispatch.

Balances follow the standard annuity schedule. A balloon is carried outside the
amortizing portion: the level payment repays `principal - PV(balloon)` over the term,
so the balance falls monotonically from `principal` at month 0 to exactly `balloon` at
maturity. Zero-rate agreements amortize linearly.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime

import pandas as pd

from carequity.models.agreement import FinancingAgreement, OwnershipType
from carequity.models.errors import InsufficientData, ValidationError
from carequity.utils.date_utils import months_between, resolve_as_of
from carequity.utils.logging import get_logger

LOGGER = get_logger(__name__)

ZERO_RATE_EPSILON = 1e-12


def monthly_rate(annual_rate_percent: float) -> float:
    return float(annual_rate_percent) / 100.0 / 12.0


def _is_zero_rate(rate_m: float) -> bool:
    return abs(rate_m) < ZERO_RATE_EPSILON


def financed_amount(principal: float, annual_rate_percent: float, term_months: int, balloon: float = 0.0) -> float:
    """Portion of the principal repaid by the level monthly payments."""
    r = monthly_rate(annual_rate_percent)
    if _is_zero_rate(r):
        return float(principal) - float(balloon)
    return float(principal) - float(balloon) / (1 + r) ** int(term_months)


def monthly_payment(principal: float, annual_rate_percent: float, term_months: int, balloon: float = 0.0) -> float:
    """Level payment that leaves exactly `balloon` outstanding after `term_months`."""
    if int(term_months) <= 0:
        raise ValidationError('term_months', 'must be > 0')
    r = monthly_rate(annual_rate_percent)
    financed = financed_amount(principal, annual_rate_percent, term_months, balloon)
    if _is_zero_rate(r):
        return financed / int(term_months)
    factor = (1 + r) ** int(term_months)
    return financed * (r * factor) / (factor - 1)


def loan_balance(
    principal: float,
    annual_rate_percent: float,
    term_months: int,
    months_elapsed: int,
    balloon: float = 0.0,
) -> float:
    """Outstanding balance after `months_elapsed` payments.

    Returns `principal` at or before month 0 and `balloon` at or after maturity.
    """
    n = int(term_months)
    k = int(months_elapsed)
    if k >= n:
        return float(balloon)
    if k <= 0:
        return float(principal)

    r = monthly_rate(annual_rate_percent)
    financed = financed_amount(principal, annual_rate_percent, n, balloon)
    payment = monthly_payment(principal, annual_rate_percent, n, balloon)
    if _is_zero_rate(r):
        return max(financed - payment * k, 0.0) + float(balloon)

    growth = (1 + r) ** k
    amortizing = max(financed * growth - payment * ((growth - 1) / r), 0.0)
    # balloon accrues toward its face value, reached at month n
    return amortizing + float(balloon) / (1 + r) ** (n - k)


def payments_made(
    first_payment_date: pd.Timestamp | datetime | date | str | None,
    as_of: pd.Timestamp | datetime | date | str | None = None,
    start_date: pd.Timestamp | datetime | date | str | None = None,
) -> int:
    """Instalments paid by `as_of`; the first payment counts as one.

    Without a first payment date this falls back to whole months since `start_date`.
    """
    now = resolve_as_of(as_of)
    if first_payment_date is not None and not pd.isna(first_payment_date):
        first = pd.Timestamp(first_payment_date).normalize()
        if first > now:
            return 0
        return max(0, months_between(first, now) + 1)
    if start_date is None or pd.isna(start_date):
        return 0
    return max(0, months_between(start_date, now))


def effective_principal(agreement: FinancingAgreement) -> float:
    if agreement.loan_amount is not None:
        return float(agreement.loan_amount)
    return float(agreement.purchase_price) - float(agreement.deposit)


def effective_balloon(agreement: FinancingAgreement) -> float:
    """Balloon due at maturity, derived from the GFV percentage for PCP when absent."""
    if not agreement.ownership_type.is_credit:
        return 0.0
    balloon = float(agreement.balloon_payment or 0.0)
    if (
        agreement.ownership_type is OwnershipType.PCP
        and not balloon
        and agreement.guaranteed_future_value_percent
    ):
        balloon = float(agreement.purchase_price) * float(agreement.guaranteed_future_value_percent) / 100.0
        LOGGER.debug('Derived PCP balloon %.2f from GFV %.2f%%.', balloon, agreement.guaranteed_future_value_percent)
    principal = effective_principal(agreement)
    if balloon > principal:
        raise ValidationError('balloon_payment', f'balloon {balloon:.2f} exceeds financed principal {principal:.2f}')
    return balloon


def lease_liability(agreement: FinancingAgreement, market_value: float | None) -> float:
    """A lease reports its residual (or, lacking one, the car's value) as the liability."""
    if agreement.residual_value is not None:
        return float(agreement.residual_value)
    if market_value is None:
        raise InsufficientData('Lease has no residual_value and no current market value to stand in for it.')
    return float(market_value)


def balance_at_month(agreement: FinancingAgreement, month: int, market_value: float | None) -> float:
    """Liability offsetting the car's value `month` months into the agreement."""
    ownership = agreement.ownership_type
    if ownership.is_credit:
        return loan_balance(
            effective_principal(agreement),
            agreement.interest_rate_annual_percent,
            agreement.term_months,
            month,
            effective_balloon(agreement),
        )
    if ownership is OwnershipType.LEASE:
        return lease_liability(agreement, market_value)
    return 0.0


@dataclass(frozen=True)
class OwnershipPosition:
    loan_balance: float
    monthly_payment: float
    total_paid: float
    remaining_term: int
    payments_made: int
    balloon: float


def ownership_position(
    agreement: FinancingAgreement,
    current_value: float | None,
    as_of: pd.Timestamp | datetime | date | str | None = None,
) -> OwnershipPosition:
    """Balance, payment and amount paid so far for any ownership type."""
    now = resolve_as_of(as_of)
    ownership = agreement.ownership_type
    term = int(agreement.term_months)

    if ownership.is_credit:
        paid = payments_made(agreement.first_payment_date, now, agreement.start_date)
        principal = effective_principal(agreement)
        balloon = effective_balloon(agreement)
        rate = agreement.interest_rate_annual_percent
        payment = agreement.monthly_payment_override or monthly_payment(principal, rate, term, balloon)
        return OwnershipPosition(
            loan_balance=loan_balance(principal, rate, term, paid, balloon),
            monthly_payment=float(payment),
            total_paid=float(agreement.deposit) + payment * paid + float(agreement.rolled_over_debt),
            remaining_term=max(term - paid, 0),
            payments_made=paid,
            balloon=balloon,
        )

    if ownership is OwnershipType.LEASE:
        paid = payments_made(agreement.first_payment_date, now, agreement.start_date)
        payment = float(agreement.monthly_payment_override or 0.0)
        return OwnershipPosition(
            loan_balance=lease_liability(agreement, current_value),
            monthly_payment=payment,
            total_paid=payment * paid,
            remaining_term=max(term - paid, 0),
            payments_made=paid,
            balloon=0.0,
        )

    # company and fleet cars are funded by the employer; cash buyers paid the full price
    total_paid = 0.0 if ownership.is_employer_funded else float(agreement.purchase_price)
    return OwnershipPosition(
        loan_balance=0.0,
        monthly_payment=0.0,
        total_paid=total_paid,
        remaining_term=0,
        payments_made=0,
        balloon=0.0,
    )
