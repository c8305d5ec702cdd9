"""
Loan Amortization Calculations

Fixed-payment, fixed-rate installment loans: the level payment, the full
period-by-period schedule, and the mortgage and auto-loan calculators built
on top of it.
"""

import logging
from dataclasses import dataclass
from datetime import date
from typing import ClassVar, Optional, Union

from dateutil.relativedelta import relativedelta
from pydantic import BaseModel, ConfigDict, Field

from fincalc.calculations.errors import (
    CalculationFailure,
    InvalidInputError,
    require_finite,
    returns_failure,
)
from fincalc.calculations.schedule import PaymentRecord, Schedule
from fincalc.config import get_settings

logger = logging.getLogger(__name__)


def _default_periods_per_year() -> int:
    return get_settings().default_periods_per_year


class LoanTerms(BaseModel):
    """Inputs for a fixed-payment installment loan."""

    model_config = ConfigDict(frozen=True)

    principal: float
    annual_rate_percent: float
    term_periods: int
    periods_per_year: int = Field(default_factory=_default_periods_per_year)
    start_date: Optional[date] = None  # due date of the first payment

    @property
    def periodic_rate(self) -> float:
        return self.annual_rate_percent / 100 / self.periods_per_year


@dataclass(frozen=True)
class AmortizationResult:
    """Level payment, totals and schedule for one loan."""

    terms: LoanTerms
    payment: float
    total_interest: float
    total_paid: float
    schedule: Schedule

    ok: ClassVar[bool] = True

    @property
    def principal(self) -> float:
        return self.terms.principal


@dataclass(frozen=True)
class MortgageResult:
    """Down payment split plus the amortized remainder."""

    home_price: float
    down_payment: float
    loan_amount: float
    amortization: AmortizationResult

    ok: ClassVar[bool] = True


def _validate_loan(
    principal: float, annual_rate_percent: float, term_periods: int, periods_per_year: int
) -> None:
    require_finite(principal=principal, annual_rate_percent=annual_rate_percent)
    if principal <= 0:
        raise InvalidInputError("principal must be positive")
    if term_periods <= 0:
        raise InvalidInputError("term_periods must be positive")
    if periods_per_year <= 0:
        raise InvalidInputError("periods_per_year must be positive")
    if annual_rate_percent < 0:
        raise InvalidInputError("annual_rate_percent cannot be negative")


def calculate_payment(
    principal: float,
    annual_rate_percent: float,
    term_periods: int,
    periods_per_year: int = 12,
) -> float:
    """
    Calculate the level payment of a fully amortizing loan.

    Args:
        principal: Loan principal amount
        annual_rate_percent: Nominal annual rate in percent (e.g., 5.5)
        term_periods: Number of payments
        periods_per_year: Payments per year (12 for monthly)

    Returns:
        Payment per period (positive number)

    Raises:
        InvalidInputError: If the loan terms are out of range
    """
    _validate_loan(principal, annual_rate_percent, term_periods, periods_per_year)

    rate = annual_rate_percent / 100 / periods_per_year
    if rate == 0:
        return principal / term_periods

    # Same as P*r*(1+r)^N / ((1+r)^N - 1), without overflowing for long terms
    return principal * rate / (1.0 - (1.0 + rate) ** (-term_periods))


def remaining_balance(terms: LoanTerms, payments_completed: int) -> float:
    """Calculate remaining loan balance after ``payments_completed`` payments."""
    if not 0 <= payments_completed <= terms.term_periods:
        raise InvalidInputError("payments_completed must be between 0 and term_periods")

    payment = calculate_payment(
        terms.principal, terms.annual_rate_percent, terms.term_periods, terms.periods_per_year
    )
    rate = terms.periodic_rate

    if rate == 0:
        return max(0.0, terms.principal - payment * payments_completed)

    growth = (1 + rate) ** payments_completed
    balance = terms.principal * growth - payment * ((growth - 1) / rate)
    return max(0.0, balance)


def _due_date(start_date: Optional[date], period: int, periods_per_year: int) -> Optional[date]:
    """Due date of ``period`` (1-based); the first payment falls on ``start_date``."""
    if start_date is None:
        return None

    steps = period - 1
    if 12 % periods_per_year == 0:
        return start_date + relativedelta(months=steps * (12 // periods_per_year))
    if 52 % periods_per_year == 0:
        return start_date + relativedelta(weeks=steps * (52 // periods_per_year))
    return start_date + relativedelta(days=round(steps * 365 / periods_per_year))


@returns_failure
def amortize(terms: LoanTerms) -> Union[AmortizationResult, CalculationFailure]:
    """
    Generate the full amortization schedule for a loan.

    Each period accrues interest on the opening balance; the rest of the
    level payment retires principal. The balance is clamped at zero so
    rounding residue never shows up as a negative final balance. Use
    ``loan_schedule`` when the terms still need validating.
    """
    payment = calculate_payment(
        terms.principal, terms.annual_rate_percent, terms.term_periods, terms.periods_per_year
    )
    rate = terms.periodic_rate

    records = []
    balance = terms.principal
    total_interest = 0.0

    for period in range(1, terms.term_periods + 1):
        interest = balance * rate
        principal_pmt = payment - interest
        balance = max(0.0, balance - principal_pmt)
        total_interest += interest

        records.append(
            PaymentRecord(
                index=period,
                payment=payment,
                principal=principal_pmt,
                interest=interest,
                balance=balance,
                due_date=_due_date(terms.start_date, period, terms.periods_per_year),
            )
        )

    logger.debug(
        f"Amortized {terms.principal:.2f} over {terms.term_periods} periods "
        f"at {terms.annual_rate_percent}%: payment {payment:.2f}"
    )

    return AmortizationResult(
        terms=terms,
        payment=payment,
        total_interest=total_interest,
        total_paid=terms.principal + total_interest,
        schedule=Schedule.from_records(records),
    )


@returns_failure
def loan_schedule(
    principal: float,
    annual_rate_percent: float,
    term_periods: int,
    periods_per_year: Optional[int] = None,
    start_date: Optional[date] = None,
) -> Union[AmortizationResult, CalculationFailure]:
    """
    Amortize a loan from plain values.

    ``amortize`` expects terms that have already been built, so a field
    pydantic rejects (a fractional ``term_periods``, say) is raised by the
    caller's ``LoanTerms(...)``. Building the terms here reports it as an
    INVALID_INPUT failure instead.
    """
    fields = {
        "principal": principal,
        "annual_rate_percent": annual_rate_percent,
        "term_periods": term_periods,
        "start_date": start_date,
    }
    if periods_per_year is not None:
        fields["periods_per_year"] = periods_per_year
    return amortize(LoanTerms(**fields))


@returns_failure
def mortgage(
    home_price: float,
    down_payment_percent: float,
    annual_rate_percent: float,
    term_years: int,
    start_date: Optional[date] = None,
) -> Union[MortgageResult, CalculationFailure]:
    """
    Amortize a home purchase after the down payment.

    Args:
        home_price: Purchase price
        down_payment_percent: Down payment as percent of price, in [0, 100)
        annual_rate_percent: Nominal annual rate in percent
        term_years: Loan term in years (monthly payments)
        start_date: Due date of the first payment

    Returns:
        MortgageResult, or a CalculationFailure for out-of-range inputs
    """
    require_finite(home_price=home_price, down_payment_percent=down_payment_percent)
    if home_price <= 0:
        raise InvalidInputError("home_price must be positive")
    if not 0 <= down_payment_percent < 100:
        raise InvalidInputError("down_payment_percent must be at least 0 and below 100")

    down_payment = home_price * (down_payment_percent / 100)
    loan_amount = home_price - down_payment

    terms = LoanTerms(
        principal=loan_amount,
        annual_rate_percent=annual_rate_percent,
        term_periods=term_years * 12,
        periods_per_year=12,
        start_date=start_date,
    )
    result = amortize(terms)
    if not result.ok:
        return result

    return MortgageResult(
        home_price=home_price,
        down_payment=down_payment,
        loan_amount=loan_amount,
        amortization=result,
    )


@returns_failure
def auto_loan(
    loan_amount: float,
    annual_rate_percent: float,
    term_years: int,
    start_date: Optional[date] = None,
) -> Union[AmortizationResult, CalculationFailure]:
    """Amortize a vehicle loan with monthly payments over ``term_years``."""
    terms = LoanTerms(
        principal=loan_amount,
        annual_rate_percent=annual_rate_percent,
        term_periods=term_years * 12,
        periods_per_year=12,
        start_date=start_date,
    )
    return amortize(terms)
