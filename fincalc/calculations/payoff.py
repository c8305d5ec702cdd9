"""
Revolving Credit Payoff

Payoff schedules for a credit-card style balance where the payment is
recomputed every month from a policy: the card issuer's minimum
(interest plus a percentage of the balance, with a floor) or a fixed amount.
"""

import logging
from dataclasses import dataclass
from typing import ClassVar, Optional, Union

from fincalc.calculations.errors import (
    CalculationFailure,
    ErrorKind,
    InvalidInputError,
    require_finite,
    returns_failure,
)
from fincalc.calculations.schedule import PaymentRecord, Schedule
from fincalc.config import Settings, get_settings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MinimumPayment:
    """Pay interest plus ``percent`` of the balance, never less than ``floor``."""

    floor: Optional[float] = None  # defaults to settings.minimum_payment_floor
    percent: Optional[float] = None  # defaults to settings.minimum_payment_percent

    def payment_for(self, balance: float, interest: float, settings: Settings) -> float:
        floor = settings.minimum_payment_floor if self.floor is None else self.floor
        percent = settings.minimum_payment_percent if self.percent is None else self.percent
        return max(floor, interest + balance * percent)


@dataclass(frozen=True)
class FixedPayment:
    """Pay the same amount every month."""

    amount: float

    def payment_for(self, balance: float, interest: float, settings: Settings) -> float:
        return self.amount


PaymentPolicy = Union[MinimumPayment, FixedPayment]


@dataclass(frozen=True)
class PayoffResult:
    """
    Schedule and totals for a payoff run.

    When ``cap_reached`` is set the balance was still above the payoff
    threshold after the last period, so ``months_to_payoff`` is ``None`` and
    the totals only cover the periods simulated.
    """

    starting_balance: float
    schedule: Schedule
    total_interest: float
    total_paid: float
    cap_reached: bool

    ok: ClassVar[bool] = True

    @property
    def periods(self) -> int:
        return len(self.schedule)

    @property
    def months_to_payoff(self) -> Optional[int]:
        return None if self.cap_reached else self.periods

    @property
    def kind(self) -> Optional[ErrorKind]:
        return ErrorKind.CAP_REACHED if self.cap_reached else None


def _validate_policy(policy: PaymentPolicy) -> None:
    if isinstance(policy, FixedPayment):
        require_finite(amount=policy.amount)
        if policy.amount <= 0:
            raise InvalidInputError("fixed payment amount must be positive")
    elif isinstance(policy, MinimumPayment):
        for name in ("floor", "percent"):
            value = getattr(policy, name)
            if value is not None:
                require_finite(**{name: value})
                if value < 0:
                    raise InvalidInputError(f"minimum payment {name} cannot be negative")
    else:
        raise InvalidInputError(f"unknown payment policy: {policy!r}")


@returns_failure
def payoff(
    balance: float,
    annual_apr_percent: float,
    policy: PaymentPolicy,
    max_periods: Optional[int] = None,
    settings: Optional[Settings] = None,
) -> Union[PayoffResult, CalculationFailure]:
    """
    Simulate monthly payments until the balance is (nearly) gone.

    Args:
        balance: Starting balance
        annual_apr_percent: APR in percent (e.g., 18.99)
        policy: MinimumPayment or FixedPayment
        max_periods: Safety cap on simulated months (settings.payoff_max_periods)
        settings: Engine settings (cached settings by default)

    Returns:
        PayoffResult, flagged with ``cap_reached`` if the cap stopped the loop
    """
    settings = settings or get_settings()
    cap = settings.payoff_max_periods if max_periods is None else max_periods
    epsilon = settings.payoff_balance_epsilon

    require_finite(balance=balance, annual_apr_percent=annual_apr_percent)
    if balance <= 0:
        raise InvalidInputError("balance must be positive")
    if annual_apr_percent < 0:
        raise InvalidInputError("annual_apr_percent cannot be negative")
    if cap <= 0:
        raise InvalidInputError("max_periods must be positive")
    _validate_policy(policy)

    monthly_rate = annual_apr_percent / 100 / 12
    starting_balance = balance
    records = []
    total_interest = 0.0
    month = 0

    while balance > epsilon and month < cap:
        month += 1
        interest = balance * monthly_rate

        payment = policy.payment_for(balance, interest, settings)
        # Never pay more than what clears the balance
        payment = min(payment, balance + interest)

        principal_pmt = payment - interest
        balance = max(0.0, balance - principal_pmt)
        total_interest += interest

        records.append(
            PaymentRecord(
                index=month,
                payment=payment,
                principal=principal_pmt,
                interest=interest,
                balance=balance,
            )
        )

    cap_reached = balance > epsilon
    if cap_reached:
        logger.info(
            f"Payoff of {starting_balance:.2f} at {annual_apr_percent}% APR not reached "
            f"within {cap} months; remaining balance {balance:.2f}"
        )
    else:
        logger.debug(f"Balance of {starting_balance:.2f} paid off in {month} months")

    return PayoffResult(
        starting_balance=starting_balance,
        schedule=Schedule.from_records(records),
        total_interest=total_interest,
        total_paid=starting_balance + total_interest,
        cap_reached=cap_reached,
    )


def credit_card_payoff(
    balance: float,
    annual_apr_percent: float,
    payment_type: str = "minimum",
    fixed_payment: float = 150.0,
    settings: Optional[Settings] = None,
) -> Union[PayoffResult, CalculationFailure]:
    """Payoff for the credit-card calculator's ``minimum``/``fixed`` payment choice."""
    if payment_type == "minimum":
        policy = MinimumPayment()
    elif payment_type == "fixed":
        policy = FixedPayment(amount=fixed_payment)
    else:
        return CalculationFailure(
            kind=ErrorKind.INVALID_INPUT,
            message=f"payment_type must be 'minimum' or 'fixed', got {payment_type!r}",
        )
    return payoff(balance, annual_apr_percent, policy, settings=settings)
