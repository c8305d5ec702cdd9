"""
Time Value of Money

Solves the annuity equation

    PV * (1 + r)^N + PMT * ((1 + r)^N - 1) / r + FV = 0

for whichever of N, r, PV, PMT or FV is unknown. PV, PMT and FV have closed
forms; the rate and (for r != 0) the period count are found with
Newton-Raphson. Cash flows follow the calculator sign convention: money paid
out is negative, money received is positive. Compounding happens once per
payment period.
"""

import logging
import math
from dataclasses import dataclass
from enum import Enum
from typing import ClassVar, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict

from fincalc.calculations.errors import (
    CalculationFailure,
    InvalidInputError,
    NonConvergenceError,
    UndefinedOperationError,
    require_finite,
    returns_failure,
)
from fincalc.config import Settings, get_settings

logger = logging.getLogger(__name__)


class TvmVariable(str, Enum):
    PERIODS = "periods"
    RATE = "rate_percent"
    PRESENT_VALUE = "present_value"
    PAYMENT = "payment"
    FUTURE_VALUE = "future_value"


class TvmInputs(BaseModel):
    """The five annuity variables; the one named by ``solve_for`` is ignored."""

    model_config = ConfigDict(frozen=True)

    periods: float = 0.0
    rate_percent: float = 0.0  # per period
    present_value: float = 0.0
    payment: float = 0.0
    future_value: float = 0.0
    solve_for: TvmVariable = TvmVariable.FUTURE_VALUE


@dataclass(frozen=True)
class TvmResult:
    solved_for: TvmVariable
    value: float
    iterations: int = 0  # Newton-Raphson steps; 0 for closed forms

    ok: ClassVar[bool] = True


class SolverStatus(str, Enum):
    ITERATING = "iterating"
    CONVERGED = "converged"
    MAX_ITERATIONS = "non_converged_max_iterations"
    FLAT_DERIVATIVE = "non_converged_flat_derivative"
    OVERFLOW = "non_converged_overflow"


@dataclass(frozen=True)
class NewtonOutcome:
    """Final state of one bounded Newton-Raphson run."""

    status: SolverStatus
    value: float
    iterations: int


def _growth_factor(rate: float, periods: float) -> float:
    try:
        return (1 + rate) ** periods
    except OverflowError:
        raise UndefinedOperationError("(1 + rate)^periods is too large to represent")


def _growth_minus_one(rate: float, periods: float) -> float:
    """``(1+r)^N - 1`` without cancellation when r is close to zero."""
    return math.expm1(periods * math.log1p(rate))


def _annuity_factor(rate: float, periods: float) -> Tuple[float, float]:
    """Return ``(1+r)^N`` and the annuity factor ``((1+r)^N - 1) / r``."""
    factor = _growth_factor(rate, periods)
    if rate == 0:
        return factor, periods
    try:
        growth = _growth_minus_one(rate, periods)
    except OverflowError:
        raise UndefinedOperationError("(1 + rate)^periods is too large to represent")
    return factor, growth / rate


def solve_future_value(
    periods: float, rate_percent: float, present_value: float, payment: float
) -> float:
    """FV that balances PV and N payments of PMT."""
    rate = rate_percent / 100
    if rate == 0:
        return -(present_value + payment * periods)
    factor, annuity = _annuity_factor(rate, periods)
    return -(present_value * factor + payment * annuity)


def solve_present_value(
    periods: float, rate_percent: float, payment: float, future_value: float
) -> float:
    """PV that balances N payments of PMT and FV."""
    rate = rate_percent / 100
    if rate == 0:
        return -(future_value + payment * periods)
    factor, annuity = _annuity_factor(rate, periods)
    if factor == 0:
        raise UndefinedOperationError("(1 + rate)^periods underflows to zero; present value is unbounded")
    return -(future_value + payment * annuity) / factor


def solve_payment(
    periods: float, rate_percent: float, present_value: float, future_value: float
) -> float:
    """Level PMT that takes PV to FV over N periods."""
    rate = rate_percent / 100
    factor, annuity = _annuity_factor(rate, periods)
    if annuity == 0:
        raise UndefinedOperationError("cannot solve for payment over zero periods")
    if rate == 0:
        return -(present_value + future_value) / periods
    return -(present_value * factor + future_value) / annuity


def _newton_rate(
    periods: float,
    present_value: float,
    payment: float,
    future_value: float,
    settings: Settings,
) -> NewtonOutcome:
    """Newton-Raphson on the annuity equation in r, starting from the configured guess."""
    n, pv, pmt, fv = periods, present_value, payment, future_value
    tolerance = settings.solver_tolerance
    rate = settings.rate_initial_guess
    status = SolverStatus.ITERATING
    iteration = 0

    for iteration in range(1, settings.solver_max_iterations + 1):
        if rate == 0:
            # The general form divides by r; fall back to the linear equation
            if abs(pv + pmt * n + fv) < tolerance:
                status = SolverStatus.CONVERGED
                break
            rate = settings.zero_rate_nudge
            continue

        try:
            growth = _growth_minus_one(rate, n)
            slope = n * (1 + rate) ** (n - 1)
        except OverflowError:
            status = SolverStatus.OVERFLOW
            break

        factor = growth + 1
        f = pv * factor + pmt * (growth / rate) + fv
        df = pv * slope + pmt * (slope / rate - growth / (rate * rate))

        if not (math.isfinite(f) and math.isfinite(df)):
            status = SolverStatus.OVERFLOW
            break
        if abs(f) < tolerance:
            status = SolverStatus.CONVERGED
            break
        if abs(df) < tolerance:
            status = SolverStatus.FLAT_DERIVATIVE
            break

        # Rate cannot fall to -100% or below
        rate = max(rate - f / df, settings.rate_floor)

    if status is SolverStatus.ITERATING:
        status = SolverStatus.MAX_ITERATIONS

    logger.debug(f"Rate solve finished: {status.value} at r={rate} after {iteration} iterations")
    return NewtonOutcome(status=status, value=rate, iterations=iteration)


def _newton_periods(
    rate: float,
    present_value: float,
    payment: float,
    future_value: float,
    settings: Settings,
) -> NewtonOutcome:
    """Newton-Raphson on the annuity equation in N for a fixed, non-zero r."""
    pv, pmt, fv = present_value, payment, future_value
    tolerance = settings.solver_tolerance
    log_growth = math.log(1 + rate)
    periods = settings.periods_initial_guess
    status = SolverStatus.ITERATING
    iteration = 0

    for iteration in range(1, settings.solver_max_iterations + 1):
        try:
            factor = (1 + rate) ** periods
        except OverflowError:
            status = SolverStatus.OVERFLOW
            break

        f = pv * factor + pmt * ((factor - 1) / rate) + fv
        df = pv * factor * log_growth + pmt * (factor * log_growth / rate)

        if not (math.isfinite(f) and math.isfinite(df)):
            status = SolverStatus.OVERFLOW
            break
        if abs(f) < tolerance:
            status = SolverStatus.CONVERGED
            break
        if abs(df) < tolerance:
            status = SolverStatus.FLAT_DERIVATIVE
            break

        periods = periods - f / df
        if periods <= 0:
            periods = settings.periods_floor

    if status is SolverStatus.ITERATING:
        status = SolverStatus.MAX_ITERATIONS

    logger.debug(f"Periods solve finished: {status.value} at N={periods} after {iteration} iterations")
    return NewtonOutcome(status=status, value=periods, iterations=iteration)


def _require_converged(outcome: NewtonOutcome, message: str) -> NewtonOutcome:
    if outcome.status is not SolverStatus.CONVERGED:
        raise NonConvergenceError(
            f"{message} ({outcome.status.value} after {outcome.iterations} iterations)"
        )
    return outcome


def _rate_outcome(
    periods: float,
    present_value: float,
    payment: float,
    future_value: float,
    settings: Settings,
) -> NewtonOutcome:
    if periods <= 0:
        raise InvalidInputError("periods must be positive to solve for the rate")
    outcome = _newton_rate(periods, present_value, payment, future_value, settings)
    return _require_converged(outcome, "unable to solve for interest rate with the given values")


def _periods_outcome(
    rate_percent: float,
    present_value: float,
    payment: float,
    future_value: float,
    settings: Settings,
) -> NewtonOutcome:
    rate = rate_percent / 100
    if rate <= -1:
        raise InvalidInputError("rate_percent must be above -100")

    if rate == 0:
        if payment == 0:
            raise UndefinedOperationError("cannot solve for periods with zero rate and zero payment")
        periods = -(present_value + future_value) / payment
        if periods < 0:
            raise UndefinedOperationError("cannot solve for periods with the given values")
        return NewtonOutcome(status=SolverStatus.CONVERGED, value=periods, iterations=0)

    outcome = _newton_periods(rate, present_value, payment, future_value, settings)
    _require_converged(outcome, "cannot solve for periods with the given values")
    if outcome.value < 0:
        raise UndefinedOperationError("cannot solve for periods with the given values")
    return outcome


def solve_rate(
    periods: float,
    present_value: float,
    payment: float,
    future_value: float,
    settings: Optional[Settings] = None,
) -> float:
    """
    Periodic interest rate, in percent, that satisfies the annuity equation.

    Raises:
        InvalidInputError: If ``periods`` is not positive
        NonConvergenceError: If Newton-Raphson stalls or runs out of iterations
    """
    settings = settings or get_settings()
    outcome = _rate_outcome(periods, present_value, payment, future_value, settings)
    return outcome.value * 100


def solve_periods(
    rate_percent: float,
    present_value: float,
    payment: float,
    future_value: float,
    settings: Optional[Settings] = None,
) -> float:
    """
    Number of periods that satisfies the annuity equation at a known rate.

    Raises:
        UndefinedOperationError: If there is no valid period count
        NonConvergenceError: If Newton-Raphson stalls or runs out of iterations
    """
    settings = settings or get_settings()
    return _periods_outcome(rate_percent, present_value, payment, future_value, settings).value


def _validate(inputs: TvmInputs) -> None:
    given = {
        variable.value: getattr(inputs, variable.value)
        for variable in TvmVariable
        if variable is not inputs.solve_for
    }
    require_finite(**given)

    if inputs.solve_for is not TvmVariable.PERIODS and inputs.periods < 0:
        raise InvalidInputError("periods cannot be negative")
    if inputs.solve_for is not TvmVariable.RATE and inputs.rate_percent <= -100:
        raise InvalidInputError("rate_percent must be above -100")


@returns_failure
def solve_tvm(
    inputs: TvmInputs, settings: Optional[Settings] = None
) -> Union[TvmResult, CalculationFailure]:
    """
    Solve for ``inputs.solve_for`` given the other four variables.

    Returns:
        TvmResult with the solved value (rate in percent), or a
        CalculationFailure describing why no value exists
    """
    settings = settings or get_settings()
    _validate(inputs)

    n = inputs.periods
    pv = inputs.present_value
    pmt = inputs.payment
    fv = inputs.future_value
    iterations = 0

    if inputs.solve_for is TvmVariable.FUTURE_VALUE:
        value = solve_future_value(n, inputs.rate_percent, pv, pmt)
    elif inputs.solve_for is TvmVariable.PRESENT_VALUE:
        value = solve_present_value(n, inputs.rate_percent, pmt, fv)
    elif inputs.solve_for is TvmVariable.PAYMENT:
        value = solve_payment(n, inputs.rate_percent, pv, fv)
    elif inputs.solve_for is TvmVariable.RATE:
        outcome = _rate_outcome(n, pv, pmt, fv, settings)
        value, iterations = outcome.value * 100, outcome.iterations
    else:
        outcome = _periods_outcome(inputs.rate_percent, pv, pmt, fv, settings)
        value, iterations = outcome.value, outcome.iterations

    if not math.isfinite(value):
        raise UndefinedOperationError(f"{inputs.solve_for.value} is not representable for these inputs")

    return TvmResult(solved_for=inputs.solve_for, value=value, iterations=iterations)
