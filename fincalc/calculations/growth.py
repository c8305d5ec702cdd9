"""
Compound Growth and Inflation

Closed-form future value of a lump sum plus periodic contributions, the
year-by-year growth curve behind the compound interest chart, and the
inflation calculator's purchasing-power curve.

Each year of a series is computed directly from the closed forms rather than
accumulated period by period, so any slice of the series matches a fresh
calculation for that horizon.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import ClassVar, Tuple, Union

import numpy as np
from pydantic import BaseModel, ConfigDict

from fincalc.calculations.errors import (
    CalculationFailure,
    InvalidInputError,
    require_finite,
    returns_failure,
)

logger = logging.getLogger(__name__)


class ContributionFrequency(str, Enum):
    MONTHLY = "monthly"
    ANNUALLY = "annually"

    @property
    def periods_per_year(self) -> int:
        return 12 if self is ContributionFrequency.MONTHLY else 1


class GrowthInputs(BaseModel):
    """Inputs for the compound interest calculator."""

    model_config = ConfigDict(frozen=True)

    principal: float
    annual_rate_percent: float
    years: int
    compounding_frequency: int = 12
    contribution: float = 0.0
    contribution_frequency: ContributionFrequency = ContributionFrequency.MONTHLY


@dataclass(frozen=True)
class GrowthPoint:
    """Value split at the end of ``period`` years."""

    period: int
    principal_component: float  # money put in so far
    growth_component: float  # interest earned so far, floored at 0


@dataclass(frozen=True)
class GrowthResult:
    final_amount: float
    total_contributions: float
    total_growth: float
    series: Tuple[GrowthPoint, ...]

    ok: ClassVar[bool] = True


@dataclass(frozen=True)
class PurchasingPowerPoint:
    year: int
    purchasing_power: float


@dataclass(frozen=True)
class InflationResult:
    """What ``amount`` of today's money costs and buys after ``years``."""

    future_nominal: float
    real_purchasing_power: float
    power_lost: float
    percentage_lost: float
    series: Tuple[PurchasingPowerPoint, ...]

    ok: ClassVar[bool] = True


def _annuity_future_value(contribution: float, rate: float, periods):
    """FV of an ordinary annuity; ``periods`` may be a scalar or numpy array."""
    if rate == 0:
        return contribution * periods
    return contribution * (np.power(1.0 + rate, periods) - 1.0) / rate


def future_value_of_contributions(
    contribution: float,
    annual_rate_percent: float,
    years: float,
    frequency: ContributionFrequency = ContributionFrequency.MONTHLY,
) -> float:
    """
    Future value of end-of-period contributions.

    Monthly contributions compound at ``rate/12`` over ``12 * years`` periods;
    annual contributions compound at ``rate`` over ``years`` periods. A zero
    rate reduces to the plain sum of contributions.
    """
    frequency = ContributionFrequency(frequency)
    per_year = frequency.periods_per_year
    rate = annual_rate_percent / 100 / per_year
    return float(_annuity_future_value(contribution, rate, years * per_year))


def _validate_growth(inputs: GrowthInputs) -> None:
    require_finite(
        principal=inputs.principal,
        annual_rate_percent=inputs.annual_rate_percent,
        contribution=inputs.contribution,
    )
    if inputs.principal < 0:
        raise InvalidInputError("principal cannot be negative")
    if inputs.contribution < 0:
        raise InvalidInputError("contribution cannot be negative")
    if inputs.years < 0:
        raise InvalidInputError("years cannot be negative")
    if inputs.compounding_frequency <= 0:
        raise InvalidInputError("compounding_frequency must be positive")

    rate = inputs.annual_rate_percent / 100
    per_year = inputs.contribution_frequency.periods_per_year
    if 1 + rate / inputs.compounding_frequency <= 0 or 1 + rate / per_year <= 0:
        raise InvalidInputError("annual_rate_percent is too negative to compound")


@returns_failure
def growth(
    principal: float,
    annual_rate_percent: float,
    years: int,
    compounding_frequency: int = 12,
    contribution: float = 0.0,
    contribution_frequency: Union[ContributionFrequency, str] = ContributionFrequency.MONTHLY,
) -> Union[GrowthResult, CalculationFailure]:
    """
    Grow a lump sum with optional regular contributions.

    Args:
        principal: Initial deposit
        annual_rate_percent: Nominal annual rate in percent
        years: Horizon in whole years
        compounding_frequency: Compounding periods per year for the principal
        contribution: Amount added each contribution period
        contribution_frequency: ``monthly`` or ``annually``

    Returns:
        GrowthResult with one series point per year from 0 to ``years``
    """
    inputs = GrowthInputs(
        principal=principal,
        annual_rate_percent=annual_rate_percent,
        years=years,
        compounding_frequency=compounding_frequency,
        contribution=contribution,
        contribution_frequency=contribution_frequency,
    )
    _validate_growth(inputs)

    r = inputs.annual_rate_percent / 100
    n = inputs.compounding_frequency
    per_year = inputs.contribution_frequency.periods_per_year

    year_grid = np.arange(inputs.years + 1, dtype=float)
    principal_values = inputs.principal * np.power(1.0 + r / n, n * year_grid)
    contribution_values = _annuity_future_value(
        inputs.contribution, r / per_year, year_grid * per_year
    )
    totals = principal_values + contribution_values
    contributed = inputs.principal + inputs.contribution * per_year * year_grid
    earned = np.maximum(totals - contributed, 0.0)

    if not np.all(np.isfinite(totals)):
        raise InvalidInputError("growth overflows for this horizon")

    series = [
        GrowthPoint(
            period=int(year),
            principal_component=float(paid_in),
            growth_component=float(gain),
        )
        for year, paid_in, gain in zip(year_grid, contributed, earned)
    ]

    final_amount = float(totals[-1])
    total_contributions = float(contributed[-1])

    logger.debug(
        f"Grew {inputs.principal:.2f} over {inputs.years} years at "
        f"{inputs.annual_rate_percent}% to {final_amount:.2f}"
    )

    return GrowthResult(
        final_amount=final_amount,
        total_contributions=total_contributions,
        total_growth=final_amount - total_contributions,
        series=tuple(series),
    )


def _inflation_factor(annual_rate_percent: float, years: float) -> float:
    require_finite(annual_rate_percent=annual_rate_percent, years=years)
    if annual_rate_percent <= -100:
        raise InvalidInputError("annual_rate_percent must be above -100")
    if years < 0:
        raise InvalidInputError("years cannot be negative")
    try:
        return (1 + annual_rate_percent / 100) ** years
    except OverflowError:
        raise InvalidInputError("inflation factor overflows for this horizon")


def _deflator(annual_rate_percent: float, years: float) -> float:
    factor = _inflation_factor(annual_rate_percent, years)
    if factor == 0:
        raise InvalidInputError("inflation factor underflows to zero for this horizon")
    return factor


def inflate(amount: float, annual_rate_percent: float, years: float) -> float:
    """Nominal cost after ``years`` of what ``amount`` buys today."""
    return amount * _inflation_factor(annual_rate_percent, years)


def purchasing_power(amount: float, annual_rate_percent: float, years: float) -> float:
    """Today's-money value of ``amount`` received after ``years`` of inflation."""
    return amount / _deflator(annual_rate_percent, years)


@returns_failure
def inflation(
    amount: float, annual_rate_percent: float, years: int
) -> Union[InflationResult, CalculationFailure]:
    """Inflation calculator: nominal growth, real value and a yearly purchasing-power curve."""
    require_finite(amount=amount, years=years)
    if amount <= 0:
        raise InvalidInputError("amount must be positive")
    if int(years) != years:
        raise InvalidInputError("years must be a whole number")
    years = int(years)

    factor = _deflator(annual_rate_percent, years)
    real = amount / factor
    lost = amount - real

    series = [
        PurchasingPowerPoint(year=year, purchasing_power=purchasing_power(amount, annual_rate_percent, year))
        for year in range(years + 1)
    ]

    return InflationResult(
        future_nominal=amount * factor,
        real_purchasing_power=real,
        power_lost=lost,
        percentage_lost=lost / amount * 100,
        series=tuple(series),
    )
