"""
Tests for compound growth and inflation calculations.
"""

import pytest

from fincalc.calculations.errors import ErrorKind, InvalidInputError
from fincalc.calculations.growth import (
    ContributionFrequency,
    future_value_of_contributions,
    growth,
    inflate,
    inflation,
    purchasing_power,
)


class TestCompoundGrowth:
    """Test lump sum plus contribution growth."""

    def test_monthly_contributions(self):
        """Test 10,000 plus 500/month at 7% compounded monthly for 20 years."""
        result = growth(10000, 7, 20, 12, 500, ContributionFrequency.MONTHLY)
        assert result.ok
        assert abs(result.final_amount - 300850.72) < 0.01
        assert result.total_contributions == pytest.approx(130000)
        assert abs(result.total_growth - 170850.72) < 0.01

    def test_annual_contributions(self):
        """Test annual compounding with annual contributions."""
        result = growth(10000, 7, 10, 1, 1000, "annually")
        assert abs(result.final_amount - 33487.96) < 0.01
        assert result.total_contributions == pytest.approx(20000)

    def test_lump_sum_only(self):
        """Test principal compounding without contributions."""
        result = growth(1000, 12, 1, 4, 0)
        assert result.final_amount == pytest.approx(1000 * 1.03 ** 4)
        assert result.total_contributions == 1000

    def test_zero_rate(self):
        """Test that a zero rate just sums the deposits."""
        result = growth(1000, 0, 10, 12, 100, ContributionFrequency.MONTHLY)
        assert result.final_amount == pytest.approx(13000)
        assert result.total_growth == pytest.approx(0.0, abs=1e-9)
        assert all(p.growth_component == 0 for p in result.series)

    def test_zero_years(self):
        """Test that a zero horizon returns the principal."""
        result = growth(5000, 5, 0, 12, 100)
        assert result.final_amount == 5000
        assert len(result.series) == 1
        assert result.series[0].period == 0

    def test_negative_rate(self):
        """Test that a negative rate shrinks the balance without negative growth points."""
        result = growth(10000, -2, 5, 1, 0)
        assert result.final_amount == pytest.approx(10000 * 0.98 ** 5)
        assert result.total_growth < 0
        assert all(p.growth_component == 0 for p in result.series)


class TestGrowthSeries:
    """Test the year-by-year growth curve."""

    def test_one_point_per_year(self):
        """Test the series covers years 0 through the horizon."""
        result = growth(10000, 7, 20, 12, 500)
        assert [p.period for p in result.series] == list(range(21))

    def test_year_zero(self):
        """Test that year 0 is the principal with no growth."""
        result = growth(10000, 7, 20, 12, 500)
        assert result.series[0].principal_component == 10000
        assert result.series[0].growth_component == 0

    def test_final_point_matches_totals(self):
        """Test the last point agrees with the scalar results."""
        result = growth(10000, 7, 20, 12, 500)
        last = result.series[-1]
        assert last.principal_component == pytest.approx(result.total_contributions)
        assert last.growth_component == pytest.approx(result.total_growth)

    def test_series_consistent_under_slicing(self):
        """Test that each year matches a fresh calculation for that horizon."""
        long_run = growth(2500, 4.5, 30, 4, 200, "monthly")
        for year in (1, 7, 15):
            short_run = growth(2500, 4.5, year, 4, 200, "monthly")
            point = long_run.series[year]
            assert point.principal_component == pytest.approx(short_run.total_contributions)
            assert point.growth_component == pytest.approx(short_run.total_growth)

    @pytest.mark.parametrize(
        "principal,rate,years,n,contribution,frequency",
        [
            (10000, 7, 20, 12, 500, "monthly"),
            (0, 0.0, 10, 1, 100, "annually"),
            (1000, 0.0001, 50, 365, 10, "monthly"),
            (50000, -3, 15, 2, 0, "annually"),
            (1, 1e-12, 5, 52, 1, "monthly"),
        ],
    )
    def test_growth_never_negative(self, principal, rate, years, n, contribution, frequency):
        """Test the growth component is floored at zero."""
        result = growth(principal, rate, years, n, contribution, frequency)
        assert all(p.growth_component >= 0 for p in result.series)

    def test_series_is_immutable(self):
        """Test that the yearly series is a tuple."""
        result = growth(1000, 5.0, 3, 12, 100.0, ContributionFrequency.MONTHLY)
        assert isinstance(result.series, tuple)


class TestContributionFutureValue:
    """Test the contribution annuity closed form."""

    def test_monthly(self):
        """Test monthly contributions at 7% over 20 years."""
        value = future_value_of_contributions(500, 7, 20, ContributionFrequency.MONTHLY)
        assert abs(value - 260463.33) < 0.01

    def test_zero_rate_limit(self):
        """Test the zero-rate limit is contribution times periods."""
        assert future_value_of_contributions(100, 0, 3, "monthly") == 3600
        assert future_value_of_contributions(100, 0, 3, "annually") == 300


class TestGrowthInvalidInput:
    """Test rejected growth inputs."""

    @pytest.mark.parametrize(
        "args",
        [
            (-1, 7, 20, 12, 0),
            (1000, 7, -1, 12, 0),
            (1000, 7, 20, 0, 0),
            (1000, 7, 20, 12, -50),
            (1000, -1300, 20, 12, 0),
            (1000, 7, 20.5, 12, 0),
            (float("inf"), 7, 20, 12, 0),
        ],
    )
    def test_rejects(self, args):
        """Test that bad inputs return InvalidInput."""
        result = growth(*args)
        assert not result.ok
        assert result.kind is ErrorKind.INVALID_INPUT

    def test_unknown_frequency(self):
        """Test that an unknown contribution frequency is rejected."""
        result = growth(1000, 7, 20, 12, 100, "weekly")
        assert result.kind is ErrorKind.INVALID_INPUT


class TestInflation:
    """Test purchasing power and nominal inflation."""

    def test_inflation_calculator(self):
        """Test 10,000 over 20 years at 3.5% inflation."""
        result = inflation(10000, 3.5, 20)
        assert result.ok
        assert abs(result.future_nominal - 19897.89) < 0.01
        assert abs(result.real_purchasing_power - 5025.66) < 0.01
        assert abs(result.power_lost - 4974.34) < 0.01
        assert abs(result.percentage_lost - 49.74) < 0.01

    def test_series(self):
        """Test the purchasing power curve starts at the amount and declines."""
        result = inflation(10000, 3.5, 20)
        assert len(result.series) == 21
        assert result.series[0].purchasing_power == 10000
        values = [p.purchasing_power for p in result.series]
        assert values == sorted(values, reverse=True)
        assert result.series[-1].purchasing_power == pytest.approx(result.real_purchasing_power)

    def test_directions_are_inverse(self):
        """Test that inflating then deflating returns the amount."""
        nominal = inflate(1000, 4, 12)
        assert purchasing_power(nominal, 4, 12) == pytest.approx(1000)
        assert inflate(1000, 4, 12) * purchasing_power(1000, 4, 12) == pytest.approx(1000 * 1000)

    def test_zero_inflation(self):
        """Test that zero inflation loses nothing."""
        result = inflation(5000, 0, 10)
        assert result.real_purchasing_power == 5000
        assert result.percentage_lost == 0

    def test_deflation(self):
        """Test that negative inflation raises purchasing power."""
        assert purchasing_power(1000, -2, 5) > 1000

    @pytest.mark.parametrize("amount,rate,years", [(0, 3, 10), (1000, -100, 10), (1000, 3, -1), (1000, 3, 2.5)])
    def test_rejects(self, amount, rate, years):
        """Test that bad inflation inputs return InvalidInput."""
        result = inflation(amount, rate, years)
        assert result.kind is ErrorKind.INVALID_INPUT

    def test_deep_deflation_underflow(self):
        """Test that a deflator that underflows to zero is rejected, not divided by."""
        result = inflation(100, -99.99, 1000)
        assert not result.ok
        assert result.kind is ErrorKind.INVALID_INPUT
        with pytest.raises(InvalidInputError):
            purchasing_power(100, -99.99, 1000)
        assert inflate(100, -99.99, 1000) == 0

    def test_series_is_immutable(self):
        """Test that the purchasing power curve is a tuple."""
        assert isinstance(inflation(10000, 3.5, 5).series, tuple)
