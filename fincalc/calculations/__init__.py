"""
Financial Calculation Engine

Pure calculation modules behind the inflation, compound interest, time value
of money, credit card, auto loan and mortgage calculators.
Entry points return a result object or a ``CalculationFailure``; check ``.ok``.
"""

from fincalc.calculations import amortization, growth, payoff, tvm
from fincalc.calculations.errors import CalculationFailure, ErrorKind

__all__ = ["amortization", "growth", "payoff", "tvm", "CalculationFailure", "ErrorKind"]
