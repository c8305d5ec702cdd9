"""
Calculation Failures

Every engine entry point returns either a result object or a
``CalculationFailure``. Inside the engine, validation and solvers raise
``CalculationError`` subclasses; ``returns_failure`` converts them at the
boundary so callers branch on ``result.ok`` instead of catching exceptions.
"""

import functools
import logging
import math
from dataclasses import dataclass
from enum import Enum
from typing import ClassVar

from pydantic import ValidationError

logger = logging.getLogger(__name__)


class ErrorKind(str, Enum):
    """Outcome kinds a caller can branch on."""

    INVALID_INPUT = "invalid_input"
    NON_CONVERGENCE = "non_convergence"
    UNDEFINED_OPERATION = "undefined_operation"
    CAP_REACHED = "cap_reached"


class CalculationError(ValueError):
    """Base class for errors raised inside the engine."""

    kind: ErrorKind = ErrorKind.INVALID_INPUT


class InvalidInputError(CalculationError):
    kind = ErrorKind.INVALID_INPUT


class NonConvergenceError(CalculationError):
    kind = ErrorKind.NON_CONVERGENCE


class UndefinedOperationError(CalculationError):
    kind = ErrorKind.UNDEFINED_OPERATION


@dataclass(frozen=True)
class CalculationFailure:
    """A typed failure returned in place of a result."""

    kind: ErrorKind
    message: str

    ok: ClassVar[bool] = False


def returns_failure(func):
    """
    Convert engine errors raised by ``func`` into a ``CalculationFailure``.

    Pydantic validation errors (e.g. a non-integer period count) are reported
    as invalid input.
    """

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except CalculationError as e:
            logger.info(f"{func.__name__} failed ({e.kind.value}): {e}")
            return CalculationFailure(kind=e.kind, message=str(e))
        except ValidationError as e:
            message = "; ".join(
                f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}"
                for err in e.errors()
            )
            logger.info(f"{func.__name__} rejected input: {message}")
            return CalculationFailure(kind=ErrorKind.INVALID_INPUT, message=message)

    return wrapper


def require_finite(**values: float) -> None:
    """Raise ``InvalidInputError`` if any named value is NaN or infinite."""
    for name, value in values.items():
        if not math.isfinite(value):
            raise InvalidInputError(f"{name} must be a finite number")
