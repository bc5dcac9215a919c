"""Built-in math functions.

Results follow IEEE-754 the way the C math library reports them: a domain
error yields nan, a pole yields an infinity and an overflow yields inf,
instead of Python's ValueError/OverflowError.
"""

import math
from enum import Enum
from typing import Callable, Dict

from .errors import ArityError


def _is_odd_integer(y: float) -> bool:
    return y.is_integer() and y % 2 == 1


def _ieee(fn: Callable[[float], float], x: float, pole: float = math.nan) -> float:
    try:
        return fn(x)
    except OverflowError:
        return math.inf
    except ValueError:
        # math.log and friends reject 0 (a pole) as well as negatives
        return pole if x == 0 else math.nan


def _pow(x: float, y: float) -> float:
    try:
        return math.pow(x, y)
    except OverflowError:
        return -math.inf if x < 0 and _is_odd_integer(y) else math.inf
    except ValueError:
        if x == 0:
            return math.copysign(math.inf, x) if _is_odd_integer(y) else math.inf
        return math.nan


class MathFunction(Enum):
    """The closed set of functions the calculator knows by name."""

    SIN = 'sin'
    COS = 'cos'
    TAN = 'tan'
    ASIN = 'asin'
    ACOS = 'acos'
    ATAN = 'atan'
    EXP = 'exp'
    POW = 'pow'
    LN = 'ln'
    LOG10 = 'log10'
    LOG2 = 'log2'

    @property
    def arity(self) -> int:
        return 2 if self is MathFunction.POW else 1

    def apply(self, *args: float) -> float:
        """Apply the function to already evaluated arguments."""
        if len(args) != self.arity:
            if self.arity == 2:
                raise ArityError(f"{self.value} needs two arguments")
            raise ArityError(f"{self.value} needs only one argument")
        if self is MathFunction.POW:
            return _pow(*args)
        fn, pole = _UNARY[self]
        return _ieee(fn, args[0], pole)


_UNARY: Dict[MathFunction, tuple] = {
    MathFunction.SIN: (math.sin, math.nan),
    MathFunction.COS: (math.cos, math.nan),
    MathFunction.TAN: (math.tan, math.nan),
    MathFunction.ASIN: (math.asin, math.nan),
    MathFunction.ACOS: (math.acos, math.nan),
    MathFunction.ATAN: (math.atan, math.nan),
    MathFunction.EXP: (math.exp, math.nan),
    MathFunction.LN: (math.log, -math.inf),
    MathFunction.LOG10: (math.log10, -math.inf),
    MathFunction.LOG2: (math.log2, -math.inf),
}

FUNCTION_NAMES = sorted(f.value for f in MathFunction)
