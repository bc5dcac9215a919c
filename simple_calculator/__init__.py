"""Interactive expression calculator with variables, constants and math functions."""

from .environment import Entry, Environment
from .errors import (
    ArityError,
    CalculatorError,
    ConstRedeclarationError,
    ConstViolationError,
    DivideByZeroError,
    LexicalError,
    ParseError,
    PersistenceError,
    PrecisionRangeError,
    UndefinedNameError,
)
from .statement import StatementDispatcher, evaluate, evaluate_all

__version__ = "1.0.0"
