"""Exception hierarchy for the calculator.

Every error aborts the current statement only; the session driver reports it
and resynchronises the token stream at the next statement terminator.
"""


class CalculatorError(Exception):
    """Base class for calculator errors."""
    pass


class LexicalError(CalculatorError):
    """Raised for a bad character, a malformed keyword phrase or a missing filename."""
    pass


class ParseError(CalculatorError):
    """Raised when an expected token class is not found."""
    pass


class UndefinedNameError(CalculatorError):
    """Raised on lookup or assignment of a name that was never declared."""

    def __init__(self, name: str):
        super().__init__(f"undefined name '{name}'")
        self.name = name


class ConstViolationError(CalculatorError):
    """Raised when assigning to a constant."""

    def __init__(self, name: str):
        super().__init__(f"{name} constant cannot be modified")
        self.name = name


class ConstRedeclarationError(CalculatorError):
    """Raised when const-declaring a name that is already declared."""

    def __init__(self, name: str):
        super().__init__(f"{name} has already been defined")
        self.name = name


class DivideByZeroError(CalculatorError):
    """Raised when the right operand of '/' or '%' is zero."""

    def __init__(self):
        super().__init__("divide by zero")


class ArityError(CalculatorError):
    """Raised when a function is called with the wrong number of arguments."""
    pass


class PrecisionRangeError(CalculatorError):
    """Raised when a display precision outside 0-20 is requested."""

    def __init__(self, digits: int):
        super().__init__("Precision must be between 0 and 20")
        self.digits = digits


class PersistenceError(CalculatorError):
    """Raised when an environment snapshot cannot be saved or loaded."""
    pass
