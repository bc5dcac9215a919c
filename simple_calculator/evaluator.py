"""Recursive-descent expression evaluator.

Parsing and evaluation are fused: every production returns the value of the
text it consumed. Grammar, loosest binding first::

    expression    : term (('+' | '-') term)*
    term          : primary (('*' | '/' | '%') primary)*
    primary       : NUMBER | NAME | function-call | '(' expression ')'
                  | '-' primary | '+' primary
    function-call : FUNCTION '(' expression (',' expression)? ')'

Evaluation only reads the environment; assignments are handled by the
statement dispatcher.
"""

import logging
import math

from .environment import Environment
from .errors import DivideByZeroError, ParseError
from .tokenizer import Token, TokenKind, Tokenizer

logger = logging.getLogger(__name__)

# Nested primaries allowed before giving up; keeps deep input clear of
# Python's own recursion limit.
MAX_DEPTH = 100


def _fmod(x: float, y: float) -> float:
    try:
        return math.fmod(x, y)
    except ValueError:
        # fmod(inf, y) is a domain error
        return math.nan


class Evaluator:
    """Evaluates expressions read from a token stream against an environment."""

    def __init__(self, tokens: Tokenizer, env: Environment, max_depth: int = MAX_DEPTH):
        self.tokens = tokens
        self.env = env
        self.max_depth = max_depth
        self._depth = 0

    def expression(self) -> float:
        left = self.term()
        while True:
            t = self.tokens.get()
            if t.is_symbol('+'):
                left += self.term()
            elif t.is_symbol('-'):
                left -= self.term()
            else:
                self.tokens.unget(t)
                return left

    def term(self) -> float:
        left = self.primary()
        while True:
            t = self.tokens.get()
            if t.is_symbol('*'):
                left *= self.primary()
            elif t.is_symbol('/'):
                d = self.primary()
                if d == 0:
                    raise DivideByZeroError()
                left /= d
            elif t.is_symbol('%'):
                d = self.primary()
                if d == 0:
                    raise DivideByZeroError()
                left = _fmod(left, d)
            else:
                self.tokens.unget(t)
                return left

    def primary(self) -> float:
        self._depth += 1
        try:
            if self._depth > self.max_depth:
                raise ParseError("expression nested too deeply")
            return self._primary()
        finally:
            self._depth -= 1

    def _primary(self) -> float:
        t = self.tokens.get()
        if t.kind is TokenKind.FUNCTION:
            return self.function_call(t)
        if t.is_symbol('('):
            d = self.expression()
            self._expect(')')
            return d
        if t.is_symbol('-'):
            return -self.primary()
        if t.is_symbol('+'):
            return self.primary()
        if t.kind is TokenKind.NUMBER:
            return t.value
        if t.kind is TokenKind.NAME:
            return self.env.lookup(t.name)
        # leave the token for resynchronisation, it may be the ';'
        self.tokens.unget(t)
        raise ParseError(f"primary expected, got {t.describe()}")

    def function_call(self, fn: Token) -> float:
        """Parse the argument list after function token ``fn`` and apply it.

        Both arguments of a two-argument call are read before the arity is
        checked, so ``sin(1, 2)`` fails only once the closing ')' is seen.
        """
        self._expect('(')
        first = self.expression()
        t = self.tokens.get()
        if t.is_symbol(')'):
            return fn.function.apply(first)
        if not t.is_symbol(','):
            self.tokens.unget(t)
            raise ParseError("')' expected")
        second = self.expression()
        self._expect(')')
        logger.debug(f"{fn.name}({first!r}, {second!r})")
        return fn.function.apply(first, second)

    def _expect(self, symbol: str) -> None:
        t = self.tokens.get()
        if not t.is_symbol(symbol):
            self.tokens.unget(t)
            raise ParseError(f"'{symbol}' expected")
