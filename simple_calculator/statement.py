"""Statement dispatcher: constant declarations, assignments and expressions.

The kind of statement is decided by looking at most two tokens ahead and
pushing them back before handing over to the matching production.
"""

import logging
from typing import List, Optional

from .environment import Environment
from .errors import ConstRedeclarationError, ConstViolationError, ParseError
from .evaluator import Evaluator
from .source import StringSource
from .tokenizer import TokenKind, Tokenizer

logger = logging.getLogger(__name__)


class StatementDispatcher:
    """Routes one statement to declaration, assignment or expression evaluation.

    Only this class writes to the environment.
    """

    def __init__(self, tokens: Tokenizer, env: Environment, evaluator: Optional[Evaluator] = None):
        self.tokens = tokens
        self.env = env
        self.evaluator = evaluator or Evaluator(tokens, env)

    def evaluate_one_statement(self) -> float:
        """Evaluate one statement and return its value (the assigned value for assignments)."""
        t = self.tokens.get()
        if t.kind is TokenKind.CONST:
            return self.constant_declaration()
        if t.kind is TokenKind.NAME:
            tt = self.tokens.get()
            self.tokens.unget(t)
            self.tokens.unget(tt)
            if tt.is_symbol('='):
                logger.debug(f"dispatch: assignment to {t.name}")
                return self.assignment()
            logger.debug(f"dispatch: expression starting with {t.name}")
            return self.evaluator.expression()
        self.tokens.unget(t)
        return self.evaluator.expression()

    def assignment(self) -> float:
        t = self.tokens.get()
        if t.kind is not TokenKind.NAME:
            self.tokens.unget(t)
            raise ParseError("name expected in assign")
        name = t.name
        if self.env.is_const(name):
            raise ConstViolationError(name)
        self._expect_equals(name)
        d = self.evaluator.expression()
        if self.env.is_declared(name):
            self.env.assign(name, d)
        else:
            self.env.define(name, d)
        return d

    def constant_declaration(self) -> float:
        """Handle ``const NAME = expression`` after the 'const' keyword was consumed."""
        t = self.tokens.get()
        if t.kind is not TokenKind.NAME:
            self.tokens.unget(t)
            raise ParseError("name expected in const assign")
        name = t.name
        if self.env.is_declared(name):
            raise ConstRedeclarationError(name)
        self._expect_equals(name)
        d = self.evaluator.expression()
        self.env.define(name, d, is_const=True)
        return d

    def _expect_equals(self, name: str) -> None:
        t = self.tokens.get()
        if not t.is_symbol('='):
            self.tokens.unget(t)
            raise ParseError(f"= missing in assign of {name}")


# --------------------------
# Convenience helpers
# --------------------------

def evaluate(text: str, environment: Optional[Environment] = None) -> float:
    """Evaluate a single statement given as text.

    The statement may be followed by ';' but by nothing else.
    """
    env = environment if environment is not None else Environment()
    tokens = Tokenizer(StringSource(text))
    value = StatementDispatcher(tokens, env).evaluate_one_statement()
    t = tokens.get()
    if t.kind not in (TokenKind.PRINT, TokenKind.END):
        raise ParseError(f"unexpected {t.describe()} after expression")
    return value


def evaluate_all(text: str, environment: Optional[Environment] = None) -> List[float]:
    """Evaluate every ';'-separated statement in ``text`` and return their values.

    Errors are raised immediately; no resynchronisation is attempted.
    """
    env = environment if environment is not None else Environment()
    tokens = Tokenizer(StringSource(text))
    dispatcher = StatementDispatcher(tokens, env)
    values: List[float] = []
    while True:
        t = tokens.get()
        while t.kind is TokenKind.PRINT:
            t = tokens.get()
        if t.kind is TokenKind.END:
            return values
        tokens.unget(t)
        values.append(dispatcher.evaluate_one_statement())
