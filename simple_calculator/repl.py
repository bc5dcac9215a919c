"""Interactive session driver.

Reads statements, prints results with the current display precision,
handles the command keywords (help, precision, environment commands) and
reports errors, resynchronising the token stream after each failure.
"""

import logging
import sys
from typing import Callable, Optional, Sequence, TextIO

from prompt_toolkit import PromptSession
from prompt_toolkit.completion import WordCompleter
from prompt_toolkit.history import FileHistory, InMemoryHistory

from .config import DEFAULT_PRECISION, MAX_PRECISION, MIN_PRECISION
from .environment import Environment, format_value
from .errors import CalculatorError, ParseError, PersistenceError, PrecisionRangeError
from .functions import FUNCTION_NAMES
from .persistence import Ask, EnvironmentStore, LoadReport
from .source import CharacterSource
from .statement import StatementDispatcher
from .tokenizer import KEYWORD_WORDS, TokenKind, Tokenizer

logger = logging.getLogger(__name__)

PROMPT = '> '
RESULT = '= '

HELP_TEXT = """
 ==============================================================
  This is a simple calculator for arithmetic expressions
  supporting variables, constants, and mathematical functions.
 ==============================================================

 - Basic Usage:
   - Use ';' to end each statement
   - Type 'quit' to exit the program
   - Example: a = 5 + 3;

 - Mathematical Functions Supported:
   - Trigonometric: sin(x), cos(x), tan(x)
   - Inverse trig:  asin(x), acos(x), atan(x)
   - Exponential :  exp(x), pow(x, y)
   - Logarithmic :  ln(x), log10(x), log2(x)

 - Variables and Constants:
   - Assign a variable:     x = 42;
   - Define a constant:     const pi = 3.1416;

 - Environment Commands:
   - show env;              --> display current variables/constants
   - save env filename;     --> save environment to file
   - load env filename;     --> load environment from file

 - Precision Settings:
   - precision;             --> show current display precision
   - set precision N;       --> set output precision (0-20 digits)

 Type 'help;' at any time to show this message again.
"""


def make_line_reader(history_file: str, env: Environment) -> Callable[[str], str]:
    """Line reader for a LineSource: prompt_toolkit on a terminal, input() otherwise."""
    if not sys.stdin.isatty():
        return input
    history = FileHistory(history_file) if history_file else InMemoryHistory()
    session = PromptSession(history=history)

    def read_line(prompt: str) -> str:
        # completion follows the names declared so far
        words = KEYWORD_WORDS + FUNCTION_NAMES + env.names()
        return session.prompt(prompt, completer=WordCompleter(words))

    return read_line


class Session:
    """One calculator session: owns the environment, the token stream and the precision."""

    def __init__(self, source: CharacterSource, env: Optional[Environment] = None,
                 precision: int = DEFAULT_PRECISION, out: Optional[TextIO] = None,
                 err: Optional[TextIO] = None, ask: Optional[Ask] = None):
        self.source = source
        self.env = env if env is not None else Environment()
        self.tokens = Tokenizer(source)
        self.dispatcher = StatementDispatcher(self.tokens, self.env)
        self.out = out
        self.err = err
        self.store = EnvironmentStore(self.env, ask or self.ask, out=out)
        self.precision = DEFAULT_PRECISION
        self.set_precision(precision)
        # set once a menu answer consumed the rest of the statement's line
        self._answered = False
        self._commands = {
            TokenKind.HELP: self.help,
            TokenKind.PRECISION: self.show_precision,
            TokenKind.SET_PRECISION: self.read_precision,
            TokenKind.SHOW_ENV: self.show_env,
            TokenKind.SAVE_ENV: self.save_env,
            TokenKind.LOAD_ENV: self.load_env,
        }

    # ---- output ----

    def _print(self, text: str = '') -> None:
        print(text, file=self.out if self.out is not None else sys.stdout)

    def report(self, error: Exception) -> None:
        """Error reporting: print the message on the error stream."""
        logger.debug(f"{type(error).__name__}: {error}")
        print(f"Error: {error}", file=self.err if self.err is not None else sys.stderr)

    def format(self, value: float) -> str:
        return format_value(value, self.precision)

    # ---- main loop ----

    def run(self) -> None:
        """Evaluate statements until 'quit' or end of input."""
        logger.info("Calculator session started")
        while True:
            try:
                if not self.step():
                    break
            except KeyboardInterrupt:
                self._print("^C")
                self.tokens.reset()
        logger.info("Calculator session ended")

    def step(self) -> bool:
        """Handle one statement or command; returns False when the session should end."""
        self.source.start_statement()
        self._answered = False
        try:
            t = self.tokens.get()
            while t.kind is TokenKind.PRINT:
                t = self.tokens.get()
            if t.kind in (TokenKind.QUIT, TokenKind.END):
                return False
            command = self._commands.get(t.kind)
            if command is not None:
                command()
                return True
            self.tokens.unget(t)
            value = self.dispatcher.evaluate_one_statement()
            self._print(RESULT + self.format(value))
        except CalculatorError as e:
            self.report(e)
            self.resync()
        except Exception as e:
            logger.exception("Unexpected error while evaluating a statement")
            print(f"Unhandled error: {e}", file=self.err if self.err is not None else sys.stderr)
            self.resync()
        return True

    def resync(self) -> None:
        """Skip the rest of a failed statement.

        A menu answer has already dropped the rest of the command's line, so
        skipping to the next ';' would swallow the following statement.
        """
        if self._answered:
            self.tokens.reset()
        else:
            self.tokens.ignore()

    # ---- commands ----

    def help(self) -> None:
        self._print(HELP_TEXT)

    def set_precision(self, digits: float) -> None:
        """Set the display precision; fractional digits are truncated before the range check."""
        digits = int(digits)
        if not MIN_PRECISION <= digits <= MAX_PRECISION:
            raise PrecisionRangeError(digits)
        self.precision = digits
        self.store.precision = self.precision
        logger.info(f"Display precision set to {self.precision}")

    def read_precision(self) -> None:
        """``set precision N``: the number follows the keyword phrase."""
        t = self.tokens.get()
        if t.kind is not TokenKind.NUMBER:
            self.tokens.unget(t)
            raise ParseError("Expected a number after 'set precision'")
        self.set_precision(t.value)
        self._print(f"Precision set to {self.precision} digits.")

    def show_precision(self) -> None:
        self._print(f"Current precision: {self.precision} digits.")

    def show_env(self) -> None:
        if len(self.env) == 0:
            raise CalculatorError("show env: (none)")
        self._print("Current environment:")
        for entry in self.env.entries():
            suffix = " (const)" if entry.is_const else ""
            self._print(f"  {entry.name} = {self.format(entry.value)}{suffix}")

    def save_env(self) -> None:
        self.store.save(self.tokens.filename)

    def load_env(self) -> None:
        self.load_file(self.tokens.filename)

    def load_file(self, filename: str) -> LoadReport:
        report = self.store.load(filename)
        if report.file_precision is not None:
            if report.apply_precision:
                self.set_precision(report.file_precision)
                self._print(f"Precision set to {self.precision} digits.")
            else:
                self._print(f"Keeping current precision of {self.precision} digits.")
        return report

    # ---- interactive questions ----

    def ask(self, question: str, options: Sequence[str]) -> int:
        """Show numbered options and read answers until a valid one is given."""
        self._print(question)
        for number, option in enumerate(options, start=1):
            self._print(f"  {number}. {option}")
        prompt = f"Select option (1-{len(options)}): "
        while True:
            self._answered = True
            answer = self.source.answer(prompt)
            if answer is None:
                raise PersistenceError("input ended before an option was selected")
            answer = answer.strip()
            if answer.isdigit() and 1 <= int(answer) <= len(options):
                return int(answer)
            self._print(f"Invalid option. Please select a number from 1 to {len(options)}.")
