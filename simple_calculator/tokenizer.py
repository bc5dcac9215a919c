"""Tokenizer: turns a character source into calculator tokens.

Tokens read ahead and then rejected by the parser are pushed back with
``unget`` onto a FIFO queue which ``get`` consults before lexing new input.
"""

import logging
import string
from collections import deque
from dataclasses import dataclass
from enum import Enum, auto
from typing import Deque, Optional

from .errors import LexicalError
from .functions import MathFunction
from .source import CharacterSource

logger = logging.getLogger(__name__)


# --------------------------
# Tokens
# --------------------------

class TokenKind(Enum):
    END = auto()
    QUIT = auto()
    PRINT = auto()
    NUMBER = auto()
    NAME = auto()
    SYMBOL = auto()
    CONST = auto()
    HELP = auto()
    PRECISION = auto()
    SET_PRECISION = auto()
    SHOW_ENV = auto()
    SAVE_ENV = auto()
    LOAD_ENV = auto()
    FUNCTION = auto()


@dataclass(frozen=True)
class Token:
    """A single lexical unit. Only the fields relevant to ``kind`` are set."""
    kind: TokenKind
    value: float = 0.0
    name: str = ''
    symbol: str = ''
    function: Optional[MathFunction] = None

    def is_symbol(self, ch: str) -> bool:
        return self.kind is TokenKind.SYMBOL and self.symbol == ch

    def describe(self) -> str:
        """Short human readable form used in error messages."""
        if self.kind is TokenKind.NUMBER:
            return f"number {self.value:g}"
        if self.kind in (TokenKind.NAME, TokenKind.FUNCTION):
            return f"'{self.name}'"
        if self.kind is TokenKind.SYMBOL:
            return f"'{self.symbol}'"
        if self.kind is TokenKind.PRINT:
            return "';'"
        if self.kind is TokenKind.END:
            return "end of input"
        return self.kind.name.lower().replace('_', ' ')

    def __repr__(self) -> str:
        if self.kind is TokenKind.NUMBER:
            return f"Token(NUMBER, {self.value!r})"
        if self.kind in (TokenKind.NAME, TokenKind.FUNCTION):
            return f"Token({self.kind.name}, {self.name!r})"
        if self.kind is TokenKind.SYMBOL:
            return f"Token(SYMBOL, {self.symbol!r})"
        return f"Token({self.kind.name})"


SYMBOLS = '()+-*/%=,'
_DIGITS = string.digits
_LETTERS = string.ascii_letters
_FILENAME_CHARS = _LETTERS + _DIGITS + '_.-'

_KEYWORDS = {
    'quit': TokenKind.QUIT,
    'const': TokenKind.CONST,
    'help': TokenKind.HELP,
    'precision': TokenKind.PRECISION,
}

# first word -> (required second word, token kind)
_PHRASES = {
    'set': ('precision', TokenKind.SET_PRECISION),
    'show': ('env', TokenKind.SHOW_ENV),
    'save': ('env', TokenKind.SAVE_ENV),
    'load': ('env', TokenKind.LOAD_ENV),
}

_FUNCTIONS = {f.value: f for f in MathFunction}

# words never lexed as a NAME
RESERVED_WORDS = sorted(set(_KEYWORDS) | set(_PHRASES))
# completion vocabulary; 'env' is only special after show/save/load
KEYWORD_WORDS = sorted(set(RESERVED_WORDS) | {'env'})


# --------------------------
# Tokenizer
# --------------------------

class Tokenizer:
    """Token stream over a character source, with a FIFO pushback queue."""

    def __init__(self, source: CharacterSource):
        self.source = source
        self.buffer: Deque[Token] = deque()
        # filename read by the last 'save env' / 'load env' phrase
        self.filename = ''

    def get(self) -> Token:
        """Return the next token, replaying pushed-back tokens first."""
        if self.buffer:
            return self.buffer.popleft()
        token = self._lex()
        logger.debug(f"lexed {token!r}")
        return token

    def unget(self, token: Token) -> None:
        """Queue ``token`` to be returned again; several ungets replay in the order pushed."""
        self.buffer.append(token)

    def ignore(self) -> None:
        """Skip input up to and including the next ';'.

        Stops early in front of a 'quit' or at the end of input, leaving that
        token for the caller. Lexical errors met while skipping are dropped.
        """
        while self.buffer:
            token = self.buffer.popleft()
            if token.kind in (TokenKind.QUIT, TokenKind.END):
                self.buffer.appendleft(token)
                return
            if token.kind is TokenKind.PRINT:
                return
        while True:
            try:
                token = self._lex()
            except LexicalError as e:
                logger.debug(f"skipping bad input while resynchronising: {e}")
                continue
            if token.kind is TokenKind.PRINT:
                return
            if token.kind in (TokenKind.QUIT, TokenKind.END):
                self.unget(token)
                return

    def reset(self) -> None:
        """Forget all queued tokens and any unread characters."""
        self.buffer.clear()
        self.source.discard()

    # ---- lexing helpers ----

    def _skip_whitespace(self) -> str:
        ch = self.source.read()
        while ch and ch.isspace():
            ch = self.source.read()
        return ch

    def _take(self, allowed: str) -> str:
        """Read the longest run of characters from ``allowed``."""
        chars = []
        ch = self.source.read()
        while ch and ch in allowed:
            chars.append(ch)
            ch = self.source.read()
        self.source.unread(ch)
        return ''.join(chars)

    def _lex(self) -> Token:
        ch = self._skip_whitespace()
        if ch == '':
            return Token(TokenKind.END)
        if ch in SYMBOLS:
            return Token(TokenKind.SYMBOL, symbol=ch)
        if ch == ';':
            return Token(TokenKind.PRINT)
        if ch in _DIGITS or ch == '.':
            self.source.unread(ch)
            return self._number()
        if ch in _LETTERS:
            return self._word(ch + self._take(_LETTERS + _DIGITS))
        raise LexicalError(f"Bad token {ch!r}")

    def _number(self) -> Token:
        text = self._take(_DIGITS)
        ch = self.source.read()
        if ch == '.':
            text += ch + self._take(_DIGITS)
            ch = self.source.read()
        if not any(c in _DIGITS for c in text):
            self.source.unread(ch)
            raise LexicalError("bad number")
        if ch in ('e', 'E'):
            text += self._exponent(ch)
        else:
            self.source.unread(ch)
        return Token(TokenKind.NUMBER, value=float(text))

    def _exponent(self, marker: str) -> str:
        """Read an exponent after ``marker``; returns '' and unreads if no digits follow."""
        sign = self.source.read()
        if sign in ('+', '-'):
            digits = self._take(_DIGITS)
            if digits:
                return marker + sign + digits
            self.source.unread(marker + sign)
            return ''
        self.source.unread(sign)
        digits = self._take(_DIGITS)
        if digits:
            return marker + digits
        self.source.unread(marker)
        return ''

    def _next_word(self) -> str:
        ch = self._skip_whitespace()
        if ch and ch in _LETTERS:
            return ch + self._take(_LETTERS)
        self.source.unread(ch)
        return ''

    def _read_filename(self, keyword: str) -> str:
        ch = self._skip_whitespace()
        if not ch or ch not in _LETTERS:
            self.source.unread(ch)
            raise LexicalError(f"Expected filename after '{keyword}'")
        return ch + self._take(_FILENAME_CHARS)

    def _word(self, word: str) -> Token:
        if word in _KEYWORDS:
            return Token(_KEYWORDS[word])
        if word in _PHRASES:
            second, kind = _PHRASES[word]
            if self._next_word() != second:
                raise LexicalError(f"Expected '{second}' after '{word}'")
            if kind in (TokenKind.SAVE_ENV, TokenKind.LOAD_ENV):
                self.filename = self._read_filename(word)
            return Token(kind)
        if word in _FUNCTIONS:
            return Token(TokenKind.FUNCTION, name=word, function=_FUNCTIONS[word])
        return Token(TokenKind.NAME, name=word)
