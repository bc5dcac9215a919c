"""Character sources feeding the tokenizer.

A source hands out one character at a time and accepts characters back, so
the tokenizer can look ahead while reading numbers and keyword phrases. The
empty string marks the end of input.
"""

from collections import deque
from typing import Callable, Deque, Optional


class CharacterSource:
    """Base class: pushback handling around a subclass-provided character supply."""

    def __init__(self):
        self._pushback: Deque[str] = deque()

    def read(self) -> str:
        """Return the next character, or '' at end of input."""
        if self._pushback:
            return self._pushback.popleft()
        return self._next_char()

    def unread(self, chars: str) -> None:
        """Push characters back so that they are read again in their original order."""
        self._pushback.extendleft(reversed(chars))

    def discard(self) -> None:
        """Drop any pushed-back characters."""
        self._pushback.clear()

    def start_statement(self) -> None:
        """Called by the session before each statement."""
        pass

    def answer(self, prompt: str) -> Optional[str]:
        """Read the answer to an interactive question.

        The rest of the line being tokenized is dropped and the answer is the
        whole next line, without its newline. Returns None at end of input.
        """
        raise NotImplementedError

    def _next_char(self) -> str:
        raise NotImplementedError


class StringSource(CharacterSource):
    """Reads characters from a fixed string."""

    def __init__(self, text: str):
        super().__init__()
        self.text = text
        self.pos = 0

    def answer(self, prompt: str) -> Optional[str]:
        self.discard()
        if 0 < self.pos <= len(self.text) and self.text[self.pos - 1] != '\n':
            end = self.text.find('\n', self.pos)
            self.pos = len(self.text) if end < 0 else end + 1
        if self.pos >= len(self.text):
            return None
        end = self.text.find('\n', self.pos)
        if end < 0:
            end = len(self.text)
        line = self.text[self.pos:end]
        self.pos = end + 1
        return line

    def _next_char(self) -> str:
        if self.pos >= len(self.text):
            return ''
        ch = self.text[self.pos]
        self.pos += 1
        return ch


class LineSource(CharacterSource):
    """Reads characters line by line from an interactive line reader.

    ``read_line`` is called with the prompt to show and must raise EOFError
    when input is exhausted (both ``input`` and prompt_toolkit's
    ``PromptSession.prompt`` do). The first line of a statement is requested
    with ``prompt``; lines needed to complete it use ``continuation``.
    """

    def __init__(self, read_line: Callable[[str], str], prompt: str = '> ', continuation: str = '  '):
        super().__init__()
        self.read_line = read_line
        self.primary_prompt = prompt
        self.continuation = continuation
        self.prompt = prompt
        self.line = ''
        self.pos = 0
        self.exhausted = False

    def start_statement(self) -> None:
        """Show the primary prompt the next time a line is needed."""
        self.prompt = self.primary_prompt

    def discard(self) -> None:
        """Drop pushed-back characters and the rest of the current line."""
        super().discard()
        self.line = ''
        self.pos = 0

    def answer(self, prompt: str) -> Optional[str]:
        self.discard()
        if self.exhausted:
            return None
        try:
            return self.read_line(prompt)
        except EOFError:
            self.exhausted = True
            return None

    def _next_char(self) -> str:
        while self.pos >= len(self.line):
            if self.exhausted:
                return ''
            try:
                text = self.read_line(self.prompt)
            except EOFError:
                self.exhausted = True
                return ''
            self.prompt = self.continuation
            self.line = text + '\n'
            self.pos = 0
        ch = self.line[self.pos]
        self.pos += 1
        return ch
