"""Saving and loading environment snapshots.

A snapshot is a text file::

    Precision = 6
    pi = 3.141593 is_const = 1
    x = 5.000000 is_const = 0

Loading only goes through ``is_declared``, ``lookup``, ``is_const`` and
``define`` of the environment. Interactive decisions (save precision,
whether to adopt the file's precision, name conflicts) are delegated to an
``ask`` callable so the store itself never reads from the terminal.
"""

import logging
import re
import sys
from typing import Callable, Dict, List, Optional, Sequence, TextIO

from pydantic import BaseModel, Field, field_validator

from .config import DEFAULT_PRECISION
from .environment import Environment, format_value
from .errors import PersistenceError
from .functions import FUNCTION_NAMES
from .tokenizer import RESERVED_WORDS

logger = logging.getLogger(__name__)

# Ask a question with numbered options; returns the chosen option, 1-based.
Ask = Callable[[str, Sequence[str]], int]

# save menu option -> digits written to the file
SAVE_PRECISIONS: Dict[int, int] = {1: 6, 2: 12, 3: 19}
SAVE_OPTIONS = ["Default (6 digits)", "Medium (12 digits)", "High (19 digits)"]
APPLY_OPTIONS = ["Yes", "No"]
CONFLICT_OPTIONS = ["Keep existing value", "Overwrite with file value", "Keep both (rename file value)"]

KEEP, OVERWRITE, RENAME = 1, 2, 3

_HEADER_RE = re.compile(r"^\s*Precision\s*=\s*(\d+)\s*$")
_NAME_RE = re.compile(r"^[A-Za-z][A-Za-z0-9]*$")
_RESERVED = set(RESERVED_WORDS) | set(FUNCTION_NAMES)


class EnvRecord(BaseModel):
    """One ``name = value is_const = flag`` line of a snapshot."""
    name: str
    value: float
    is_const: bool = False

    @field_validator('name')
    @classmethod
    def name_must_be_usable(cls, v: str) -> str:
        if not _NAME_RE.match(v):
            raise ValueError(f"'{v}' is not a valid name")
        if v in _RESERVED:
            raise ValueError(f"'{v}' is a reserved word")
        return v

    @classmethod
    def parse_line(cls, line: str) -> 'EnvRecord':
        """Parse a snapshot line; raises ValueError if it is malformed."""
        parts = line.split()
        if len(parts) != 6 or parts[1] != '=' or parts[3] != 'is_const' or parts[4] != '=':
            raise ValueError(f"malformed snapshot line: {line!r}")
        return cls(name=parts[0], value=parts[2], is_const=parts[5])

    def to_line(self, precision: int) -> str:
        return f"{self.name} = {format_value(self.value, precision)} is_const = {int(self.is_const)}"


class LoadReport(BaseModel):
    """What a load did to the environment."""
    filename: str
    file_precision: Optional[int] = None
    apply_precision: bool = False
    loaded: List[str] = Field(default_factory=list)
    overwritten: List[str] = Field(default_factory=list)
    renamed: Dict[str, str] = Field(default_factory=dict)
    kept: List[str] = Field(default_factory=list)
    skipped: int = 0


class EnvironmentStore:
    """Persistence collaborator for one environment."""

    def __init__(self, env: Environment, ask: Ask, out: Optional[TextIO] = None,
                 precision: int = DEFAULT_PRECISION):
        self.env = env
        self.ask = ask
        self.out = out
        # digits used when echoing values
        self.precision = precision

    def _echo(self, message: str) -> None:
        print(message, file=self.out if self.out is not None else sys.stdout)

    def _fmt(self, value: float) -> str:
        return format_value(value, self.precision)

    # --------------------------
    # Save
    # --------------------------

    def save(self, filename: str) -> int:
        """Write all entries to ``filename``; returns the precision used."""
        if len(self.env) == 0:
            raise PersistenceError("save env: No variables or constants to save.")
        choice = self.ask("Enter precision for saving:", SAVE_OPTIONS)
        precision = SAVE_PRECISIONS[choice]
        lines = [f"Precision = {precision}"]
        for entry in self.env.entries():
            record = EnvRecord(name=entry.name, value=entry.value, is_const=entry.is_const)
            lines.append(record.to_line(precision))
        try:
            with open(filename, 'w', encoding='utf-8') as f:
                f.write("\n".join(lines) + "\n")
        except OSError as e:
            logger.error(f"Could not write {filename}: {e}")
            raise PersistenceError("save env: Could not open file for writing") from e
        logger.info(f"Saved {len(lines) - 1} entries to {filename} with precision {precision}")
        self._echo(f"Environment saved to {filename} with precision of {precision} digits.")
        return precision

    # --------------------------
    # Load
    # --------------------------

    def load(self, filename: str) -> LoadReport:
        """Merge the entries of ``filename`` into the environment."""
        try:
            with open(filename, 'r', encoding='utf-8') as f:
                lines = f.read().splitlines()
        except OSError as e:
            logger.error(f"Could not read {filename}: {e}")
            raise PersistenceError("load env: Could not open file for reading") from e

        report = LoadReport(filename=filename)
        if not lines:
            logger.warning(f"{filename} is empty")
            return report

        header = _HEADER_RE.match(lines[0])
        if header is None:
            raise PersistenceError(f"load env: {filename} has no 'Precision = N' header")
        report.file_precision = int(header.group(1))
        choice = self.ask(
            f"The file specifies a precision of {report.file_precision} digits.\n"
            "Do you want to apply this precision to future outputs?",
            APPLY_OPTIONS,
        )
        report.apply_precision = choice == 1

        for lineno, line in enumerate(lines[1:], start=2):
            if not line.strip():
                continue
            try:
                record = EnvRecord.parse_line(line)
            except ValueError as e:
                logger.warning(f"{filename}:{lineno}: skipping line: {e}")
                report.skipped += 1
                continue
            self._merge(record, report)

        logger.info(f"Loaded {filename}: {len(report.loaded)} new, {len(report.overwritten)} overwritten, "
                    f"{len(report.renamed)} renamed, {len(report.kept)} kept")
        self._echo(f"Environment loaded from {filename}.")
        return report

    def _merge(self, record: EnvRecord, report: LoadReport) -> None:
        name = record.name
        suffix = " (const)" if record.is_const else ""
        if not self.env.is_declared(name):
            self.env.define(name, record.value, record.is_const)
            report.loaded.append(name)
            self._echo(f"Loaded variable : {name} = {self._fmt(record.value)}{suffix}")
            return

        question = (
            f"Conflict detected for variable: {name}.\n"
            f"Existing value: {self._fmt(self.env.lookup(name))} "
            f"(const: {'yes' if self.env.is_const(name) else 'no'})\n"
            f"File value: {self._fmt(record.value)} (const: {'yes' if record.is_const else 'no'})\n"
            "Choose an action:"
        )
        choice = self.ask(question, CONFLICT_OPTIONS)
        if choice == KEEP:
            report.kept.append(name)
            self._echo(f"Keeping existing value for '{name}'.")
        elif choice == OVERWRITE:
            self.env.define(name, record.value, record.is_const)
            report.overwritten.append(name)
            self._echo(f"Overwritten '{name}' with value from file.")
        else:
            new_name = self._free_name(name)
            self.env.define(new_name, record.value, record.is_const)
            report.renamed[name] = new_name
            self._echo(f"Renamed file variable to '{new_name}'.")

    def _free_name(self, name: str) -> str:
        """First of ``<name>file``, ``<name>file1``, ``<name>file2``... not yet declared."""
        attempt = 0
        while True:
            candidate = f"{name}file{attempt if attempt else ''}"
            if not self.env.is_declared(candidate):
                return candidate
            attempt += 1
