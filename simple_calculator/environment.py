"""Named values (variables and constants) of one calculator session."""

import logging
from dataclasses import dataclass
from typing import Dict, Iterator

from .errors import ConstViolationError, UndefinedNameError

logger = logging.getLogger(__name__)


def format_value(value: float, precision: int) -> str:
    """Fixed-point text of ``value`` with ``precision`` digits after the point."""
    return f"{value:.{precision}f}"


@dataclass(frozen=True)
class Entry:
    name: str
    value: float
    is_const: bool = False


class Environment:
    """Mapping from name to Entry.

    ``define`` writes unconditionally; callers that must protect constants
    check ``is_const``/``is_declared`` first. ``assign`` is the checked write
    used by plain assignment.
    """

    def __init__(self):
        self._entries: Dict[str, Entry] = {}

    def lookup(self, name: str) -> float:
        entry = self._entries.get(name)
        if entry is None:
            raise UndefinedNameError(name)
        return entry.value

    def is_const(self, name: str) -> bool:
        entry = self._entries.get(name)
        return entry is not None and entry.is_const

    def is_declared(self, name: str) -> bool:
        return name in self._entries

    def define(self, name: str, value: float, is_const: bool = False) -> None:
        logger.debug(f"define {name} = {value!r} (const={is_const})")
        self._entries[name] = Entry(name, float(value), is_const)

    def assign(self, name: str, value: float) -> None:
        entry = self._entries.get(name)
        if entry is None:
            raise UndefinedNameError(name)
        if entry.is_const:
            raise ConstViolationError(name)
        logger.debug(f"assign {name} = {value!r}")
        self._entries[name] = Entry(name, float(value))

    def entries(self) -> Iterator[Entry]:
        """Entries ordered by name."""
        for name in sorted(self._entries):
            yield self._entries[name]

    def names(self) -> list:
        return sorted(self._entries)

    def __contains__(self, name: object) -> bool:
        return name in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        return f"Environment({len(self._entries)} entries)"
