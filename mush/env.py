"""Environment list and shell state."""

from __future__ import annotations

import string
from dataclasses import dataclass, field
from typing import Iterable, Iterator

_NAME_START = frozenset(string.ascii_letters + "_")
_NAME_CHARS = frozenset(string.ascii_letters + string.digits + "_")


def is_valid_name(name: str) -> bool:
    """Check a ``key[=[value]]`` string: the key must be an identifier."""
    if not name or name[0] not in _NAME_START:
        return False
    key = name.split("=", 1)[0]
    return all(ch in _NAME_CHARS for ch in key[1:])


def _key_of(entry: str) -> str:
    return entry.split("=", 1)[0]


class Environment:
    """An ordered list of ``NAME=value`` (or bare ``NAME``) entries."""

    def __init__(self, entries: Iterable[str] | None = None) -> None:
        self._entries: list[str] = list(entries) if entries is not None else []

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._entries))

    def __len__(self) -> int:
        return len(self._entries)

    def index_of(self, name: str) -> int | None:
        """Return the position of the entry for ``name``, or None."""
        for index, entry in enumerate(self._entries):
            if _key_of(entry) == name:
                return index
        return None

    def get(self, name: str) -> str | None:
        """Return the value of ``name``; a bare entry has the empty value."""
        index = self.index_of(name)
        if index is None:
            return None
        _, _, value = self._entries[index].partition("=")
        return value

    def set(self, name: str, value: str | None) -> None:
        """Set ``name`` to ``value``; None stores ``name=`` with no value."""
        if value is None:
            self.put(f"{name}=")
            return
        entry = f"{name}={value}"
        index = self.index_of(name)
        if index is None:
            self._entries.append(entry)
        else:
            self._entries[index] = entry

    def put(self, entry: str) -> None:
        """Add or replace an entry; a bare name never overwrites a value."""
        name, sep, _ = entry.partition("=")
        index = self.index_of(name)
        if index is None:
            self._entries.append(entry)
        elif sep:
            self._entries[index] = entry

    def unset(self, name: str) -> None:
        """Remove ``name``; the last entry takes its place."""
        index = self.index_of(name)
        if index is None:
            return
        last = self._entries.pop()
        if index < len(self._entries):
            self._entries[index] = last

    def as_list(self) -> list[str]:
        """Return a copy of the entries in their current order."""
        return list(self._entries)


@dataclass
class ShellState:
    """Everything the shell keeps between command lines."""

    env: Environment = field(default_factory=Environment)
    last_status: int = 0
    exit_code: int | None = None

    def lookup(self, name: str) -> str | None:
        """Look a parameter up; ``?`` is the status of the last pipeline."""
        if name == "?":
            return str(self.last_status)
        return self.env.get(name)