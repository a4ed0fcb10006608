"""Parameter expansion, quote removal and command lookup."""

from __future__ import annotations

import os
from typing import Callable, Iterable, Optional

Lookup = Callable[[str], Optional[str]]

_NAME_END = "'\"$ \t\n"


def _name_length(word: str, start: int) -> int:
    end = start
    while end < len(word) and word[end] not in _NAME_END:
        end += 1
    return end - start


def expand_word(word: str, lookup: Lookup) -> str:
    """Expand ``$NAME`` outside single quotes and remove the quotes."""
    parts: list[str] = []
    single = False
    double = False
    pos = 0
    while pos < len(word):
        ch = word[pos]
        if ch == "'" and not double:
            single = not single
        elif ch == '"' and not single:
            double = not double
        elif ch == "$" and not single:
            size = _name_length(word, pos + 1)
            name = word[pos + 1:pos + 1 + size]
            value = lookup(name) if name else None
            if value is not None:
                parts.append(value)
            pos += size
        else:
            parts.append(ch)
        pos += 1
    return "".join(parts)


def expand_argv(argv: Iterable[str], lookup: Lookup) -> list[str]:
    """Expand every word of a command."""
    return [expand_word(word, lookup) for word in argv]


def find_command(name: str, path: str | None) -> str | None:
    """Resolve a command name against ``path``.

    Names with a slash, or any name when there is no path, are used as given.
    Otherwise the first directory holding an entry of that name wins.
    """
    if not name:
        return None
    if "/" in name or path is None:
        return name
    for directory in filter(None, path.split(":")):
        candidate = f"{directory}/{name}"
        try:
            os.stat(candidate)
        except FileNotFoundError:
            continue
        except OSError:
            return candidate
        return candidate
    return None