"""Building a pipeline of simple commands from a checked token list."""

from __future__ import annotations

import enum
import os
from dataclasses import dataclass, field
from typing import Callable, Iterable, Optional

from mush.errors import FatalError
from mush.tokens import UNEXPECTED_TOKEN, ParseError, Token, TokenType

HERE_PATH = "./.here_tmp"
HEREDOC_PROMPT = "heredoc> "

ReadLine = Callable[[str], Optional[str]]


class IOType(enum.Enum):
    IN = enum.auto()
    OUT = enum.auto()
    APPEND = enum.auto()
    HERE = enum.auto()


@dataclass
class Redirection:
    """One redirection: the file ``name`` opened with ``flags`` onto ``fd``."""

    name: str
    io_type: IOType
    flags: int
    fd: int


@dataclass
class Command:
    """A simple command: its words, its redirections and, once run, its process."""

    argv: list[str] = field(default_factory=list)
    redirections: list[Redirection] = field(default_factory=list)
    pid: int | None = None
    status: int = 0


def _prompt_line(prompt: str) -> str | None:
    try:
        return input(prompt)
    except EOFError:
        return None


def strip_quotes(word: str) -> str:
    """Remove every single and double quote character from ``word``."""
    return "".join(ch for ch in word if ch not in "'\"")


def read_heredoc(delimiter: str, read_line: ReadLine | None, path: str) -> str:
    """Copy lines into ``path`` until one equals ``delimiter`` or input ends.

    Returns ``path``.
    """
    reader = read_line or _prompt_line
    try:
        fd = os.open(path, os.O_CREAT | os.O_TRUNC | os.O_WRONLY, 0o644)
    except OSError as exc:
        raise FatalError.from_os_error("open", exc) from exc
    with os.fdopen(fd, "w") as stream:
        while True:
            line = reader(HEREDOC_PROMPT)
            if line is None or line == delimiter:
                break
            stream.write(line + "\n")
    return path


def make_redirection(
    operator: str, target: str, read_line: ReadLine | None = None
) -> Redirection:
    """Build the redirection for ``operator`` and its target word.

    A here-document is read at once into the temporary file.
    """
    if operator.startswith("<"):
        fd = 0
        flags = os.O_RDONLY
        io_type = IOType.IN if operator == "<" else IOType.HERE
    elif operator.startswith(">"):
        fd = 1
        if operator == ">":
            io_type = IOType.OUT
            flags = os.O_CREAT | os.O_TRUNC | os.O_WRONLY
        else:
            io_type = IOType.APPEND
            flags = os.O_CREAT | os.O_APPEND | os.O_WRONLY
    else:
        raise ValueError(f"not a redirection operator: {operator!r}")
    name = target
    if io_type is IOType.HERE:
        name = read_heredoc(strip_quotes(target), read_line, HERE_PATH)
    return Redirection(name=name, io_type=io_type, flags=flags, fd=fd)


def build_pipeline(
    tokens: Iterable[Token], read_line: ReadLine | None = None
) -> list[Command]:
    """Group tokens into commands separated by pipes."""
    commands: list[Command] = []
    current = Command()
    stream = iter(tokens)
    for token in stream:
        if token.type is TokenType.NEWLINE:
            break
        if token.type is TokenType.REDIR:
            target = next(stream, None)
            if target is None or target.type is not TokenType.WORD:
                text = target.text if target is not None and target.text else "newline"
                raise ParseError(UNEXPECTED_TOKEN.format(text))
            current.redirections.append(
                make_redirection(token.text, target.text, read_line)
            )
        elif token.type is TokenType.WORD:
            current.argv.append(token.text)
        elif token.type is TokenType.PIPE:
            commands.append(current)
            current = Command()
    commands.append(current)
    return commands