"""Splitting a command line into tokens and checking their order."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Iterator, Sequence

_BLANKS = " \t\n"
_OPERATOR_CHARS = "<|>"
_QUOTES = "\"'"

UNCLOSED_QUOTE = "mush: syntax error unclosed quotation mark"
UNEXPECTED_TOKEN = "mush: syntax error unexpected token `{}'"


class TokenType(enum.Enum):
    WORD = enum.auto()
    PIPE = enum.auto()
    REDIR = enum.auto()
    NEWLINE = enum.auto()


@dataclass(frozen=True)
class Token:
    text: str
    type: TokenType


class ParseError(Exception):
    """A syntax error in a command line; the shell's status becomes 258."""

    status = 258

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return self.message


def _operator_size(line: str, pos: int) -> int:
    ch = line[pos]
    if ch in "<>" and line.startswith(ch * 2, pos):
        return 2
    return 1


def _scan(line: str) -> Iterator[str]:
    """Yield token strings; the empty string marks the end of the line."""
    pos = 0
    end = len(line)
    while True:
        while pos < end and line[pos] in _BLANKS:
            pos += 1
        if pos < end and line[pos] in _OPERATOR_CHARS:
            size = _operator_size(line, pos)
            yield line[pos:pos + size]
            pos += size
            continue
        parts: list[str] = []
        while pos < end:
            ch = line[pos]
            if ch in _BLANKS or ch in _OPERATOR_CHARS:
                break
            if ch in _QUOTES:
                close = line.find(ch, pos + 1)
                if close < 0:
                    raise ParseError(UNCLOSED_QUOTE)
                parts.append(line[pos:close + 1])
                pos = close + 1
            else:
                parts.append(ch)
                pos += 1
        word = "".join(parts)
        yield word
        if not word:
            return


def _classify(text: str) -> TokenType:
    if not text:
        return TokenType.NEWLINE
    if text[0] == "|":
        return TokenType.PIPE
    if text[0] in "<>":
        return TokenType.REDIR
    return TokenType.WORD


def tokenize(line: str) -> list[Token]:
    """Split ``line`` into tokens ending with one NEWLINE token.

    Quotes are kept in the word text; they are removed during expansion.
    """
    return [Token(text, _classify(text)) for text in _scan(line)]


def _is_unexpected(current: TokenType, previous: TokenType) -> bool:
    return (
        (current is TokenType.NEWLINE and previous is not TokenType.WORD)
        or (current is TokenType.REDIR and previous is TokenType.REDIR)
        or (current is TokenType.PIPE and previous is not TokenType.WORD)
    )


def check_syntax(tokens: Sequence[Token]) -> None:
    """Raise ParseError at the first token that may not follow its predecessor."""
    if not tokens:
        return
    unexpected: str | None = None
    if tokens[0].type is TokenType.PIPE:
        unexpected = tokens[0].text
    else:
        for previous, current in zip(tokens, tokens[1:]):
            if _is_unexpected(current.type, previous.type):
                unexpected = current.text
                break
    if unexpected is not None:
        raise ParseError(UNEXPECTED_TOKEN.format(unexpected or "newline"))