"""Error types and diagnostic formatting for the shell."""

from __future__ import annotations

import sys
from typing import TextIO

PREFIX = "mush"


def format_error(subject: str, message: str) -> str:
    """Return a diagnostic line of the form ``mush: subject: message``."""
    return f"{PREFIX}: {subject}: {message}\n"


def report_error(subject: str, message: str) -> str:
    """Write a diagnostic line to standard error and return it."""
    text = format_error(subject, message)
    sys.stderr.write(text)
    sys.stderr.flush()
    return text


class ShellError(Exception):
    """A recoverable error about one subject, reported as a diagnostic line."""

    def __init__(self, subject: str, message: str, status: int = 1) -> None:
        super().__init__(subject, message)
        self.subject = subject
        self.message = message
        self.status = status

    def __str__(self) -> str:
        return format_error(self.subject, self.message).rstrip("\n")

    def report(self, stream: TextIO | None = None) -> str:
        """Write this error to standard error, or to *stream*, and return the text."""
        if stream is None:
            return report_error(self.subject, self.message)
        text = format_error(self.subject, self.message)
        stream.write(text)
        stream.flush()
        return text


class FatalError(ShellError):
    """A failure of a system facility after which the shell cannot go on."""

    def __init__(self, subject: str, message: str) -> None:
        super().__init__(subject, message, status=1)

    def __str__(self) -> str:
        return f"{self.subject}: {self.message}"

    @classmethod
    def from_os_error(cls, subject: str, exc: OSError) -> "FatalError":
        """Build a fatal error from a failed system call."""
        return cls(subject, exc.strerror or str(exc))