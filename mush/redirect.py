"""Opening the files named by a command's redirections."""

from __future__ import annotations

import errno
import os
from typing import Iterable

from mush.errors import ShellError
from mush.expand import Lookup, expand_word
from mush.pipeline import IOType, Redirection

_CREATE_MODE = 0o644


def _expand_target(redirection: Redirection, lookup: Lookup) -> str:
    name = expand_word(redirection.name, lookup)
    if not name:
        raise ShellError(name, os.strerror(errno.ENOENT))
    if redirection.io_type is IOType.IN:
        try:
            os.stat(name)
        except FileNotFoundError as exc:
            raise ShellError(name, os.strerror(errno.ENOENT)) from exc
        except OSError:
            pass
    return name


def apply_redirections(redirections: Iterable[Redirection], lookup: Lookup) -> None:
    """Expand the file names, open each file and put it on its descriptor.

    Here-document names are used as they are. The first failure raises
    ShellError naming the file; redirections before it stay in effect.
    """
    for redirection in redirections:
        if redirection.io_type is not IOType.HERE:
            redirection.name = _expand_target(redirection, lookup)
        try:
            fd = os.open(redirection.name, redirection.flags, _CREATE_MODE)
        except OSError as exc:
            raise ShellError(redirection.name, exc.strerror or str(exc)) from exc
        if fd != redirection.fd:
            try:
                os.dup2(fd, redirection.fd)
            finally:
                os.close(fd)