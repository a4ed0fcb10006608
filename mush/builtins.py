"""The commands the shell runs itself: cd, echo, env, exit, export, pwd, unset."""

from __future__ import annotations

import functools
import os
import sys
from typing import Callable, Iterable, Optional

from mush.env import ShellState, is_valid_name
from mush.errors import FatalError, report_error

Builtin = Callable[[ShellState, list], int]

_INT32_MAX = 2147483647
_INT32_MIN = -2147483648
_SPACES = "\t\n\v\f\r "


class ShellExit(Exception):
    """Raised by ``exit``: the shell (or the child running it) ends with ``code``."""

    def __init__(self, code: int) -> None:
        super().__init__(code)
        self.code = code


def _out(text: str) -> None:
    sys.stdout.write(text)
    sys.stdout.flush()


def _err(text: str) -> None:
    sys.stderr.write(text)
    sys.stderr.flush()


def is_int32(text: Optional[str]) -> bool:
    """Tell whether ``text`` is an optionally signed decimal fitting in 32 bits."""
    if not text:
        return False
    negative = text[0] == "-"
    digits = text[1:] if text[0] in "+-" else text
    if not digits:
        return False
    digits = digits.lstrip("0")
    if len(digits) > 10:
        return False
    if digits and not digits.isascii():
        return False
    if digits and not digits.isdigit():
        return False
    value = int(digits) if digits else 0
    if negative:
        value = -value
    return _INT32_MIN <= value <= _INT32_MAX


def parse_exit_code(text: str) -> int:
    """Convert ``text`` as the exit builtin does and return the 8-bit status."""
    rest = text.lstrip(_SPACES)
    sign = 1
    if rest[:1] in ("+", "-") and rest[:1]:
        sign = -1 if rest[0] == "-" else 1
        rest = rest[1:]
    value = 0
    for ch in rest:
        if not ("0" <= ch <= "9"):
            break
        value = (value * 10 + ord(ch) - ord("0")) & 0xFFFFFFFF
    return (sign * value) & 0xFF


def _key_length(entry: str) -> int:
    return len(entry.split("=", 1)[0])


def _compare_entries(left: str, right: str) -> int:
    width = max(_key_length(left), _key_length(right))
    a = left.encode("utf-8", "surrogateescape")[:width]
    b = right.encode("utf-8", "surrogateescape")[:width]
    return (a > b) - (a < b)


def sort_env_entries(entries: Iterable[str]) -> list[str]:
    """Return the entries ordered by name, keeping the order of equal names."""
    return sorted(entries, key=functools.cmp_to_key(_compare_entries))


def builtin_cd(state: ShellState, argv: list) -> int:
    """Change the working directory and update PWD and OLDPWD."""
    if len(argv) > 2:
        report_error("cd", "to many arguments")
        return 1
    if len(argv) == 1:
        target = state.env.get("HOME")
        if target is None:
            report_error("cd", "HOME not set")
            return 1
    else:
        target = argv[1]
    try:
        old_pwd = os.getcwd()
    except OSError as exc:
        raise FatalError.from_os_error("getcwd", exc) from exc
    try:
        os.chdir(target)
    except OSError as exc:
        report_error(target, exc.strerror or str(exc))
        return 1
    state.env.set("OLDPWD", old_pwd)
    try:
        pwd = os.getcwd()
    except OSError as exc:
        raise FatalError.from_os_error("getcwd", exc) from exc
    state.env.set("PWD", pwd)
    return 0


def _is_n_option(arg: str) -> bool:
    return arg.startswith("-n") and set(arg[1:]) == {"n"}


def builtin_echo(state: ShellState, argv: list) -> int:
    """Print the arguments separated by spaces; ``-n`` drops the newline."""
    args = list(argv[1:])
    newline = True
    while args and _is_n_option(args[0]):
        newline = False
        args.pop(0)
    text = " ".join(args)
    _out(text + "\n" if newline else text)
    return 0


def builtin_env(state: ShellState, argv: list) -> int:
    """Print every environment entry that carries a value."""
    if len(argv) > 1:
        _err("env: too many arguments\n")
        return 1
    _out("".join(f"{entry}\n" for entry in state.env if "=" in entry))
    return 0


def builtin_exit(state: ShellState, argv: list) -> int:
    """End the shell with the given status, or 0 when none is given."""
    if len(argv) > 2:
        _err("mush: exit: too many arguments\n")
        return 1
    if len(argv) == 1:
        raise ShellExit(0)
    if not is_int32(argv[1]):
        _err(f"mush: exit: {argv[1]}: numberic argument required\n")
        raise ShellExit(255)
    raise ShellExit(parse_exit_code(argv[1]))


def builtin_export(state: ShellState, argv: list) -> int:
    """Without arguments list all entries sorted; otherwise add or replace them."""
    if len(argv) == 1:
        _out("".join(f"{entry}\n" for entry in sort_env_entries(state.env)))
        return 0
    result = 0
    for arg in argv[1:]:
        if not is_valid_name(arg):
            _err(f"mush: export: `{arg}': not a valid identifier\n")
            result = 1
        else:
            state.env.put(arg)
    return result


def builtin_pwd(state: ShellState, argv: list) -> int:
    """Print the working directory."""
    if len(argv) > 1:
        _err("pwd: too many arguments\n")
        return 1
    try:
        pwd = os.getcwd()
    except OSError as exc:
        raise FatalError.from_os_error("getcwd", exc) from exc
    _out(pwd + "\n")
    return 0


def builtin_unset(state: ShellState, argv: list) -> int:
    """Remove the named variables; invalid names are reported but not fatal."""
    for arg in argv[1:]:
        if not is_valid_name(arg):
            _err(f"mush: unset: `{arg}': not a valid identifier\n")
        else:
            state.env.unset(arg)
    return 0


_BUILTINS: dict = {
    "cd": builtin_cd,
    "echo": builtin_echo,
    "env": builtin_env,
    "exit": builtin_exit,
    "export": builtin_export,
    "pwd": builtin_pwd,
    "unset": builtin_unset,
}


def lookup_builtin(name: Optional[str]) -> Optional[Builtin]:
    """Return the builtin called ``name``, or None."""
    if not name:
        return None
    return _BUILTINS.get(name)