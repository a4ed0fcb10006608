"""The interactive shell: reading lines, parsing them and running them."""

from __future__ import annotations

import os
import signal
import sys
from typing import Callable, Iterable, Mapping, Optional, Union

from mush.builtins import ShellExit
from mush.env import Environment, ShellState
from mush.errors import FatalError
from mush.executor import execute
from mush.pipeline import Command, ReadLine, build_pipeline
from mush.tokens import ParseError, check_syntax, tokenize

try:
    import termios
except ImportError:
    termios = None

PROMPT = "mush+> "

_IGNORED_SIGNALS = ("SIGQUIT", "SIGTSTP", "SIGCONT", "SIGTTIN", "SIGTTOU", "SIGTERM")


def _stdin_is_tty() -> bool:
    check = getattr(sys.stdin, "isatty", None)
    if check is None:
        return False
    try:
        return bool(check())
    except (OSError, ValueError, AttributeError):
        return False


def _install_signals() -> None:
    for name in _IGNORED_SIGNALS:
        signum = getattr(signal, name, None)
        if signum is not None:
            signal.signal(signum, signal.SIG_IGN)
    sigchld = getattr(signal, "SIGCHLD", None)
    if sigchld is not None:
        signal.signal(sigchld, signal.SIG_DFL)


class _Terminal:
    """Echo of control characters and SIGINT handling around the prompt."""

    def __init__(self) -> None:
        self._active = _stdin_is_tty()
        self._attrs = None
        if self._active and termios is not None:
            try:
                self._attrs = termios.tcgetattr(1)
            except (termios.error, OSError):
                self._attrs = None

    def _set_echoctl(self, enabled: bool) -> None:
        if self._attrs is None:
            return
        flag = getattr(termios, "ECHOCTL", 0)
        attrs = list(self._attrs)
        attrs[3] = attrs[3] | flag if enabled else attrs[3] & ~flag
        try:
            termios.tcsetattr(1, termios.TCSANOW, attrs)
        except (termios.error, OSError):
            pass

    def interactive(self) -> None:
        if self._active:
            self._set_echoctl(False)
            signal.signal(signal.SIGINT, signal.default_int_handler)

    def blocked(self) -> None:
        if self._active:
            self._set_echoctl(True)
            signal.signal(signal.SIGINT, signal.SIG_IGN)

    def restored(self) -> None:
        if self._active:
            self._set_echoctl(True)
            signal.signal(signal.SIGINT, signal.default_int_handler)


def _read_line(prompt: str) -> str | None:
    try:
        return input(prompt)
    except EOFError:
        return None


class Shell:
    """A shell session holding its environment and the last status."""

    def __init__(
        self, environ: Union[Mapping[str, str], Iterable[str], None] = None
    ) -> None:
        if environ is None:
            environ = os.environ
        if isinstance(environ, Mapping):
            entries = [f"{name}={value}" for name, value in environ.items()]
        else:
            entries = list(environ)
        self.state = ShellState(env=Environment(entries))
        self.read_line: ReadLine | None = None

    def parse(self, line: str) -> list[Command] | None:
        """Parse one line into a pipeline; None for a blank line.

        Raises ParseError on a syntax error. Here-documents are read here.
        """
        if line is None or not line.strip(" \t\n"):
            return None
        tokens = tokenize(line)
        check_syntax(tokens)
        return build_pipeline(tokens, self.read_line)

    def run_line(self, line: str) -> int:
        """Parse and run one line and return the resulting status."""
        try:
            pipeline = self.parse(line)
        except ParseError as exc:
            sys.stderr.write(f"{exc.message}\n")
            sys.stderr.flush()
            self.state.last_status = ParseError.status
            return ParseError.status
        if pipeline is None:
            return self.state.last_status
        try:
            return execute(self.state, pipeline)
        except ShellExit as exc:
            self.state.exit_code = exc.code
            return exc.code

    def loop(self, read_line: Callable[[str], Optional[str]]) -> int:
        """Read and run lines until end of input or ``exit``; return the exit code."""
        terminal = _Terminal()
        end_of_input = False
        try:
            while self.state.exit_code is None:
                terminal.interactive()
                try:
                    line = read_line(PROMPT)
                except KeyboardInterrupt:
                    sys.stdout.write("\n")
                    sys.stdout.flush()
                    continue
                if line is None:
                    end_of_input = True
                    self.state.exit_code = 0
                    break
                terminal.blocked()
                self.run_line(line)
        finally:
            terminal.restored()
        if end_of_input:
            print("exit", flush=True)
        return self.state.exit_code


def main(argv: list[str] | None = None) -> int:
    """Start an interactive session; any argument is refused."""
    args = sys.argv[1:] if argv is None else list(argv)
    if args:
        return 1
    try:
        import readline  # noqa: F401  (line editing and history for input())
    except ImportError:
        pass
    shell = Shell()
    if _stdin_is_tty():
        _install_signals()
    try:
        return shell.loop(_read_line)
    except FatalError as exc:
        sys.stderr.write(f"{exc}\n")
        sys.stderr.flush()
        return 1


if __name__ == "__main__":
    sys.exit(main())