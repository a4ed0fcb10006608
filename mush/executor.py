"""Running a pipeline: builtins in the shell, everything else in children."""

from __future__ import annotations

import contextlib
import errno
import os
import signal
import sys
from typing import Iterable, Iterator, Sequence

from mush.builtins import Builtin, ShellExit, lookup_builtin
from mush.env import ShellState
from mush.errors import FatalError, ShellError, report_error
from mush.expand import expand_argv, find_command
from mush.pipeline import HERE_PATH, Command, IOType
from mush.redirect import apply_redirections

_RESTORED_SIGNALS = ("SIGINT", "SIGQUIT", "SIGTSTP", "SIGTTIN", "SIGTTOU", "SIGCHLD", "SIGTERM")


def _restore_signals() -> None:
    for name in _RESTORED_SIGNALS:
        signum = getattr(signal, name, None)
        if signum is not None:
            signal.signal(signum, signal.SIG_DFL)


def _flush_std() -> None:
    for stream in (sys.stdout, sys.stderr):
        with contextlib.suppress(Exception):
            stream.flush()


def _fd_stream(fd: int):
    return open(fd, "w", encoding="utf-8", errors="surrogateescape", closefd=False)


@contextlib.contextmanager
def _stdout_on_fd() -> Iterator[None]:
    """Make ``sys.stdout`` write straight to descriptor 1 for a while."""
    _flush_std()
    stream = _fd_stream(1)
    previous = sys.stdout
    sys.stdout = stream
    try:
        yield
    finally:
        with contextlib.suppress(Exception):
            stream.flush()
        sys.stdout = previous
        stream.close()


def decode_wait_status(status: int) -> tuple[int, bool]:
    """Turn a raw wait status into an exit code.

    A signal death gives 128 plus the signal number; the flag tells whether
    that signal was SIGINT or SIGQUIT.
    """
    if os.WIFSIGNALED(status):
        signum = os.WTERMSIG(status)
        return 128 + signum, signum in (signal.SIGINT, signal.SIGQUIT)
    return os.WEXITSTATUS(status), False


def wait_pipeline(pids: Iterable[int]) -> int:
    """Wait for every child and return the status of the last one."""
    status = 0
    interrupted = False
    for pid in pids:
        try:
            _, raw = os.waitpid(pid, 0)
        except ChildProcessError:
            continue
        status, hit = decode_wait_status(raw)
        interrupted = interrupted or hit
    if interrupted:
        _flush_std()
        os.write(1, b"\n")
    return status


def _dup_or_none(fd: int) -> int | None:
    try:
        return os.dup(fd)
    except OSError:
        return None


def run_builtin_in_parent(state: ShellState, command: Command, builtin: Builtin) -> int:
    """Run a builtin in the shell itself, its redirections undone afterwards."""
    saved = (_dup_or_none(0), _dup_or_none(1))
    try:
        with _stdout_on_fd():
            try:
                apply_redirections(command.redirections, state.lookup)
            except ShellError as exc:
                exc.report()
                return 1
            return builtin(state, command.argv)
    finally:
        for target, copy in zip((0, 1), saved):
            if copy is not None:
                os.dup2(copy, target)
                os.close(copy)


def cleanup_pipeline(pipeline: list) -> None:
    """Remove the here-document file if one was used and empty the pipeline."""
    uses_heredoc = any(
        redirection.io_type is IOType.HERE
        for command in pipeline
        for redirection in command.redirections
    )
    if uses_heredoc:
        with contextlib.suppress(FileNotFoundError):
            os.unlink(HERE_PATH)
    del pipeline[:]


def _child_env(state: ShellState) -> dict:
    env = {}
    for entry in state.env:
        name, sep, value = entry.partition("=")
        if sep:
            env[name] = value
    return env


def _child_status(state: ShellState, command: Command) -> int:
    try:
        apply_redirections(command.redirections, state.lookup)
    except ShellError as exc:
        exc.report()
        return 1
    if not command.argv:
        return 0
    builtin = lookup_builtin(command.argv[0])
    if builtin is not None:
        return builtin(state, command.argv)
    path = find_command(command.argv[0], state.env.get("PATH"))
    if path is None:
        report_error(command.argv[0], "command not found")
        return 127
    try:
        os.execve(path, command.argv, _child_env(state))
    except OSError as exc:
        report_error(path, exc.strerror or str(exc))
        return 126 if exc.errno in (errno.ENOEXEC, errno.EACCES) else 127
    return 127


def _run_child(
    state: ShellState, command: Command, stdin: int, stdout: int, toclose: int | None
) -> None:
    code = 1
    try:
        _restore_signals()
        if stdin != 0:
            os.dup2(stdin, 0)
            os.close(stdin)
        if stdout != 1:
            os.dup2(stdout, 1)
            os.close(stdout)
        if toclose is not None:
            with contextlib.suppress(OSError):
                os.close(toclose)
        sys.stdout = _fd_stream(1)
        sys.stderr = _fd_stream(2)
        code = _child_status(state, command)
    except ShellExit as exc:
        code = exc.code
    except FatalError as exc:
        with contextlib.suppress(Exception):
            sys.stderr.write(f"{exc}\n")
        code = 1
    except BaseException:
        code = 1
    finally:
        _flush_std()
        os._exit(code & 0xFF)


def _spawn(
    state: ShellState, command: Command, stdin: int, stdout: int, toclose: int | None
) -> int:
    _flush_std()
    try:
        pid = os.fork()
    except OSError as exc:
        raise FatalError.from_os_error("fork", exc) from exc
    if pid == 0:
        _run_child(state, command, stdin, stdout, toclose)
    return pid


def _run_forked(state: ShellState, commands: Sequence[Command]) -> int:
    stdin = 0
    last = len(commands) - 1
    for index, command in enumerate(commands):
        stdout = 1
        next_read: int | None = None
        if index < last:
            try:
                next_read, stdout = os.pipe()
            except OSError as exc:
                raise FatalError.from_os_error("pipe", exc) from exc
        command.pid = _spawn(state, command, stdin, stdout, next_read)
        if stdin != 0:
            os.close(stdin)
        if stdout != 1:
            os.close(stdout)
        stdin = next_read if next_read is not None else 0
    pids = [command.pid for command in commands if command.pid is not None]
    return wait_pipeline(pids)


def execute(state: ShellState, pipeline: list) -> int:
    """Run the pipeline, record its status as ``$?`` and return it.

    A lone builtin runs in the shell; ``exit`` there raises ShellExit.
    """
    commands = list(pipeline)
    try:
        if not commands:
            return state.last_status
        for command in commands:
            command.argv = expand_argv(command.argv, state.lookup)
        if len(commands) == 1:
            first = commands[0]
            builtin = lookup_builtin(first.argv[0] if first.argv else None)
            if builtin is not None:
                status = run_builtin_in_parent(state, first, builtin)
                state.last_status = status
                return status
        state.last_status = _run_forked(state, commands)
        return state.last_status
    finally:
        cleanup_pipeline(pipeline)