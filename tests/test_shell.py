import io
import os

import pytest

from mush.shell import Shell, main
from mush.tokens import ParseError


@pytest.fixture
def shell():
    return Shell([f"PATH={os.environ.get('PATH', '')}", "HOME=/nowhere"])


def _feeder(lines):
    items = iter(lines)
    return lambda prompt: next(items)


def test_environment_from_entries(shell):
    assert shell.state.env.get("HOME") == "/nowhere"


def test_environment_from_mapping():
    assert Shell({"HOME": "/x"}).state.env.get("HOME") == "/x"


def test_parse_blank_line(shell):
    assert shell.parse(" \t ") is None


def test_parse_pipeline(shell):
    pipeline = shell.parse("cat < in | wc")
    assert len(pipeline) == 2
    assert pipeline[0].argv == ["cat"]
    assert [r.name for r in pipeline[0].redirections] == ["in"]
    assert pipeline[1].argv == ["wc"]


def test_parse_unclosed_quote(shell):
    with pytest.raises(ParseError):
        shell.parse("echo 'oops")


def test_syntax_error_sets_status(shell, capfd):
    assert shell.run_line("| cat") == 258
    assert shell.state.last_status == 258
    assert "syntax error unexpected token `|'" in capfd.readouterr().err


def test_status_parameter_after_syntax_error(shell, capfd):
    shell.run_line("echo >")
    capfd.readouterr()
    shell.run_line("echo $?")
    assert capfd.readouterr().out == "258\n"


def test_blank_line_keeps_status(shell):
    shell.state.last_status = 7
    assert shell.run_line("") == 7


def test_run_line_echo(shell, capfd):
    assert shell.run_line("echo hi there") == 0
    assert capfd.readouterr().out == "hi there\n"


def test_run_line_exit(shell):
    assert shell.run_line("exit 5") == 5
    assert shell.state.exit_code == 5


def test_loop_until_end_of_input(shell, capfd):
    code = shell.loop(_feeder(["export A=1", "", None]))
    assert code == 0
    assert shell.state.env.get("A") == "1"
    assert capfd.readouterr().out.endswith("exit\n")


def test_loop_ends_on_exit_builtin(shell, capfd):
    assert shell.loop(_feeder(["exit 7", "export B=2", None])) == 7
    assert shell.state.env.get("B") is None
    assert "exit" not in capfd.readouterr().out


def test_main_refuses_arguments():
    assert main(["extra"]) == 1


def test_main_reads_standard_input(monkeypatch, capfd):
    monkeypatch.setattr("sys.stdin", io.StringIO("echo hello\n"))
    assert main([]) == 0
    out = capfd.readouterr().out
    assert "hello\n" in out
    assert "exit" in out