import io

from mush.errors import FatalError, ShellError, format_error, report_error


def test_format_error_layout():
    assert format_error("cd", "HOME not set") == "mush: cd: HOME not set\n"


def test_report_error_writes_to_stderr(capsys):
    text = report_error("ls", "command not found")
    captured = capsys.readouterr()
    assert captured.err == text
    assert text == format_error("ls", "command not found")
    assert captured.out == ""


def test_report_error_returns_formatted_line(capsys):
    text = report_error("x", "y")
    assert text == "mush: x: y\n"
    assert capsys.readouterr().err == "mush: x: y\n"


def test_shell_error_str_matches_format():
    err = ShellError("foo", "No such file or directory")
    assert str(err) + "\n" == format_error("foo", "No such file or directory")
    assert err.status == 1


def test_shell_error_custom_status_and_report():
    err = ShellError("cmd", "command not found", status=127)
    stream = io.StringIO()
    text = err.report(stream)
    assert err.status == 127
    assert stream.getvalue() == format_error("cmd", "command not found")
    assert text == stream.getvalue()


def test_shell_error_report_defaults_to_stderr(capsys):
    err = ShellError("cmd", "bad")
    text = err.report()
    assert capsys.readouterr().err == text == "mush: cmd: bad\n"


def test_fatal_error_is_shell_error():
    err = FatalError("getcwd", "boom")
    assert isinstance(err, ShellError)
    assert str(err) == "getcwd: boom"
    assert err.status == 1
    assert err.subject == "getcwd"


def test_fatal_error_from_os_error():
    err = FatalError.from_os_error("open", OSError(2, "No such file or directory"))
    assert err.subject == "open"
    assert err.message == "No such file or directory"