import dataclasses
import errno
import os

import pytest

from mush.errors import ShellError
from mush.pipeline import IOType, Redirection, make_redirection
from mush.redirect import apply_redirections


@pytest.fixture
def spare_fd():
    fd = os.open(os.devnull, os.O_RDONLY)
    yield fd
    try:
        os.close(fd)
    except OSError:
        pass


def _no_vars(name):
    return None


def test_output_redirection_writes_to_file(tmp_path, spare_fd):
    target = tmp_path / "out.txt"
    redirection = dataclasses.replace(make_redirection(">", str(target)), fd=spare_fd)
    apply_redirections([redirection], _no_vars)
    os.write(spare_fd, b"data")
    os.close(spare_fd)
    assert target.read_bytes() == b"data"


def test_input_redirection_reads_file(tmp_path, spare_fd):
    source = tmp_path / "in.txt"
    source.write_bytes(b"abc")
    redirection = dataclasses.replace(make_redirection("<", str(source)), fd=spare_fd)
    apply_redirections([redirection], _no_vars)
    assert redirection.name == str(source)
    assert redirection.io_type == IOType.IN
    assert os.read(spare_fd, 3) == b"abc"


def test_append_keeps_existing_content(tmp_path, spare_fd):
    target = tmp_path / "log.txt"
    target.write_bytes(b"one\n")
    redirection = dataclasses.replace(make_redirection(">>", str(target)), fd=spare_fd)
    apply_redirections([redirection], _no_vars)
    os.write(spare_fd, b"two\n")
    os.close(spare_fd)
    assert target.read_bytes() == b"one\ntwo\n"


def test_truncate_replaces_content(tmp_path, spare_fd):
    target = tmp_path / "log.txt"
    target.write_bytes(b"old content")
    redirection = dataclasses.replace(make_redirection(">", str(target)), fd=spare_fd)
    apply_redirections([redirection], _no_vars)
    os.close(spare_fd)
    assert target.read_bytes() == b""


def test_empty_expansion_is_an_error(spare_fd):
    redirection = dataclasses.replace(make_redirection(">", "$NOPE"), fd=spare_fd)
    with pytest.raises(ShellError) as info:
        apply_redirections([redirection], _no_vars)
    assert info.value.message == os.strerror(errno.ENOENT)


def test_missing_input_is_an_error(tmp_path, spare_fd):
    missing = str(tmp_path / "missing")
    redirection = dataclasses.replace(make_redirection("<", missing), fd=spare_fd)
    with pytest.raises(ShellError) as info:
        apply_redirections([redirection], _no_vars)
    assert info.value.subject == missing
    assert info.value.message == os.strerror(errno.ENOENT)


def test_output_into_missing_directory_is_an_error(tmp_path, spare_fd):
    target = str(tmp_path / "nodir" / "out")
    redirection = dataclasses.replace(make_redirection(">", target), fd=spare_fd)
    with pytest.raises(ShellError) as info:
        apply_redirections([redirection], _no_vars)
    assert info.value.subject == target


def test_here_document_name_is_not_expanded(tmp_path, spare_fd):
    literal = tmp_path / "a$b"
    literal.write_bytes(b"xyz")
    redirection = Redirection(str(literal), IOType.HERE, os.O_RDONLY, spare_fd)
    apply_redirections([redirection], {"b": "other"}.get)
    assert redirection.name == str(literal)
    assert os.read(spare_fd, 3) == b"xyz"


def test_no_redirections_changes_nothing(spare_fd):
    redirections = []
    apply_redirections(redirections, _no_vars)
    assert redirections == []