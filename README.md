# mush

`mush` is a small interactive shell for POSIX systems. It reads a line, splits
it into words and operators, checks the order of the tokens, and runs the line
as a pipeline of commands.

## Features

- Pipelines joined with `|`; the status of a pipeline is that of its last
  command
- Redirections: `<`, `>`, `>>`, and here-documents with `<<`
- Single and double quoting; `$NAME` expansion outside single quotes (unset
  names expand to nothing), and `$?` for the status of the last command
- Command lookup through `PATH`; names containing a `/` are run as given
- Builtins: `cd`, `echo` (with `-n`), `env`, `exit`, `export`, `pwd`, `unset`
- A lone builtin runs inside the shell, so `cd` and `export` change the
  session; builtins inside a pipeline run in a child process
- Status codes: syntax errors give 258, an unknown command 127, a file that
  cannot be executed 126, a command killed by a signal 128 plus the signal
  number

## Installation

```
pip install .
```

## Usage

Start the interactive shell:

```
mush
```

The command takes no arguments; given any, it exits with status 1. The prompt
is `mush+> `. Type a command and press Enter:

```
mush+> echo "hello $USER" | tr a-z A-Z
mush+> export GREETING=hi
mush+> cat << EOF > notes.txt
heredoc> first line
heredoc> EOF
mush+> exit 0
```

End of input (Ctrl-D) at the prompt ends the session with status 0 and prints
`exit`. On a terminal, Ctrl-C at the prompt drops the line being typed and
gives a new prompt. When the `readline` module is available it is loaded for
line editing.

`exit` with a non-numeric or out-of-range argument reports
`numberic argument required` and exits with 255; a numeric argument is
reduced to 0–255.

## Using it from Python

`mush.shell.Shell` takes an environment, either a mapping or a list of
`NAME=value` strings (it defaults to `os.environ`). `run_line` parses and runs
one line and returns its status; `parse` returns the pipeline without running
it; `loop` reads lines from a callable until end of input or `exit`.

```python
from mush.shell import Shell

shell = Shell({"PATH": "/usr/bin:/bin", "HOME": "/tmp"})
status = shell.run_line("echo hello > out.txt")
print(status, shell.state.last_status)
```

The parts are importable on their own:

- `mush.tokens`: `tokenize` and `check_syntax` (raising `ParseError`)
- `mush.pipeline`: `build_pipeline`, `make_redirection`, `read_heredoc`,
  `strip_quotes`, and the `Command` and `Redirection` data classes
- `mush.expand`: `expand_word`, `expand_argv` and `find_command`
- `mush.env`: `Environment`, `ShellState` and `is_valid_name`
- `mush.builtins`: the builtin functions and `lookup_builtin`
- `mush.redirect`: `apply_redirections`
- `mush.executor`: `execute`, `wait_pipeline` and `decode_wait_status`

## What it does not do

`mush` handles one pipeline per line. It has no `;`, `&&` or `||`, no
subshells or grouping, no filename globbing, no backgrounding or job control,
no shell variables apart from the environment, and no scripts: it reads only
interactive lines. Here-document text is written to `./.here_tmp` in the
current directory and removed after the line has run.

## Running the tests

```
pip install .[test]
pytest
```