# minishellpy

The parts of a small command shell, usable from Python: a tokenizer, a
parser, a tree builder and an executor that runs command lines against an
environment of its own.

## What a command line may hold

- Words, single and double quotes (no variable expansion inside single quotes)
- `$NAME` and `$?` expansion; unknown variables expand to nothing
- `*` wildcards matched against the names in a directory, sorted; the match
  list includes `.`, `..` and hidden names, and an argument matching
  nothing is dropped
- Pipes `|`, lists joined by `&&` and `||`, and groups `( ... )`
- Redirections `<`, `>`, `>>` and here-documents `<<`
- Built-in commands: `echo` (with `-n`), `cd` (including `cd -`), `pwd`,
  `export`, `unset`, `env`, `exit`
- Other commands are looked up on `PATH` and run as child processes

## Installation

```
pip install .
```

## Usage

```python
import os

from minishellpy.builtins import ShellExit
from minishellpy.environment import Environment
from minishellpy.executor import Executor
from minishellpy.lexer import tokenize
from minishellpy.parser import parse
from minishellpy.tree import build_tree

env = Environment.from_mapping(os.environ)
executor = Executor(env)
status = 0

for line in ["export GREETING=hello", "echo $GREETING world | cat", "false || echo $?"]:
    commands = parse(tokenize(line), env, status)
    try:
        status = executor.execute(build_tree(commands))
    except ShellExit as exc:
        status = exc.status
        break
```

The pieces:

- `minishellpy.lexer.tokenize(text)` returns a list of `Token`s ending in an
  EOF token; it raises `LexerError` on unclosed or mismatched quotes.
- `minishellpy.parser.parse(tokens, env, exit_status, directory=".")`
  returns a list of `Command`s, expanding variables and wildcards; it raises
  `ParseError` on an unclosed or unexpected parenthesis.
- `minishellpy.tree.build_tree(commands)` arranges the commands into a
  `TreeNode` tree: `&&` and `||` bind loosest, then `|`.
- `minishellpy.executor.Executor(env, stdin, stdout, stderr, read_line)`
  runs a tree with `execute(node)` and returns the exit status. `read_line`
  is called with the `> ` prompt to read here-document lines. The `exit`
  builtin prints `exit` and raises `minishellpy.builtins.ShellExit`
  carrying the status.
- `minishellpy.environment.Environment` keeps the variables as ordered
  `NAME=value` entries, with `get`, `set`, `unset`, `entries`, `as_dict`
  and `path_dirs`.

Both sides of a pipe, and a group, run with a copy of the environment, and
the working directory is put back afterwards, so their changes do not
reach the caller. The left side of a pipe runs to completion before the
right side starts; its output is passed on in memory.

A command that is not found gives status 127; a program killed by SIGINT
gives 130, by SIGQUIT 131.

## What it does not do

The package has no interactive prompt and installs no command: there is
no read–run loop, line editing or history. A program that wants one reads
lines itself and passes each through `tokenize`, `parse`, `build_tree` and
`Executor.execute`, as in the example above.

## Running the tests

```
pip install .[test]
pytest
```