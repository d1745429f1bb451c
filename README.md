# minishell

A bash-like shell as a Python library. It provides the parts a small shell
is built from:

- `minishell.env.Environment`: an ordered variable store that also holds the
  `?` status variable;
- `minishell.expand` and `minishell.wildcard`: variable expansion with bash
  quoting rules, word splitting, quote removal and `*` filename generation;
- `minishell.parser`: a recursive-descent parser from tokens to a syntax tree
  of `minishell.syntax_tree.AstNode` objects, covering simple commands,
  redirections, here-documents, pipelines, `&&` / `||` lists and
  parenthesised subshells;
- `minishell.heredoc.read_heredoc`: reads a here-document into a file;
- `minishell.builtins`: `echo`, `cd`, `pwd`, `export`, `unset`, `env` and
  `exit`;
- `minishell.executor.Executor`: runs a syntax tree, opens redirections,
  connects pipeline stages through pipes and looks programs up on `PATH`.

Diagnostics go to standard error in the form `minishell: <command>: <reason>`.
`minishell.errors.ExitCode` names the statuses: `OK` (0), `KO` (1), `EXEC`
(126, e.g. the command is a directory), `NOENT` (127, command not found),
`NUMERIC_ARG` (255, `exit` with a non-numeric argument) and `SYNTAX` (258).

## Environment

```python
from minishell.env import Environment

env = Environment.from_envp(["HOME=/home/user", "PATH=/usr/bin:/bin"])
env.set("GREETING", "hello")
env.get("GREETING")          # 'hello'
"PATH" in env                # True
env.unset("GREETING")
env.to_envp()                # ['HOME=/home/user', 'PATH=/usr/bin:/bin']
```

`from_envp` sets `?` to `"0"`. The `?` variable never appears in
`to_envp()` or in the output of `env` and `export`. Setting a variable to
`None` records a name without a value and never overwrites an existing value.

## Expansion

```python
from minishell.expand import expand_variable, expand_variable_to_list

expand_variable("echo $HOME", env)           # 'echo /home/user'
expand_variable("echo '$HOME'", env)         # single quotes suppress expansion
expand_variable_to_list('"a  b" c', env)     # ['a  b', 'c']
```

An unquoted `*` in a word is matched against the names in the current
directory; names starting with a dot are skipped, and a word that matches
nothing is kept as it was:

```python
from minishell.wildcard import matched, expand_wildcard

matched("main.c", "*.c")      # True
matched("main.c", "'*'.c")    # False: a quoted star is literal
expand_wildcard(["*.c"], "some/dir")
```

## Parsing

The parser works on a list of `minishell.parser.Token` values:

```python
from minishell.parser import Token, TokenType, ParserState, parse

tokens = [
    Token(TokenType.WORD, "echo"),
    Token(TokenType.WORD, "hi"),
    Token(TokenType.PIPE),
    Token(TokenType.WORD, "cat"),
]
tree = parse(tokens, ParserState(env=env))   # AstNode of type AstType.PIPE
```

An empty token list gives `None`; malformed input raises
`minishell.parser.ShellSyntaxError`. A `HEREDOC` token reads lines through
`ParserState.reader` (a callable taking the prompt and returning a line, or
`None` at end of input; by default `input()`), expands variables in each line
and writes them to `ParserState.heredoc_path` (`/tmp/.tmpfile` by default).
An interrupt while reading raises `HeredocInterrupted` and sets `interrupted`
on the state.

`minishell.parser` also offers the helpers `has_valid_parentheses`,
`is_metacharacter` and `corresponds`.

## Builtins

Builtins write to the stream they are given and return their exit status:

```python
import io
from minishell.builtins import bi_echo

out = io.StringIO()
bi_echo(["-n", "hi", "there"], out)
out.getvalue()                # 'hi there'
```

`bi_exit` raises `minishell.builtins.ShellExit` carrying the status instead
of ending the interpreter, so the embedding program decides what to do.

## Running a tree

```python
import os
from minishell.builtins import ShellConfig
from minishell.executor import Executor

config = ShellConfig(env=env, cwd=os.getcwd())
Executor(config).execute(tree)
config.exit_code              # status of the last command; also stored in $?
```

External programs run through `subprocess`; pipeline stages each run in a
forked child process, so pipelines need a POSIX system.

## What this package does not do

There is no tokenizer that turns a command line into tokens, no interactive
prompt or read loop, no command-line entry point, no command history and no
terminal or signal setup for an interactive session. A program that wants an
interactive shell supplies those and hands tokens to the parser.

## Tests

The test suite uses pytest; install the `test` extra to get it.