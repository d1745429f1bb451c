"""Reading here-documents into a temporary file."""

from __future__ import annotations

import os
from collections.abc import Callable

from minishell.env import STATUS_KEY, Environment
from minishell.expand import expand_variable_heredoc
from minishell.syntax_tree import Redirect, RedirType

DEFAULT_HEREDOC_PATH = "/tmp/.tmpfile"
HEREDOC_PROMPT = "> "
INTERRUPTED_STATUS = "130"

Reader = Callable[[str], "str | None"]


class HeredocInterrupted(Exception):
    """Raised when the user interrupts a here-document."""


def _read_line(prompt: str) -> str | None:
    try:
        return input(prompt)
    except EOFError:
        return None


def read_heredoc(
    delimiter: str,
    env: Environment,
    reader: Reader | None = None,
    path: str | os.PathLike[str] = DEFAULT_HEREDOC_PATH,
) -> Redirect:
    """Read lines up to ``delimiter`` or end of input into ``path``.

    Every line has its variables expanded before it is written.  The result
    is an input redirection from the file.  An interrupt while reading sets
    the last status and raises HeredocInterrupted.
    """
    read = reader if reader is not None else _read_line
    with open(path, "w", encoding="utf-8") as out:
        try:
            while True:
                line = read(HEREDOC_PROMPT)
                if line is None or line == delimiter:
                    break
                out.write(expand_variable_heredoc(line, env) + "\n")
        except KeyboardInterrupt as exc:
            env.set(STATUS_KEY, INTERRUPTED_STATUS)
            raise HeredocInterrupted("here-document interrupted") from exc
    env.set(STATUS_KEY, "0")
    return Redirect(RedirType.IN, os.fspath(path))