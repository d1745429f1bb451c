"""Variable expansion, word splitting and quote removal."""

from __future__ import annotations

from collections.abc import Iterable

from minishell.env import Environment
from minishell.wildcard import expand_wildcard

QUOTES = "'\""
BLANKS = " \n\t"


def _is_name_start(ch: str) -> bool:
    return ch == "_" or (ch.isascii() and ch.isalpha())


def _is_name_char(ch: str) -> bool:
    return ch == "_" or (ch.isascii() and ch.isalnum())


def _expand_one(line: str, pos: int, env: Environment) -> tuple[str, int]:
    """Expand the ``$`` at ``pos``; return the value and the index after it."""
    start = pos + 1
    if start < len(line) and line[start] == "?":
        name, end = "?", start + 1
    elif start >= len(line) or not _is_name_start(line[start]):
        return "$", start
    else:
        end = start
        while end < len(line) and _is_name_char(line[end]):
            end += 1
        name = line[start:end]
    value = env.get(name)
    return ("" if value is None else value), end


def expand_variable_heredoc(line: str, env: Environment) -> str:
    """Expand every ``$`` in a here-document line, ignoring quotes."""
    parts: list[str] = []
    pos = 0
    while pos < len(line):
        if line[pos] == "$":
            value, pos = _expand_one(line, pos, env)
            parts.append(value)
        else:
            parts.append(line[pos])
            pos += 1
    return "".join(parts)


def expand_variable(line: str, env: Environment) -> str:
    """Expand variables outside single quotes, keeping the quotes in place.

    An unquoted ``$`` directly before a quote is dropped.
    """
    parts: list[str] = []
    quote = ""
    pos = 0
    while pos < len(line):
        ch = line[pos]
        if not quote and ch == "$" and line[pos + 1 : pos + 2] in ("'", '"'):
            pos += 1
        elif ch == "$" and quote != "'":
            value, pos = _expand_one(line, pos, env)
            parts.append(value)
        else:
            if ch in QUOTES:
                if not quote:
                    quote = ch
                elif quote == ch:
                    quote = ""
            parts.append(ch)
            pos += 1
    return "".join(parts)


def split_words(line: str | None) -> list[str]:
    """Split on blanks that stand outside quotes; quotes stay in the words."""
    words: list[str] = []
    if line is None:
        return words
    pos = 0
    length = len(line)
    while pos < length:
        while pos < length and line[pos] in BLANKS:
            pos += 1
        if pos >= length:
            break
        start = pos
        quote = ""
        while pos < length:
            ch = line[pos]
            if ch in BLANKS and not quote:
                break
            if ch in QUOTES:
                if not quote:
                    quote = ch
                elif quote == ch:
                    quote = ""
            pos += 1
        words.append(line[start:pos])
    return words


def remove_quotes(line: str) -> str:
    """Drop the quote marks that open and close quoted sections."""
    parts: list[str] = []
    quote = ""
    for ch in line:
        if ch in QUOTES:
            if not quote:
                quote = ch
                continue
            if quote == ch:
                quote = ""
                continue
        parts.append(ch)
    return "".join(parts)


def expand_variable_to_list(line: str, env: Environment) -> list[str]:
    """Expand variables, split into words, expand wildcards and remove quotes."""
    words = split_words(expand_variable(line, env))
    return [remove_quotes(word) for word in expand_wildcard(words)]


def expand_variable_export(line: str, env: Environment) -> list[str]:
    """Expand as for a command word, but without filename generation."""
    words = split_words(expand_variable(line, env))
    return [remove_quotes(word) for word in words]


def expand_command_list(words: Iterable[str], env: Environment) -> list[str]:
    """Expand every word of a command and join the results."""
    result: list[str] = []
    for word in words:
        result.extend(expand_variable_to_list(word, env))
    return result