"""Filename generation for unquoted ``*`` patterns."""

from __future__ import annotations

import os
from collections.abc import Iterable

QUOTES = "'\""


def count_patlen(pattern: str) -> int:
    """Return the number of pattern characters that are not quote marks."""
    return sum(1 for ch in pattern if ch not in QUOTES)


def expand_or_not(pattern: str) -> list[bool]:
    """Flag, for each non-quote character, whether it is an unquoted ``*``.

    Either quote character toggles the quoted state.
    """
    flags: list[bool] = []
    quoted = False
    for ch in pattern:
        if ch in QUOTES:
            quoted = not quoted
        else:
            flags.append(ch == "*" and not quoted)
    return flags


def matched(filename: str, pattern: str) -> bool:
    """Return True if ``filename`` matches ``pattern``.

    Unquoted ``*`` matches any run of characters; every other character,
    including a quoted ``*``, matches itself.  Quote marks are ignored.
    """
    chars = [ch for ch in pattern if ch not in QUOTES]
    wild = expand_or_not(pattern)
    width = len(chars)

    previous = [False] * (width + 1)
    previous[0] = True
    if width and wild[0]:
        previous[1] = True

    for name_char in filename:
        row = [False] * (width + 1)
        for j, (pattern_char, is_wild) in enumerate(zip(chars, wild)):
            if is_wild:
                row[j + 1] = previous[j] or previous[j + 1] or row[j]
            elif name_char == pattern_char and previous[j]:
                row[j + 1] = True
        previous = row
    return previous[width]


def get_filenames(directory: str | os.PathLike[str] = ".") -> list[str]:
    """List the entries of ``directory`` whose names do not start with a dot.

    Raises OSError if the directory cannot be read.
    """
    return [name for name in os.listdir(directory) if not name.startswith(".")]


def _has_expansion(word: str) -> bool:
    return any(expand_or_not(word))


def expand_wildcard(
    words: Iterable[str], directory: str | os.PathLike[str] = "."
) -> list[str]:
    """Replace each word holding an unquoted ``*`` by the names it matches.

    A word that matches nothing, or that cannot be matched because the
    directory is unreadable, is kept as it is.
    """
    result: list[str] = []
    names: list[str] | None = None
    for word in words:
        if "*" in word and _has_expansion(word):
            if names is None:
                try:
                    names = get_filenames(directory)
                except OSError:
                    names = []
            matches = [name for name in names if matched(name, word)]
            if matches:
                result.extend(matches)
                continue
        result.append(word)
    return result