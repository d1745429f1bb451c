"""Small filesystem and input helpers."""

from __future__ import annotations

import os
import stat


def is_dir(path: str | os.PathLike[str]) -> bool:
    """Return True if ``path`` exists and is a directory."""
    try:
        return stat.S_ISDIR(os.stat(path).st_mode)
    except (OSError, ValueError):
        return False


def judge_executable(line: str) -> bool:
    """Return True if the line holds anything besides spaces, tabs and newlines."""
    return any(ch not in " \n\t" for ch in line)