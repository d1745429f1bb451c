"""Syntax tree nodes produced by the parser."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from enum import Enum, auto


class AstType(Enum):
    CMD = auto()
    PIPE = auto()
    AND = auto()
    OR = auto()
    SUBSHELL = auto()


class RedirType(Enum):
    IN = auto()
    OUT = auto()
    APPEND = auto()


@dataclass
class Redirect:
    """A redirection of standard input or output to ``filename``."""

    type: RedirType
    filename: str


@dataclass
class AstNode:
    """A command, pipe, list operator or subshell."""

    type: AstType
    left: AstNode | None = None
    right: AstNode | None = None
    command: list[str] = field(default_factory=list)
    redirects: list[Redirect] = field(default_factory=list)

    def add_command(self, command: str | None) -> None:
        """Append a word to the command."""
        if command is None:
            raise ValueError("missing command word")
        self.command.append(command)

    def add_redirects(self, redirects: Iterable[Redirect] | None) -> None:
        """Append redirections in order."""
        if redirects is None:
            raise ValueError("missing redirections")
        self.redirects.extend(redirects)