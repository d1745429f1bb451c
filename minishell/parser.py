"""Recursive-descent parser from tokens to a syntax tree."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from enum import Enum, auto

from minishell.env import Environment
from minishell.heredoc import (
    DEFAULT_HEREDOC_PATH,
    HeredocInterrupted,
    Reader,
    read_heredoc,
)
from minishell.syntax_tree import AstNode, AstType, Redirect, RedirType

METACHARACTERS = "|&<>()"


class TokenType(Enum):
    WORD = auto()
    PIPE = auto()
    AND = auto()
    OR = auto()
    IN = auto()
    OUT = auto()
    APPEND = auto()
    HEREDOC = auto()
    LPAREN = auto()
    RPAREN = auto()


REDIRECT_TOKENS = frozenset(
    {TokenType.IN, TokenType.OUT, TokenType.APPEND, TokenType.HEREDOC}
)

_REDIR_TYPES = {
    TokenType.IN: RedirType.IN,
    TokenType.OUT: RedirType.OUT,
    TokenType.APPEND: RedirType.APPEND,
}


@dataclass(frozen=True)
class Token:
    type: TokenType
    word: str | None = None


@dataclass
class ParserState:
    """What the parser needs besides the tokens: variables and heredoc input."""

    env: Environment = field(default_factory=Environment)
    interrupted: bool = False
    reader: Reader | None = None
    heredoc_path: str = DEFAULT_HEREDOC_PATH


class ShellSyntaxError(Exception):
    """Raised when the tokens do not form a valid command line."""

    def __init__(self, message: str = "syntax error") -> None:
        super().__init__(message)


def has_valid_parentheses(line: str) -> bool:
    """Return True if the parentheses outside quotes are balanced."""
    depth = 0
    quote = ""
    for ch in line:
        if ch in "'\"":
            if not quote:
                quote = ch
            elif quote == ch:
                quote = ""
        if not quote:
            if ch == "(":
                depth += 1
            elif ch == ")":
                depth -= 1
        if depth < 0:
            return False
    return depth == 0


def is_metacharacter(c: str) -> bool:
    return len(c) == 1 and c in METACHARACTERS


def corresponds(line: str, metastr: str) -> bool:
    """Return True if ``line`` starts with ``metastr``."""
    return line.startswith(metastr)


class Parser:
    """Builds a syntax tree from a token sequence."""

    def __init__(
        self, tokens: Iterable[Token], state: ParserState | None = None
    ) -> None:
        self._tokens = list(tokens)
        self._pos = 0
        self.state = state if state is not None else ParserState()

    def parse(self) -> AstNode | None:
        """Parse the whole token sequence; None when there are no tokens."""
        if not self._tokens:
            return None
        try:
            node = self._and_or()
        except HeredocInterrupted:
            self.state.interrupted = True
            raise
        if self._peek() is not None:
            raise ShellSyntaxError()
        return node

    def _peek(self) -> Token | None:
        if self._pos < len(self._tokens):
            return self._tokens[self._pos]
        return None

    def _at(self, *types: TokenType) -> bool:
        token = self._peek()
        return token is not None and token.type in types

    def _accept(self, token_type: TokenType) -> bool:
        if self._at(token_type):
            self._pos += 1
            return True
        return False

    def _at_redirect(self) -> bool:
        return self._at(*REDIRECT_TOKENS)

    def _word(self) -> str:
        token = self._peek()
        if token is None or token.type is not TokenType.WORD or token.word is None:
            raise ShellSyntaxError()
        self._pos += 1
        return token.word

    def _and_or(self) -> AstNode:
        if self._peek() is None or self._at(TokenType.AND, TokenType.OR):
            raise ShellSyntaxError()
        node = self._pipeline()
        while True:
            if self._accept(TokenType.AND):
                node = AstNode(AstType.AND, node, self._pipeline())
            elif self._accept(TokenType.OR):
                node = AstNode(AstType.OR, node, self._pipeline())
            else:
                return node

    def _pipeline(self) -> AstNode:
        node = self._command_or_subshell()
        while self._accept(TokenType.PIPE):
            node = AstNode(AstType.PIPE, node, self._command_or_subshell())
        return node

    def _command_or_subshell(self) -> AstNode:
        if self._accept(TokenType.LPAREN):
            return self._subshell()
        return self._simple_command()

    def _subshell(self) -> AstNode:
        node = AstNode(AstType.SUBSHELL, self._and_or())
        if not self._accept(TokenType.RPAREN):
            raise ShellSyntaxError()
        if self._at_redirect():
            node.redirects = self._io_files()
        return node

    def _simple_command(self) -> AstNode:
        prefix: list[Redirect] = []
        if self._at_redirect():
            prefix = self._io_files()
        elif not self._at(TokenType.WORD):
            raise ShellSyntaxError()
        if self._at(TokenType.WORD):
            node = self._word_cmd_suffix()
        else:
            node = AstNode(AstType.CMD)
        node.add_redirects(prefix)
        return node

    def _word_cmd_suffix(self) -> AstNode:
        node = AstNode(AstType.CMD)
        node.add_command(self._word())
        while self._at(TokenType.WORD) or self._at_redirect():
            if self._at(TokenType.WORD):
                node.add_command(self._word())
            else:
                node.add_redirects([self._io_file()])
        return node

    def _io_files(self) -> list[Redirect]:
        redirects = []
        while self._at_redirect():
            redirects.append(self._io_file())
        return redirects

    def _io_file(self) -> Redirect:
        token = self._peek()
        if token is None or token.type not in REDIRECT_TOKENS:
            raise ShellSyntaxError()
        self._pos += 1
        if token.type is TokenType.HEREDOC:
            delimiter = self._word()
            return read_heredoc(
                delimiter,
                self.state.env,
                self.state.reader,
                self.state.heredoc_path,
            )
        return Redirect(_REDIR_TYPES[token.type], self._word())


def parse(tokens: Iterable[Token], state: ParserState | None = None) -> AstNode | None:
    """Parse ``tokens`` into a syntax tree; None when there are no tokens."""
    return Parser(tokens, state).parse()