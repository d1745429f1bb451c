"""A bash-like shell library: parsing tokens, expansion, builtins and execution."""

__version__ = "0.1.0"

__all__ = [
    "builtins",
    "env",
    "errors",
    "executor",
    "expand",
    "heredoc",
    "parser",
    "syntax_tree",
    "utils",
    "wildcard",
]