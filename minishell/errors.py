"""Diagnostics written to standard error, and the shell's exit codes."""

from __future__ import annotations

import errno
import os
import sys
from enum import IntEnum

# Pseudo error number: no PATH to search, or the resolved file does not exist.
ENOCMD = -1


class ExitCode(IntEnum):
    """Exit statuses used by the shell."""

    OK = 0
    KO = 1
    EXEC = 126
    NOENT = 127
    NUMERIC_ARG = 255
    SYNTAX = 258


def _emit(message: str) -> None:
    sys.stderr.write(message)
    sys.stderr.flush()


def _describe(error: OSError | int | str | None) -> str:
    """Return the human-readable text for an error number or exception."""
    if isinstance(error, int):
        return os.strerror(error)
    if isinstance(error, OSError):
        if error.strerror:
            return error.strerror
        if error.errno is not None:
            return os.strerror(error.errno)
    return "" if error is None else str(error)


def _errno_of(error: OSError | int | None) -> int | None:
    if isinstance(error, int):
        return error
    return getattr(error, "errno", None)


def too_many_arguments(command: str) -> None:
    _emit(f"minishell: {command}: too many arguments\n")


def file_name_too_long(command: str, path: str) -> None:
    _emit(f"minishell: {command}: {path}: File name too long\n")


def not_a_valid_identifier(command: str, arg: str) -> None:
    _emit(f"minishell: {command}: `{arg}': not a valid identifier\n")


def error_retrieving_cd(operation: str, error: OSError | int | None) -> None:
    _emit(
        f"{operation}: error retrieving current directory: getcwd"
        f": cannot access parent directories: {_describe(error)}\n"
    )


def no_such_file_or_directory(command: str, path: str) -> None:
    _emit(f"minishell: {command}: {path}: No such file or directory\n")


def command_not_found(command: str) -> None:
    _emit(f"minishell: {command}: command not found\n")


def permission_denied(filename: str) -> None:
    _emit(f"minishell: {filename}: Permission denied\n")


def operation_failed(operation: str, error: OSError | int | None) -> None:
    _emit(f"minishell: {operation}: {_describe(error)}\n")


def ambiguous_redirect(filename: str) -> None:
    _emit(f"minishell: {filename}: ambiguous redirect\n")


def is_a_directory(command: str) -> None:
    _emit(f"minishell: {command}: is a directory\n")


def execvp_failed(command: str, error: OSError | int | None) -> ExitCode:
    """Report why a command could not be run and return the matching status."""
    code = _errno_of(error)
    if code == ENOCMD:
        _emit(f"minishell: {command}: No such file or directory\n")
        return ExitCode.NOENT
    if code == errno.ENOENT:
        if "/" not in command:
            command_not_found(command)
        else:
            operation_failed(command, error)
        return ExitCode.NOENT
    if code == errno.ENOMEM:
        operation_failed("malloc", error)
        return ExitCode.KO
    if code == errno.EISDIR:
        is_a_directory(command)
        return ExitCode.EXEC
    operation_failed(command, error)
    return ExitCode.KO