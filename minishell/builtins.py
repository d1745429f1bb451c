"""Commands the shell runs itself: echo, cd, pwd, env, exit, export, unset."""

from __future__ import annotations

import errno
import os
import stat
import sys
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import TextIO

from minishell.env import STATUS_KEY, Environment
from minishell.errors import (
    ExitCode,
    error_retrieving_cd,
    file_name_too_long,
    not_a_valid_identifier,
    operation_failed,
    too_many_arguments,
)
from minishell.expand import expand_command_list
from minishell.utils import is_dir

PATH_MAX = 1024
NAME_MAX = 255
LONG_MAX = 2**63 - 1
DIGITS = "0123456789"


@dataclass
class ShellConfig:
    """State shared by the builtins: variables, working directory, last status."""

    env: Environment = field(default_factory=Environment)
    cwd: str | None = None
    exit_code: int = 0


class ShellExit(Exception):
    """Raised by ``exit`` to end the shell with ``code``."""

    def __init__(self, code: int) -> None:
        super().__init__(code)
        self.code = code


def _stream(out: TextIO | None) -> TextIO:
    return out if out is not None else sys.stdout


def _stderr(message: str) -> None:
    sys.stderr.write(message)
    sys.stderr.flush()


def is_valid_identifier(name: str) -> bool:
    """Return True if ``name`` (up to any ``=``) is a valid variable name."""
    if not name or not (name[0] == "_" or (name[0].isascii() and name[0].isalpha())):
        return False
    for ch in name[1:]:
        if ch == "=":
            break
        if not (ch == "_" or (ch.isascii() and ch.isalnum())):
            return False
    return True


def nl_option(arg: str) -> bool:
    """Return True for ``-n``, ``-nn`` and the like."""
    return arg.startswith("-n") and all(ch == "n" for ch in arg[2:])


def bi_echo(args: Sequence[str], out: TextIO | None = None) -> int:
    """Print the arguments separated by spaces; leading ``-n`` drops the newline."""
    stream = _stream(out)
    if not args:
        stream.write("\n")
        return ExitCode.OK
    no_newline = nl_option(args[0])
    start = 0
    while start < len(args) and nl_option(args[start]):
        start += 1
    if start == len(args):
        return ExitCode.OK
    stream.write(" ".join(args[start:]))
    if not no_newline:
        stream.write("\n")
    return ExitCode.OK


def join_path_and_offset(cwd: str, target: str) -> str:
    """Resolve ``target`` against ``cwd`` component by component, without I/O."""
    goal = cwd
    if not target:
        return goal
    layers = target.split("/")
    if target.endswith("/"):
        layers = layers[:-1]
    for layer in layers:
        if layer == "..":
            if goal == "/":
                continue
            cut = goal.rfind("/")
            goal = goal[:cut] if cut >= 0 else ""
        elif layer != ".":
            goal = f"{goal}/{layer}"
    return goal


def _check_filename(path: str) -> None:
    too_long = len(path) > PATH_MAX or any(
        len(part) > NAME_MAX for part in path.split("/")
    )
    if too_long:
        raise OSError(errno.ENAMETOOLONG, os.strerror(errno.ENAMETOOLONG), path)


def move_to_path(target: str, config: ShellConfig) -> None:
    """Change directory to ``target`` and update PWD, OLDPWD and the cached cwd.

    Raises OSError if the path is too long, missing, not a directory or
    cannot be entered.
    """
    true_path = target or "/"
    _check_filename(true_path)
    mode = os.stat(true_path).st_mode
    if not stat.S_ISDIR(mode):
        raise NotADirectoryError(
            errno.ENOTDIR, os.strerror(errno.ENOTDIR), true_path
        )
    oldpwd = config.cwd
    os.chdir(true_path)
    cwd = os.getcwd()
    config.env.set("PWD", cwd)
    config.cwd = cwd
    config.env.set("OLDPWD", oldpwd)


def _not_set(varname: str) -> None:
    _stderr(f"minishell: cd: {varname} not set\n")


def _cd_error(path: str, cwd: str | None, error: OSError) -> None:
    code = error.errno
    if code == errno.ENOENT and (cwd is None or not is_dir(cwd)):
        error_retrieving_cd("cd", error)
        return
    if code == errno.ENAMETOOLONG:
        file_name_too_long("cd", path)
        return
    reasons = {
        errno.ENOTDIR: "Not a directory",
        errno.ENOENT: "No such file or directory",
        errno.EACCES: "Permission denied",
    }
    reason = reasons.get(code) or os.strerror(code or 0)
    _stderr(f"minishell: cd: {path}: {reason}\n")


def bi_cd(args: Sequence[str], config: ShellConfig, out: TextIO | None = None) -> int:
    """Change the working directory; ``cd -`` goes to OLDPWD and prints it."""
    first = args[0] if args else None
    if first is not None and not first.startswith("/") and config.cwd is None:
        try:
            config.cwd = os.getcwd()
        except OSError as exc:
            error_retrieving_cd("cd", exc)
            return ExitCode.OK
    if first is None:
        home = config.env.get("HOME")
        if home is None:
            _not_set("HOME")
            return ExitCode.KO
        target = home
    elif first.startswith("/"):
        target = first
    elif first == "-":
        oldpwd = config.env.get("OLDPWD")
        if oldpwd is None:
            _not_set("OLDPWD")
            return ExitCode.KO
        target = oldpwd
    else:
        target = join_path_and_offset(config.cwd or "", first)
    try:
        move_to_path(target, config)
    except OSError as exc:
        _cd_error(target, config.cwd, exc)
        return ExitCode.KO
    if first == "-":
        _stream(out).write(f"{config.cwd}\n")
    return ExitCode.OK


def bi_pwd(config: ShellConfig, out: TextIO | None = None) -> int:
    """Print the working directory."""
    if config.cwd is None:
        try:
            config.cwd = os.getcwd()
        except OSError as exc:
            if exc.errno in (errno.EACCES, errno.ENOENT, errno.ENOTDIR):
                error_retrieving_cd("pwd", exc)
            else:
                operation_failed("getcwd", exc)
            return ExitCode.KO
    _stream(out).write(f"{config.cwd}\n")
    return ExitCode.OK


def bi_env(config: ShellConfig, out: TextIO | None = None) -> int:
    """Print every variable that has a value as ``KEY=VALUE``."""
    stream = _stream(out)
    for key, value in config.env.items():
        if value is not None and key != STATUS_KEY:
            stream.write(f"{key}={value}\n")
    return ExitCode.OK


def _digits_part(arg: str) -> str:
    body = arg.lstrip(" ")
    if body[:1] in ("-", "+"):
        body = body[1:]
    return body


def is_numeric(arg: str) -> bool:
    """Return True for an optionally signed run of digits, padded by spaces."""
    body = _digits_part(arg)
    if not body:
        return False
    digits = body.rstrip(" ")
    return bool(digits) and all(ch in DIGITS for ch in digits)


def is_overflow(arg: str) -> bool:
    """Return True if the magnitude of the number exceeds a signed 64-bit long."""
    digits = _digits_part(arg).rstrip(" ")
    value = 0
    for ch in digits:
        if ch not in DIGITS:
            break
        value = value * 10 + DIGITS.index(ch)
        if value > LONG_MAX:
            return True
    return False


def bi_exit(args: Sequence[str], parent: bool, config: ShellConfig) -> int:
    """Raise ShellExit with the requested status.

    Returns the failure status instead when given more than one argument.
    """
    if parent:
        _stderr("exit\n")
    if not args:
        raise ShellExit(config.exit_code)
    first = args[0]
    if not is_numeric(first) or is_overflow(first):
        _stderr(f"minishell: exit: {first}: numeric argument required\n")
        raise ShellExit(ExitCode.NUMERIC_ARG)
    if len(args) > 1:
        too_many_arguments("exit")
        return ExitCode.KO
    raise ShellExit(int(first.strip(" ")) % 256)


def format_declare(env: Environment) -> list[str]:
    """Return the ``declare -x`` lines for every variable, sorted."""
    entries = sorted(
        key if value is None else f"{key}={value}"
        for key, value in env.items()
        if key != STATUS_KEY
    )
    lines = []
    for entry in entries:
        key, sep, value = entry.partition("=")
        if sep:
            lines.append(f'declare -x {key}="{value}"')
        else:
            lines.append(f"declare -x {entry}")
    return lines


def _export_variable(config: ShellConfig, line: str) -> None:
    key, sep, value = line.partition("=")
    if not is_valid_identifier(key):
        not_a_valid_identifier("export", line)
        return
    config.env.set(key, value if sep else None)


def bi_export(
    args: Sequence[str], config: ShellConfig, out: TextIO | None = None
) -> int:
    """Export variables, or list them when there is nothing to export.

    ``args`` are the unexpanded words of the whole command, the command name
    first; they are expanded here before use.
    """
    words = expand_command_list(args, config.env)[1:]
    if not words:
        stream = _stream(out)
        for line in format_declare(config.env):
            stream.write(f"{line}\n")
        return ExitCode.OK
    for word in words:
        _export_variable(config, word)
    return ExitCode.OK


def bi_unset(args: Sequence[str], config: ShellConfig) -> int:
    """Remove variables; stop at the first invalid name."""
    for name in args:
        if not is_valid_identifier(name):
            not_a_valid_identifier("unset", name)
            return ExitCode.KO
        config.env.unset(name)
    return ExitCode.OK