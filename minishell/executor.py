"""Running syntax trees: redirections, pipelines, builtins and programs."""

from __future__ import annotations

import contextlib
import errno
import os
import signal
import subprocess
import sys
import threading
from collections.abc import Iterable, Iterator, Sequence
from typing import TextIO

from minishell.builtins import (
    ShellConfig,
    ShellExit,
    bi_cd,
    bi_echo,
    bi_env,
    bi_exit,
    bi_export,
    bi_pwd,
    bi_unset,
)
from minishell.env import STATUS_KEY, Environment
from minishell.errors import (
    ENOCMD,
    ExitCode,
    ambiguous_redirect,
    execvp_failed,
    operation_failed,
    permission_denied,
)
from minishell.expand import expand_command_list, expand_variable_to_list
from minishell.syntax_tree import AstNode, AstType, Redirect, RedirType
from minishell.utils import is_dir

PERMS = 0o644
BUILTINS = frozenset({"echo", "cd", "pwd", "export", "unset", "env", "exit"})

Fds = tuple["int | None", "int | None"]


def _oserror(code: int, name: str) -> OSError:
    message = os.strerror(code) if code > 0 else "No such file or directory"
    return OSError(code, message, name)


def _env_mapping(envp: Iterable[str]) -> dict[str, str]:
    mapping: dict[str, str] = {}
    for entry in envp:
        key, _, value = entry.partition("=")
        mapping[key] = value
    return mapping


def _status(returncode: int) -> int:
    """Map a child's return code to a shell status; signals become 128 + n."""
    return 128 - returncode if returncode < 0 else returncode


def find_executable(command: str, envp: Sequence[str]) -> str:
    """Return the file to run for ``command``.

    A name with a slash is used as it is; otherwise the directories of the
    first ``PATH=`` entry are searched.  Raises OSError whose errno is
    ENOENT, EISDIR, EACCES, or ENOCMD when there is no PATH to search.
    """
    if command in ("", ".", ".."):
        raise _oserror(errno.ENOENT, command)
    if "/" in command:
        if is_dir(command):
            raise _oserror(errno.EISDIR, command)
        if not os.access(command, os.F_OK):
            raise _oserror(errno.ENOENT, command)
        if not os.access(command, os.X_OK):
            raise _oserror(errno.EACCES, command)
        return command
    search = next(
        (entry[len("PATH="):] for entry in envp if entry.startswith("PATH=")), None
    )
    directories = [d for d in search.split(":") if d] if search is not None else []
    if not directories:
        raise _oserror(ENOCMD, command)
    for directory in directories:
        candidate = f"{directory}/{command}"
        if os.access(candidate, os.X_OK):
            return candidate
    raise _oserror(errno.ENOENT, command)


def _resolve_filename(filename: str, env: Environment) -> str:
    if "$" in filename and "*" in filename:
        return filename
    words = expand_variable_to_list(filename, env)
    if len(words) != 1:
        ambiguous_redirect(filename)
        raise OSError(errno.EINVAL, "ambiguous redirect", filename)
    return words[0]


def _open_redirect(redirect: Redirect, env: Environment) -> int:
    filename = _resolve_filename(redirect.filename, env)
    if redirect.type is RedirType.IN:
        if not os.access(filename, os.F_OK):
            error = _oserror(errno.ENOENT, filename)
            operation_failed(filename, error)
            raise error
        if not os.access(filename, os.R_OK):
            permission_denied(filename)
            raise _oserror(errno.EACCES, filename)
        flags = os.O_RDONLY
    else:
        if os.access(filename, os.F_OK) and not os.access(filename, os.W_OK):
            permission_denied(filename)
            raise _oserror(errno.EACCES, filename)
        mode = os.O_APPEND if redirect.type is RedirType.APPEND else os.O_TRUNC
        flags = os.O_WRONLY | os.O_CREAT | mode
    try:
        return os.open(filename, flags, PERMS)
    except OSError as exc:
        operation_failed(filename, exc)
        raise


def set_redir(redirects: Iterable[Redirect], env: Environment) -> Fds:
    """Open every redirection in order and return ``(stdin_fd, stdout_fd)``.

    The last input and the last output redirection win; either fd is None
    when there is none.  All redirections are attempted even after one
    fails; then every opened fd is closed and the first error is raised.
    The caller owns the returned fds.
    """
    stdin_fd: int | None = None
    stdout_fd: int | None = None
    failure: OSError | None = None
    for redirect in redirects:
        try:
            fd = _open_redirect(redirect, env)
        except OSError as exc:
            failure = failure or exc
            continue
        if redirect.type is RedirType.IN:
            if stdin_fd is not None:
                os.close(stdin_fd)
            stdin_fd = fd
        else:
            if stdout_fd is not None:
                os.close(stdout_fd)
            stdout_fd = fd
    if failure is not None:
        for fd in (stdin_fd, stdout_fd):
            if fd is not None:
                os.close(fd)
        raise failure
    return stdin_fd, stdout_fd


def only_redir(redirects: Iterable[Redirect], env: Environment) -> None:
    """Open and close each redirection; raise the first error after trying all."""
    failure: OSError | None = None
    for redirect in redirects:
        try:
            os.close(_open_redirect(redirect, env))
        except OSError as exc:
            failure = failure or exc
    if failure is not None:
        raise failure


@contextlib.contextmanager
def _ignoring_interrupts() -> Iterator[None]:
    if threading.current_thread() is not threading.main_thread():
        yield
        return
    previous = signal.signal(signal.SIGINT, signal.SIG_IGN)
    try:
        yield
    finally:
        signal.signal(signal.SIGINT, previous if previous is not None else signal.SIG_DFL)


def _reset_child_signals() -> None:
    signal.signal(signal.SIGINT, signal.SIG_DFL)
    if hasattr(signal, "SIGQUIT"):
        signal.signal(signal.SIGQUIT, signal.SIG_DFL)


def _install(fds: Fds) -> None:
    for fd, target in zip(fds, (0, 1)):
        if fd is not None and fd != target:
            os.dup2(fd, target)
            os.close(fd)


def _pipeline_stages(node: AstNode) -> list[AstNode]:
    stages: list[AstNode] = []
    while node.type is AstType.PIPE and node.left is not None:
        if node.right is not None:
            stages.append(node.right)
        node = node.left
    stages.append(node)
    stages.reverse()
    return stages


class Executor:
    """Runs syntax trees against a shell configuration."""

    def __init__(self, config: ShellConfig) -> None:
        self.config = config
        self._stdin: int | None = None
        self._stdout: int | None = None

    def execute(self, node: AstNode | None) -> None:
        """Run ``node`` and record its status in ``config`` and ``$?``."""
        if node is None:
            return
        if node.type is AstType.SUBSHELL:
            self.exec_subshell(node)
        elif node.type is AstType.CMD and not node.command:
            try:
                only_redir(node.redirects, self.config.env)
            except OSError:
                self.config.exit_code = ExitCode.KO
        elif node.type is AstType.CMD:
            self._exec_command(node)
        elif node.type in (AstType.AND, AstType.OR):
            self.execute(node.left)
            succeeded = self.config.exit_code == ExitCode.OK
            if (node.type is AstType.AND) == succeeded:
                self.execute(node.right)
        elif node.type is AstType.PIPE:
            self.exec_pipeline(node)
        self.config.env.set(STATUS_KEY, str(int(self.config.exit_code)))

    def exec_subshell(self, node: AstNode) -> None:
        """Apply the subshell's redirections and run its body in this process."""
        try:
            fds = set_redir(node.redirects, self.config.env)
        except OSError:
            self.config.exit_code = ExitCode.KO
            return
        with self._redirected(fds):
            self.execute(node.left)

    def exec_pipeline(self, node: AstNode | None) -> None:
        """Run each stage of a pipeline in its own child process."""
        if node is None:
            self.config.exit_code = ExitCode.OK
            return
        stages = _pipeline_stages(node)
        pids: list[int] = []
        read_fd: int | None = None
        try:
            for index, stage in enumerate(stages):
                next_read: int | None = None
                write_fd: int | None = None
                if index < len(stages) - 1:
                    try:
                        next_read, write_fd = os.pipe()
                    except OSError as exc:
                        operation_failed("pipe", exc)
                        break
                sys.stdout.flush()
                sys.stderr.flush()
                try:
                    pid = os.fork()
                except OSError as exc:
                    operation_failed("fork", exc)
                    for fd in (next_read, write_fd):
                        if fd is not None:
                            os.close(fd)
                    break
                if pid == 0:
                    self._run_pipeline_child(stage, read_fd, write_fd, next_read)
                pids.append(pid)
                for fd in (read_fd, write_fd):
                    if fd is not None:
                        os.close(fd)
                read_fd = next_read
        finally:
            if read_fd is not None:
                os.close(read_fd)
        self.config.exit_code = self._wait_all(pids)

    def _wait_all(self, pids: Sequence[int]) -> int:
        status = int(self.config.exit_code)
        with _ignoring_interrupts():
            for pid in pids:
                _, raw = os.waitpid(pid, 0)
                status = _status(os.waitstatus_to_exitcode(raw))
        return status

    def _run_pipeline_child(
        self,
        node: AstNode,
        read_fd: int | None,
        write_fd: int | None,
        unused_fd: int | None,
    ) -> None:
        code: int = ExitCode.KO
        try:
            if unused_fd is not None:
                os.close(unused_fd)
            stdin = read_fd if read_fd is not None else self._stdin
            stdout = write_fd if write_fd is not None else self._stdout
            for fd, target in ((stdin, 0), (stdout, 1)):
                if fd is not None and fd != target:
                    os.dup2(fd, target)
            self._stdin, self._stdout = 0, 1
            code = self._run_stage(node)
        except ShellExit as exc:
            code = exc.code
        except KeyboardInterrupt:
            code = 128 + signal.SIGINT
        except BaseException:
            code = ExitCode.KO
        finally:
            with contextlib.suppress(Exception):
                sys.stdout.flush()
                sys.stderr.flush()
            os._exit(int(code) & 0xFF)

    def _run_stage(self, node: AstNode) -> int:
        if node.type is AstType.SUBSHELL:
            self.exec_subshell(node)
            return int(self.config.exit_code)
        try:
            fds = set_redir(node.redirects, self.config.env)
        except OSError:
            return ExitCode.KO
        _install(fds)
        words = expand_command_list(node.command, self.config.env)
        if not words:
            return ExitCode.OK
        command, args = words[0], words[1:]
        if command in BUILTINS:
            return self._run_builtin(command, args, node, parent=False)
        return self._exec_in_child(command, args)

    def _exec_in_child(self, command: str, args: Sequence[str]) -> int:
        envp = self.config.env.to_envp()
        _reset_child_signals()
        try:
            path = find_executable(command, envp)
            os.execve(path, [command, *args], _env_mapping(envp))
        except OSError as exc:
            return execvp_failed(command, exc)

    @contextlib.contextmanager
    def _redirected(self, fds: Fds) -> Iterator[None]:
        saved = self._stdin, self._stdout
        stdin, stdout = fds
        if stdin is not None:
            self._stdin = stdin
        if stdout is not None:
            self._stdout = stdout
        try:
            yield
        finally:
            self._stdin, self._stdout = saved
            for fd in fds:
                if fd is not None:
                    os.close(fd)

    @contextlib.contextmanager
    def _output(self) -> Iterator[TextIO]:
        if self._stdout is None:
            try:
                yield sys.stdout
            finally:
                sys.stdout.flush()
            return
        with open(self._stdout, "w", encoding="utf-8", closefd=False) as stream:
            yield stream

    def _exec_command(self, node: AstNode) -> None:
        try:
            fds = set_redir(node.redirects, self.config.env)
        except OSError:
            self.config.exit_code = ExitCode.KO
            return
        with self._redirected(fds):
            self.config.exit_code = int(self._exec_simple_command(node))

    def _exec_simple_command(self, node: AstNode) -> int:
        words = expand_command_list(node.command, self.config.env)
        if not words:
            return ExitCode.OK
        command, args = words[0], words[1:]
        if command in BUILTINS:
            return self._run_builtin(command, args, node, parent=True)
        return self._exec_external(command, args)

    def _run_builtin(
        self, command: str, args: Sequence[str], node: AstNode, parent: bool
    ) -> int:
        config = self.config
        with self._output() as out:
            match command:
                case "echo":
                    return bi_echo(args, out)
                case "cd":
                    return bi_cd(args, config, out)
                case "pwd":
                    return bi_pwd(config, out)
                case "export":
                    return bi_export(node.command, config, out)
                case "unset":
                    return bi_unset(args, config)
                case "env":
                    return bi_env(config, out)
                case _:
                    return bi_exit(args, parent, config)

    def _exec_external(self, command: str, args: Sequence[str]) -> int:
        envp = self.config.env.to_envp()
        try:
            path = find_executable(command, envp)
            sys.stdout.flush()
            sys.stderr.flush()
            process = subprocess.Popen(
                [command, *args],
                executable=path,
                env=_env_mapping(envp),
                stdin=self._stdin,
                stdout=self._stdout,
            )
        except OSError as exc:
            return execvp_failed(command, exc)
        with _ignoring_interrupts():
            returncode = process.wait()
        return _status(returncode)