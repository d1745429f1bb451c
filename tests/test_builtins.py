import errno
import io
import os

import pytest

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
    format_declare,
    is_numeric,
    is_overflow,
    is_valid_identifier,
    join_path_and_offset,
    move_to_path,
    nl_option,
)
from minishell.env import Environment
from minishell.errors import ExitCode


def make_config(envp=(), cwd=None):
    return ShellConfig(env=Environment.from_envp(list(envp)), cwd=cwd)


@pytest.mark.parametrize(
    "name, expected",
    [("_a1", True), ("HOME", True), ("A=b-c", True), ("1a", False), ("", False), ("a-b", False)],
)
def test_is_valid_identifier(name, expected):
    assert is_valid_identifier(name) is expected


@pytest.mark.parametrize(
    "arg, expected",
    [("-n", True), ("-nnn", True), ("-", False), ("-nx", False), ("n", False), ("", False)],
)
def test_nl_option(arg, expected):
    assert nl_option(arg) is expected


@pytest.mark.parametrize(
    "args, expected",
    [
        (["a", "b"], "a b\n"),
        (["-n", "a"], "a"),
        (["-n", "-nn", "x"], "x"),
        ([], "\n"),
        (["-n"], ""),
        (["a", "-n"], "a -n\n"),
    ],
)
def test_bi_echo(args, expected):
    out = io.StringIO()
    assert bi_echo(args, out) == ExitCode.OK
    assert out.getvalue() == expected


@pytest.mark.parametrize(
    "cwd, target, expected",
    [
        ("/a/b", "..", "/a"),
        ("/a", "./c", "/a/c"),
        ("/", "..", "/"),
        ("/a", "..", ""),
        ("/a/b", "c/", "/a/b/c"),
        ("/a", "", "/a"),
        ("/a/b", "../../x", "/x"),
    ],
)
def test_join_path_and_offset(cwd, target, expected):
    assert join_path_and_offset(cwd, target) == expected


def test_move_to_path_updates_state(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    old = os.getcwd()
    sub = tmp_path / "sub"
    sub.mkdir()
    config = make_config(cwd=old)
    move_to_path(str(sub), config)
    assert config.cwd == os.getcwd()
    assert config.env.get("PWD") == config.cwd
    assert config.env.get("OLDPWD") == old


def test_move_to_path_errors(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    (tmp_path / "file").write_text("x")
    config = make_config(cwd=os.getcwd())
    with pytest.raises(NotADirectoryError):
        move_to_path(str(tmp_path / "file"), config)
    with pytest.raises(FileNotFoundError):
        move_to_path(str(tmp_path / "missing"), config)
    with pytest.raises(OSError) as info:
        move_to_path("a" * 300, config)
    assert info.value.errno == errno.ENAMETOOLONG


def test_bi_cd_relative_and_dash(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    start = os.getcwd()
    (tmp_path / "inner").mkdir()
    config = make_config(cwd=start)
    assert bi_cd(["inner"], config) == ExitCode.OK
    assert os.getcwd() == os.path.join(start, "inner")
    out = io.StringIO()
    assert bi_cd(["-"], config, out) == ExitCode.OK
    assert os.getcwd() == start
    assert out.getvalue() == start + "\n"


def test_bi_cd_home(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    home = os.getcwd()
    (tmp_path / "deep").mkdir()
    monkeypatch.chdir(tmp_path / "deep")
    config = make_config([f"HOME={home}"], cwd=os.getcwd())
    assert bi_cd([], config) == ExitCode.OK
    assert config.cwd == home


def test_bi_cd_home_not_set(capsys):
    config = make_config(cwd="/")
    assert bi_cd([], config) == ExitCode.KO
    assert capsys.readouterr().err == "minishell: cd: HOME not set\n"


def test_bi_cd_missing_directory(tmp_path, monkeypatch, capsys):
    monkeypatch.chdir(tmp_path)
    config = make_config(cwd=os.getcwd())
    assert bi_cd(["nowhere"], config) == ExitCode.KO
    assert "No such file or directory" in capsys.readouterr().err
    assert config.cwd == os.getcwd()


def test_bi_pwd():
    out = io.StringIO()
    config = make_config(cwd="/some/where")
    assert bi_pwd(config, out) == ExitCode.OK
    assert out.getvalue() == "/some/where\n"


def test_bi_pwd_without_cached_cwd(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    out = io.StringIO()
    config = make_config()
    assert bi_pwd(config, out) == ExitCode.OK
    assert out.getvalue() == os.getcwd() + "\n"
    assert config.cwd == os.getcwd()


def test_bi_env_skips_status_and_valueless():
    config = make_config(["A=1", "B=two"])
    config.env.set("C", None)
    out = io.StringIO()
    assert bi_env(config, out) == ExitCode.OK
    assert out.getvalue() == "A=1\nB=two\n"


@pytest.mark.parametrize(
    "arg, expected",
    [("42", True), ("  -7  ", True), ("+3", True), ("", False), ("-", False), ("4a", False), ("1 2", False)],
)
def test_is_numeric(arg, expected):
    assert is_numeric(arg) is expected


@pytest.mark.parametrize(
    "arg, expected",
    [("9223372036854775807", False), ("9223372036854775808", True), ("-5", False)],
)
def test_is_overflow(arg, expected):
    assert is_overflow(arg) is expected


def test_bi_exit_without_args_uses_last_status():
    config = make_config()
    config.exit_code = 3
    with pytest.raises(ShellExit) as info:
        bi_exit([], False, config)
    assert info.value.code == 3


@pytest.mark.parametrize("arg, code", [("42", 42), ("-1", 255), ("256", 0)])
def test_bi_exit_status(arg, code):
    with pytest.raises(ShellExit) as info:
        bi_exit([arg], False, make_config())
    assert info.value.code == code


def test_bi_exit_non_numeric(capsys):
    with pytest.raises(ShellExit) as info:
        bi_exit(["abc"], True, make_config())
    assert info.value.code == ExitCode.NUMERIC_ARG
    err = capsys.readouterr().err
    assert err.startswith("exit\n")
    assert "minishell: exit: abc: numeric argument required\n" in err


def test_bi_exit_too_many_arguments(capsys):
    assert bi_exit(["1", "2"], False, make_config()) == ExitCode.KO
    assert capsys.readouterr().err == "minishell: exit: too many arguments\n"


def test_format_declare_sorted_and_quoted():
    env = Environment.from_envp(["ZED=z", "ALPHA=a b"])
    env.set("MID", None)
    assert format_declare(env) == [
        'declare -x ALPHA="a b"',
        "declare -x MID",
        'declare -x ZED="z"',
    ]


def test_bi_export_lists_when_no_arguments():
    config = make_config(["X=1"])
    out = io.StringIO()
    assert bi_export(["export"], config, out) == ExitCode.OK
    assert out.getvalue().splitlines() == format_declare(config.env)


def test_bi_export_assigns_and_expands():
    config = make_config(["X=1"])
    assert bi_export(["export", "Y=$X", "Z"], config) == ExitCode.OK
    assert config.env.get("Y") == "1"
    assert "Z" in config.env
    assert config.env.get("Z") is None


def test_bi_export_without_value_keeps_existing():
    config = make_config(["X=1"])
    bi_export(["export", "X"], config)
    assert config.env.get("X") == "1"


def test_bi_export_invalid_identifier(capsys):
    config = make_config()
    assert bi_export(["export", "1bad=x"], config) == ExitCode.OK
    assert capsys.readouterr().err == "minishell: export: `1bad=x': not a valid identifier\n"
    assert "1bad" not in config.env


def test_bi_unset():
    config = make_config(["A=1", "B=2"])
    assert bi_unset(["A"], config) == ExitCode.OK
    assert "A" not in config.env
    assert config.env.get("B") == "2"


def test_bi_unset_stops_at_invalid(capsys):
    config = make_config(["A=1", "B=2"])
    assert bi_unset(["A", "-x", "B"], config) == ExitCode.KO
    assert "A" not in config.env
    assert config.env.get("B") == "2"
    assert capsys.readouterr().err == "minishell: unset: `-x': not a valid identifier\n"