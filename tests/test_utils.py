import pytest

from minishell.utils import is_dir, judge_executable


def test_is_dir_true_for_directory(tmp_path):
    assert is_dir(tmp_path) is True
    assert is_dir(str(tmp_path)) is True


def test_is_dir_false_for_file(tmp_path):
    f = tmp_path / "file.txt"
    f.write_text("x")
    assert is_dir(f) is False


def test_is_dir_false_for_missing(tmp_path):
    assert is_dir(tmp_path / "missing") is False


@pytest.mark.parametrize("line", ["", " ", "\t\n  ", "\n"])
def test_judge_executable_blank(line):
    assert judge_executable(line) is False


@pytest.mark.parametrize("line", ["ls", "  a", "\tx\n"])
def test_judge_executable_content(line):
    assert judge_executable(line) is True