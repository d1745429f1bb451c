import pytest

from minishell.wildcard import (
    count_patlen,
    expand_or_not,
    expand_wildcard,
    get_filenames,
    matched,
)


@pytest.fixture
def populated(tmp_path):
    names = ["a.txt", "b.txt", "main.c", "star*name"]
    for name in names + [".hidden.txt"]:
        (tmp_path / name).write_text("")
    return tmp_path, names


def test_count_patlen_plain_equals_length():
    assert count_patlen("abc*") == len("abc*")


def test_count_patlen_ignores_quotes():
    assert count_patlen("'ab'\"c\"") == count_patlen("abc")


@pytest.mark.parametrize("pattern", ["*", "a'*'b", "\"x\"*y", "", "''"])
def test_expand_or_not_length_matches_patlen(pattern):
    assert len(expand_or_not(pattern)) == count_patlen(pattern)


def test_expand_or_not_unquoted_star():
    assert expand_or_not("*") == [True]


def test_expand_or_not_quoted_star_not_expanded():
    assert expand_or_not("'*'") == [False]
    assert expand_or_not('"*"') == [False]


@pytest.mark.parametrize(
    "filename, pattern",
    [
        ("abc", "*"),
        ("abc", "a*"),
        ("abc", "*c"),
        ("abc", "a*c"),
        ("abc", "*b*"),
        ("abc", "abc*"),
        ("a.txt", "*.txt"),
        ("abc", "'a'*"),
        ("a*b", "a'*'b"),
        ("xfoo", "**foo"),
    ],
)
def test_matched_positive(filename, pattern):
    assert matched(filename, pattern)


@pytest.mark.parametrize(
    "filename, pattern",
    [
        ("abc", "b*"),
        ("abc", "*b"),
        ("abc", "abcd*"),
        ("axb", "a'*'b"),
        ("main.c", "*.txt"),
        ("abc", "\"*\""),
    ],
)
def test_matched_negative(filename, pattern):
    assert not matched(filename, pattern)


def test_get_filenames_skips_dotfiles(populated):
    directory, names = populated
    assert sorted(get_filenames(directory)) == sorted(names)


def test_get_filenames_missing_directory(tmp_path):
    with pytest.raises(OSError):
        get_filenames(tmp_path / "missing")


def test_expand_wildcard_matches(populated):
    directory, _ = populated
    assert sorted(expand_wildcard(["*.txt"], directory)) == ["a.txt", "b.txt"]


def test_expand_wildcard_star_alone_lists_all_visible(populated):
    directory, names = populated
    assert sorted(expand_wildcard(["*"], directory)) == sorted(names)


def test_expand_wildcard_no_match_keeps_word(populated):
    directory, _ = populated
    assert expand_wildcard(["*.zzz"], directory) == ["*.zzz"]


def test_expand_wildcard_quoted_star_unchanged(populated):
    directory, _ = populated
    words = ["'*'.txt", "plain"]
    assert expand_wildcard(words, directory) == words


def test_expand_wildcard_preserves_order_of_words(populated):
    directory, _ = populated
    result = expand_wildcard(["first", "*.c", "last"], directory)
    assert result == ["first", "main.c", "last"]


def test_expand_wildcard_unreadable_directory_keeps_word(tmp_path):
    assert expand_wildcard(["*"], tmp_path / "missing") == ["*"]