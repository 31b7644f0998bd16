"""Tests for shell quoting and word splitting."""

import shlex

import pytest

from skimline.quoting import quote, split_words, unquote_one_level

TRICKY = [
    "",
    "a",
    "foo bar",
    "it's",
    'say "hi"',
    "$HOME",
    "a;b|c&d",
    "*?[x]",
    "~user",
    "#hash",
    "tab\tx",
    "new\nline",
    "back\\slash",
    "ünïcödé name",
    "  leading",
    "trailing ",
    "'",
    '"',
    "\\",
    "!bang",
    "{a,b}",
    "é·dot",
    "a'\nb",
]


class TestQuote:
    def test_plain_word_unchanged(self) -> None:
        assert quote("plain-name_1.txt") == "plain-name_1.txt"

    def test_space_is_backslash_escaped(self) -> None:
        assert quote("foo bar") == "foo\\ bar"

    def test_metacharacters_escaped(self) -> None:
        assert quote("a;b") == "a\\;b"
        assert quote("$x") == "\\$x"

    def test_empty_string(self) -> None:
        assert quote("") == "''"

    def test_newline_uses_single_quotes(self) -> None:
        assert quote("a\nb") == "'a\nb'"

    @pytest.mark.parametrize("raw", TRICKY)
    def test_round_trip(self, raw: str) -> None:
        assert unquote_one_level(quote(raw)) == raw

    @pytest.mark.parametrize("raw", TRICKY)
    def test_shell_reads_back_one_word(self, raw: str) -> None:
        assert shlex.split(quote(raw)) == [raw]


class TestUnquoteOneLevel:
    def test_single_quotes(self) -> None:
        assert unquote_one_level("'foo bar'") == "foo bar"

    def test_double_quotes_with_escapes(self) -> None:
        assert unquote_one_level('"a \\"b\\""') == 'a "b"'

    def test_backslash_space(self) -> None:
        assert unquote_one_level("my\\ dir") == "my dir"

    def test_only_one_level_removed(self) -> None:
        assert unquote_one_level("\"'x'\"") == "'x'"

    def test_dangling_quote_is_closed(self) -> None:
        assert unquote_one_level("foo'") == "foo"
        assert unquote_one_level('"my dir') == "my dir"

    def test_trailing_backslash(self) -> None:
        assert unquote_one_level("foo\\") == "foo\\"

    def test_empty(self) -> None:
        assert unquote_one_level("") == ""

    def test_hash_is_not_a_comment(self) -> None:
        assert unquote_one_level("a#b") == "a#b"


class TestSplitWords:
    def test_simple(self) -> None:
        assert split_words("  ls   -l ") == ["ls", "-l"]

    def test_escaped_space_does_not_split(self) -> None:
        assert split_words("cd my\\ dir**") == ["cd", "my\\ dir**"]

    def test_quoted_space_does_not_split(self) -> None:
        assert split_words('echo "a b" c') == ["echo", '"a b"', "c"]

    def test_unterminated_quote_runs_to_end(self) -> None:
        assert split_words("vim 'unterminated x") == ["vim", "'unterminated x"]

    def test_trailing_backslash(self) -> None:
        assert split_words("a\\") == ["a\\"]

    def test_empty(self) -> None:
        assert split_words("") == []
        assert split_words("   ") == []
