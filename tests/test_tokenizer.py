"""Tests for the delimited-text tokenizer."""

import pytest
from callgaps.tokenizer import tokenize


class TestUnquoted:
    @pytest.mark.parametrize(
        "text",
        [
            "Date,User,To\n2025-03-10 09:00,Alice,555-0100\n",
            "a,b,c\r\nd,e,f\r\n",
            "one\ntwo\nthree",
            "x,,y\n,,\n",
        ],
    )
    def test_matches_naive_split(self, text):
        lines = text.replace("\r\n", "\n").split("\n")
        if lines[-1] == "":
            lines.pop()
        assert tokenize(text) == [line.split(",") for line in lines]

    def test_mixed_line_endings(self):
        assert tokenize("a,b\r\nc,d\re,f\ng,h") == [
            ["a", "b"],
            ["c", "d"],
            ["e", "f"],
            ["g", "h"],
        ]

    def test_trailing_delimiter_gives_empty_field(self):
        assert tokenize("a,b,\n") == [["a", "b", ""]]

    def test_empty_input(self):
        assert tokenize("") == []


class TestQuoted:
    def test_embedded_delimiter_and_quote(self):
        assert tokenize('a,"b,c""d",e') == [["a", 'b,c"d', "e"]]

    def test_embedded_line_break(self):
        assert tokenize('"line1\nline2",x\r\ny,z') == [["line1\nline2", "x"], ["y", "z"]]

    def test_quoted_empty_field(self):
        assert tokenize('"",a') == [["", "a"]]

    def test_quote_inside_unquoted_field_is_literal(self):
        assert tokenize('ab"c,d') == [['ab"c', "d"]]

    def test_quoted_field_at_end_of_line(self):
        assert tokenize('"a","b"\n"c","d"\n') == [["a", "b"], ["c", "d"]]

    def test_unterminated_quote_runs_to_end(self):
        assert tokenize('a,"bc\nde') == [["a", "bc\nde"]]

    def test_text_after_closing_quote_stays_in_field(self):
        # best effort: field count still follows the delimiters
        assert tokenize('"ab"cd,e') == [["abcd", "e"]]


class TestLines:
    def test_blank_line_in_middle_is_kept(self):
        assert tokenize("a,b\n\nc,d\n") == [["a", "b"], [""], ["c", "d"]]

    def test_only_final_empty_line_dropped(self):
        assert tokenize("a\n\n") == [["a"], [""]]

    def test_crlf_is_one_break(self):
        assert tokenize("a\r\n\r\nb") == [["a"], [""], ["b"]]

    def test_field_count_is_delimiters_plus_one(self):
        text = 'h1,h2,h3\n1,"x,y",3\n,,\n"q""",,\n'
        for row, line_delims in zip(tokenize(text), [2, 2, 2, 2]):
            assert len(row) == line_delims + 1
