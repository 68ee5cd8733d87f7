import pytest

from leaderboard_core import format_csv, parse_csv


def test_parse_quoted_field_keeps_embedded_delimiter():
    assert parse_csv('a,"b,c",d') == [["a", "b,c", "d"]]


def test_parse_doubled_quote_is_escaped_quote():
    assert parse_csv('"he said ""hi"""') == [['he said "hi"']]


def test_parse_without_trailing_newline_flushes_last_row():
    assert parse_csv("a,b,c") == [["a", "b", "c"]]


def test_parse_empty_and_none_yield_no_rows():
    assert parse_csv("") == []
    assert parse_csv(None) == []
    assert parse_csv("   \n\r\n  ") == []


def test_parse_normalizes_crlf_and_cr():
    assert parse_csv("a,b\r\nc,d\re,f") == [["a", "b"], ["c", "d"], ["e", "f"]]


def test_parse_strips_surrounding_whitespace_and_trailing_newline():
    assert parse_csv("\n  a,b,c\n\n") == [["a", "b", "c"]]


def test_parse_newline_inside_quotes_is_content():
    rows = parse_csv('1,"line one\nline two",5\n2,x,6')
    assert rows == [["1", "line one\nline two", "5"], ["2", "x", "6"]]


def test_parse_quote_after_content_is_appended_literally():
    assert parse_csv('ab"c,d') == [['ab"c', "d"]]


def test_parse_unterminated_quote_does_not_raise():
    assert parse_csv('a,"bc,d\ne') == [["a", "bc,d\ne"]]


def test_parse_keeps_empty_fields():
    assert parse_csv("a,,c\n,,") == [["a", "", "c"], ["", "", ""]]
    assert parse_csv("a,") == [["a", ""]]


def test_parse_blank_line_in_middle_is_single_empty_field_row():
    assert parse_csv("a\n\nb") == [["a"], [""], ["b"]]


def test_parse_custom_delimiter_and_quote():
    assert parse_csv("a;'b;c';d", delimiter=";", quote="'") == [["a", "b;c", "d"]]


def test_format_then_parse_reads_back_plain_rows():
    rows = [["T1", "hello world", "7.5"], ["T2", "x", "6"]]
    assert parse_csv(format_csv(rows)) == rows


def test_format_quotes_only_when_needed():
    out = format_csv([["a", "b,c", 'say "hi"', "multi\nline", " pad "]])
    assert out == 'a,"b,c","say ""hi""","multi\nline"," pad "'
    assert parse_csv(out) == [["a", "b,c", 'say "hi"', "multi\nline", " pad "]]


def test_quoted_empty_field_alone_is_a_row():
    assert parse_csv('""') == [[""]]
    assert parse_csv('a\n""') == [["a"], [""]]


@pytest.mark.parametrize(
    "rows",
    [
        [["a", "b", "c"], [""]],
        [[""], ["a", "b", "c"]],
        [["a"], [""], ["b"]],
        [[""]],
        [["", ""], ["x", ""]],
        [["", "", ""]],
        [["T1", "", "7"], ["", "essay", ""]],
    ],
)
def test_format_then_parse_keeps_empty_fields_and_rows(rows):
    assert parse_csv(format_csv(rows)) == rows


def test_format_writes_lone_empty_field_as_quotes():
    assert format_csv([["a", "b", "c"], [""]]) == 'a,b,c\n""'
    assert format_csv([[]]) == '""'
