import logging

import pytest

from parsnip import (
    Failure,
    Location,
    ParseError,
    Success,
    format_error,
    locate,
    parse,
    regex,
    seq,
    string,
    try_parse,
)


def test_parse_success():
    assert parse(regex(r"[0-9]+").map(int), "123") == Success(123)


def test_parse_requires_whole_input():
    outcome = parse(regex(r"[0-9]+"), "12a")
    assert outcome == Failure(location=Location(offset=2, line=1, column=3), expected=("EOF",))
    assert outcome.format("12a") == "expected EOF at line 1 column 3, got 'a'"


def test_parse_reports_line_and_column():
    outcome = parse(seq("a\n", "b"), "a\nc")
    assert isinstance(outcome, Failure)
    assert outcome.location == locate("a\nc", 2)
    assert outcome.format("a\nc") == "expected 'b' at line 2 column 1, got 'c'"


def test_format_error_end_of_stream():
    message = format_error("{", Location(offset=1, line=1, column=2), ("'\"'", "'}'"))
    assert message == "expected one of '\"', '}' at line 1 column 2, got the end of the stream"


def test_format_error_quotes_a_little_input():
    source = "abcdefghijklmnopqrstuvwxyz"
    message = format_error(source, locate(source, 1), ("'x'",))
    assert message == "expected 'x' at line 1 column 2, got 'bcdefghijklm'"


def test_try_parse():
    assert try_parse(string("a"), "a") == "a"

    with pytest.raises(ParseError) as info:
        try_parse(string("a"), "b")
    assert str(info.value) == "expected 'a' at line 1 column 1, got 'b'"
    assert info.value.location == Location(offset=0, line=1, column=1)
    assert info.value.expected == ("'a'",)
    assert info.value.stream == "b"


def test_parse_logs(caplog):
    caplog.set_level(logging.DEBUG, logger="parsnip.parse")
    parse(string("a"), "b")
    records = [r for r in caplog.records if r.name == "parsnip.parse"]
    assert len(records) == 1
    assert "failed" in records[0].getMessage()
