import pytest

from hypothesis import given
from hypothesis.strategies import data, integers, text

from parsnip.position import Location, locate


def test_locate_first_line():
    assert locate("hello", 0) == Location(offset=0, line=1, column=1)
    assert locate("hello", 3) == Location(offset=3, line=1, column=4)


def test_locate_end_of_stream():
    assert locate("hello", 5) == Location(offset=5, line=1, column=6)
    assert locate("", 0) == Location(offset=0, line=1, column=1)


def test_locate_after_newlines():
    src = "ab\ncd\n\nef"
    assert locate(src, 2) == Location(offset=2, line=1, column=3)  # the newline itself
    assert locate(src, 3) == Location(offset=3, line=2, column=1)
    assert locate(src, 4) == Location(offset=4, line=2, column=2)
    assert locate(src, 6) == Location(offset=6, line=3, column=1)
    assert locate(src, 7) == Location(offset=7, line=4, column=1)
    assert locate(src, 9) == Location(offset=9, line=4, column=3)


def test_locate_crlf():
    # \r is just another character on the line.
    assert locate("a\r\nb", 3) == Location(offset=3, line=2, column=1)


def test_locate_out_of_bounds():
    with pytest.raises(ValueError):
        locate("abc", 4)
    with pytest.raises(ValueError):
        locate("abc", -1)


def test_location_str():
    assert str(locate("a\nbc", 3)) == "2:2"


@given(text(alphabet="ab\n"), data())
def test_locate_matches_splitting(src, draw):
    """Line and column agree with what you get from splitting the prefix."""
    offset = draw.draw(integers(min_value=0, max_value=len(src)))
    prefix_lines = src[:offset].split("\n")

    loc = locate(src, offset)
    assert loc.offset == offset
    assert loc.line == len(prefix_lines)
    assert loc.column == len(prefix_lines[-1]) + 1
