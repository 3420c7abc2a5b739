"""A parser combinator library. See `parsnip.parser` for how to build
parsers, and `parsnip.runtime` for how to run them.
"""

from .parser import (
    Mark,
    Parser,
    ParserLike,
    Ref,
    alt,
    any_char,
    chain,
    chain_left,
    char_predicate,
    digit,
    digits,
    empty,
    eof,
    fail,
    index,
    label,
    lazy,
    letter,
    letters,
    location,
    lookahead,
    many,
    none_of,
    not_followed_by,
    one_of,
    opt_whitespace,
    regex,
    rest,
    sep_by,
    sep_by1,
    seq,
    seq_map,
    string,
    succeed,
    take_while,
    times,
    whitespace,
)
from .position import Location, locate
from .result import Reply, make_failure, make_success, merge, union_expected
from .runtime import (
    Failure,
    ParseError,
    ParseOutcome,
    Success,
    format_error,
    parse,
    try_parse,
)
