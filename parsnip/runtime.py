"""Run a parser over a complete input, and explain failures to humans."""

import dataclasses
import logging
import typing

from .parser import Parser, eof
from .position import Location, locate


@dataclasses.dataclass(frozen=True)
class Success[T]:
    value: T


@dataclasses.dataclass(frozen=True)
class Failure:
    location: Location
    expected: typing.Tuple[str, ...]

    def format(self, stream: str) -> str:
        """The error message for this failure. `stream` must be the input that
        was parsed.
        """
        return format_error(stream, self.location, self.expected)


type ParseOutcome[T] = Success[T] | Failure


class ParseError(Exception):
    """Raised by `try_parse` when the input doesn't match the grammar."""

    def __init__(self, stream: str, location: Location, expected: typing.Tuple[str, ...]):
        super().__init__(format_error(stream, location, expected))
        self.stream = stream
        self.location = location
        self.expected = expected


# How much of the input we quote back in error messages.
_GOT_LENGTH = 12


def format_error(stream: str, location: Location, expected: typing.Sequence[str]) -> str:
    """Produce the standard error message:

        expected 'b' at line 1 column 2, got 'c'
        expected one of '"', '}' at line 1 column 2, got the end of the stream

    Tools grep for this text, so don't change the shape of it.
    """
    if len(expected) == 1:
        expected_message = expected[0]
    else:
        expected_message = "one of " + ", ".join(expected)

    offset = location.offset
    if offset >= len(stream):
        got_message = "the end of the stream"
    else:
        got_message = f"'{stream[offset : offset + _GOT_LENGTH]}'"

    return (
        f"expected {expected_message} at line {location.line} column {location.column}, "
        f"got {got_message}"
    )


parse_log = logging.getLogger("parsnip.parse")


def parse[T](parser: Parser[T], stream: str) -> ParseOutcome[T]:
    """Parse all of `stream` with `parser`.

    The parser has to consume the whole input: anything left over is an error
    (expecting EOF), not something we quietly ignore.
    """
    reply = parser.skip(eof())(stream, 0)

    pl = parse_log
    if pl.isEnabledFor(logging.DEBUG):
        status = "ok" if reply.status else "failed"
        pl.debug(
            f"parse of {len(stream)} characters {status}; furthest {reply.furthest} "
            f"expecting {', '.join(reply.expected) or '-'}"
        )

    if reply.status:
        return Success(typing.cast(T, reply.value))
    return Failure(location=locate(stream, reply.furthest), expected=reply.expected)


def try_parse[T](parser: Parser[T], stream: str) -> T:
    """Like `parse`, but return the value directly and raise `ParseError` if
    the input doesn't parse.
    """
    match parse(parser, stream):
        case Success(value=value):
            return value
        case Failure(location=location, expected=expected):
            raise ParseError(stream, location, expected)
        case outcome:
            typing.assert_never(outcome)
