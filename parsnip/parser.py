"""A small parser combinator library.

A `Parser` is a wrapper around one function, `(stream, index) -> Reply`. You
build big parsers by combining little ones with the functions in this module,
and then hand the big one to `parsnip.runtime.parse` to run it over a whole
input:

    number = regex(r"-?[0-9]+").map(int).label("number")
    value = Ref()
    array = value.sep_by(string(",")).between("[", "]")
    value.bind(alt(number, array))

    parse(value, "[1,[2,3]]")  # Success(value=[1, [2, 3]])

Everything works directly on the characters of the input; there is no
separate lexer. If you want to skip whitespace, say so in the grammar (see the
grammars in `examples/` for the usual trick of a `lexeme` helper).

## Errors

Parsers never raise for bad input. Every call returns a `Reply` that records,
besides the outcome, the furthest offset any attempt reached and the set of
things that were expected there. The combinators merge those replies (see
`parsnip.result.merge`) so that when parsing fails we report the deepest
failure, with every alternative that could have continued from that point.
Use `label` to replace low-level expectations (like a regex source) with a
name a human would recognize.

Building a parser wrong (an empty `seq`, a regex with flags we can't honor,
and so on) raises immediately, at construction time.

## Recursion

Grammars are usually recursive, which means some parser needs to refer to
another one that doesn't exist yet. There are two ways to do that:

- `lazy(lambda: value)` defers the lookup until the first time the parser
  runs, and then rewires itself to the real parser.
- `Ref()` is a placeholder you create up front and `bind()` later, once.

Left recursion is not detected. A rule that can call itself without consuming
input will recurse until Python raises `RecursionError`.
"""

import dataclasses
import logging
import re
import typing

from .position import Location, locate
from .result import Reply, make_failure, make_success, merge

lazy_log = logging.getLogger("parsnip.lazy")
trace_log = logging.getLogger("parsnip.trace")

Transform = typing.Callable[[str, int], Reply[typing.Any]]


###############################################################################
# The Parser
###############################################################################
class Parser[T]:
    """A parser that produces a value of type T.

    Call it with a stream and an offset to get a `Reply`. Most of the methods
    here are just the module-level combinators with `self` as the first
    argument, so that grammars can be written left-to-right.
    """

    _fn: Transform

    def __init__(self, fn: typing.Callable[[str, int], Reply[T]]):
        self._fn = fn

    def __call__(self, stream: str, index: int) -> Reply[T]:
        # NOTE: Always look up _fn at call time. `lazy` and `Ref` swap it out
        #       after other parsers have already captured this object. The
        #       combinators below call `item._fn` directly for the same
        #       reason, and so that each level of a grammar costs one Python
        #       frame instead of two.
        return self._fn(stream, index)

    def __or__(self, other: "ParserLike") -> "Parser[typing.Any]":
        return alt(self, other)

    def __ror__(self, other: "ParserLike") -> "Parser[typing.Any]":
        return alt(other, self)

    def or_(self, other: "ParserLike") -> "Parser[typing.Any]":
        return alt(self, other)

    def map[U](self, fn: typing.Callable[[T], U]) -> "Parser[U]":
        """Transform the value of a successful parse."""

        def map_parser(stream: str, index: int) -> Reply[U]:
            reply = self._fn(stream, index)
            if not reply.status:
                return typing.cast(Reply[U], reply)
            return dataclasses.replace(reply, value=fn(typing.cast(T, reply.value)))

        return Parser(map_parser)

    def chain[U](self, fn: typing.Callable[[T], "Parser[U]"]) -> "Parser[U]":
        return chain(self, fn)

    def then(self, other: "ParserLike") -> "Parser[typing.Any]":
        """Parse self, then other; keep the value of other."""
        return seq(self, other).map(lambda values: values[1])

    def skip(self, other: "ParserLike") -> "Parser[T]":
        """Parse self, then other; keep the value of self."""
        return seq(self, other).map(lambda values: values[0])

    def between(self, left: "ParserLike", right: "ParserLike") -> "Parser[T]":
        return seq(left, self, right).map(lambda values: values[1])

    def label(self, text: str) -> "Parser[T]":
        return label(self, text)

    def many(self) -> "Parser[list[T]]":
        return many(self)

    def times(self, minimum: int, maximum: int | None = None) -> "Parser[list[T]]":
        return times(self, minimum, maximum)

    def at_most(self, count: int) -> "Parser[list[T]]":
        return times(self, 0, count)

    def at_least(self, count: int) -> "Parser[list[T]]":
        return seq(times(self, count), many(self)).map(lambda values: values[0] + values[1])

    def sep_by(self, separator: "ParserLike") -> "Parser[list[T]]":
        return sep_by(self, separator)

    def sep_by1(self, separator: "ParserLike") -> "Parser[list[T]]":
        return sep_by1(self, separator)

    def result[U](self, value: U) -> "Parser[U]":
        """Throw away the parsed value and produce `value` instead."""
        return self.map(lambda _: value)

    def fallback[U](self, value: U) -> "Parser[T | U]":
        """Try self; if it fails, succeed with `value` without consuming."""
        return alt(self, succeed(value))

    def optional(self) -> "Parser[T | None]":
        return self.fallback(None)

    def mark(self) -> "Parser[Mark[T]]":
        """Wrap the value in a `Mark` that records where it started and
        ended."""
        return seq(location(), self, location()).map(
            lambda values: Mark(start=values[0], value=values[1], end=values[2])
        )

    def traced(self, name: str) -> "Parser[T]":
        """Log every call to this parser, and what came of it, at DEBUG level
        on the `parsnip.trace` logger.
        """

        def traced_parser(stream: str, index: int) -> Reply[T]:
            tl = trace_log
            if not tl.isEnabledFor(logging.DEBUG):
                return self._fn(stream, index)

            tl.debug(f"{name} @ {index}")
            reply = self._fn(stream, index)
            if reply.status:
                tl.debug(f"{name} @ {index}: ok -> {reply.index} {reply.value!r}")
            else:
                tl.debug(
                    f"{name} @ {index}: failed, expected {', '.join(reply.expected)} "
                    f"at {reply.furthest}"
                )
            return reply

        return Parser(traced_parser)


ParserLike = Parser[typing.Any] | str | re.Pattern[str]


@dataclasses.dataclass(frozen=True)
class Mark[T]:
    start: Location
    value: T
    end: Location


def _coerce(value: ParserLike) -> Parser[typing.Any]:
    """Strings become literal parsers and compiled patterns become regex
    parsers; parsers are left alone.
    """
    match value:
        case Parser():
            return value
        case str():
            return string(value)
        case re.Pattern():
            return regex(value)
        case _:
            raise TypeError(f"Expected a parser, a string or a compiled pattern, got {value!r}")


###############################################################################
# Primitives
###############################################################################
def string(text: str) -> Parser[str]:
    """Match exactly `text`."""
    if not isinstance(text, str):
        raise TypeError(f"string() needs a str, got {text!r}")
    if len(text) == 0:
        raise ValueError("string() needs a non-empty literal")

    expected = f"'{text}'"
    end = len(text)

    def string_parser(stream: str, index: int) -> Reply[str]:
        if stream.startswith(text, index):
            return make_success(index + end, text)
        return make_failure(index, expected)

    return Parser(string_parser)


def char_predicate(
    predicate: typing.Callable[[str], bool], description: str | None = None
) -> Parser[str]:
    """Match one character for which `predicate` is true."""
    if not callable(predicate):
        raise TypeError(f"char_predicate() needs a callable, got {predicate!r}")

    if description is None:
        name = getattr(predicate, "__name__", None) or repr(predicate)
        description = f"a character matching {name}"
    expected = description

    def char_predicate_parser(stream: str, index: int) -> Reply[str]:
        if index < len(stream):
            char = stream[index]
            if predicate(char):
                return make_success(index + 1, char)
        return make_failure(index, expected)

    return Parser(char_predicate_parser)


# Anything else either changes what a pattern means between calls or isn't
# about matching text at all.
_ALLOWED_FLAGS = re.IGNORECASE | re.MULTILINE | re.UNICODE


def regex(
    pattern: str | re.Pattern[str],
    group: int | str = 0,
    flags: int | re.RegexFlag = 0,
) -> Parser[typing.Any]:
    """Match a regular expression at the current position.

    The match is anchored where we are; it never searches ahead. The whole
    match is consumed and the parser yields the text of `group` (the entire
    match by default, or None if that group didn't take part in the match).
    """
    if isinstance(pattern, re.Pattern):
        if flags:
            raise ValueError("Cannot pass flags along with a compiled pattern")
        compiled = pattern
    elif isinstance(pattern, str):
        compiled = re.compile(pattern, flags)
    else:
        raise TypeError(f"regex() needs a str or a compiled pattern, got {pattern!r}")

    if not isinstance(compiled.pattern, str):
        raise TypeError("regex() only works on str patterns, not bytes")

    unsupported = compiled.flags & ~_ALLOWED_FLAGS
    if unsupported:
        raise ValueError(
            f"Unsupported flags {re.RegexFlag(unsupported)!r} in {compiled.pattern!r}; "
            "only IGNORECASE, MULTILINE and UNICODE are allowed"
        )

    if isinstance(group, str):
        if group not in compiled.groupindex:
            raise ValueError(f"{compiled.pattern!r} has no group named {group!r}")
    elif group < 0 or group > compiled.groups:
        raise ValueError(f"{compiled.pattern!r} has no group {group}")

    expected = compiled.pattern

    def regex_parser(stream: str, index: int) -> Reply[typing.Any]:
        match = compiled.match(stream, index)
        if match is None:
            return make_failure(index, expected)
        return make_success(match.end(), match.group(group))

    return Parser(regex_parser)


def eof() -> Parser[None]:
    """Succeed only at the end of the input."""

    def eof_parser(stream: str, index: int) -> Reply[None]:
        if index < len(stream):
            return make_failure(index, "EOF")
        return make_success(index, None)

    return Parser(eof_parser)


def succeed[T](value: T) -> Parser[T]:
    """Consume nothing and produce `value`."""
    return Parser(lambda stream, index: make_success(index, value))


def fail(expected: str) -> Parser[typing.Any]:
    """Consume nothing and fail, expecting `expected`."""
    return Parser(lambda stream, index: make_failure(index, expected))


def empty() -> Parser[typing.Any]:
    return fail("empty")


def any_char() -> Parser[str]:
    return char_predicate(lambda _: True, "any character")


def one_of(chars: str) -> Parser[str]:
    return char_predicate(lambda char: char in chars, f"one of '{chars}'")


def none_of(chars: str) -> Parser[str]:
    return char_predicate(lambda char: char not in chars, f"none of '{chars}'")


def take_while(predicate: typing.Callable[[str], bool]) -> Parser[str]:
    """Consume characters for as long as `predicate` holds. Never fails."""

    def take_while_parser(stream: str, index: int) -> Reply[str]:
        end = index
        while end < len(stream) and predicate(stream[end]):
            end += 1
        return make_success(end, stream[index:end])

    return Parser(take_while_parser)


def rest() -> Parser[str]:
    """Consume everything that is left."""
    return Parser(lambda stream, index: make_success(len(stream), stream[index:]))


def index() -> Parser[int]:
    """Produce the current offset without consuming anything."""
    return Parser(lambda stream, index: make_success(index, index))


def location() -> Parser[Location]:
    """Produce the current `Location` without consuming anything."""
    return Parser(lambda stream, index: make_success(index, locate(stream, index)))


def digit() -> Parser[str]:
    return regex(r"[0-9]").label("a digit")


def digits() -> Parser[str]:
    return regex(r"[0-9]*").label("optional digits")


def letter() -> Parser[str]:
    return regex(r"[a-z]", flags=re.IGNORECASE).label("a letter")


def letters() -> Parser[str]:
    return regex(r"[a-z]*", flags=re.IGNORECASE).label("optional letters")


def whitespace() -> Parser[str]:
    return regex(r"\s+").label("whitespace")


def opt_whitespace() -> Parser[str]:
    return regex(r"\s*").label("optional whitespace")


###############################################################################
# Combinators
###############################################################################
def seq(*parsers: ParserLike) -> Parser[list[typing.Any]]:
    """Match each parser in turn, producing a list of their values."""
    if len(parsers) == 0:
        raise ValueError("seq() needs at least one parser")
    items = [_coerce(p) for p in parsers]

    def seq_parser(stream: str, index: int) -> Reply[list[typing.Any]]:
        values = []
        reply: Reply[typing.Any] | None = None
        for item in items:
            reply = merge(item._fn(stream, index), reply)
            if not reply.status:
                return reply
            values.append(reply.value)
            index = reply.index
        return merge(make_success(index, values), reply)

    return Parser(seq_parser)


def seq_map(*args: typing.Any) -> Parser[typing.Any]:
    """Like `seq`, but the last argument is a function that gets called with
    all the parsed values as positional arguments.
    """
    if len(args) < 2:
        raise ValueError("seq_map() needs at least one parser and a function")
    *parsers, fn = args
    if not callable(fn):
        raise TypeError(f"The last argument to seq_map() must be callable, got {fn!r}")
    return seq(*parsers).map(lambda values: fn(*values))


def alt(*parsers: ParserLike) -> Parser[typing.Any]:
    """Try each parser from the same position and take the first one that
    matches.

    Order matters: if two alternatives share a prefix, list the longer one
    first or it will never get a chance.
    """
    if len(parsers) == 0:
        raise ValueError("alt() needs at least one parser")
    items = [_coerce(p) for p in parsers]

    def alt_parser(stream: str, index: int) -> Reply[typing.Any]:
        reply: Reply[typing.Any] | None = None
        for item in items:
            reply = merge(item._fn(stream, index), reply)
            if reply.status:
                return reply
        assert reply is not None
        return reply

    return Parser(alt_parser)


def many[T](parser: Parser[T]) -> Parser[list[T]]:
    """Match zero or more times. Always succeeds."""
    item = _coerce(parser)

    def many_parser(stream: str, index: int) -> Reply[list[T]]:
        values = []
        reply: Reply[typing.Any] | None = None
        while True:
            reply = merge(item._fn(stream, index), reply)
            # A match that didn't consume anything would match forever.
            if not reply.status or reply.index == index:
                break
            values.append(reply.value)
            index = reply.index
        return merge(make_success(index, values), reply)

    return Parser(many_parser)


def times[T](parser: Parser[T], minimum: int, maximum: int | None = None) -> Parser[list[T]]:
    """Match at least `minimum` and at most `maximum` times.

    `maximum` defaults to `minimum`, which means "exactly this many".
    """
    if maximum is None:
        maximum = minimum
    if minimum < 0:
        raise ValueError(f"times() needs a non-negative minimum, got {minimum}")
    if maximum < minimum:
        raise ValueError(f"times() maximum {maximum} is less than minimum {minimum}")
    item = _coerce(parser)

    def times_parser(stream: str, index: int) -> Reply[list[T]]:
        values = []
        reply: Reply[typing.Any] | None = None
        while len(values) < maximum:
            reply = merge(item._fn(stream, index), reply)
            if not reply.status:
                if len(values) < minimum:
                    return reply
                break
            values.append(reply.value)
            index = reply.index
        return merge(make_success(index, values), reply)

    return Parser(times_parser)


def chain[T, U](parser: Parser[T], fn: typing.Callable[[T], Parser[U]]) -> Parser[U]:
    """Run `parser`, then ask `fn` what to parse next based on its value.

    This is what lets a grammar depend on what it has already seen.
    """

    def chain_parser(stream: str, index: int) -> Reply[U]:
        reply = parser._fn(stream, index)
        if not reply.status:
            return typing.cast(Reply[U], reply)
        following = _coerce(fn(typing.cast(T, reply.value)))
        return merge(following._fn(stream, reply.index), reply)

    return Parser(chain_parser)


def label[T](parser: Parser[T], text: str) -> Parser[T]:
    """If `parser` fails, say we expected `text` instead of whatever it was
    looking for underneath.
    """

    def label_parser(stream: str, index: int) -> Reply[T]:
        reply = parser._fn(stream, index)
        if reply.status:
            return reply
        return dataclasses.replace(reply, expected=(text,))

    return Parser(label_parser)


def sep_by[T](parser: Parser[T], separator: ParserLike) -> Parser[list[T]]:
    """Zero or more `parser`s with `separator` between them."""
    return alt(sep_by1(parser, separator), succeed([]))


def sep_by1[T](parser: Parser[T], separator: ParserLike) -> Parser[list[T]]:
    """One or more `parser`s with `separator` between them."""
    item = _coerce(parser)
    return seq(item, many(_coerce(separator).then(item))).map(
        lambda values: [values[0], *values[1]]
    )


def chain_left(operand: Parser[typing.Any], operator: Parser[typing.Any]) -> Parser[typing.Any]:
    """Match `operand (operator operand)*` and fold it up from the left.

    `operator` must produce a function of two arguments, which is called with
    the value so far and the next operand.
    """

    def fold(values: list[typing.Any]) -> typing.Any:
        result, tail = values
        for fn, right in tail:
            result = fn(result, right)
        return result

    return seq(operand, many(seq(operator, operand))).map(fold)


def lookahead(value: ParserLike) -> Parser[str]:
    """Succeed with "" if `value` matches here, without consuming anything."""
    item = _coerce(value)

    def lookahead_parser(stream: str, index: int) -> Reply[str]:
        reply = item._fn(stream, index)
        if not reply.status:
            return reply
        return dataclasses.replace(reply, index=index, value="")

    return Parser(lookahead_parser)


def not_followed_by(value: ParserLike) -> Parser[None]:
    """Succeed, without consuming anything, only if `value` does *not* match
    here.
    """
    item = _coerce(value)

    def not_followed_by_parser(stream: str, index: int) -> Reply[None]:
        reply = item._fn(stream, index)
        if reply.status:
            return make_failure(index, f"not '{stream[index:reply.index]}'")
        return make_success(index, None)

    return Parser(not_followed_by_parser)


###############################################################################
# Recursion
###############################################################################
def _forward(target: Parser[typing.Any]) -> Transform:
    # A Ref can still be re-pointed after we look at it, so go through the
    # object. Anything else has settled on its transformation already (a lazy
    # parser's first transformation resolves itself exactly once).
    if isinstance(target, Ref):
        return lambda stream, index: target._fn(stream, index)
    return target._fn


def lazy[T](thunk: typing.Callable[[], Parser[T]], description: str | None = None) -> Parser[T]:
    """A parser for a grammar rule that may not exist yet.

    The first time this parser runs it calls `thunk` to get the real parser,
    rewires itself to that parser, and carries on. `thunk` is never called
    again after that.
    """
    resolved: Parser[T] | None = None

    def lazy_parser(stream: str, index: int) -> Reply[T]:
        nonlocal resolved
        if resolved is None:
            target = _coerce(thunk())
            if target is result or target is handle:
                raise ValueError("A lazy parser cannot resolve to itself")
            resolved = target
            result._fn = _forward(target)
            if lazy_log.isEnabledFor(logging.DEBUG):
                name = getattr(thunk, "__qualname__", repr(thunk))
                lazy_log.debug(f"Resolved lazy parser from {name} at offset {index}")
        return resolved._fn(stream, index)

    result = Parser(lazy_parser)
    # What the caller gets back. With a description that is the label
    # wrapper, which a thunk can just as easily return.
    handle = result if description is None else result.label(description)
    return handle


class Ref[T](Parser[T]):
    """A placeholder for a parser that you will define later.

        expr = Ref()
        term = alt(number, expr.between("(", ")"))
        expr.bind(chain_left(term, plus))

    Until it is bound, a reference fails everywhere. It can only be bound
    once.
    """

    description: str
    bound: bool

    def __init__(self, description: str = "bound parser"):
        self.description = description
        self.bound = False
        super().__init__(self._unbound)

    def _unbound(self, stream: str, index: int) -> Reply[T]:
        return make_failure(index, self.description)

    def bind(self, parser: ParserLike) -> "Ref[T]":
        """Point this reference at `parser`. Returns the reference."""
        target = _coerce(parser)
        if self.bound:
            raise ValueError("This reference has already been bound")
        if target is self:
            raise ValueError("Cannot bind a reference to itself")

        self._fn = _forward(target)
        self.bound = True
        lazy_log.debug("Bound reference %r", self.description)
        return self
