# A JSON grammar, as an example of a grammar built out of parsnip parts.
import re

from parsnip import Parser, Ref, alt, regex, seq, string

type JsonValue = None | bool | int | float | str | list[JsonValue] | dict[str, JsonValue]

_WHITESPACE = regex(r"\s*")


def lexeme[T](parser: Parser[T]) -> Parser[T]:
    """Match `parser` and then any whitespace after it."""
    return parser.skip(_WHITESPACE)


def punctuation(text: str) -> Parser[str]:
    return lexeme(string(text))


_ESCAPES = {
    '"': '"',
    "\\": "\\",
    "/": "/",
    "b": "\b",
    "f": "\f",
    "n": "\n",
    "r": "\r",
    "t": "\t",
}

_simple_escape = regex(r'\\(["\\/bfnrt])', group=1).map(_ESCAPES.__getitem__)
_unicode_escape = regex(r"\\u([0-9a-fA-F]{4})", group=1).map(lambda code: chr(int(code, 16)))
_characters = regex(r'[^"\\\x00-\x1f]+')

# NOTE: The opening quote is deliberately not labelled. When an object is cut
#       short we want the error to say that a '"' (the start of a key) could
#       have come next.
json_string: Parser[str] = (
    alt(_characters, _simple_escape, _unicode_escape)
    .many()
    .between(string('"'), string('"'))
    .map("".join)
)


def _number(text: str) -> int | float:
    # Integers stay integers; anything with a fraction or exponent is a float.
    if re.search(r"[.eE]", text):
        return float(text)
    return int(text)


json_number: Parser[int | float] = (
    regex(r"-?(0|[1-9][0-9]*)(\.[0-9]+)?([eE][+-]?[0-9]+)?").map(_number).label("number")
)

value: Ref[JsonValue] = Ref("JSON value")

json_array: Parser[list[JsonValue]] = value.sep_by(punctuation(",")).between(
    punctuation("["), punctuation("]")
)

_pair = seq(lexeme(json_string), punctuation(":"), value).map(lambda values: (values[0], values[2]))

json_object: Parser[dict[str, JsonValue]] = (
    _pair.sep_by(punctuation(",")).between(punctuation("{"), punctuation("}")).map(dict)
)

value.bind(
    lexeme(
        alt(
            json_object,
            json_array,
            json_string,
            json_number,
            string("true").result(True),
            string("false").result(False),
            string("null").result(None),
        )
    )
)

grammar: Parser[JsonValue] = _WHITESPACE.then(value)
