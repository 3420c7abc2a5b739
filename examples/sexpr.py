# A Lisp-flavoured s-expression grammar. The recursion here goes through
# `lazy`, where the JSON grammar uses a `Ref`.
import dataclasses
import typing

from parsnip import Parser, alt, lazy, regex, string

_WHITESPACE = regex(r"(\s|;[^\n]*)*")


@dataclasses.dataclass(frozen=True)
class Symbol:
    name: str

    def __str__(self) -> str:
        return self.name


type Atom = int | float | str | Symbol
type Expression = Atom | list[Expression]


def lexeme[T](parser: Parser[T]) -> Parser[T]:
    return parser.skip(_WHITESPACE)


integer: Parser[int] = regex(r"[-+]?[0-9]+(?![0-9A-Za-z_.])").map(int).label("integer")

decimal: Parser[float] = regex(r"[-+]?[0-9]*\.[0-9]+").map(float).label("decimal")

symbol: Parser[Symbol] = regex(r"[A-Za-z_+\-*/<>=!?][A-Za-z0-9_+\-*/<>=!?]*").map(Symbol).label(
    "symbol"
)

text: Parser[str] = (
    alt(regex(r'[^"\\]+'), regex(r"\\(.)", group=1)).many().between('"', '"').map("".join)
)

atom: Parser[Atom] = alt(decimal, integer, text, symbol)

expression: Parser[Expression] = lazy(lambda: lexeme(alt(atom, _list, _quoted)), "expression")

_list: Parser[list[Expression]] = expression.many().between(lexeme(string("(")), string(")"))

# 'x is shorthand for (quote x)
_quoted: Parser[list[Expression]] = lexeme(string("'")).then(expression).map(
    lambda quoted: typing.cast(list[Expression], [Symbol("quote"), quoted])
)

grammar: Parser[Expression] = _WHITESPACE.then(expression)

program: Parser[list[Expression]] = _WHITESPACE.then(expression.many())
