# Spoon: a toy block-structured language.
#
#     # Comments run to the end of the line.
#     def fib(n) do
#       if n < 2 do
#         return n
#       end
#       return fib(n - 1) + fib(n - 2)
#     end
#
#     total = 0
#     while total < 10 do total = total + fib(3); end
#     print(total)
#
# Whitespace (newlines included) only separates tokens; statements may end
# with an optional ';'.
import dataclasses
import functools
import typing

from parsnip import (
    Parser,
    Ref,
    alt,
    chain_left,
    lazy,
    not_followed_by,
    regex,
    seq,
    seq_map,
    string,
)


###############################################################################
# Syntax tree
###############################################################################
@dataclasses.dataclass(frozen=True)
class Number:
    value: int | float


@dataclasses.dataclass(frozen=True)
class String:
    value: str


@dataclasses.dataclass(frozen=True)
class Constant:
    value: bool | None


@dataclasses.dataclass(frozen=True)
class Name:
    name: str


@dataclasses.dataclass(frozen=True)
class Unary:
    op: str
    operand: "Expression"


@dataclasses.dataclass(frozen=True)
class Binary:
    op: str
    left: "Expression"
    right: "Expression"


@dataclasses.dataclass(frozen=True)
class Call:
    function: "Expression"
    args: typing.Tuple["Expression", ...]


type Expression = Number | String | Constant | Name | Unary | Binary | Call


@dataclasses.dataclass(frozen=True)
class Assign:
    target: str
    value: Expression


@dataclasses.dataclass(frozen=True)
class If:
    condition: Expression
    then: "Block"
    otherwise: "Block | None"


@dataclasses.dataclass(frozen=True)
class While:
    condition: Expression
    body: "Block"


@dataclasses.dataclass(frozen=True)
class Def:
    name: str
    params: typing.Tuple[str, ...]
    body: "Block"


@dataclasses.dataclass(frozen=True)
class Return:
    value: Expression | None


@dataclasses.dataclass(frozen=True)
class ExprStatement:
    expr: Expression


type Statement = Assign | If | While | Def | Return | ExprStatement


@dataclasses.dataclass(frozen=True)
class Block:
    statements: typing.Tuple[Statement, ...]


###############################################################################
# Tokens
###############################################################################
KEYWORDS = ("def", "do", "else", "end", "false", "if", "nil", "return", "true", "while")

_WHITESPACE = regex(r"(\s|#[^\n]*)*")


def lexeme[T](parser: Parser[T]) -> Parser[T]:
    return parser.skip(_WHITESPACE)


def keyword(word: str) -> Parser[str]:
    return lexeme(regex(word + r"\b")).label(f"'{word}'")


def symbol(text: str) -> Parser[str]:
    return lexeme(string(text))


_any_keyword = regex(r"(" + "|".join(KEYWORDS) + r")\b")

identifier: Parser[str] = lexeme(
    not_followed_by(_any_keyword).then(regex(r"[A-Za-z_][A-Za-z0-9_]*"))
).label("identifier")

number: Parser[Number] = lexeme(
    regex(r"[0-9]+(\.[0-9]+)?").map(lambda text: Number(float(text) if "." in text else int(text)))
).label("number")

_escapes = {"n": "\n", "t": "\t", '"': '"', "\\": "\\"}

text: Parser[String] = lexeme(
    alt(regex(r'[^"\\\n]+'), regex(r"\\([nt\"\\])", group=1).map(_escapes.__getitem__))
    .many()
    .between('"', '"')
    .map(lambda parts: String("".join(parts)))
).label("string")


###############################################################################
# Expressions
###############################################################################
def _binary(*operators: str) -> Parser[typing.Callable[[Expression, Expression], Binary]]:
    # Longer operators first, so "<=" isn't read as "<".
    ordered = sorted(operators, key=len, reverse=True)
    return alt(*(symbol(op).result(functools.partial(Binary, op)) for op in ordered))


expression: Parser[Expression] = lazy(lambda: _comparison, "expression")

_constant = alt(
    keyword("true").result(Constant(True)),
    keyword("false").result(Constant(False)),
    keyword("nil").result(Constant(None)),
)

_primary = alt(
    number,
    text,
    _constant,
    identifier.map(Name),
    expression.between(symbol("("), symbol(")")),
)

_arguments = expression.sep_by(symbol(",")).between(symbol("("), symbol(")")).map(tuple)


def _apply_calls(values: list[typing.Any]) -> Expression:
    function, argument_lists = values
    for args in argument_lists:
        function = Call(function, args)
    return function


_call = seq(_primary, _arguments.many()).map(_apply_calls)

_unary: Ref[Expression] = Ref("expression")
_unary.bind(alt(seq_map(symbol("-"), _unary, Unary), _call))

_product = chain_left(_unary, _binary("*", "/", "%"))
_sum = chain_left(_product, _binary("+", "-"))
_comparison = chain_left(_sum, _binary("==", "!=", "<=", ">=", "<", ">"))


###############################################################################
# Statements
###############################################################################
statement: Ref[Statement] = Ref("statement")

_statements: Parser[Block] = statement.skip(symbol(";").optional()).many().map(
    lambda statements: Block(tuple(statements))
)

_def = seq_map(
    keyword("def"),
    identifier,
    identifier.sep_by(symbol(",")).between(symbol("("), symbol(")")),
    keyword("do").then(_statements).skip(keyword("end")),
    lambda _, name, params, body: Def(name, tuple(params), body),
)

_if = seq_map(
    keyword("if"),
    expression,
    keyword("do").then(_statements),
    keyword("else").then(_statements).optional(),
    keyword("end"),
    lambda _, condition, then, otherwise, __: If(condition, then, otherwise),
)

_while = seq_map(
    keyword("while"),
    expression,
    keyword("do").then(_statements).skip(keyword("end")),
    lambda _, condition, body: While(condition, body),
)

# "return" on its own returns nil, as long as a block ends right after it.
_return = keyword("return").then(expression.optional()).map(Return)

# "=" but not "==".
_assign = seq_map(
    identifier,
    lexeme(regex(r"=(?!=)")),
    expression,
    lambda target, _, value: Assign(target, value),
)

statement.bind(alt(_def, _if, _while, _return, _assign, expression.map(ExprStatement)))

grammar: Parser[Block] = _WHITESPACE.then(_statements)
