import logging

import pytest

from parsnip import (
    Failure,
    Location,
    Mark,
    Ref,
    Success,
    alt,
    any_char,
    chain_left,
    index,
    label,
    lazy,
    location,
    lookahead,
    many,
    not_followed_by,
    parse,
    regex,
    sep_by,
    seq,
    seq_map,
    string,
    succeed,
    times,
)


def test_seq_collects_values():
    assert parse(seq("a", "b", "c"), "abc") == Success(["a", "b", "c"])


def test_seq_fails_where_it_stopped():
    reply = seq("a", "b")("ac", 0)
    assert not reply.status
    assert reply.furthest == 1
    assert reply.expected == ("'b'",)


def test_seq_needs_parsers():
    with pytest.raises(ValueError):
        seq()


def test_seq_rejects_non_parsers():
    with pytest.raises(TypeError):
        seq("a", 5)  # type: ignore


def test_seq_map():
    p = seq_map(regex(r"[0-9]+"), "+", regex(r"[0-9]+"), lambda a, _, b: int(a) + int(b))
    assert parse(p, "12+30") == Success(42)

    with pytest.raises(ValueError):
        seq_map(lambda: None)
    with pytest.raises(TypeError):
        seq_map("a", "b")


def test_alt_takes_first_match():
    assert parse(alt("a", "ab"), "a") == Success("a")
    assert parse(alt("ab", "a"), "ab") == Success("ab")


def test_alt_unions_expectations():
    reply = alt("ab", "ac", "x")("d", 0)
    assert not reply.status
    assert reply.furthest == 0
    assert reply.expected == ("'ab'", "'ac'", "'x'")


def test_alt_reports_deepest_branch():
    reply = alt(seq("a", "b"), "c")("ax", 0)
    assert not reply.status
    assert reply.furthest == 1
    assert reply.expected == ("'b'",)


def test_alt_needs_parsers():
    with pytest.raises(ValueError):
        alt()


def test_or_operator():
    p = string("a") | "b"
    assert parse(p, "b") == Success("b")
    p = "a" | string("b")
    assert parse(p, "a") == Success("a")
    assert parse(string("a").or_("c"), "c") == Success("c")


def test_many():
    assert parse(many(string("a")), "") == Success([])
    assert parse(string("a").many(), "aaa") == Success(["a", "a", "a"])


def test_many_keeps_failure_info():
    reply = seq(string("a").many(), "b")("aac", 0)
    assert not reply.status
    assert reply.furthest == 2
    assert reply.expected == ("'a'", "'b'")


def test_many_stops_on_empty_match():
    assert parse(many(succeed(1)), "") == Success([])
    assert parse(many(regex(r"a*")), "aaa") == Success(["aaa"])


def test_times_exact():
    assert parse(times(string("a"), 2), "aa") == Success(["a", "a"])

    reply = times(string("a"), 2)("ab", 0)
    assert not reply.status
    assert reply.furthest == 1


def test_times_range():
    p = string("a").times(1, 3)
    assert parse(p, "a") == Success(["a"])
    assert parse(p, "aaa") == Success(["a", "a", "a"])
    assert isinstance(parse(p, ""), Failure)
    # The fourth 'a' is left over.
    assert parse(p, "aaaa").expected == ("EOF",)


def test_times_zero():
    assert parse(string("a").times(0), "") == Success([])


def test_times_rejects_bad_bounds():
    with pytest.raises(ValueError):
        times(string("a"), -1)
    with pytest.raises(ValueError):
        times(string("a"), 3, 2)


def test_at_most_and_at_least():
    assert parse(string("a").at_most(2), "") == Success([])
    assert parse(string("a").at_most(2), "aa") == Success(["a", "a"])
    assert parse(string("a").at_least(2), "aaaa") == Success(["a"] * 4)
    assert not string("a").at_least(2)("a", 0).status


def test_map_then_skip_between():
    number = regex(r"[0-9]+").map(int)
    assert parse(number, "42") == Success(42)
    assert parse(string("#").then(number), "#7") == Success(7)
    assert parse(number.skip(";"), "7;") == Success(7)
    assert parse(number.between("(", ")"), "(7)") == Success(7)


def test_result_fallback_optional():
    assert parse(string("yes").result(True), "yes") == Success(True)
    assert parse(string("x").fallback("default"), "") == Success("default")
    assert parse(string("x").optional(), "") == Success(None)
    assert parse(string("x").optional(), "x") == Success("x")


def test_chain_depends_on_value():
    counted = regex(r"[0-9]").map(int).chain(lambda n: times(any_char(), n))
    assert parse(counted, "3abc") == Success(["a", "b", "c"])
    assert not counted("3ab", 0).status
    assert not counted("x", 0).status


def test_label_replaces_expectations():
    p = label(alt("a", "b"), "a or b")
    reply = p("c", 0)
    assert reply.expected == ("a or b",)
    assert reply.furthest == 0

    assert parse(string("a").label("nothing"), "a") == Success("a")


def test_sep_by():
    item = regex(r"[0-9]+")
    assert parse(sep_by(item, ","), "") == Success([])
    assert parse(item.sep_by(","), "1,2,3") == Success(["1", "2", "3"])
    assert parse(item.sep_by1(","), "1") == Success(["1"])
    assert not item.sep_by1(",")("", 0).status


def test_sep_by_trailing_separator():
    outcome = parse(regex(r"[0-9]+").sep_by(","), "1,")
    assert outcome.location.offset == 2
    assert outcome.expected == ("[0-9]+",)


def test_chain_left_folds_from_the_left():
    number = regex(r"[0-9]+").map(int)
    minus = string("-").result(lambda a, b: a - b)
    assert parse(chain_left(number, minus), "10-2-3") == Success(5)
    assert parse(chain_left(number, minus), "10") == Success(10)


def test_index_and_location():
    assert parse(seq("ab", index()), "ab") == Success(["ab", 2])
    assert parse(seq("a\n", location()), "a\n") == Success(
        ["a\n", Location(offset=2, line=2, column=1)]
    )


def test_mark():
    p = string("a\n").then(string("bc").mark())
    assert parse(p, "a\nbc") == Success(
        Mark(
            start=Location(offset=2, line=2, column=1),
            value="bc",
            end=Location(offset=4, line=2, column=3),
        )
    )


def test_lookahead_does_not_consume():
    assert parse(seq(lookahead("a"), "a"), "a") == Success(["", "a"])

    reply = lookahead("a")("b", 0)
    assert not reply.status
    assert reply.expected == ("'a'",)


def test_not_followed_by():
    p = seq(not_followed_by("x"), any_char())
    assert parse(p, "y") == Success([None, "y"])

    reply = p("xy", 0)
    assert not reply.status
    assert reply.furthest == 0
    assert reply.expected == ("not 'x'",)


def test_traced_logs(caplog):
    caplog.set_level(logging.DEBUG, logger="parsnip.trace")
    assert parse(string("a").traced("letter"), "a") == Success("a")
    assert any("letter @ 0" in r.getMessage() for r in caplog.records)


###############################################################################
# Recursion
###############################################################################
def test_lazy_resolves_once():
    calls = 0

    def nested():
        nonlocal calls
        calls += 1
        return alt("x", p.between("(", ")"))

    p = lazy(nested)

    depth = 50
    source = "(" * depth + "x" + ")" * depth
    assert parse(p, source) == Success("x")
    assert parse(p, "x") == Success("x")
    assert calls == 1


def test_lazy_description():
    p = lazy(lambda: string("a"), "an a")
    assert p("b", 0).expected == ("an a",)
    assert parse(p, "a") == Success("a")


def test_lazy_cannot_resolve_to_itself():
    p = lazy(lambda: p)
    with pytest.raises(ValueError):
        p("", 0)


def test_lazy_logs_resolution(caplog):
    caplog.set_level(logging.DEBUG, logger="parsnip.lazy")
    parse(lazy(lambda: string("a")), "a")
    assert any(r.name == "parsnip.lazy" for r in caplog.records)


def test_ref_unbound_fails():
    r = Ref("thing")
    reply = r("abc", 1)
    assert not reply.status
    assert reply.furthest == 1
    assert reply.expected == ("thing",)
    assert not r.bound


def test_ref_bind():
    r = Ref()
    user = seq(r, "!")
    assert r.bind("a") is r
    assert r.bound
    assert parse(user, "a!") == Success(["a", "!"])


def test_ref_recursive():
    nested = Ref()
    nested.bind(alt(regex(r"[0-9]+").map(int), nested.sep_by(",").between("[", "]")))
    assert parse(nested, "[1,[2,3],[]]") == Success([1, [2, 3], []])


def test_ref_to_ref():
    a = Ref()
    b = Ref()
    a.bind(b)
    b.bind(string("x"))
    assert parse(a, "x") == Success("x")


def test_ref_bind_errors():
    r = Ref()
    with pytest.raises(ValueError):
        r.bind(r)
    with pytest.raises(TypeError):
        r.bind(42)  # type: ignore
    assert not r.bound

    r.bind("a")
    with pytest.raises(ValueError):
        r.bind("b")
    assert parse(r, "a") == Success("a")


def test_lazy_cannot_resolve_to_its_label():
    p = lazy(lambda: p, "myself")
    with pytest.raises(ValueError):
        p("", 0)


def test_ref_to_lazy_resolves_once():
    calls = 0

    def nested():
        nonlocal calls
        calls += 1
        return alt("x", r.between("[", "]"))

    r = Ref()
    r.bind(lazy(nested))

    depth = 50
    assert parse(r, "[" * depth + "x" + "]" * depth) == Success("x")
    assert parse(r, "[x]") == Success("x")
    assert calls == 1
