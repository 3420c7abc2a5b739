from hypothesis import given
from hypothesis.strategies import integers, lists, text

from parsnip.result import Reply, make_failure, make_success, merge, union_expected


def test_make_success():
    reply = make_success(3, "x")
    assert reply == Reply(status=True, index=3, value="x", furthest=-1, expected=())


def test_make_failure():
    reply = make_failure(4, "'a'")
    assert reply == Reply(status=False, index=-1, value=None, furthest=4, expected=("'a'",))


def test_merge_without_previous():
    current = make_failure(2, "'a'")
    assert merge(current) is current
    assert merge(current, None) is current


def test_merge_current_further():
    current = make_failure(5, "'b'")
    previous = make_failure(2, "'a'")
    assert merge(current, previous) is current


def test_merge_previous_further_keeps_outcome():
    current = make_success(3, "value")
    previous = make_failure(7, "'a'")

    merged = merge(current, previous)
    assert merged.status
    assert merged.index == 3
    assert merged.value == "value"
    assert merged.furthest == 7
    assert merged.expected == ("'a'",)


def test_merge_equal_unions_expected():
    current = make_failure(1, "'b'")
    previous = make_failure(1, "'a'")

    merged = merge(current, previous)
    assert not merged.status
    assert merged.furthest == 1
    assert merged.expected == ("'a'", "'b'")


def test_merge_equal_deduplicates():
    merged = merge(make_failure(1, "'a'"), make_failure(1, "'a'"))
    assert merged.expected == ("'a'",)


def test_merge_two_successes():
    merged = merge(make_success(4, 1), make_success(2, 0))
    assert merged == make_success(4, 1)


def test_union_is_case_insensitive():
    assert union_expected(["b", "C"], ["a", "B"]) == ("a", "B", "b", "C")
    assert union_expected(["Zeta", "alpha"], []) == ("alpha", "Zeta")


@given(lists(text()), lists(text()))
def test_union_sorted_and_unique(left, right):
    result = union_expected(left, right)
    assert set(result) == set(left) | set(right)
    assert len(result) == len(set(result))
    assert [label.lower() for label in result] == sorted(label.lower() for label in result)


@given(integers(min_value=-1, max_value=20), integers(min_value=-1, max_value=20))
def test_merge_furthest_is_max(a, b):
    current = Reply(status=False, index=-1, value=None, furthest=a, expected=("x",))
    previous = Reply(status=False, index=-1, value=None, furthest=b, expected=("y",))
    assert merge(current, previous).furthest == max(a, b)
