"""The reply that every parser returns, and the rule for merging replies.

Every parser call produces a `Reply`. Besides success/failure it tracks the
*furthest* offset any attempt reached and what was expected there, so that
after a pile of discarded backtracking branches we can still say something
precise about where the input went wrong.
"""

import dataclasses
import typing


@dataclasses.dataclass(frozen=True)
class Reply[T]:
    status: bool
    index: int
    value: T | None
    furthest: int
    expected: typing.Tuple[str, ...]


def make_success[T](index: int, value: T) -> Reply[T]:
    """A success that ends at `index`. No failure is recorded (furthest is -1)."""
    return Reply(status=True, index=index, value=value, furthest=-1, expected=())


def make_failure(index: int, expected: str) -> Reply[typing.Any]:
    """A failure at `index`, expecting the one thing described by `expected`."""
    return Reply(status=False, index=-1, value=None, furthest=index, expected=(expected,))


def union_expected(
    left: typing.Iterable[str], right: typing.Iterable[str]
) -> typing.Tuple[str, ...]:
    """Merge two sets of labels, sorted without regard to case.

    Labels that only differ by case are ordered by plain string comparison so
    the result never depends on input order.
    """
    labels = set(left)
    labels.update(right)
    return tuple(sorted(labels, key=lambda label: (label.lower(), label)))


def merge[T](current: Reply[T], previous: Reply[typing.Any] | None = None) -> Reply[T]:
    """Combine the reply of the parser we just ran with the reply of whatever
    ran before it (an earlier alternative, an earlier element in a sequence,
    an earlier iteration...).

    The outcome (status, index, value) always comes from `current`. The
    failure information comes from whichever side got further; if both got
    equally far, their expectations are unioned.
    """
    if previous is None:
        return current

    if current.furthest > previous.furthest:
        return current

    if current.furthest == previous.furthest:
        expected = union_expected(current.expected, previous.expected)
    else:
        expected = previous.expected

    return Reply(
        status=current.status,
        index=current.index,
        value=current.value,
        furthest=previous.furthest,
        expected=expected,
    )
