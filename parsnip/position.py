"""Turn raw offsets into human positions for error reporting."""

import dataclasses


@dataclasses.dataclass(frozen=True)
class Location:
    """A position in a source string.

    `offset` is the 0-based character index; `line` and `column` are 1-based.
    """

    offset: int
    line: int
    column: int

    def __str__(self) -> str:
        return f"{self.line}:{self.column}"


def locate(stream: str, offset: int) -> Location:
    """Compute the `Location` of `offset` in `stream`.

    The line is one more than the number of newlines before the offset, and
    the column counts from the character after the last of those newlines.
    Offsets are allowed to point one past the end of the stream, since that is
    where end-of-input failures happen.
    """
    if offset < 0 or offset > len(stream):
        raise ValueError(f"Offset {offset} is outside of a stream of length {len(stream)}")

    line = stream.count("\n", 0, offset) + 1
    # rfind returns -1 on the first line, which makes the column come out right.
    column = offset - stream.rfind("\n", 0, offset)
    return Location(offset=offset, line=line, column=column)
