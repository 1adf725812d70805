from __future__ import annotations

import re
from dataclasses import dataclass
from functools import total_ordering
from typing import Iterable, Sequence

__all__ = [
    "Segment",
    "NaturalKey",
    "decompose",
    "compare",
    "natural_sort",
    "natural_sorted",
]

# Only ASCII digits form numeric runs; other Unicode digits stay textual.
_RUN_PATTERN = re.compile(r"(?P<number>[0-9]+)|(?P<text>[^0-9]+)")


@dataclass(frozen=True, slots=True)
class Segment:
    """A maximal run of either ASCII digits or non-digits."""

    text: str
    numeric: bool = False

    @property
    def digits(self) -> str:
        """Digit run without leading zeros ("" for zero)."""
        return self.text.lstrip("0") if self.numeric else ""

    @property
    def magnitude(self) -> int | None:
        if not self.numeric:
            return None
        return int(self.digits or "0")


def decompose(value: str) -> tuple[Segment, ...]:
    return tuple(
        Segment(match.group(0), match.lastgroup == "number")
        for match in _RUN_PATTERN.finditer(value)
    )


def _compare_magnitudes(lhs: Segment, rhs: Segment) -> int:
    # Leading zeros are gone, so a longer run is always the larger number.
    left, right = lhs.digits, rhs.digits
    if len(left) != len(right):
        return -1 if len(left) < len(right) else 1
    if left != right:
        return -1 if left < right else 1
    return 0


def _compare_segments(lhs: Sequence[Segment], rhs: Sequence[Segment]) -> int:
    """
    Merge two segment streams character by character.

    Each side keeps a cursor (segment index + offset inside that segment).
    Whenever both cursors sit at the start of a numeric segment the runs are
    compared by magnitude and, when equal, skipped whole. Everywhere else the
    characters are compared by code point, and a side whose segment is used
    up advances to its next segment independently of the other side.
    """
    li = ri = 0
    lo = ro = 0
    while True:
        if lo == 0 and ro == 0 and li < len(lhs) and ri < len(rhs):
            if lhs[li].numeric and rhs[ri].numeric:
                order = _compare_magnitudes(lhs[li], rhs[ri])
                if order:
                    return order
                li += 1
                ri += 1
                continue
        if li < len(lhs) and lo >= len(lhs[li].text):
            li += 1
            lo = 0
            continue
        if ri < len(rhs) and ro >= len(rhs[ri].text):
            ri += 1
            ro = 0
            continue
        left_done = li >= len(lhs)
        right_done = ri >= len(rhs)
        if left_done or right_done:
            if left_done and right_done:
                return 0
            return -1 if left_done else 1
        lc = lhs[li].text[lo]
        rc = rhs[ri].text[ro]
        if lc != rc:
            return -1 if lc < rc else 1
        lo += 1
        ro += 1


@total_ordering
class NaturalKey:
    """
    Sort key ordering strings naturally ("2" < "10", "007" == "7").

    Keys compare equal exactly when their text runs match and their digit
    runs share magnitudes, so hashing the canonical form is consistent
    with ``==``.
    """

    __slots__ = ("value", "segments")

    def __init__(self, value: str) -> None:
        self.value = value
        self.segments = decompose(value)

    def __repr__(self) -> str:
        return f"NaturalKey({self.value!r})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, NaturalKey):
            return NotImplemented
        return _compare_segments(self.segments, other.segments) == 0

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, NaturalKey):
            return NotImplemented
        return _compare_segments(self.segments, other.segments) < 0

    def __hash__(self) -> int:
        return hash(
            tuple((segment.digits, True) if segment.numeric else (segment.text, False) for segment in self.segments)
        )


def compare(lhs: str, rhs: str) -> int:
    """Return -1, 0 or 1 as ``lhs`` sorts before, with, or after ``rhs``."""
    return _compare_segments(decompose(lhs), decompose(rhs))


def natural_sort(values: Iterable[str]) -> list[int]:
    """Return the stable permutation of indices that orders ``values`` naturally."""
    keys = [NaturalKey(value) for value in values]
    return sorted(range(len(keys)), key=keys.__getitem__)


def natural_sorted(values: Iterable[str]) -> list[str]:
    items = list(values)
    return [items[index] for index in natural_sort(items)]
