"""Read-count data types."""

from __future__ import annotations

from numbers import Integral
from typing import Iterable, List, NamedTuple

from .exceptions import InvalidParameterError


def check_coverage(coverage: int) -> int:
    """Reject anything but a non-negative integer read count (bools included)."""
    if isinstance(coverage, bool) or not isinstance(coverage, Integral) or coverage < 0:
        raise InvalidParameterError(
            f"coverage must be a non-negative integer, got {coverage!r}", {"coverage": coverage}
        )
    return int(coverage)


class ReadData(NamedTuple):
    """Counts of A, C, G and T reads for one individual at one site."""

    a: int = 0
    c: int = 0
    g: int = 0
    t: int = 0

    @classmethod
    def from_counts(cls, counts: Iterable[int]) -> "ReadData":
        values = [int(value) for value in counts]
        if len(values) != 4:
            raise InvalidParameterError(
                f"read counts need exactly 4 values, got {len(values)}",
                {"counts": values},
            )
        if any(value < 0 for value in values):
            raise InvalidParameterError("read counts must be non-negative", {"counts": values})
        return cls(*values)

    @property
    def coverage(self) -> int:
        return self.a + self.c + self.g + self.t

    def __str__(self) -> str:
        return " ".join(str(count) for count in self)


class TrioRead(NamedTuple):
    """Reads for the (child, mother, father) trio at one site."""

    child: ReadData
    mother: ReadData
    father: ReadData

    @classmethod
    def from_counts(cls, child: Iterable[int], mother: Iterable[int], father: Iterable[int]) -> "TrioRead":
        return cls(ReadData.from_counts(child), ReadData.from_counts(mother), ReadData.from_counts(father))

    def __str__(self) -> str:
        return "\n".join(str(data) for data in self)


TrioVector = List[TrioRead]
