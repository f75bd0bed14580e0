"""Enumeration of read-count vectors and canonical trio indexing.

Read-count vectors at a coverage are the compositions of the coverage into
four non-negative parts, generated iteratively in a fixed order (A count
descending, then C, then G). Trios are the Cartesian cube of that sequence in
(child, mother, father) order, which defines the canonical trio index.
"""

from __future__ import annotations

import itertools
from functools import lru_cache
from math import comb
from typing import Dict, Iterator, List

from .exceptions import InternalConsistencyError, InvalidParameterError
from .reads import ReadData, TrioRead, TrioVector, check_coverage

CANONICAL_COVERAGE = 4
READ_COUNT_TOTAL = comb(CANONICAL_COVERAGE + 3, 3)
TRIO_COUNT = READ_COUNT_TOTAL ** 3


def read_count_total(coverage: int) -> int:
    """Number of distinct read-count vectors at ``coverage``: C(coverage + 3, 3)."""
    return comb(check_coverage(coverage) + 3, 3)


def iter_read_counts(coverage: int) -> Iterator[ReadData]:
    """Lazily yield every 4-part composition of ``coverage`` exactly once."""
    coverage = check_coverage(coverage)
    for a in range(coverage, -1, -1):
        for c in range(coverage - a, -1, -1):
            for g in range(coverage - a - c, -1, -1):
                yield ReadData(a, c, g, coverage - a - c - g)


def enumerate_read_counts(coverage: int) -> List[ReadData]:
    return list(iter_read_counts(coverage))


def iter_trios(coverage: int) -> Iterator[TrioRead]:
    read_counts = enumerate_read_counts(coverage)
    for child, mother, father in itertools.product(read_counts, repeat=3):
        yield TrioRead(child, mother, father)


def enumerate_trios(coverage: int) -> TrioVector:
    """Every trio of read-count vectors at ``coverage`` in canonical order."""
    return list(iter_trios(coverage))


class TrioIndex:
    """Hashed position lookup over the canonical trio enumeration at one coverage.

    The index is computed arithmetically from per-individual positions, so
    the ``read_count_total ** 3`` trios are never materialized.
    """

    def __init__(self, coverage: int) -> None:
        self.coverage = check_coverage(coverage)
        self.read_counts = enumerate_read_counts(coverage)
        self._positions: Dict[ReadData, int] = {
            data: position for position, data in enumerate(self.read_counts)
        }
        self.read_count_total = len(self.read_counts)

    def __len__(self) -> int:
        return self.read_count_total ** 3

    def __contains__(self, trio_read: TrioRead) -> bool:
        return all(data in self._positions for data in trio_read)

    def position_of(self, data: ReadData) -> int:
        """Position of one read-count vector in the enumeration."""
        try:
            return self._positions[ReadData(*data)]
        except (KeyError, TypeError) as exc:
            raise InternalConsistencyError(
                f"read data {tuple(data)} is not a coverage-{self.coverage} read-count vector",
                {"read_data": tuple(data), "coverage": self.coverage},
            ) from exc

    def index_of(self, trio_read: TrioRead) -> int:
        """Canonical index of a trio; a trio at another coverage is an error."""
        child, mother, father = (self.position_of(data) for data in trio_read)
        size = self.read_count_total
        return (child * size + mother) * size + father

    def trio_at(self, index: int) -> TrioRead:
        if not 0 <= index < len(self):
            raise InvalidParameterError(f"trio index {index} out of range [0, {len(self)})")
        size = self.read_count_total
        rest, father = divmod(index, size)
        child, mother = divmod(rest, size)
        return TrioRead(self.read_counts[child], self.read_counts[mother], self.read_counts[father])


@lru_cache(maxsize=None)
def trio_index(coverage: int = CANONICAL_COVERAGE) -> TrioIndex:
    """Shared, lazily built :class:`TrioIndex` for a coverage."""
    return TrioIndex(coverage)


def index_of(trio_read: TrioRead) -> int:
    """Index of a trio in the canonical coverage-4 enumeration."""
    return trio_index(CANONICAL_COVERAGE).index_of(trio_read)
