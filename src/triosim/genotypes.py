"""Genotype and nucleotide encoding.

Genotypes are ordered nucleotide pairs indexed lexicographically::

    INDEX  GENOTYPE        INDEX  GENOTYPE
    0      AA              8      GA
    1      AC              9      GC
    2      AG              10     GG
    3      AT              11     GT
    4      CA              12     TA
    5      CC              13     TC
    6      CG              14     TG
    7      CT              15     TT

All lookup tables are built once at import and are read-only.
"""

from __future__ import annotations

from typing import Tuple

import numpy as np

from .exceptions import InvalidParameterError

NUCLEOTIDES = ("A", "C", "G", "T")
NUCLEOTIDE_COUNT = 4
GENOTYPE_COUNT = 16
PARENT_PAIR_COUNT = GENOTYPE_COUNT * GENOTYPE_COUNT


def _frozen(array: np.ndarray) -> np.ndarray:
    array.setflags(write=False)
    return array


def _build_genotype_nucleotides() -> np.ndarray:
    table = np.zeros((GENOTYPE_COUNT, 2), dtype=np.int64)
    for genotype_idx in range(GENOTYPE_COUNT):
        table[genotype_idx] = divmod(genotype_idx, NUCLEOTIDE_COUNT)
    return table


def _build_two_parent_counts(genotype_nucleotides: np.ndarray) -> np.ndarray:
    single = np.zeros((GENOTYPE_COUNT, NUCLEOTIDE_COUNT), dtype=np.int64)
    for genotype_idx, alleles in enumerate(genotype_nucleotides):
        for allele in alleles:
            single[genotype_idx, allele] += 1
    # counts[m, f] = alleles of mother m plus alleles of father f
    return single[:, None, :] + single[None, :, :]


def _build_allele_differences(genotype_nucleotides: np.ndarray) -> np.ndarray:
    return (
        genotype_nucleotides[:, None, :] != genotype_nucleotides[None, :, :]
    ).sum(axis=2)


GENOTYPE_NUCLEOTIDES = _frozen(_build_genotype_nucleotides())
TWO_PARENT_COUNTS = _frozen(_build_two_parent_counts(GENOTYPE_NUCLEOTIDES))
ALLELE_DIFFERENCES = _frozen(_build_allele_differences(GENOTYPE_NUCLEOTIDES))
HOMOZYGOUS = _frozen(GENOTYPE_NUCLEOTIDES[:, 0] == GENOTYPE_NUCLEOTIDES[:, 1])


def _check_genotype(genotype_idx: int) -> int:
    if not 0 <= genotype_idx < GENOTYPE_COUNT:
        raise InvalidParameterError(
            f"genotype index must be in [0, {GENOTYPE_COUNT}), got {genotype_idx}",
            {"genotype_idx": genotype_idx},
        )
    return int(genotype_idx)


def _check_nucleotide(nucleotide_idx: int) -> int:
    if not 0 <= nucleotide_idx < NUCLEOTIDE_COUNT:
        raise InvalidParameterError(
            f"nucleotide index must be in [0, {NUCLEOTIDE_COUNT}), got {nucleotide_idx}",
            {"nucleotide_idx": nucleotide_idx},
        )
    return int(nucleotide_idx)


def genotype_to_nucleotides(genotype_idx: int) -> Tuple[int, int]:
    """Return the two nucleotide codes that make up a genotype."""
    first, second = GENOTYPE_NUCLEOTIDES[_check_genotype(genotype_idx)]
    return int(first), int(second)


def nucleotides_to_genotype(first: int, second: int) -> int:
    """Return the genotype index of an ordered nucleotide pair."""
    return _check_nucleotide(first) * NUCLEOTIDE_COUNT + _check_nucleotide(second)


def two_parent_nucleotide_counts() -> np.ndarray:
    """Nucleotide counts over the four alleles of every (mother, father) pair.

    Returns:
        Read-only array of shape (16, 16, 4); ``[m, f, k]`` is how many of
        the alleles of mother genotype ``m`` and father genotype ``f`` are
        nucleotide ``k``.
    """
    return TWO_PARENT_COUNTS


def genotype_label(genotype_idx: int) -> str:
    first, second = genotype_to_nucleotides(genotype_idx)
    return NUCLEOTIDES[first] + NUCLEOTIDES[second]


def is_homozygous(genotype_idx: int) -> bool:
    return bool(HOMOZYGOUS[_check_genotype(genotype_idx)])


def allele_differences(genotype1: int, genotype2: int) -> int:
    """Number of allele positions (0, 1 or 2) at which two genotypes differ."""
    return int(ALLELE_DIFFERENCES[_check_genotype(genotype1), _check_genotype(genotype2)])


def parent_pair_index(mother_genotype: int, father_genotype: int) -> int:
    return _check_genotype(mother_genotype) * GENOTYPE_COUNT + _check_genotype(father_genotype)


def split_parent_pair(parent_pair: int) -> Tuple[int, int]:
    """Inverse of :func:`parent_pair_index`: ``(mother, father)``."""
    if not 0 <= parent_pair < PARENT_PAIR_COUNT:
        raise InvalidParameterError(
            f"parent pair index must be in [0, {PARENT_PAIR_COUNT}), got {parent_pair}",
            {"parent_pair": parent_pair},
        )
    mother, father = divmod(int(parent_pair), GENOTYPE_COUNT)
    return mother, father
