"""Trio mutation model parameters and mutation probability by tree peeling.

The simulator and the EM accumulator only depend on the
:class:`TrioParameters` protocol; :class:`TrioModel` is the concrete
implementation used by the command line and the tests.

Matrix conventions:

* ``population_priors[m*16 + f]`` is P(mother genotype m, father genotype f).
* ``germline_matrix[c, m*16 + f]`` is P(zygotic child genotype c | m, f),
  the Kronecker lift of the 4x16 per-parent matrix ``[allele, parent]``.
  Each column sums to 1.
* ``somatic_matrix[g, s]`` is P(somatic genotype s | zygotic genotype g),
  the Kronecker lift of the 4x4 per-allele matrix. Each row sums to 1.
* ``alphas[g]`` are the Dirichlet concentration parameters of the reads of an
  individual whose somatic genotype is g.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from typing import Optional, Protocol, Sequence

import numpy as np

from .exceptions import InternalConsistencyError, InvalidParameterError
from .genotypes import (
    GENOTYPE_COUNT,
    GENOTYPE_NUCLEOTIDES,
    NUCLEOTIDE_COUNT,
    PARENT_PAIR_COUNT,
    TWO_PARENT_COUNTS,
    genotype_to_nucleotides,
    split_parent_pair,
)
from .kronecker import self_kronecker, vector_kronecker
from .reads import ReadData, TrioRead
from .sampling import dirichlet_multinomial_log, dirichlet_multinomial_log_matrix

logger = logging.getLogger(__name__)

PRIOR_TOLERANCE = 1e-6


class TrioParameters(Protocol):
    """What the simulator and the EM accumulator need from a trio model.

    ``germline_single`` is the 4x16 per-parent allele matrix behind
    ``germline_matrix``; the E-step uses it with ``germline_mutation_rate``
    to count expected germline mutations, and ``peel`` to weight each site.
    """

    germline_mutation_rate: float
    population_priors: np.ndarray
    germline_single: np.ndarray
    germline_matrix: np.ndarray
    somatic_matrix: np.ndarray
    alphas: np.ndarray

    def germline_row(self, child_genotype: int, parent_pair: int) -> np.ndarray:
        ...

    def peel(self, trio_read: TrioRead, no_mutation: bool = False) -> TreePeel:
        ...

    def mutation_probability(self, trio_read: TrioRead) -> float:
        ...


def _frozen(array: np.ndarray) -> np.ndarray:
    array.setflags(write=False)
    return array


def check_rate(name: str, value: float) -> float:
    """Reject a mutation rate outside [0, 1]."""
    if (
        isinstance(value, bool)
        or not isinstance(value, (int, float, np.floating))
        or not 0.0 <= float(value) <= 1.0
    ):
        raise InvalidParameterError(f"{name} must be in [0, 1], got {value!r}", {name: value})
    return float(value)


def mutation_matrix(rate: float) -> np.ndarray:
    """4x4 per-allele mutation matrix: stay with ``1 - rate``, move to each other base with ``rate / 3``."""
    mat = np.full((NUCLEOTIDE_COUNT, NUCLEOTIDE_COUNT), rate / 3.0)
    np.fill_diagonal(mat, 1.0 - rate)
    return mat


def parent_allele_indicator() -> np.ndarray:
    """``[allele, parent genotype]`` = number of copies of allele in that genotype, halved."""
    indicator = np.zeros((NUCLEOTIDE_COUNT, GENOTYPE_COUNT))
    for genotype_idx, alleles in enumerate(GENOTYPE_NUCLEOTIDES):
        for allele in alleles:
            indicator[allele, genotype_idx] += 0.5
    return indicator


def sequencing_alphas(sequencing_error_rate: float, dispersion: float) -> np.ndarray:
    """Per-genotype Dirichlet alphas (16x4) for reads under sequencing error.

    A homozygous genotype produces its allele with frequency ``1 - e``; a
    heterozygous genotype produces each of its alleles with ``0.5 - e/3``;
    every other nucleotide has frequency ``e/3``.
    """
    frequencies = np.full((GENOTYPE_COUNT, NUCLEOTIDE_COUNT), sequencing_error_rate / 3.0)
    for genotype_idx, (first, second) in enumerate(GENOTYPE_NUCLEOTIDES):
        if first == second:
            frequencies[genotype_idx, first] = 1.0 - sequencing_error_rate
        else:
            frequencies[genotype_idx, [first, second]] = 0.5 - sequencing_error_rate / 3.0
    return frequencies * dispersion


@dataclass(frozen=True)
class TreePeel:
    """Intermediate vectors of one tree-peeling pass.

    Read likelihoods are rescaled per individual so their maximum is 1;
    ``log_scale`` holds the sum of the removed log factors.
    """

    child_reads: np.ndarray  # P(R_child | somatic genotype), rescaled
    mother_reads: np.ndarray
    father_reads: np.ndarray
    child_zygotic: np.ndarray  # P(R_child | zygotic genotype)
    mother_zygotic: np.ndarray
    father_zygotic: np.ndarray
    parent_weights: np.ndarray  # P(m, f) * P(R_mother | m) * P(R_father | f)
    child_given_parents: np.ndarray  # P(R_child | m, f)
    root: np.ndarray  # joint over the 256 parent pairs
    total: float  # P(R), rescaled
    log_scale: float

    @property
    def log_likelihood(self) -> float:
        with np.errstate(divide="ignore"):
            return float(np.log(self.total) + self.log_scale)


@dataclass(frozen=True)
class TrioModel:
    """Trio mutation model.

    Args:
        germline_mutation_rate: Per-allele germline mutation probability.
        somatic_mutation_rate: Per-allele somatic mutation probability.
        sequencing_error_rate: Probability a read reports a nucleotide absent
            from a homozygous genotype.
        dirichlet_dispersion: Total Dirichlet concentration of the reads.
        population_mutation_rate: Concentration (theta) of the parental
            allele Dirichlet-multinomial prior.
        nucleotide_frequencies: Population nucleotide frequencies (A, C, G, T).
        population_priors: Optional explicit 256-entry prior, replacing the
            one derived from ``population_mutation_rate``.
    """

    germline_mutation_rate: float
    somatic_mutation_rate: float
    sequencing_error_rate: float = 0.005
    dirichlet_dispersion: float = 1000.0
    population_mutation_rate: float = 0.001
    nucleotide_frequencies: Sequence[float] = (0.25, 0.25, 0.25, 0.25)
    population_priors: Optional[np.ndarray] = field(default=None, compare=False)

    germline_single: np.ndarray = field(init=False, repr=False, compare=False)
    germline_matrix: np.ndarray = field(init=False, repr=False, compare=False)
    germline_no_mutation_matrix: np.ndarray = field(init=False, repr=False, compare=False)
    germline_mutation_matrix: np.ndarray = field(init=False, repr=False, compare=False)
    somatic_single: np.ndarray = field(init=False, repr=False, compare=False)
    somatic_matrix: np.ndarray = field(init=False, repr=False, compare=False)
    alphas: np.ndarray = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        germline_rate = check_rate("germline_mutation_rate", self.germline_mutation_rate)
        somatic_rate = check_rate("somatic_mutation_rate", self.somatic_mutation_rate)
        if not 0.0 < self.sequencing_error_rate < 1.0:
            raise InvalidParameterError(
                f"sequencing_error_rate must be in (0, 1), got {self.sequencing_error_rate}",
                {"sequencing_error_rate": self.sequencing_error_rate},
            )
        if self.dirichlet_dispersion <= 0:
            raise InvalidParameterError("dirichlet_dispersion must be positive")

        priors = self._checked_priors()
        set_attr = object.__setattr__
        set_attr(self, "population_priors", _frozen(priors))

        indicator = parent_allele_indicator()
        germline_step = mutation_matrix(germline_rate)
        # [allele, parent] = sum over transmitted parental allele a of 1/2 * M[a, allele]
        germline_single = germline_step.T @ indicator
        set_attr(self, "germline_single", _frozen(germline_single))
        set_attr(self, "germline_matrix", _frozen(self_kronecker(germline_single)))
        set_attr(
            self,
            "germline_no_mutation_matrix",
            _frozen(self_kronecker(indicator * (1.0 - germline_rate))),
        )
        set_attr(self, "germline_mutation_matrix", _frozen(self_kronecker(germline_step)))

        somatic_single = mutation_matrix(somatic_rate)
        set_attr(self, "somatic_single", _frozen(somatic_single))
        set_attr(self, "somatic_matrix", _frozen(self_kronecker(somatic_single)))
        set_attr(
            self,
            "alphas",
            _frozen(sequencing_alphas(self.sequencing_error_rate, self.dirichlet_dispersion)),
        )

    def _checked_priors(self) -> np.ndarray:
        if self.population_priors is None:
            return population_priors(self.population_mutation_rate, self.nucleotide_frequencies)

        priors = np.array(self.population_priors, dtype=np.float64).ravel()
        if priors.size != PARENT_PAIR_COUNT:
            raise InvalidParameterError(
                f"population priors need {PARENT_PAIR_COUNT} entries, got {priors.size}"
            )
        if not np.all(np.isfinite(priors)) or np.any(priors < 0):
            raise InvalidParameterError("population priors must be finite and non-negative")
        total = priors.sum()
        if total <= 0 or abs(total - 1.0) > PRIOR_TOLERANCE:
            raise InvalidParameterError(
                f"population priors must sum to 1, got {total}", {"sum": float(total)}
            )
        return priors

    def with_rates(
        self,
        germline_mutation_rate: Optional[float] = None,
        somatic_mutation_rate: Optional[float] = None,
        sequencing_error_rate: Optional[float] = None,
    ) -> "TrioModel":
        """Copy of the model with some rates replaced."""
        return replace(
            self,
            germline_mutation_rate=(
                self.germline_mutation_rate if germline_mutation_rate is None else germline_mutation_rate
            ),
            somatic_mutation_rate=(
                self.somatic_mutation_rate if somatic_mutation_rate is None else somatic_mutation_rate
            ),
            sequencing_error_rate=(
                self.sequencing_error_rate if sequencing_error_rate is None else sequencing_error_rate
            ),
        )

    def germline_row(self, child_genotype: int, parent_pair: int) -> np.ndarray:
        """Distribution of the post-germline child genotype.

        ``child_genotype`` is the genotype transmitted from the parent pair
        before mutation: its first allele from the mother, its second from
        the father. A child the pair cannot transmit is an internal error.
        """
        mother, father = split_parent_pair(parent_pair)
        first, second = genotype_to_nucleotides(child_genotype)
        if first not in GENOTYPE_NUCLEOTIDES[mother] or second not in GENOTYPE_NUCLEOTIDES[father]:
            raise InternalConsistencyError(
                "child genotype cannot be transmitted by parent pair",
                {"child_genotype": child_genotype, "mother": mother, "father": father},
            )
        return self.germline_mutation_matrix[child_genotype]

    def read_likelihoods(self, data: ReadData) -> tuple:
        """Rescaled P(reads | somatic genotype) for the 16 genotypes and the log scale removed."""
        log_likelihoods = dirichlet_multinomial_log_matrix(self.alphas, data)
        log_max = float(log_likelihoods.max())
        return np.exp(log_likelihoods - log_max), log_max

    def peel(self, trio_read: TrioRead, no_mutation: bool = False) -> TreePeel:
        """Sum the pedigree out from the leaves (reads) to the root (parents).

        With ``no_mutation`` only paths without any germline or somatic
        mutation contribute.
        """
        child_reads, child_scale = self.read_likelihoods(trio_read.child)
        mother_reads, mother_scale = self.read_likelihoods(trio_read.mother)
        father_reads, father_scale = self.read_likelihoods(trio_read.father)

        if no_mutation:
            somatic = np.diag(np.diag(self.somatic_matrix))
            germline = self.germline_no_mutation_matrix
        else:
            somatic = self.somatic_matrix
            germline = self.germline_matrix

        child_zygotic = somatic @ child_reads
        mother_zygotic = somatic @ mother_reads
        father_zygotic = somatic @ father_reads

        parent_weights = self.population_priors * vector_kronecker(mother_zygotic, father_zygotic)
        child_given_parents = germline.T @ child_zygotic
        root = parent_weights * child_given_parents

        return TreePeel(
            child_reads=child_reads,
            mother_reads=mother_reads,
            father_reads=father_reads,
            child_zygotic=child_zygotic,
            mother_zygotic=mother_zygotic,
            father_zygotic=father_zygotic,
            parent_weights=parent_weights,
            child_given_parents=child_given_parents,
            root=root,
            total=float(root.sum()),
            log_scale=child_scale + mother_scale + father_scale,
        )

    def mutation_probability(self, trio_read: TrioRead) -> float:
        """P(at least one germline or somatic mutation | reads).

        Returns NaN when the reads have zero likelihood under the model.
        """
        total = self.peel(trio_read).total
        no_mutation_total = self.peel(trio_read, no_mutation=True).total
        if total <= 0:
            logger.debug("Zero likelihood for trio %s", tuple(trio_read))
            return float("nan")
        return float(np.clip(1.0 - no_mutation_total / total, 0.0, 1.0))


def population_priors(
    population_mutation_rate: float,
    nucleotide_frequencies: Sequence[float] = (0.25, 0.25, 0.25, 0.25),
) -> np.ndarray:
    """Population priors over the 256 ordered parent pairs.

    The four parental alleles are drawn from a Dirichlet-multinomial with
    concentration ``population_mutation_rate * nucleotide_frequencies``; each
    ordered pair gets the probability of its allele sequence.
    """
    frequencies = np.asarray(nucleotide_frequencies, dtype=np.float64)
    if frequencies.size != NUCLEOTIDE_COUNT or np.any(frequencies <= 0):
        raise InvalidParameterError("nucleotide frequencies must be 4 positive values")
    if abs(frequencies.sum() - 1.0) > PRIOR_TOLERANCE:
        raise InvalidParameterError("nucleotide frequencies must sum to 1")
    if population_mutation_rate <= 0:
        raise InvalidParameterError("population_mutation_rate must be positive")

    alpha = frequencies * population_mutation_rate
    priors = np.empty(PARENT_PAIR_COUNT)
    for mother in range(GENOTYPE_COUNT):
        for father in range(GENOTYPE_COUNT):
            counts = TWO_PARENT_COUNTS[mother, father]
            priors[mother * GENOTYPE_COUNT + father] = np.exp(dirichlet_multinomial_log(alpha, counts))
    return priors


def concentrated_priors(mother_genotype: int, father_genotype: int) -> np.ndarray:
    """Priors placing all mass on a single (mother, father) pair."""
    priors = np.zeros(PARENT_PAIR_COUNT)
    priors[mother_genotype * GENOTYPE_COUNT + father_genotype] = 1.0
    return priors
