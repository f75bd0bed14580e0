"""E-step: expected mutation and sequencing-error counts for one site.

All expectations are taken over the posterior of the hidden genotypes given
the trio reads, obtained from one tree-peeling pass of the trio model
(any :class:`~triosim.trio_model.TrioParameters`).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import numpy as np

from .genotypes import (
    ALLELE_DIFFERENCES,
    GENOTYPE_COUNT,
    GENOTYPE_NUCLEOTIDES,
    HOMOZYGOUS,
    NUCLEOTIDE_COUNT,
)
from .reads import ReadData, TrioRead
from .trio_model import TrioParameters, parent_allele_indicator

# [genotype, nucleotide] is True when the nucleotide is one of the genotype's alleles
_ALLELE_MASK = np.zeros((GENOTYPE_COUNT, NUCLEOTIDE_COUNT), dtype=bool)
for _genotype_idx, _alleles in enumerate(GENOTYPE_NUCLEOTIDES):
    _ALLELE_MASK[_genotype_idx, _alleles] = True
_ALLELE_MASK.setflags(write=False)


@dataclass(frozen=True)
class SiteStatistics:
    """Expected counts contributed by one site."""

    e: float  # reads that match neither allele of the somatic genotype
    hom: float  # reads from homozygous somatic genotypes
    het: float  # reads from heterozygous somatic genotypes
    som: float  # somatic allele mutations over the three individuals
    germ: float  # germline allele mutations in the child


def mismatches(data: ReadData) -> np.ndarray:
    """Per somatic genotype, the number of reads matching neither of its alleles."""
    return (~_ALLELE_MASK).astype(np.float64) @ np.asarray(data, dtype=np.float64)


def homozygous_matches(data: ReadData) -> np.ndarray:
    """Per somatic genotype, the reads counted toward the homozygous statistic."""
    return np.where(HOMOZYGOUS, float(sum(data)), 0.0)


def heterozygous_matches(data: ReadData) -> np.ndarray:
    return np.where(HOMOZYGOUS, 0.0, float(sum(data)))


def expected_germline_mutations(params: TrioParameters) -> np.ndarray:
    """Expected mutated child alleles given child genotype and parent pair (16x256).

    For each transmitted allele, one minus the share of its probability that
    comes from an unmutated parental allele.
    """
    indicator = parent_allele_indicator()
    no_mutation = indicator * (1.0 - params.germline_mutation_rate)
    total = params.germline_single
    per_allele = np.divide(
        total - no_mutation,
        total,
        out=np.zeros_like(total),
        where=total > 0,
    )
    first = per_allele[GENOTYPE_NUCLEOTIDES[:, 0]]  # [child, mother]
    second = per_allele[GENOTYPE_NUCLEOTIDES[:, 1]]  # [child, father]
    counts = first[:, :, None] + second[:, None, :]
    return counts.reshape(GENOTYPE_COUNT, GENOTYPE_COUNT * GENOTYPE_COUNT)


def site_statistics(
    params: TrioParameters,
    trio_read: TrioRead,
    germline_counts: Optional[np.ndarray] = None,
) -> SiteStatistics:
    """Posterior expected counts for one trio site.

    Sites with zero likelihood under ``params`` produce NaN statistics,
    which the accumulator reports through ``is_nan``.
    """
    if germline_counts is None:
        germline_counts = expected_germline_mutations(params)

    peel = params.peel(trio_read)
    total = peel.total
    somatic = params.somatic_matrix

    pair_weights = (params.population_priors * peel.child_given_parents).reshape(
        GENOTYPE_COUNT, GENOTYPE_COUNT
    )
    outside = {
        "child": params.germline_matrix @ peel.parent_weights,
        "mother": pair_weights @ peel.father_zygotic,
        "father": pair_weights.T @ peel.mother_zygotic,
    }
    somatic_reads = {
        "child": (peel.child_reads, trio_read.child),
        "mother": (peel.mother_reads, trio_read.mother),
        "father": (peel.father_reads, trio_read.father),
    }

    e = hom = het = som = 0.0
    with np.errstate(divide="ignore", invalid="ignore"):
        for individual, (likelihoods, data) in somatic_reads.items():
            # P(zygotic g, somatic s | R)
            joint = outside[individual][:, None] * somatic * likelihoods[None, :] / total
            som += float(np.sum(joint * ALLELE_DIFFERENCES))
            posterior = joint.sum(axis=0)
            e += float(posterior @ mismatches(data))
            hom += float(posterior @ homozygous_matches(data))
            het += float(posterior @ heterozygous_matches(data))

        germline_joint = (
            params.germline_matrix * peel.child_zygotic[:, None] * peel.parent_weights[None, :] / total
        )
        germ = float(np.sum(germline_joint * germline_counts))

    return SiteStatistics(e=e, hom=hom, het=het, som=som, germ=germ)
