"""Sufficient statistics for the EM re-estimation of mutation and error rates.

The E-step accumulates expected counts over a batch of trio sites; the
M-step turns them into closed-form rate estimates. Accumulation is a plain
sum, so a batch can be split into shards, accumulated independently and
merged.
"""

from __future__ import annotations

import logging
import math
from dataclasses import asdict, dataclass, fields
from typing import Dict, Iterable

from .em import expected_germline_mutations, site_statistics
from .exceptions import InsufficientDataError
from .reads import TrioRead
from .trio_model import TrioParameters

logger = logging.getLogger(__name__)

GERMLINE_ALLELES_PER_SITE = 2  # two transmitted alleles in the child
SOMATIC_ALLELES_PER_SITE = 6  # two alleles in each of three individuals
HETEROZYGOUS_ERROR_WEIGHT = 2.0 / 3.0  # mismatch probability at a heterozygote, relative to the error rate


@dataclass
class SufficientStatistics:
    """Running E-step totals.

    Attributes:
        e: Expected reads matching neither allele of the somatic genotype.
        hom: Expected reads from homozygous somatic genotypes.
        het: Expected reads from heterozygous somatic genotypes.
        som: Expected somatic allele mutations.
        germ: Expected germline allele mutations (mother and father transmissions).
        n_s: Number of sites.
    """

    e: float = 0.0
    hom: float = 0.0
    het: float = 0.0
    som: float = 0.0
    germ: float = 0.0
    n_s: float = 0.0

    def update(self, params: TrioParameters, sites: Iterable[TrioRead]) -> "SufficientStatistics":
        """Add the expected counts of every site in ``sites``."""
        germline_counts = expected_germline_mutations(params)
        n_sites = 0
        for trio_read in sites:
            site = site_statistics(params, trio_read, germline_counts)
            self.e += site.e
            self.hom += site.hom
            self.het += site.het
            self.som += site.som
            self.germ += site.germ
            n_sites += 1
        self.n_s += n_sites
        logger.debug("Accumulated %d sites (total %d)", n_sites, self.n_s)
        return self

    def clear(self) -> None:
        for stat in fields(self):
            setattr(self, stat.name, 0.0)

    def merge(self, other: "SufficientStatistics") -> "SufficientStatistics":
        """Add another shard's totals into this one."""
        for stat in fields(self):
            setattr(self, stat.name, getattr(self, stat.name) + getattr(other, stat.name))
        return self

    def __add__(self, other: "SufficientStatistics") -> "SufficientStatistics":
        return SufficientStatistics(**asdict(self)).merge(other)

    def _require_sites(self) -> None:
        if self.n_s <= 0:
            raise InsufficientDataError(
                "no sites accumulated; call update() before maximizing",
                {"n_s": self.n_s},
            )

    def max_germline_mutation_rate(self) -> float:
        self._require_sites()
        return self.germ / (GERMLINE_ALLELES_PER_SITE * self.n_s)

    def max_somatic_mutation_rate(self) -> float:
        self._require_sites()
        return self.som / (SOMATIC_ALLELES_PER_SITE * self.n_s)

    def max_sequencing_error_rate(self) -> float:
        self._require_sites()
        denominator = self.hom + HETEROZYGOUS_ERROR_WEIGHT * self.het
        if denominator <= 0:
            raise InsufficientDataError(
                "no reads accumulated; sequencing error rate is undefined",
                {"hom": self.hom, "het": self.het},
            )
        return self.e / denominator

    def is_nan(self) -> bool:
        return any(math.isnan(getattr(self, stat.name)) for stat in fields(self))

    def to_dict(self) -> Dict[str, float]:
        return asdict(self)

    def __str__(self) -> str:
        return "\t".join(f"{name}={value:.6g}" for name, value in self.to_dict().items())
