"""Monte Carlo trio simulation.

Each site draws a parent pair from the population priors, transmits one
random allele from each parent to the child, applies germline mutation to the
child and somatic mutation to all three individuals, then samples reads from
the Dirichlet-multinomial. The ground-truth mutation flag and the model's
predicted mutation probability are written side by side so the model can be
validated against simulation.
"""

from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, List, NamedTuple, Optional, Tuple

import numpy as np
import pandas as pd

from .enumeration import CANONICAL_COVERAGE, TrioIndex, trio_index
from .exceptions import InternalConsistencyError, InvalidParameterError
from .genotypes import (
    GENOTYPE_COUNT,
    genotype_to_nucleotides,
    nucleotides_to_genotype,
    parent_pair_index,
)
from .logging_config import time_it
from .reads import TrioRead, TrioVector, check_coverage
from .rng import RandomStream
from .sampling import sample_reads, weighted_choice
from .trio_model import TrioParameters

logger = logging.getLogger(__name__)

PROBABILITY_FORMAT = "%.10f"


class TrioGenotypes(NamedTuple):
    """Genotype indices of one simulated site."""

    mother: int
    father: int
    child_zygotic: int  # before germline mutation
    child_germline: int
    child_somatic: int
    mother_somatic: int
    father_somatic: int


@dataclass(frozen=True)
class SimulatedSite:
    """One simulated site."""

    trio_read: TrioRead
    has_mutation: bool
    genotypes: TrioGenotypes
    probability: Optional[float] = None


class TrioSimulator:
    """Simulates trio sites from a trio model.

    Args:
        params: Model supplying priors, mutation matrices and alphas.
        coverage: Reads per individual per site.
        stream: Random stream owned by this simulator.
    """

    def __init__(self, params: TrioParameters, coverage: int, stream: RandomStream) -> None:
        self.params = params
        self.coverage = check_coverage(coverage)
        self.stream = stream
        self.has_mutation = False

    def _mutate(self, genotype_idx: int, weights: np.ndarray) -> int:
        mutated = weighted_choice(weights, self.stream)
        if mutated != genotype_idx:
            self.has_mutation = True
        return mutated

    def child_genotype(self, mother_genotype: int, father_genotype: int) -> int:
        """Transmit one random allele from each parent."""
        mother_allele = genotype_to_nucleotides(mother_genotype)[self.stream.integers(2)]
        father_allele = genotype_to_nucleotides(father_genotype)[self.stream.integers(2)]
        try:
            return nucleotides_to_genotype(mother_allele, father_allele)
        except InvalidParameterError as exc:
            raise InternalConsistencyError(
                "transmitted alleles map to no genotype",
                {"mother_allele": mother_allele, "father_allele": father_allele},
            ) from exc

    def germline_mutation(self, child_genotype: int, mother_genotype: int, father_genotype: int) -> int:
        parent_pair = parent_pair_index(mother_genotype, father_genotype)
        return self._mutate(child_genotype, self.params.germline_row(child_genotype, parent_pair))

    def somatic_mutation(self, genotype_idx: int) -> int:
        return self._mutate(genotype_idx, self.params.somatic_matrix[genotype_idx])

    def reads(self, genotype_idx: int):
        return sample_reads(self.params.alphas[genotype_idx], self.coverage, self.stream)

    def simulate_site(self, with_probability: bool = False) -> SimulatedSite:
        """Simulate one site; ``has_mutation`` is reset first."""
        self.has_mutation = False

        parent_pair = weighted_choice(self.params.population_priors, self.stream)
        mother, father = divmod(parent_pair, GENOTYPE_COUNT)
        child = self.child_genotype(mother, father)

        child_germline = self.germline_mutation(child, mother, father)
        child_somatic = self.somatic_mutation(child_germline)
        mother_somatic = self.somatic_mutation(mother)
        father_somatic = self.somatic_mutation(father)

        trio_read = TrioRead(
            self.reads(child_somatic),
            self.reads(mother_somatic),
            self.reads(father_somatic),
        )
        probability = None
        if with_probability:
            probability = self.params.mutation_probability(trio_read)

        return SimulatedSite(
            trio_read=trio_read,
            has_mutation=self.has_mutation,
            genotypes=TrioGenotypes(
                mother, father, child, child_germline, child_somatic, mother_somatic, father_somatic
            ),
            probability=probability,
        )

    def simulate(self, n_sites: int, with_probability: bool = False) -> Iterator[SimulatedSite]:
        if n_sites < 0:
            raise InvalidParameterError(f"n_sites must be non-negative, got {n_sites}")
        for _ in range(n_sites):
            yield self.simulate_site(with_probability=with_probability)

    def simulate_batch(self, n_sites: int) -> List[SimulatedSite]:
        return list(self.simulate(n_sites))

    def random_trios(self, n_sites: int) -> TrioVector:
        """Trio reads of ``n_sites`` simulated sites, e.g. as an EM batch."""
        return [site.trio_read for site in self.simulate(n_sites)]

    @time_it("simulate probabilities")
    def probability_table(self, n_sites: int) -> pd.DataFrame:
        """Predicted mutation probability and ground-truth flag per site."""
        rows = [
            (site.probability, int(site.has_mutation))
            for site in self.simulate(n_sites, with_probability=True)
        ]
        return pd.DataFrame(rows, columns=["probability", "has_mutation"])

    def write_probabilities(self, path: str | Path, n_sites: int) -> Path:
        """Write ``<probability>\\t<0|1>`` per simulated site."""
        path = Path(path)
        table = self.probability_table(n_sites)
        table.to_csv(path, sep="\t", header=False, index=False, float_format=PROBABILITY_FORMAT)
        logger.info(
            "Wrote %d sites (%d with mutation) to %s",
            len(table),
            int(table["has_mutation"].sum()),
            path,
        )
        return path

    def mutation_counts(self, n_sites: int, index: Optional[TrioIndex] = None) -> pd.DataFrame:
        """Count mutated and non-mutated sites per canonical trio index.

        Requires the simulator coverage to match the index coverage.
        """
        index = index or trio_index(CANONICAL_COVERAGE)
        if index.coverage != self.coverage:
            raise InvalidParameterError(
                f"mutation counts need coverage {index.coverage}, simulator uses {self.coverage}"
            )
        tally: Counter[Tuple[int, bool]] = Counter(
            (index.index_of(site.trio_read), site.has_mutation) for site in self.simulate(n_sites)
        )
        indices = sorted({trio_idx for trio_idx, _ in tally})
        return pd.DataFrame(
            {
                "trio_index": indices,
                "has_mutation": [tally[(trio_idx, True)] for trio_idx in indices],
                "no_mutation": [tally[(trio_idx, False)] for trio_idx in indices],
            }
        )

    def write_mutation_counts(self, path: str | Path, n_sites: int) -> Path:
        """Write ``<trio index>\\t<mutated sites>\\t<non-mutated sites>`` per observed trio."""
        path = Path(path)
        counts = self.mutation_counts(n_sites)
        counts.to_csv(path, sep="\t", header=False, index=False)
        logger.info("Wrote mutation counts for %d distinct trios to %s", len(counts), path)
        return path
