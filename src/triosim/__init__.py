"""triosim: trio mutation simulator and EM rate estimator."""

from __future__ import annotations

__version__ = "0.1.0"

# Model
from .genotypes import genotype_to_nucleotides, nucleotides_to_genotype, two_parent_nucleotide_counts
from .kronecker import self_kronecker
from .reads import ReadData, TrioRead, TrioVector
from .trio_model import TrioModel, TrioParameters, population_priors

# Simulation and enumeration
from .rng import RandomState, choose_rng
from .sampling import sample_reads, weighted_choice
from .simulation import SimulatedSite, TrioSimulator
from .enumeration import TrioIndex, enumerate_read_counts, enumerate_trios, index_of

# Estimation
from .sufficient_statistics import SufficientStatistics
from .estimation import EMResult, estimate_rates

# Configuration
from .config import RunConfig, load_config, dump_config

__all__ = [
    "__version__",
    # Model
    "genotype_to_nucleotides",
    "nucleotides_to_genotype",
    "two_parent_nucleotide_counts",
    "self_kronecker",
    "ReadData",
    "TrioRead",
    "TrioVector",
    "TrioModel",
    "TrioParameters",
    "population_priors",
    # Simulation and enumeration
    "RandomState",
    "choose_rng",
    "sample_reads",
    "weighted_choice",
    "SimulatedSite",
    "TrioSimulator",
    "TrioIndex",
    "enumerate_read_counts",
    "enumerate_trios",
    "index_of",
    # Estimation
    "SufficientStatistics",
    "EMResult",
    "estimate_rates",
    # Configuration
    "RunConfig",
    "load_config",
    "dump_config",
]
