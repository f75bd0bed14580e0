"""Outer EM loop re-estimating germline, somatic and sequencing error rates."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Sequence

from .exceptions import InsufficientDataError, NumericalDegeneracyError
from .logging_config import time_it
from .reads import TrioRead
from .sufficient_statistics import SufficientStatistics
from .trio_model import TrioModel

logger = logging.getLogger(__name__)

# TrioModel needs a sequencing error rate strictly inside (0, 1)
MIN_SEQUENCING_ERROR_RATE = 1e-12
MAX_SEQUENCING_ERROR_RATE = 1.0 - 1e-12


@dataclass
class RateEstimate:
    germline_mutation_rate: float
    somatic_mutation_rate: float
    sequencing_error_rate: float

    def max_difference(self, other: "RateEstimate") -> float:
        return max(
            abs(self.germline_mutation_rate - other.germline_mutation_rate),
            abs(self.somatic_mutation_rate - other.somatic_mutation_rate),
            abs(self.sequencing_error_rate - other.sequencing_error_rate),
        )


@dataclass
class EMResult:
    """Outcome of :func:`estimate_rates`."""

    model: TrioModel
    iterations: int
    converged: bool
    statistics: SufficientStatistics
    history: List[RateEstimate] = field(default_factory=list)

    @property
    def rates(self) -> RateEstimate:
        return RateEstimate(
            self.model.germline_mutation_rate,
            self.model.somatic_mutation_rate,
            self.model.sequencing_error_rate,
        )


def maximize(statistics: SufficientStatistics) -> RateEstimate:
    """M-step."""
    sequencing_error_rate = min(
        max(statistics.max_sequencing_error_rate(), MIN_SEQUENCING_ERROR_RATE),
        MAX_SEQUENCING_ERROR_RATE,
    )
    return RateEstimate(
        germline_mutation_rate=min(statistics.max_germline_mutation_rate(), 1.0),
        somatic_mutation_rate=min(statistics.max_somatic_mutation_rate(), 1.0),
        sequencing_error_rate=sequencing_error_rate,
    )


@time_it("EM rate estimation")
def estimate_rates(
    model: TrioModel,
    sites: Sequence[TrioRead],
    max_iterations: int = 50,
    tolerance: float = 1e-8,
    strict: bool = False,
) -> EMResult:
    """Iterate E and M steps over ``sites`` starting from ``model``.

    Args:
        model: Initial model; its rates are the starting point.
        sites: Trio reads, reused for every iteration.
        max_iterations: Iteration cap.
        tolerance: Stop once no rate moves by more than this.
        strict: Raise on a NaN E-step instead of stopping with the last
            good model.

    Returns:
        EMResult with the final model and the per-iteration rates.
    """
    if len(sites) == 0:
        raise InsufficientDataError("EM needs at least one site")

    statistics = SufficientStatistics()
    current = model
    history: List[RateEstimate] = []
    converged = False
    iteration = 0

    for iteration in range(1, max_iterations + 1):
        statistics.clear()
        statistics.update(current, sites)
        if statistics.is_nan():
            if strict:
                raise NumericalDegeneracyError(
                    "E-step produced NaN statistics",
                    {"iteration": iteration, "statistics": statistics.to_dict()},
                )
            logger.warning("E-step produced NaN statistics at iteration %d; stopping", iteration)
            break

        estimate = maximize(statistics)
        previous = RateEstimate(
            current.germline_mutation_rate,
            current.somatic_mutation_rate,
            current.sequencing_error_rate,
        )
        history.append(estimate)
        current = current.with_rates(
            germline_mutation_rate=estimate.germline_mutation_rate,
            somatic_mutation_rate=estimate.somatic_mutation_rate,
            sequencing_error_rate=estimate.sequencing_error_rate,
        )
        logger.debug(
            "Iteration %d: germline=%.6g somatic=%.6g error=%.6g",
            iteration,
            estimate.germline_mutation_rate,
            estimate.somatic_mutation_rate,
            estimate.sequencing_error_rate,
        )
        if estimate.max_difference(previous) < tolerance:
            converged = True
            break

    logger.info("EM finished after %d iterations (converged=%s)", iteration, converged)
    return EMResult(
        model=current,
        iterations=iteration,
        converged=converged,
        statistics=statistics,
        history=history,
    )
