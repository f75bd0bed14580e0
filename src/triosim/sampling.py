"""Weighted categorical choice and Dirichlet-multinomial read sampling."""

from __future__ import annotations

from typing import Sequence

import numpy as np
from scipy.special import gammaln

from .exceptions import InvalidParameterError
from .genotypes import NUCLEOTIDE_COUNT
from .reads import ReadData, check_coverage
from .rng import RandomStream


def weighted_choice(weights: Sequence[float], stream: RandomStream) -> int:
    """Draw an index in ``[0, len(weights))`` with probability proportional to its weight.

    Weights need not be normalized but must be finite, non-negative and not
    all zero. Exactly one uniform draw is consumed.
    """
    weights = np.asarray(weights, dtype=np.float64).ravel()
    if weights.size == 0:
        raise InvalidParameterError("weighted choice needs at least one category")
    if not np.all(np.isfinite(weights)) or np.any(weights < 0):
        raise InvalidParameterError(
            "category weights must be finite and non-negative",
            {"weights": weights.tolist()},
        )
    cumulative = np.cumsum(weights)
    total = cumulative[-1]
    if total <= 0:
        raise InvalidParameterError("category weights sum to zero")

    target = stream.uniform() * total
    idx = int(np.searchsorted(cumulative, target, side="right"))
    # Guard against target == total from rounding and skip zero-weight tails
    idx = min(idx, weights.size - 1)
    while weights[idx] == 0:
        idx -= 1
    return idx


def _check_alpha(alpha: Sequence[float]) -> np.ndarray:
    alpha = np.asarray(alpha, dtype=np.float64).ravel()
    if alpha.size != NUCLEOTIDE_COUNT:
        raise InvalidParameterError(
            f"alpha must have {NUCLEOTIDE_COUNT} components, got {alpha.size}",
            {"alpha": alpha.tolist()},
        )
    if not np.all(np.isfinite(alpha)) or np.any(alpha <= 0):
        raise InvalidParameterError(
            "Dirichlet alpha components must be positive and finite",
            {"alpha": alpha.tolist()},
        )
    return alpha


def sample_reads(alpha: Sequence[float], coverage: int, stream: RandomStream) -> ReadData:
    """Draw read counts from the Dirichlet-multinomial.

    A nucleotide frequency vector is drawn from Dirichlet(alpha), then
    ``coverage`` reads are drawn from the multinomial with those
    frequencies.

    Args:
        alpha: Four positive concentration parameters (A, C, G, T).
        coverage: Number of reads to draw.
        stream: Random stream.

    Returns:
        ReadData whose counts sum to ``coverage``.
    """
    alpha = _check_alpha(alpha)
    coverage = check_coverage(coverage)
    if coverage == 0:
        return ReadData()

    theta = stream.dirichlet(alpha)
    counts = stream.multinomial(coverage, theta)
    return ReadData.from_counts(counts)


def dirichlet_multinomial_log(alpha: Sequence[float], reads: Sequence[int]) -> float:
    """Log probability of one ordered read sequence under the Dirichlet-multinomial.

    .. math::

        \\log \\frac{\\Gamma(A)}{\\Gamma(A + N)}
        \\prod_k \\frac{\\Gamma(\\alpha_k + n_k)}{\\Gamma(\\alpha_k)}

    with ``A = sum(alpha)`` and ``N = sum(reads)``. The multinomial
    coefficient is omitted; it cancels in every likelihood ratio used here.
    """
    alpha = _check_alpha(alpha)
    reads = np.asarray(reads, dtype=np.float64)
    total_alpha = alpha.sum()
    constant_term = gammaln(total_alpha) - gammaln(reads.sum() + total_alpha)
    return float(constant_term + np.sum(gammaln(alpha + reads) - gammaln(alpha)))


def dirichlet_multinomial_log_matrix(alphas: np.ndarray, reads: Sequence[int]) -> np.ndarray:
    """Vectorized :func:`dirichlet_multinomial_log` over the rows of ``alphas``."""
    alphas = np.asarray(alphas, dtype=np.float64)
    reads = np.asarray(reads, dtype=np.float64)
    total_alpha = alphas.sum(axis=1)
    constant_term = gammaln(total_alpha) - gammaln(reads.sum() + total_alpha)
    return constant_term + np.sum(gammaln(alphas + reads) - gammaln(alphas), axis=1)
