"""Self-Kronecker products for lifting per-allele matrices to genotype space."""

from __future__ import annotations

import numpy as np

from .exceptions import InvalidParameterError

STOCHASTIC_TOLERANCE = 1e-9


def self_kronecker(base: np.ndarray) -> np.ndarray:
    """Kronecker product of a matrix with itself.

    ``result[i*m + k, j*n + l] = base[i, j] * base[k, l]`` for an ``m x n``
    base, so a 4x16 per-parent germline matrix becomes the 16x256 two-parent
    matrix and a 4x4 per-allele somatic matrix becomes the 16x16 genotype
    matrix.
    """
    base = np.asarray(base, dtype=np.float64)
    if base.ndim != 2:
        raise InvalidParameterError(
            f"Kronecker base must be 2-D, got shape {base.shape}",
            {"shape": base.shape},
        )
    m, n = base.shape
    # (i, j, k, l) -> (i, k, j, l) keeps row index i*m + k and column j*n + l
    product = np.einsum("ij,kl->ikjl", base, base)
    return product.reshape(m * m, n * n)


def vector_kronecker(vec1: np.ndarray, vec2: np.ndarray) -> np.ndarray:
    """Flattened outer product, ``result[i*len(vec2) + j] = vec1[i] * vec2[j]``."""
    vec1 = np.asarray(vec1, dtype=np.float64).ravel()
    vec2 = np.asarray(vec2, dtype=np.float64).ravel()
    return np.outer(vec1, vec2).ravel()


def is_row_stochastic(mat: np.ndarray, tol: float = STOCHASTIC_TOLERANCE) -> bool:
    mat = np.asarray(mat, dtype=np.float64)
    return bool(np.all(mat >= 0) and np.allclose(mat.sum(axis=1), 1.0, rtol=0.0, atol=tol))


def is_column_stochastic(mat: np.ndarray, tol: float = STOCHASTIC_TOLERANCE) -> bool:
    return is_row_stochastic(np.asarray(mat).T, tol)
