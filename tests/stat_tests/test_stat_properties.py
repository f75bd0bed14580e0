"""Property-based tests for the trio model and samplers."""

from __future__ import annotations

import numpy as np
from hypothesis import given, settings
from hypothesis import strategies as st

from triosim.enumeration import TrioIndex
from triosim.kronecker import is_column_stochastic, is_row_stochastic
from triosim.reads import ReadData, TrioRead
from triosim.rng import RandomState
from triosim.sampling import sample_reads, weighted_choice
from triosim.sufficient_statistics import SufficientStatistics
from triosim.trio_model import TrioModel

rates = st.floats(min_value=0.0, max_value=1.0, allow_nan=False, allow_infinity=False)
error_rates = st.floats(min_value=1e-4, max_value=0.5, allow_nan=False, allow_infinity=False)


def read_data(coverage: int):
    """Strategy for read-count vectors summing to ``coverage``."""
    return st.lists(st.integers(min_value=0, max_value=3), min_size=coverage, max_size=coverage).map(
        lambda alleles: ReadData.from_counts(np.bincount(alleles, minlength=4))
    )


@given(germline_rate=rates, somatic_rate=rates)
@settings(max_examples=25, deadline=None)
def test_model_matrices_are_stochastic(germline_rate: float, somatic_rate: float) -> None:
    """Germline columns and somatic rows are distributions for any rate."""

    model = TrioModel(germline_mutation_rate=germline_rate, somatic_mutation_rate=somatic_rate)
    assert is_column_stochastic(model.germline_matrix)
    assert is_row_stochastic(model.somatic_matrix)
    assert is_row_stochastic(model.germline_mutation_matrix)


@given(
    alpha=st.lists(
        st.floats(min_value=0.05, max_value=500.0, allow_nan=False), min_size=4, max_size=4
    ),
    coverage=st.integers(min_value=0, max_value=60),
    seed=st.integers(min_value=0, max_value=2**32 - 1),
)
@settings(max_examples=50, deadline=None)
def test_sampled_reads_sum_to_coverage(alpha: list[float], coverage: int, seed: int) -> None:
    reads = sample_reads(alpha, coverage, RandomState.create(seed))
    assert reads.coverage == coverage
    assert min(reads) >= 0


@given(
    weights=st.lists(
        st.floats(min_value=0.0, max_value=1e6, allow_nan=False), min_size=1, max_size=40
    ).filter(lambda values: sum(values) > 0),
    seed=st.integers(min_value=0, max_value=2**32 - 1),
)
@settings(max_examples=50, deadline=None)
def test_weighted_choice_picks_positive_weight(weights: list[float], seed: int) -> None:
    idx = weighted_choice(weights, RandomState.create(seed))
    assert 0 <= idx < len(weights)
    assert weights[idx] > 0


@given(child=read_data(3), mother=read_data(3), father=read_data(3))
@settings(max_examples=40, deadline=None)
def test_trio_index_round_trip(child: ReadData, mother: ReadData, father: ReadData) -> None:
    index = TrioIndex(3)
    trio_read = TrioRead(child, mother, father)
    position = index.index_of(trio_read)
    assert 0 <= position < len(index)
    assert index.trio_at(position) == trio_read


@given(
    child=read_data(4),
    mother=read_data(4),
    father=read_data(4),
    germline_rate=st.floats(min_value=1e-4, max_value=0.2),
    somatic_rate=st.floats(min_value=1e-4, max_value=0.2),
    error_rate=error_rates,
)
@settings(max_examples=30, deadline=None)
def test_probability_and_statistics_are_bounded(
    child: ReadData,
    mother: ReadData,
    father: ReadData,
    germline_rate: float,
    somatic_rate: float,
    error_rate: float,
) -> None:
    """Posterior quantities stay inside their natural ranges."""

    model = TrioModel(
        germline_mutation_rate=germline_rate,
        somatic_mutation_rate=somatic_rate,
        sequencing_error_rate=error_rate,
    )
    trio_read = TrioRead(child, mother, father)

    probability = model.mutation_probability(trio_read)
    assert 0.0 <= probability <= 1.0

    stats = SufficientStatistics().update(model, [trio_read])
    assert not stats.is_nan()
    assert np.isclose(stats.hom + stats.het, 12.0)
    assert -1e-9 <= stats.e <= 12.0 + 1e-9
    assert -1e-9 <= stats.germ <= 2.0 + 1e-9
    assert -1e-9 <= stats.som <= 6.0 + 1e-9
