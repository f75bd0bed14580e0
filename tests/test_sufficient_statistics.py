"""Tests for E-step expectations and the sufficient-statistics accumulator."""

import math

import numpy as np
import pytest

from triosim.em import expected_germline_mutations, mismatches, site_statistics
from triosim.exceptions import InsufficientDataError
from triosim.reads import ReadData, TrioRead
from triosim.rng import RandomState
from triosim.simulation import TrioSimulator
from triosim.sufficient_statistics import SufficientStatistics
from triosim.trio_model import TrioModel


@pytest.fixture
def sites(model, seed):
    return TrioSimulator(model.with_rates(0.02, 0.02), 4, RandomState.create(seed)).random_trios(100)


class TestSiteStatistics:
    """Per-site posterior expectations."""

    def test_mismatches(self):
        counts = mismatches(ReadData(3, 1, 0, 0))
        assert counts[0] == 1  # AA: the C read
        assert counts[1] == 0  # AC
        assert counts[15] == 4  # TT

    def test_read_totals_are_preserved(self, model, sample_trio):
        stats = site_statistics(model, sample_trio)
        assert stats.hom + stats.het == pytest.approx(12.0)
        assert 0.0 <= stats.e <= 12.0

    def test_mutation_counts_are_bounded(self, model):
        trio_read = TrioRead.from_counts([0, 4, 0, 0], [4, 0, 0, 0], [4, 0, 0, 0])
        stats = site_statistics(model, trio_read)
        assert 0.0 <= stats.germ <= 2.0
        assert 0.0 <= stats.som <= 6.0
        # the child needs at least one mutation to carry C
        assert stats.germ + stats.som > 0.9

    def test_consistent_trio_has_few_mutations(self, model):
        trio_read = TrioRead.from_counts([4, 0, 0, 0], [4, 0, 0, 0], [4, 0, 0, 0])
        stats = site_statistics(model, trio_read)
        assert stats.germ < 0.01
        assert stats.som < 0.01
        assert stats.hom == pytest.approx(12.0, abs=0.1)

    def test_no_germline_mutations_at_zero_rate(self):
        model = TrioModel(germline_mutation_rate=0.0, somatic_mutation_rate=0.01)
        counts = expected_germline_mutations(model)
        assert counts.shape == (16, 256)
        np.testing.assert_allclose(counts, 0.0)


class TestSufficientStatistics:
    """Accumulation, sharding and the M-step."""

    def test_update_counts_sites(self, model, sites):
        stats = SufficientStatistics().update(model, sites)
        assert stats.n_s == 100
        assert stats.hom + stats.het == pytest.approx(100 * 12.0)
        assert not stats.is_nan()

    def test_update_needs_only_trio_parameters(self, model, sites):
        """Any object with the TrioParameters attributes drives the E-step."""

        class MinimalParameters:
            def __init__(self, inner):
                self.germline_mutation_rate = inner.germline_mutation_rate
                self.population_priors = inner.population_priors
                self.germline_single = inner.germline_single
                self.germline_matrix = inner.germline_matrix
                self.somatic_matrix = inner.somatic_matrix
                self.alphas = inner.alphas
                self._inner = inner

            def germline_row(self, child_genotype, parent_pair):
                return self._inner.germline_row(child_genotype, parent_pair)

            def peel(self, trio_read, no_mutation=False):
                return self._inner.peel(trio_read, no_mutation)

            def mutation_probability(self, trio_read):
                return self._inner.mutation_probability(trio_read)

        expected = SufficientStatistics().update(model, sites[:20])
        actual = SufficientStatistics().update(MinimalParameters(model), sites[:20])
        for name, value in expected.to_dict().items():
            assert getattr(actual, name) == pytest.approx(value, rel=1e-12)

    def test_shards_merge_to_batch(self, model, sites):
        batch = SufficientStatistics().update(model, sites)
        merged = SufficientStatistics()
        for start in range(0, 100, 25):
            merged.merge(SufficientStatistics().update(model, sites[start:start + 25]))

        for name, value in batch.to_dict().items():
            assert getattr(merged, name) == pytest.approx(value, rel=1e-9, abs=1e-12)

    def test_add_leaves_operands_untouched(self, model, sites):
        first = SufficientStatistics().update(model, sites[:10])
        second = SufficientStatistics().update(model, sites[10:20])
        total = first + second
        assert total.n_s == 20
        assert first.n_s == 10 and second.n_s == 10

    def test_maximization(self):
        stats = SufficientStatistics(e=3.0, hom=100.0, het=30.0, som=12.0, germ=4.0, n_s=10)
        assert stats.max_germline_mutation_rate() == pytest.approx(0.2)
        assert stats.max_somatic_mutation_rate() == pytest.approx(0.2)
        assert stats.max_sequencing_error_rate() == pytest.approx(3.0 / 120.0)

    def test_cleared_accumulator_raises(self, model, sites):
        stats = SufficientStatistics().update(model, sites[:5])
        stats.clear()
        assert stats.to_dict() == {"e": 0.0, "hom": 0.0, "het": 0.0, "som": 0.0, "germ": 0.0, "n_s": 0.0}
        for estimate in (
            stats.max_germline_mutation_rate,
            stats.max_somatic_mutation_rate,
            stats.max_sequencing_error_rate,
        ):
            with pytest.raises(InsufficientDataError):
                estimate()

    def test_no_reads_raises_for_error_rate(self):
        stats = SufficientStatistics(n_s=3)
        assert stats.max_germline_mutation_rate() == 0.0
        with pytest.raises(InsufficientDataError):
            stats.max_sequencing_error_rate()

    def test_is_nan(self):
        assert not SufficientStatistics().is_nan()
        assert SufficientStatistics(som=math.nan).is_nan()

    def test_str(self):
        text = str(SufficientStatistics(e=1.0, n_s=2))
        assert text.startswith("e=1\t")
        assert "n_s=2" in text
