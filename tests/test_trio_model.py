"""Tests for the trio model parameters and mutation probability."""

import numpy as np
import pytest

from triosim.exceptions import InvalidParameterError
from triosim.reads import TrioRead
from triosim.sampling import dirichlet_multinomial_log_matrix
from triosim.trio_model import (
    TrioModel,
    concentrated_priors,
    population_priors,
    sequencing_alphas,
)


class TestPopulationPriors:

    def test_priors_sum_to_one(self):
        priors = population_priors(0.001)
        assert priors.shape == (256,)
        assert priors.sum() == pytest.approx(1.0, abs=1e-9)
        assert np.all(priors > 0)

    def test_homozygous_identical_parents_dominate(self):
        priors = population_priors(0.001)
        # AA x AA, CC x CC, GG x GG, TT x TT
        identical = priors[[0, 5 * 16 + 5, 10 * 16 + 10, 15 * 16 + 15]]
        np.testing.assert_allclose(identical, identical[0])
        assert identical.sum() > 0.99

    def test_frequencies_shift_mass(self):
        priors = population_priors(0.001, (0.7, 0.1, 0.1, 0.1))
        assert priors[0] > priors[5 * 16 + 5]

    @pytest.mark.parametrize(
        "rate,frequencies",
        [(0.0, (0.25,) * 4), (0.001, (0.5, 0.5, 0.0, 0.0)), (0.001, (0.3, 0.3, 0.3, 0.3))],
    )
    def test_invalid_inputs(self, rate, frequencies):
        with pytest.raises(InvalidParameterError):
            population_priors(rate, frequencies)


class TestSequencingAlphas:

    def test_homozygous_and_heterozygous_rows(self):
        alphas = sequencing_alphas(0.03, 100.0)
        np.testing.assert_allclose(alphas[0], [97.0, 1.0, 1.0, 1.0])  # AA
        np.testing.assert_allclose(alphas[1], [49.0, 49.0, 1.0, 1.0])  # AC
        np.testing.assert_allclose(alphas.sum(axis=1), 100.0)


class TestTrioModel:

    def test_defaults(self, model):
        assert model.sequencing_error_rate == 0.005
        assert model.dirichlet_dispersion == 1000.0
        assert model.alphas.shape == (16, 4)
        assert model.somatic_matrix.shape == (16, 16)

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"germline_mutation_rate": -0.1, "somatic_mutation_rate": 0.0},
            {"germline_mutation_rate": True, "somatic_mutation_rate": 0.0},
            {"germline_mutation_rate": 0.0, "somatic_mutation_rate": False},
            {"germline_mutation_rate": "0.1", "somatic_mutation_rate": 0.0},
            {"germline_mutation_rate": 0.0, "somatic_mutation_rate": 1.5},
            {"germline_mutation_rate": 0.0, "somatic_mutation_rate": 0.0, "sequencing_error_rate": 0.0},
            {"germline_mutation_rate": 0.0, "somatic_mutation_rate": 0.0, "dirichlet_dispersion": 0.0},
            {"germline_mutation_rate": 0.0, "somatic_mutation_rate": 0.0, "population_priors": np.ones(256)},
            {"germline_mutation_rate": 0.0, "somatic_mutation_rate": 0.0, "population_priors": np.ones(16) / 16},
        ],
    )
    def test_invalid_parameters(self, kwargs):
        with pytest.raises(InvalidParameterError):
            TrioModel(**kwargs)

    def test_matrices_are_read_only(self, model):
        with pytest.raises(ValueError):
            model.somatic_matrix[0, 0] = 0.5

    def test_with_rates(self, model):
        updated = model.with_rates(germline_mutation_rate=0.2)
        assert updated.germline_mutation_rate == 0.2
        assert updated.somatic_mutation_rate == model.somatic_mutation_rate
        assert not np.allclose(updated.germline_matrix, model.germline_matrix)
        np.testing.assert_array_equal(updated.population_priors, model.population_priors)

    def test_concentrated_priors(self):
        model = TrioModel(0.0, 0.0, population_priors=concentrated_priors(1, 2))
        assert model.population_priors[1 * 16 + 2] == 1.0


class TestMutationProbability:

    def test_probability_in_unit_interval(self, model, sample_trio):
        probability = model.mutation_probability(sample_trio)
        assert 0.0 <= probability <= 1.0

    def test_consistent_trio_is_unlikely_mutated(self, model):
        trio_read = TrioRead.from_counts([4, 0, 0, 0], [4, 0, 0, 0], [4, 0, 0, 0])
        assert model.mutation_probability(trio_read) < 0.01

    def test_de_novo_trio_is_likely_mutated(self):
        model = TrioModel(germline_mutation_rate=1e-3, somatic_mutation_rate=1e-3)
        trio_read = TrioRead.from_counts([0, 10, 0, 0], [10, 0, 0, 0], [10, 0, 0, 0])
        assert model.mutation_probability(trio_read) > 0.9

    def test_zero_rates_give_zero_probability(self):
        model = TrioModel(germline_mutation_rate=0.0, somatic_mutation_rate=0.0)
        trio_read = TrioRead.from_counts([2, 2, 0, 0], [4, 0, 0, 0], [0, 4, 0, 0])
        assert model.mutation_probability(trio_read) == pytest.approx(0.0, abs=1e-12)

    def test_unlikely_reads_keep_finite_probability(self, model):
        trio_read = TrioRead.from_counts([0, 0, 0, 40], [40, 0, 0, 0], [40, 0, 0, 0])
        probability = model.mutation_probability(trio_read)
        assert np.isfinite(probability)

    def test_peel_total_matches_brute_force(self):
        """Tree peeling equals the explicit sum over all hidden genotypes."""
        model = TrioModel(
            germline_mutation_rate=0.05,
            somatic_mutation_rate=0.05,
            sequencing_error_rate=0.05,
            dirichlet_dispersion=10.0,
        )
        trio_read = TrioRead.from_counts([1, 1, 0, 0], [2, 0, 0, 0], [0, 1, 1, 0])
        peel = model.peel(trio_read)

        reads = [np.exp(dirichlet_multinomial_log_matrix(model.alphas, data)) for data in trio_read]
        child_reads, mother_reads, father_reads = reads
        somatic = model.somatic_matrix
        total = 0.0
        for mother in range(16):
            for father in range(16):
                prior = model.population_priors[mother * 16 + father]
                mother_term = somatic[mother] @ mother_reads
                father_term = somatic[father] @ father_reads
                child_term = model.germline_matrix[:, mother * 16 + father] @ (somatic @ child_reads)
                total += prior * mother_term * father_term * child_term

        assert peel.log_likelihood == pytest.approx(np.log(total), rel=1e-9)
