"""
Test configuration and fixtures for triosim tests.
"""

import shutil
import tempfile
from pathlib import Path

import numpy as np
import pytest

from triosim.reads import TrioRead
from triosim.rng import RandomState
from triosim.trio_model import TrioModel


class ScriptedStream:
    """Random stream replaying fixed draws, for exact sampler tests."""

    def __init__(self, uniforms=(), integers=(), dirichlets=(), multinomials=()):
        self.uniforms = list(uniforms)
        self.integer_draws = list(integers)
        self.dirichlets = list(dirichlets)
        self.multinomials = list(multinomials)
        self.calls = []

    def uniform(self):
        self.calls.append("uniform")
        return self.uniforms.pop(0)

    def integers(self, high):
        self.calls.append("integers")
        return self.integer_draws.pop(0)

    def dirichlet(self, alpha):
        self.calls.append("dirichlet")
        return np.asarray(self.dirichlets.pop(0))

    def multinomial(self, n, pvals):
        self.calls.append("multinomial")
        return np.asarray(self.multinomials.pop(0))


@pytest.fixture
def seed():
    """Fixed random seed for reproducible tests."""
    return 42


@pytest.fixture
def temp_dir():
    """Temporary directory for test outputs."""
    temp_dir = tempfile.mkdtemp()
    yield Path(temp_dir)
    shutil.rmtree(temp_dir)


@pytest.fixture
def scripted_stream():
    """Factory for streams that replay fixed draws."""
    return ScriptedStream


@pytest.fixture
def stream(seed):
    """Seeded numpy-backed random stream."""
    return RandomState.create(seed)


@pytest.fixture
def model():
    """Trio model with realistic mutation rates."""
    return TrioModel(germline_mutation_rate=1e-3, somatic_mutation_rate=1e-3)


@pytest.fixture
def sample_trio():
    """Homozygous AA trio with one C read in the child."""
    return TrioRead.from_counts([3, 1, 0, 0], [4, 0, 0, 0], [4, 0, 0, 0])


@pytest.fixture
def minimal_config():
    """Smallest valid run configuration dictionary."""
    return {
        "run_id": "test_run",
        "seed": 7,
        "simulation": {
            "coverage": 4,
            "germline_mutation_rate": 0.01,
            "somatic_mutation_rate": 0.01,
            "n_sites": 20,
        },
    }
