"""Configuration management for triosim runs."""

from __future__ import annotations

import hashlib
import json
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from .config_validator import validate_or_raise
from .exceptions import ConfigurationError
from .trio_model import TrioModel


@dataclass
class SimulationConfig:
    """Simulation parameters. Coverage and both mutation rates have no defaults."""
    coverage: int
    germline_mutation_rate: float
    somatic_mutation_rate: float
    n_sites: int = 1000


@dataclass
class ModelConfig:
    """Trio model parameters other than the mutation rates."""
    sequencing_error_rate: float = 0.005
    dirichlet_dispersion: float = 1000.0
    population_mutation_rate: float = 0.001
    nucleotide_frequencies: List[float] = field(default_factory=lambda: [0.25, 0.25, 0.25, 0.25])


@dataclass
class EMConfig:
    """Outer EM loop settings."""
    max_iterations: int = 50
    tolerance: float = 1e-8


@dataclass
class RunConfig:
    """Main run configuration."""
    run_id: str
    seed: int
    simulation: SimulationConfig
    model: ModelConfig = field(default_factory=ModelConfig)
    em: EMConfig = field(default_factory=EMConfig)
    output: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert config to dictionary."""
        return asdict(self)

    def config_hash(self) -> str:
        """Compute deterministic hash of configuration."""
        config_str = json.dumps(self.to_dict(), sort_keys=True)
        return hashlib.sha256(config_str.encode()).hexdigest()[:16]

    def build_model(self) -> TrioModel:
        """Trio model for the configured rates."""
        return TrioModel(
            germline_mutation_rate=self.simulation.germline_mutation_rate,
            somatic_mutation_rate=self.simulation.somatic_mutation_rate,
            sequencing_error_rate=self.model.sequencing_error_rate,
            dirichlet_dispersion=self.model.dirichlet_dispersion,
            population_mutation_rate=self.model.population_mutation_rate,
            nucleotide_frequencies=tuple(self.model.nucleotide_frequencies),
        )


def config_from_dict(data: Dict[str, Any]) -> RunConfig:
    """Build a :class:`RunConfig` from a validated dictionary."""
    return RunConfig(
        run_id=data['run_id'],
        seed=data['seed'],
        simulation=SimulationConfig(**data['simulation']),
        model=ModelConfig(**data.get('model', {})),
        em=EMConfig(**data.get('em', {})),
        output=data.get('output'),
    )


def load_config(path: str | Path) -> RunConfig:
    """Load and validate configuration from a YAML file.

    Raises:
        ConfigurationError: If the file cannot be read, is not valid YAML, or
            fails validation.
    """
    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in configuration file: {e}", {"path": str(path)}) from e
    except OSError as e:
        raise ConfigurationError(f"Cannot read configuration file: {e}", {"path": str(path)}) from e

    validate_or_raise(data)
    return config_from_dict(data)


def dump_config(config: RunConfig, path: str | Path) -> None:
    """Save configuration to YAML file."""
    with open(path, 'w') as f:
        yaml.safe_dump(config.to_dict(), f, default_flow_style=False)
