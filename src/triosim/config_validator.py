"""
Configuration validation for triosim runs.

Collects every problem in a configuration dictionary before any
simulation starts, separating hard errors from warnings.
"""

from typing import Dict, Any, List, Tuple
import logging
from pathlib import Path

import yaml

from .exceptions import ConfigurationError


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _is_integer(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


class ConfigValidator:
    """Validate configuration parameters for a run."""

    def __init__(self):
        self.logger = logging.getLogger(__name__)
        self.errors = []
        self.warnings = []

    def validate_config(self, config: Dict[str, Any]) -> Tuple[bool, List[str], List[str]]:
        """Validate complete configuration.

        Args:
            config: Configuration dictionary to validate

        Returns:
            Tuple of (is_valid, errors, warnings)
        """
        self.errors = []
        self.warnings = []

        required_keys = ['run_id', 'seed', 'simulation']
        for key in required_keys:
            if key not in config:
                self.errors.append(f"Missing required configuration key: {key}")

        if 'simulation' in config:
            self._validate_simulation_config(config['simulation'])

        if 'model' in config:
            self._validate_model_config(config['model'])

        if 'em' in config:
            self._validate_em_config(config['em'])

        self._validate_general_config(config)

        for warning in self.warnings:
            self.logger.warning(warning)

        is_valid = len(self.errors) == 0
        return is_valid, self.errors, self.warnings

    def _validate_rate(self, section: str, key: str, value: Any) -> None:
        if not _is_number(value):
            self.errors.append(f"{section}.{key} must be numeric")
        elif not 0.0 <= value <= 1.0:
            self.errors.append(f"{section}.{key} must be between 0 and 1")
        elif value > 0.1:
            self.warnings.append(f"{section}.{key} is very high ({value})")

    def _validate_simulation_config(self, sim_config: Dict[str, Any]) -> None:
        """Validate simulation configuration."""
        if not isinstance(sim_config, dict):
            self.errors.append("simulation must be a mapping")
            return

        # No defaults: coverage and both rates must be given explicitly
        required_keys = ['coverage', 'germline_mutation_rate', 'somatic_mutation_rate']
        for key in required_keys:
            if key not in sim_config:
                self.errors.append(f"Missing simulation.{key}")

        unknown = set(sim_config) - set(required_keys) - {'n_sites'}
        for key in sorted(unknown):
            self.errors.append(f"Unknown simulation.{key}")

        if 'coverage' in sim_config:
            coverage = sim_config['coverage']
            if not _is_integer(coverage):
                self.errors.append("simulation.coverage must be an integer")
            elif coverage < 0:
                self.errors.append("simulation.coverage must be non-negative")
            elif coverage == 0:
                self.warnings.append("simulation.coverage is 0, all reads will be empty")

        for key in ['germline_mutation_rate', 'somatic_mutation_rate']:
            if key in sim_config:
                self._validate_rate("simulation", key, sim_config[key])

        if 'n_sites' in sim_config:
            n_sites = sim_config['n_sites']
            if not _is_integer(n_sites):
                self.errors.append("simulation.n_sites must be an integer")
            elif n_sites < 1:
                self.errors.append("simulation.n_sites must be positive")

    def _validate_model_config(self, model_config: Dict[str, Any]) -> None:
        """Validate trio model configuration."""
        if not isinstance(model_config, dict):
            self.errors.append("model must be a mapping")
            return

        allowed = {'sequencing_error_rate', 'dirichlet_dispersion', 'population_mutation_rate',
                   'nucleotide_frequencies'}
        for key in sorted(set(model_config) - allowed):
            self.errors.append(f"Unknown model.{key}")

        if 'sequencing_error_rate' in model_config:
            error_rate = model_config['sequencing_error_rate']
            if not _is_number(error_rate):
                self.errors.append("model.sequencing_error_rate must be numeric")
            elif not 0.0 < error_rate < 1.0:
                self.errors.append("model.sequencing_error_rate must be between 0 and 1 (exclusive)")

        for key in ['dirichlet_dispersion', 'population_mutation_rate']:
            if key in model_config:
                value = model_config[key]
                if not _is_number(value):
                    self.errors.append(f"model.{key} must be numeric")
                elif value <= 0:
                    self.errors.append(f"model.{key} must be positive")

        if 'nucleotide_frequencies' in model_config:
            frequencies = model_config['nucleotide_frequencies']
            if not isinstance(frequencies, list) or len(frequencies) != 4:
                self.errors.append("model.nucleotide_frequencies must be a list of 4 values")
            elif not all(_is_number(value) and value > 0 for value in frequencies):
                self.errors.append("model.nucleotide_frequencies must be positive numbers")
            elif abs(sum(frequencies) - 1.0) > 1e-6:
                self.errors.append("model.nucleotide_frequencies must sum to 1")

    def _validate_em_config(self, em_config: Dict[str, Any]) -> None:
        """Validate EM configuration."""
        if not isinstance(em_config, dict):
            self.errors.append("em must be a mapping")
            return

        for key in sorted(set(em_config) - {'max_iterations', 'tolerance'}):
            self.errors.append(f"Unknown em.{key}")

        if 'max_iterations' in em_config:
            max_iterations = em_config['max_iterations']
            if not _is_integer(max_iterations):
                self.errors.append("em.max_iterations must be an integer")
            elif max_iterations < 1:
                self.errors.append("em.max_iterations must be positive")

        if 'tolerance' in em_config:
            tolerance = em_config['tolerance']
            if not _is_number(tolerance):
                self.errors.append("em.tolerance must be numeric")
            elif tolerance <= 0:
                self.errors.append("em.tolerance must be positive")

    def _validate_general_config(self, config: Dict[str, Any]) -> None:
        """Validate general configuration parameters."""
        if 'run_id' in config:
            run_id = config['run_id']
            if not isinstance(run_id, str):
                self.errors.append("run_id must be a string")
            elif not run_id.strip():
                self.errors.append("run_id cannot be empty")
            elif not run_id.replace('_', '').replace('-', '').isalnum():
                self.warnings.append("run_id should contain only alphanumeric characters, dashes, and underscores")

        if 'seed' in config:
            seed = config['seed']
            if not _is_integer(seed):
                self.errors.append("seed must be an integer")
            elif seed < 0:
                self.errors.append("seed must be non-negative")


def validate_or_raise(config: Dict[str, Any]) -> List[str]:
    """Validate a configuration dictionary.

    Returns:
        Warnings

    Raises:
        ConfigurationError: If any error was found
    """
    if not isinstance(config, dict):
        raise ConfigurationError("Configuration must be a dictionary")

    is_valid, errors, warnings = ConfigValidator().validate_config(config)
    if not is_valid:
        raise ConfigurationError(
            f"Invalid configuration: {'; '.join(errors)}",
            {"errors": errors, "warnings": warnings},
        )
    return warnings


def validate_config_file(config_path: Path) -> Tuple[bool, List[str], List[str]]:
    """Validate a configuration file.

    Args:
        config_path: Path to configuration YAML file

    Returns:
        Tuple of (is_valid, errors, warnings)

    Raises:
        ConfigurationError: If file cannot be read or parsed
    """
    config_path = Path(config_path)
    if not config_path.exists():
        raise ConfigurationError(f"Configuration file not found: {config_path}")

    try:
        with open(config_path, 'r', encoding='utf-8') as f:
            config = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in configuration file: {e}") from e
    except (IOError, OSError) as e:
        raise ConfigurationError(f"Cannot read configuration file: {e}") from e

    if not isinstance(config, dict):
        raise ConfigurationError("Configuration file must contain a dictionary")

    validator = ConfigValidator()
    return validator.validate_config(config)
