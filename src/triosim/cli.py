"""Command-line interface for triosim."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any, Dict, Optional

import click

from .config import RunConfig, config_from_dict, load_config
from .config_validator import validate_or_raise
from .enumeration import read_count_total
from .estimation import estimate_rates
from .exceptions import TrioSimError
from .logging_config import LOG_LEVELS, setup_logging
from .rng import RandomState
from .simulation import TrioSimulator
from .utils import ensure_parent, to_json, write_json


@dataclass(slots=True)
class CLIContext:
    """Shared CLI configuration."""

    seed: Optional[int]
    config_path: Optional[Path]


def _resolve_config(
    ctx: CLIContext,
    coverage: Optional[int],
    germline_rate: Optional[float],
    somatic_rate: Optional[float],
    n_sites: Optional[int],
) -> RunConfig:
    """Merge the config file (if any) with command-line overrides and validate."""
    data: Dict[str, Any] = {"run_id": "cli", "seed": 0, "simulation": {}}
    if ctx.config_path is not None:
        try:
            data = load_config(ctx.config_path).to_dict()
        except TrioSimError as exc:
            raise click.ClickException(f"Failed to load configuration {ctx.config_path}: {exc}") from exc

    overrides = {
        "coverage": coverage,
        "germline_mutation_rate": germline_rate,
        "somatic_mutation_rate": somatic_rate,
        "n_sites": n_sites,
    }
    data["simulation"].update({key: value for key, value in overrides.items() if value is not None})
    if ctx.seed is not None:
        data["seed"] = ctx.seed

    try:
        validate_or_raise(data)
    except TrioSimError as exc:
        raise click.ClickException(str(exc)) from exc
    return config_from_dict(data)


def _build_simulator(config: RunConfig) -> TrioSimulator:
    try:
        model = config.build_model()
        return TrioSimulator(model, config.simulation.coverage, RandomState.create(config.seed))
    except TrioSimError as exc:
        raise click.ClickException(str(exc)) from exc


def _simulation_options(func):
    func = click.option("--sites", "n_sites", type=int, help="Number of sites to simulate.")(func)
    func = click.option("--somatic-rate", type=float, help="Somatic mutation rate in [0, 1].")(func)
    func = click.option("--germline-rate", type=float, help="Germline mutation rate in [0, 1].")(func)
    func = click.option("--coverage", type=int, help="Reads per individual per site.")(func)
    return func


@click.group()
@click.option("--seed", type=int, default=None, help="Seed for deterministic runs.")
@click.option(
    "--config",
    "config_path",
    type=click.Path(path_type=Path),
    help="Path to a YAML run configuration.",
)
@click.option(
    "--log-level",
    type=click.Choice(LOG_LEVELS, case_sensitive=False),
    default="WARNING",
    show_default=True,
    help="Logging level.",
)
@click.option("--log-file", type=click.Path(path_type=Path), help="Optional log file.")
@click.pass_context
def main(
    ctx: click.Context,
    seed: Optional[int],
    config_path: Optional[Path],
    log_level: str,
    log_file: Optional[Path],
) -> None:
    """Trio germline and somatic mutation simulation and EM rate estimation."""
    setup_logging(level=log_level, log_file=log_file)
    ctx.obj = CLIContext(seed=seed, config_path=config_path)


@main.command("simulate")
@_simulation_options
@click.option(
    "--out",
    "out_path",
    type=click.Path(path_type=Path, dir_okay=False),
    required=True,
    help="Output TSV: predicted probability and mutation flag per site.",
)
@click.pass_obj
def simulate_command(
    ctx: CLIContext,
    coverage: Optional[int],
    germline_rate: Optional[float],
    somatic_rate: Optional[float],
    n_sites: Optional[int],
    out_path: Path,
) -> None:
    """Simulate sites and write mutation probabilities with ground truth."""
    config = _resolve_config(ctx, coverage, germline_rate, somatic_rate, n_sites)
    simulator = _build_simulator(config)
    path = simulator.write_probabilities(ensure_parent(out_path), config.simulation.n_sites)
    click.echo(f"Wrote {config.simulation.n_sites} sites to {path}")


@main.command("count-mutations")
@_simulation_options
@click.option(
    "--out",
    "out_path",
    type=click.Path(path_type=Path, dir_okay=False),
    required=True,
    help="Output TSV: trio index, sites with mutation, sites without.",
)
@click.pass_obj
def count_mutations_command(
    ctx: CLIContext,
    coverage: Optional[int],
    germline_rate: Optional[float],
    somatic_rate: Optional[float],
    n_sites: Optional[int],
    out_path: Path,
) -> None:
    """Tally simulated mutations per canonical trio index (coverage 4)."""
    config = _resolve_config(ctx, coverage, germline_rate, somatic_rate, n_sites)
    simulator = _build_simulator(config)
    try:
        path = simulator.write_mutation_counts(ensure_parent(out_path), config.simulation.n_sites)
    except TrioSimError as exc:
        raise click.ClickException(str(exc)) from exc
    click.echo(f"Wrote mutation counts to {path}")


@main.command("estimate")
@_simulation_options
@click.option("--max-iterations", type=int, help="EM iteration cap.")
@click.option(
    "--out",
    "out_path",
    type=click.Path(path_type=Path, dir_okay=False),
    help="Optional JSON file for the estimates.",
)
@click.pass_obj
def estimate_command(
    ctx: CLIContext,
    coverage: Optional[int],
    germline_rate: Optional[float],
    somatic_rate: Optional[float],
    n_sites: Optional[int],
    max_iterations: Optional[int],
    out_path: Optional[Path],
) -> None:
    """Simulate a batch and re-estimate the rates by EM."""
    config = _resolve_config(ctx, coverage, germline_rate, somatic_rate, n_sites)
    simulator = _build_simulator(config)
    sites = simulator.random_trios(config.simulation.n_sites)

    try:
        result = estimate_rates(
            simulator.params,
            sites,
            max_iterations=max_iterations or config.em.max_iterations,
            tolerance=config.em.tolerance,
        )
    except TrioSimError as exc:
        raise click.ClickException(str(exc)) from exc

    payload = {
        "run_id": config.run_id,
        "config_hash": config.config_hash(),
        "n_sites": len(sites),
        "iterations": result.iterations,
        "converged": result.converged,
        "rates": asdict(result.rates),
        "statistics": result.statistics.to_dict(),
    }
    if out_path is not None:
        write_json(payload, out_path)
    click.echo(to_json(payload))


@main.command("enumerate")
@click.option("--coverage", type=int, required=True, help="Reads per individual.")
def enumerate_command(coverage: int) -> None:
    """Print the number of read-count vectors and trios at a coverage."""
    try:
        read_counts = read_count_total(coverage)
    except TrioSimError as exc:
        raise click.ClickException(str(exc)) from exc
    click.echo(f"read_counts\t{read_counts}")
    click.echo(f"trios\t{read_counts ** 3}")


if __name__ == "__main__":  # pragma: no cover
    main()
