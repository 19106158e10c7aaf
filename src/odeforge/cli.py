"""
Command-line interface for odeforge.

Provides commands for:
- Discovering an ODE from a CSV trajectory
- Listing available operators
"""

import json
import logging
import sys
from pathlib import Path

import click

from odeforge import __version__

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger("odeforge")


@click.group()
@click.version_option(version=__version__)
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output")
def main(verbose: bool) -> None:
    """odeforge - Discover ODEs from observed trajectories."""
    if verbose:
        logging.getLogger().setLevel(logging.DEBUG)


@main.command()
@click.argument("data_file", type=click.Path(exists=True, dir_okay=False))
@click.option("--time-column", default="time", help="CSV column holding sample times")
@click.option("--position-column", default="position", help="CSV column holding positions")
@click.option("--population", "-p", default=200, show_default=True, help="Population size")
@click.option("--generations", "-g", default=50, show_default=True, help="Number of generations")
@click.option("--max-depth", default=6, show_default=True, help="Maximum tree depth")
@click.option("--crossover-prob", default=0.9, show_default=True, help="Crossover probability")
@click.option("--mutation-prob", default=0.2, show_default=True, help="Mutation probability")
@click.option("--tournament-size", default=3, show_default=True, help="Tournament size")
@click.option("--elites", default=2, show_default=True, help="Elites kept per generation")
@click.option("--substeps", default=4, show_default=True, help="RK4 steps per sample interval")
@click.option(
    "--operators",
    default=None,
    help="Comma-separated operator tokens (default: add,sub,mul,div,neg,sin,cos,exp,pow)",
)
@click.option("--target-fitness", type=float, default=None, help="Stop once best fitness reaches this")
@click.option("--workers", default=1, show_default=True, help="Threads for fitness evaluation")
@click.option(
    "--show-top",
    type=click.IntRange(0, 10),
    default=0,
    show_default=True,
    help="Print the N fittest individuals each generation",
)
@click.option("--seed", type=int, default=None, help="Random seed")
@click.option("--output", "-o", default=None, help="Output JSON file for results")
def run(
    data_file: str,
    time_column: str,
    position_column: str,
    population: int,
    generations: int,
    max_depth: int,
    crossover_prob: float,
    mutation_prob: float,
    tournament_size: int,
    elites: int,
    substeps: int,
    operators: str | None,
    target_fitness: float | None,
    workers: int,
    show_top: int,
    seed: int | None,
    output: str | None,
) -> None:
    """Discover an ODE x' = f(x, t) fitting a CSV trajectory."""
    from odeforge.data.dataset import Dataset, ValidationError
    from odeforge.discovery.evolution.engine import EvolutionConfig
    from odeforge.discovery.orchestrator import DiscoveryOrchestrator

    try:
        dataset = Dataset.from_csv(data_file, time_column, position_column)
    except ValidationError as e:
        click.echo(f"Invalid data: {e}", err=True)
        sys.exit(1)

    config = EvolutionConfig(
        population_size=population,
        n_generations=generations,
        max_depth=max_depth,
        init_depth=min(4, max_depth),
        crossover_prob=crossover_prob,
        mutation_prob=mutation_prob,
        tournament_size=tournament_size,
        elite_count=elites,
        substeps=substeps,
        target_fitness=target_fitness,
        n_workers=workers,
        seed=seed,
    )
    if operators:
        config.operators = tuple(op.strip() for op in operators.split(",") if op.strip())

    try:
        orchestrator = DiscoveryOrchestrator(dataset, config)
    except ValueError as e:
        click.echo(f"Invalid configuration: {e}", err=True)
        sys.exit(1)

    click.echo(f"Evolving {population} individuals for up to {generations} generations...")

    def on_generation(generation: int, stats: dict) -> None:
        click.echo(
            f"  gen {generation:4d}  best={stats['best_ever_fitness']:.6f}  "
            f"mean={stats['mean_fitness']:.6f}  failed={stats['n_failed']}"
        )
        for rank, entry in enumerate(stats["top_individuals"][:show_top], start=1):
            click.echo(f"      {rank:2d}. fitness={entry['fitness']:.6f}  {entry['formula']}")

    result = orchestrator.discover(on_generation=on_generation)

    click.echo("\n" + "=" * 50)
    click.echo(result.summary())
    click.echo("=" * 50)

    if output:
        Path(output).write_text(json.dumps(result.to_dict(), indent=2))
        click.echo(f"\nResults saved to {output}")


@main.command()
def operators() -> None:
    """List available operator tokens."""
    from odeforge.discovery.expression.types import DEFAULT_OPERATORS, OPERATOR_SIGNATURES

    for name, sig in OPERATOR_SIGNATURES.items():
        marker = "*" if name in DEFAULT_OPERATORS else " "
        click.echo(f" {marker} {name:<8} arity={sig.arity}")
    click.echo("\n* enabled by default")


if __name__ == "__main__":
    main()
