"""Command-line interface using Typer."""

import typer
from pathlib import Path
from typing import Optional
import json
from loguru import logger

from classroom_infection.benchmarks import PerformanceBenchmark
from classroom_infection.config import Config, InfectionConfig, PopulationConfig
from classroom_infection.diagnostics import format_classes, format_connections, format_versions
from classroom_infection.graph import ClassGraph
from classroom_infection.graph_generation import build_from_config, load_school_graph
from classroom_infection.infection import InfectionEngine
from classroom_infection.metrics import (
    MetricsCollector,
    component_sizes,
    compute_infection_metrics,
)
from classroom_infection.person import Person
from classroom_infection.viz import plot_component_sizes, plot_infection_progress

app = typer.Typer(help="Class Infection CLI")


@app.command()
def run(
    mode: str = typer.Option("limited", help="Infection policy: 'total' or 'limited'"),
    target: int = typer.Option(100, help="New infections to aim for (limited mode)"),
    start_id: Optional[str] = typer.Option(None, help="Start person id (default: first teacher)"),
    graph_file: Optional[str] = typer.Option(None, help="JSON population file"),
    n_teachers: int = typer.Option(50, help="Number of teachers"),
    n_students: int = typer.Option(1000, help="Number of students"),
    classes_per_teacher: int = typer.Option(2, help="Classes per teacher"),
    class_size: int = typer.Option(25, help="Students per class"),
    teacher_student_fraction: float = typer.Option(0.1, help="Fraction of teachers also enrolled as students"),
    runs: int = typer.Option(1, help="Number of runs (seeds seed..seed+runs-1)"),
    seed: int = typer.Option(42, help="Random seed"),
    output_dir: str = typer.Option("runs/exp001", help="Output directory"),
    show_versions: bool = typer.Option(
        False, help="Print every person's version after the first run (the one whose outputs are saved)"
    ),
) -> None:
    """Run a total or limited infection."""
    logger.info(f"Starting infection run: mode={mode}, target={target}, runs={runs}")

    if mode not in ("total", "limited"):
        logger.error(f"Unknown mode: {mode}")
        raise ValueError(f"Unknown mode: {mode}")

    # Create config
    config = Config(
        seed=seed,
        population=PopulationConfig(
            n_teachers=n_teachers,
            n_students=n_students,
            classes_per_teacher=classes_per_teacher,
            class_size=class_size,
            teacher_student_fraction=teacher_student_fraction,
        ),
        graph_file=graph_file,
        infection=InfectionConfig(mode=mode, target=target, start_id=start_id),
        output_dir=output_dir,
        runs=runs,
    )

    # Create output directory
    output_path = Path(output_dir)
    output_path.mkdir(parents=True, exist_ok=True)

    # Save config
    config.save(output_path / "config.json")
    logger.info(f"Saved config to {output_path / 'config.json'}")

    collector = MetricsCollector()
    first_graph = None
    for run_id in range(config.runs):
        if config.runs > 1:
            logger.info(f"Run {run_id + 1}/{config.runs}")
        graph, metrics = _run_once(config, config.seed + run_id, output_path if run_id == 0 else None)
        if first_graph is None:
            first_graph = graph
        collector.add_run(metrics)

    if show_versions:
        typer.echo(format_versions(first_graph), nl=False)

    if config.runs > 1:
        aggregate = collector.compute_aggregate_metrics()
        with open(output_path / "aggregate_metrics.json", "w") as f:
            json.dump(aggregate, f, indent=2)
        logger.info(f"Aggregate metrics: {aggregate}")


def _resolve_start(graph: ClassGraph, config: Config) -> Person:
    start_id = config.infection.start_id
    if start_id is None:
        teachers = graph.teachers()
        if not teachers:
            logger.error("Population has no teachers")
            raise ValueError("Population has no teachers")
        return teachers[0]
    start = graph.find(start_id)
    if start is None:
        logger.error(f"Unknown start id: {start_id}")
        raise ValueError(f"Unknown start id: {start_id}")
    return start


def _run_once(config: Config, seed: int, output_path: Optional[Path]) -> tuple:
    """Build the graph, infect it and, for the first run, save outputs."""
    graph, metadata = build_from_config(config, seed=seed)
    start = _resolve_start(graph, config)
    engine = InfectionEngine(graph)

    mode = config.infection.mode
    if mode == "total":
        engine.total_infection(start)
    else:
        engine.limited_infection(start, config.infection.target)

    metrics = compute_infection_metrics(
        graph, engine, mode, target=config.infection.target
    ).to_dict()
    logger.info(f"Run complete: infected={metrics['infected_count']}/{metrics['population']}")

    if output_path is not None:
        metadata["component_sizes"] = component_sizes(graph)
        with open(output_path / "graph_metadata.json", "w") as f:
            json.dump(metadata, f, indent=2)
        with open(output_path / "metrics.json", "w") as f:
            json.dump(metrics, f, indent=2)

        if mode == "limited" and metrics["cumulative_infected"]:
            plot_infection_progress(
                metrics["cumulative_infected"],
                target=config.infection.target,
                title=f"Limited Infection (target={config.infection.target})",
                output_path=output_path / "progress.png",
            )
        plot_component_sizes(
            metadata["component_sizes"],
            output_path=output_path / "component_sizes.html",
        )

    return graph, metrics


@app.command()
def show(
    graph_file: str = typer.Argument(..., help="JSON population file"),
    view: str = typer.Option("classes", help="What to print: 'classes', 'connections' or 'versions'"),
) -> None:
    """Print a population file in plain text."""
    graph = load_school_graph(graph_file)

    if view == "classes":
        typer.echo(format_classes(graph), nl=False)
    elif view == "connections":
        typer.echo(format_connections(graph), nl=False)
    elif view == "versions":
        typer.echo(format_versions(graph), nl=False)
    else:
        logger.error(f"Unknown view: {view}")
        raise ValueError(f"Unknown view: {view}")


@app.command()
def plot(
    run_id: str = typer.Option("runs/exp001", help="Run ID (output directory)"),
) -> None:
    """Generate plots from a completed run."""
    logger.info(f"Generating plots for run: {run_id}")

    run_path = Path(run_id)
    if not run_path.exists():
        logger.error(f"Run directory not found: {run_path}")
        raise FileNotFoundError(f"Run directory not found: {run_path}")

    # Load metrics
    metrics_file = run_path / "metrics.json"
    if metrics_file.exists():
        with open(metrics_file, "r") as f:
            metrics = json.load(f)

        plot_infection_progress(
            metrics["cumulative_infected"],
            target=metrics.get("target"),
            title=f"Infection Results: {run_id}",
            output_path=run_path / "progress_regenerated.png",
        )
        logger.info("Plots generated successfully")
    else:
        logger.error(f"Metrics file not found: {metrics_file}")


@app.command()
def benchmark(
    n_teachers: int = typer.Option(500, help="Number of teachers"),
    n_students: int = typer.Option(10000, help="Number of students"),
    classes_per_teacher: int = typer.Option(3, help="Classes per teacher"),
    class_size: int = typer.Option(25, help="Students per class"),
    target: int = typer.Option(1000, help="Target for limited infection"),
    num_runs: int = typer.Option(3, help="Runs per policy"),
) -> None:
    """Benchmark generation and both infection policies."""
    bench = PerformanceBenchmark()
    bench.benchmark_generation(n_teachers, n_students, classes_per_teacher, class_size)
    for mode in ("total", "limited"):
        bench.benchmark_infection(
            n_teachers,
            n_students,
            classes_per_teacher,
            class_size,
            mode=mode,
            target=target,
            num_runs=num_runs,
        )
    typer.echo(json.dumps(bench.results, indent=2))


if __name__ == "__main__":
    app()
