#!/usr/bin/env python
"""Simple demonstration of total and limited infection."""

from pathlib import Path
import sys

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from classroom_infection.config import Config
from classroom_infection.diagnostics import format_classes, format_versions
from classroom_infection.graph import ClassGraph
from classroom_infection.graph_generation import generate_school_graph
from classroom_infection.infection import InfectionEngine
from classroom_infection.metrics import MetricsCollector, component_sizes, compute_infection_metrics
from classroom_infection.person import Person
from classroom_infection.viz import plot_infection_progress, plot_network


def demo_toy_classes():
    """Demonstrate both policies on two hand-built classes."""
    print("\n" + "=" * 60)
    print("DEMO 1: Toy Classes (two teachers, one shared student)")
    print("=" * 60)

    ann, dan = Person("Ann", "T1"), Person("Dan", "T2")
    bob, cat, eve = Person("Bob", "S1"), Person("Cat", "S2"), Person("Eve", "S3")

    graph = ClassGraph()
    graph.register_teacher(ann)
    graph.register_teacher(dan)
    graph.add_class(ann, [bob, cat])
    graph.add_class(dan, [cat, eve])
    print(format_classes(graph))

    engine = InfectionEngine(graph)
    engine.limited_infection(ann, 1)
    print(f"Limited infection (target=1): {graph.count_infected()} infected")
    print(format_versions(graph))

    engine.total_infection(bob)
    print(f"Total infection from Bob: {graph.count_infected()} infected")


def demo_limited_school():
    """Demonstrate limited infection on a generated school."""
    print("\n" + "=" * 60)
    print("DEMO 2: Limited Infection (200 teachers, 3,000 students)")
    print("=" * 60)

    config = Config.default_limited()
    config.population.n_teachers = 200
    config.population.n_students = 3000

    pop = config.population
    graph, metadata = generate_school_graph(
        n_teachers=pop.n_teachers,
        n_students=pop.n_students,
        classes_per_teacher=pop.classes_per_teacher,
        class_size=pop.class_size,
        teacher_student_fraction=pop.teacher_student_fraction,
        seed=config.seed,
    )
    print(f"Graph generated: {metadata['num_edges']} edges")
    print(f"Components: {len(component_sizes(graph))}")

    engine = InfectionEngine(graph)
    engine.limited_infection(graph.teachers()[0], config.infection.target)
    metrics = compute_infection_metrics(graph, engine, "limited", target=config.infection.target)

    print(f"Infected: {metrics.infected_count} (target {metrics.target})")
    print(f"Overshoot: {metrics.overshoot}")
    print(f"Teachers infected: {len(metrics.teachers_selected)}")

    output_dir = Path("runs/demo_limited")
    plot_infection_progress(
        metrics.cumulative_infected,
        target=metrics.target,
        output_path=output_dir / "progress.png",
    )
    print(f"Plot saved to {output_dir / 'progress.png'}")


def demo_target_sensitivity():
    """Demonstrate overshoot across targets and seeds."""
    print("\n" + "=" * 60)
    print("DEMO 3: Target Sensitivity (10 seeds per target)")
    print("=" * 60)

    for target in [10, 50, 200]:
        collector = MetricsCollector()
        for seed in range(10):
            graph, _ = generate_school_graph(
                n_teachers=50, n_students=800, classes_per_teacher=2, class_size=20, seed=seed
            )
            engine = InfectionEngine(graph)
            engine.limited_infection(graph.teachers()[0], target)
            collector.add_run(compute_infection_metrics(graph, engine, "limited", target=target).to_dict())

        aggregate = collector.compute_aggregate_metrics()
        print(
            f"target={target}: mean_infected={aggregate['mean_infected']:.1f}, "
            f"mean_overshoot={aggregate['mean_overshoot']:.1f}"
        )


def demo_network_plot():
    """Draw a small school after a limited infection."""
    graph, _ = generate_school_graph(
        n_teachers=8, n_students=60, classes_per_teacher=1, class_size=6, seed=3
    )
    InfectionEngine(graph).limited_infection(graph.teachers()[0], 15)
    plot_network(graph, output_path=Path("runs/demo_network/network.html"))


if __name__ == "__main__":
    print("\n" + "=" * 60)
    print("CLASS INFECTION - DEMO")
    print("=" * 60)

    demo_toy_classes()
    demo_limited_school()
    demo_target_sensitivity()
    demo_network_plot()

    print("\n" + "=" * 60)
    print("DEMO COMPLETE")
    print("=" * 60)
