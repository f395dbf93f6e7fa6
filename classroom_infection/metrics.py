"""Metrics collection and analysis."""

import numpy as np
from typing import List, Dict, Optional
from dataclasses import dataclass, asdict, field
from scipy.sparse import csgraph
from loguru import logger

from classroom_infection.graph import ClassGraph
from classroom_infection.infection import InfectionEngine


@dataclass
class InfectionMetrics:
    """Container for the outcome of one infection run."""

    mode: str
    population: int
    infected_count: int
    attack_rate: float  # Fraction of population infected
    target: Optional[int]
    target_reached: bool
    overshoot: int  # Infections beyond target (limited mode)
    classes_infected: int
    teachers_selected: List[str] = field(default_factory=list)
    cumulative_infected: List[int] = field(default_factory=list)

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return asdict(self)


def compute_infection_metrics(
    graph: ClassGraph,
    engine: InfectionEngine,
    mode: str,
    target: Optional[int] = None,
    infected_before: int = 0,
) -> InfectionMetrics:
    """
    Compute metrics after an infection run.

    Args:
        graph: Class graph the engine ran on
        engine: Engine holding the limited-infection history
        mode: "total" or "limited"
        target: Target new infections (limited mode)
        infected_before: Infected count before the run

    Returns:
        InfectionMetrics for the run
    """
    population = len(graph)
    infected = graph.count_infected()
    newly_infected = infected - infected_before

    if mode == "limited":
        history = engine.history
        classes_infected = sum(len(graph.classes_of(step.teacher)) for step in history)
        teachers_selected = [step.teacher.id for step in history]
        cumulative = [step.cumulative_infected for step in history]
        target_reached = target is not None and newly_infected >= target
        overshoot = max(0, newly_infected - target) if target is not None else 0
    else:
        classes_infected = 0
        teachers_selected = []
        cumulative = [infected]
        target_reached = True
        overshoot = 0

    return InfectionMetrics(
        mode=mode,
        population=population,
        infected_count=infected,
        attack_rate=MetricsCollector.compute_attack_rate(infected, population),
        target=target if mode == "limited" else None,
        target_reached=target_reached,
        overshoot=overshoot,
        classes_infected=classes_infected,
        teachers_selected=teachers_selected,
        cumulative_infected=cumulative,
    )


def component_sizes(graph: ClassGraph) -> List[int]:
    """
    Sizes of the connected components of the connection index.

    Total infection from any person reaches exactly that person's component.

    Returns:
        Component sizes, largest first
    """
    if len(graph) == 0:
        return []
    adj, _ = graph.to_sparse_adjacency()
    n_components, labels = csgraph.connected_components(adj, directed=False)
    sizes = np.bincount(labels, minlength=n_components)
    return sorted((int(s) for s in sizes), reverse=True)


class MetricsCollector:
    """Collects and aggregates metrics from repeated runs."""

    def __init__(self):
        self.runs: List[Dict] = []

    def add_run(self, metrics: dict) -> None:
        """Add metrics from a single run."""
        self.runs.append(metrics)

    def compute_aggregate_metrics(self) -> dict:
        """
        Compute aggregate metrics across all runs.

        Returns:
            Dictionary of aggregate metrics
        """
        if not self.runs:
            return {}

        infected = [r.get("infected_count", 0) for r in self.runs]
        attack_rates = [r.get("attack_rate", 0.0) for r in self.runs]
        overshoots = [r.get("overshoot", 0) for r in self.runs]
        classes = [r.get("classes_infected", 0) for r in self.runs]
        reached = sum(1 for r in self.runs if r.get("target_reached", False))

        aggregate = {
            "num_runs": len(self.runs),
            "target_reach_probability": reached / len(self.runs),
            "mean_infected": float(np.mean(infected)),
            "std_infected": float(np.std(infected)),
            "min_infected": int(min(infected)),
            "max_infected": int(max(infected)),
            "mean_attack_rate": float(np.mean(attack_rates)),
            "mean_overshoot": float(np.mean(overshoots)),
            "mean_classes_infected": float(np.mean(classes)),
        }
        logger.debug(f"Aggregated {len(self.runs)} runs")

        return aggregate

    @staticmethod
    def compute_attack_rate(infected: int, population: int) -> float:
        """Compute attack rate (fraction of population infected)."""
        return infected / population if population > 0 else 0.0
