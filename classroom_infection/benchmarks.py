"""Performance benchmarking utilities.

Time and memory of population generation and of both infection policies.
"""

import time
import numpy as np
from typing import Dict
from loguru import logger
import psutil
import os

from classroom_infection.graph_generation import generate_school_graph
from classroom_infection.infection import InfectionEngine


class PerformanceBenchmark:
    """Benchmark performance of infection runs."""

    def __init__(self):
        """Initialize benchmark."""
        self.results = {}
        self.process = psutil.Process(os.getpid())

    def get_memory_usage(self) -> float:
        """Get current memory usage in MB."""
        return self.process.memory_info().rss / 1024 / 1024

    def benchmark_generation(
        self,
        n_teachers: int,
        n_students: int,
        classes_per_teacher: int,
        class_size: int,
        seed: int = 42,
    ) -> Dict:
        """Benchmark population generation.

        Returns:
            Benchmark results
        """
        logger.info(f"Benchmarking generation: teachers={n_teachers}, students={n_students}")

        mem_before = self.get_memory_usage()
        start_time = time.time()

        graph, metadata = generate_school_graph(
            n_teachers=n_teachers,
            n_students=n_students,
            classes_per_teacher=classes_per_teacher,
            class_size=class_size,
            seed=seed,
        )

        elapsed = time.time() - start_time
        mem_used = self.get_memory_usage() - mem_before

        result = {
            "n_people": metadata["n_people"],
            "num_edges": metadata["num_edges"],
            "time_seconds": elapsed,
            "memory_mb": mem_used,
        }
        self.results["generation"] = result

        logger.info(f"Generation: {elapsed:.2f}s, {mem_used:.1f}MB, {metadata['num_edges']} edges")

        return result

    def benchmark_infection(
        self,
        n_teachers: int,
        n_students: int,
        classes_per_teacher: int,
        class_size: int,
        mode: str = "total",
        target: int = 100,
        num_runs: int = 1,
    ) -> Dict:
        """Benchmark one infection policy on freshly generated populations.

        Args:
            mode: "total" or "limited"
            target: Target new infections (limited mode)
            num_runs: Number of runs to average (seeds 0..num_runs-1)

        Returns:
            Benchmark results
        """
        logger.info(f"Benchmarking {mode} infection: runs={num_runs}")

        times = []
        infected = []

        for run in range(num_runs):
            graph, _ = generate_school_graph(
                n_teachers=n_teachers,
                n_students=n_students,
                classes_per_teacher=classes_per_teacher,
                class_size=class_size,
                seed=run,
            )
            engine = InfectionEngine(graph)
            start = graph.teachers()[0]

            start_time = time.time()
            if mode == "total":
                engine.total_infection(start)
            else:
                engine.limited_infection(start, target)
            elapsed = time.time() - start_time

            times.append(elapsed)
            infected.append(graph.count_infected())
            logger.info(f"Run {run+1}/{num_runs}: {elapsed:.4f}s, infected={infected[-1]}")

        result = {
            "mode": mode,
            "time_mean_seconds": float(np.mean(times)),
            "time_std_seconds": float(np.std(times)),
            "time_min_seconds": float(np.min(times)),
            "time_max_seconds": float(np.max(times)),
            "mean_infected": float(np.mean(infected)),
            "num_runs": num_runs,
        }
        self.results[mode] = result

        logger.info(
            f"{mode} infection: {result['time_mean_seconds']:.4f}s ± {result['time_std_seconds']:.4f}s"
        )

        return result
