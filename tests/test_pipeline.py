"""Tests for configuration, population loading, diagnostics, metrics and the CLI."""

import json

import pytest
from loguru import logger
from pydantic import ValidationError
from typer.testing import CliRunner

from classroom_infection.cli import app
from classroom_infection.config import Config, InfectionConfig, PopulationConfig
from classroom_infection.diagnostics import format_classes, format_connections, format_versions
from classroom_infection.graph import ClassGraph
from classroom_infection.graph_generation import (
    build_from_config,
    generate_school_graph,
    load_school_graph,
    save_school_graph,
)
from classroom_infection.infection import InfectionEngine
from classroom_infection.metrics import (
    MetricsCollector,
    component_sizes,
    compute_infection_metrics,
)
from classroom_infection.person import Person


runner = CliRunner()


@pytest.fixture
def small_class():
    """Ann teaches one class of Bob and Cat."""
    ann, bob, cat = Person("Ann", "T1"), Person("Bob", "S1"), Person("Cat", "S2")
    graph = ClassGraph()
    graph.register_teacher(ann)
    graph.add_class(ann, [bob, cat])
    return graph, ann, bob, cat


@pytest.fixture
def population_file(tmp_path):
    """Two disjoint classes written as a population file."""
    data = {
        "people": [
            {"id": "T1", "name": "Ann"},
            {"id": "S1", "name": "Bob"},
            {"id": "S2", "name": "Cat"},
            {"id": "T2", "name": "Dan"},
            {"id": "S3", "name": "Eve"},
            {"id": "S4", "name": "Fay"},
        ],
        "teachers": [
            {"id": "T1", "classes": [["S1", "S2"]]},
            {"id": "T2", "classes": [["S3", "S4"]]},
        ],
    }
    path = tmp_path / "population.json"
    path.write_text(json.dumps(data))
    return path


class TestConfig:
    """Test configuration."""

    def test_config_defaults(self):
        """Test default config values."""
        config = Config()
        assert config.infection.mode == "limited"
        assert config.population.n_teachers == 50
        assert config.runs == 1
        assert config.graph_file is None

    def test_config_presets(self):
        """Test named presets."""
        assert Config.default_total().infection.mode == "total"
        assert Config.default_limited().infection.target == 100
        toy = Config.toy_two_classes()
        assert toy.population.n_teachers == 2
        assert toy.population.class_size == 2
        assert toy.infection.target == 1

    def test_config_save_load(self, tmp_path):
        """Test config save and load."""
        config = Config(infection=InfectionConfig(mode="total", start_id="T0003"))
        config_path = tmp_path / "config.json"

        config.save(config_path)
        loaded = Config.load(config_path)

        assert loaded.infection.mode == "total"
        assert loaded.infection.start_id == "T0003"
        assert loaded.population.class_size == config.population.class_size

    def test_class_size_validation(self):
        """Test that oversized classes are rejected."""
        with pytest.raises(ValidationError):
            PopulationConfig(n_teachers=2, n_students=3, class_size=10)

    def test_teacher_count_validation(self):
        """Test that an unreasonable teacher count is rejected."""
        with pytest.raises(ValidationError):
            PopulationConfig(n_teachers=200_000)

    def test_mode_validation(self):
        """Test that only known modes are accepted."""
        with pytest.raises(ValidationError):
            InfectionConfig(mode="partial")


class TestGraphGeneration:
    """Test population generation."""

    def test_generation_basic(self):
        """Test counts for a population where every student is placed."""
        graph, metadata = generate_school_graph(
            n_teachers=3,
            n_students=4,
            classes_per_teacher=2,
            class_size=4,
            teacher_student_fraction=0.0,
            seed=42,
        )

        assert len(graph.teachers()) == 3
        assert metadata["n_people"] == 7
        assert metadata["n_classes"] == 6
        for teacher in graph.teachers():
            for klass in graph.classes_of(teacher):
                assert len(klass) == 4
                assert len(set(klass)) == 4

    def test_teachers_not_in_own_class(self):
        """Test that enrolled teachers never sit in their own class."""
        graph, metadata = generate_school_graph(
            n_teachers=10,
            n_students=20,
            classes_per_teacher=2,
            class_size=15,
            teacher_student_fraction=0.5,
            seed=1,
        )

        assert metadata["n_enrolled_teachers"] == 5
        for teacher in graph.teachers():
            assert teacher not in graph.students_of(teacher)
        assert graph.connections.is_symmetric()

    def test_generation_reproducible(self):
        """Test that the same seed gives the same classes."""
        def class_ids(seed):
            graph, _ = generate_school_graph(
                n_teachers=5, n_students=50, classes_per_teacher=2, class_size=6, seed=seed
            )
            return [[s.id for s in k] for t in graph.teachers() for k in graph.classes_of(t)]

        assert class_ids(9) == class_ids(9)

    def test_build_from_config_generates(self):
        """Test building from the population config."""
        config = Config(
            population=PopulationConfig(
                n_teachers=4, n_students=10, classes_per_teacher=1, class_size=3
            )
        )
        graph, metadata = build_from_config(config)

        assert len(graph.teachers()) == 4
        assert metadata["seed"] == 42


class TestPopulationFiles:
    """Test loading and saving population files."""

    def test_load(self, population_file):
        """Test that ids resolve to a single person each."""
        graph = load_school_graph(population_file)

        assert [t.id for t in graph.teachers()] == ["T1", "T2"]
        assert len(graph) == 6
        bob = graph.find("S1")
        assert bob.name == "Bob"
        assert graph.neighbors(bob) == {graph.find("T1"), graph.find("S2")}

    def test_save_then_load(self, tmp_path, small_class):
        """Test that a saved graph loads with the same structure."""
        graph, ann, bob, cat = small_class
        path = tmp_path / "saved.json"

        save_school_graph(graph, path)
        loaded = load_school_graph(path)

        assert format_classes(loaded) == format_classes(graph)
        assert format_connections(loaded) == format_connections(graph)

    def test_unknown_id(self, tmp_path):
        """Test that a class naming an unknown person is rejected."""
        path = tmp_path / "bad.json"
        path.write_text(json.dumps({
            "people": [{"id": "T1", "name": "Ann"}],
            "teachers": [{"id": "T1", "classes": [["S9"]]}],
        }))

        with pytest.raises(ValueError, match="S9"):
            load_school_graph(path)

    def test_duplicate_id(self, tmp_path):
        """Test that a person id listed twice is rejected."""
        path = tmp_path / "dup.json"
        path.write_text(json.dumps({
            "people": [{"id": "T1", "name": "Ann"}, {"id": "T1", "name": "Bo"}],
            "teachers": [],
        }))

        with pytest.raises(ValueError, match="Duplicate"):
            load_school_graph(path)

    def test_save_shared_id_rejected(self, tmp_path):
        """Test that two people sharing an id are not written to a file."""
        graph = ClassGraph()
        graph.register_teacher(Person("Ann", "T1"))
        graph.register_teacher(Person("Ann", "T1"))
        path = tmp_path / "shared.json"

        with pytest.raises(ValueError, match="T1"):
            save_school_graph(graph, path)
        assert not path.exists()

    def test_saved_files_load(self, tmp_path):
        """Test that every file save_school_graph writes can be loaded back."""
        graph, _ = generate_school_graph(
            n_teachers=6, n_students=40, classes_per_teacher=2, class_size=5,
            teacher_student_fraction=0.5, seed=4,
        )
        path = tmp_path / "school.json"

        save_school_graph(graph, path)
        loaded = load_school_graph(path)

        assert len(loaded) == len(graph)
        assert format_classes(loaded) == format_classes(graph)

    @pytest.mark.parametrize("data, message", [
        ({"people": [{"name": "Ann"}], "teachers": []}, "without id"),
        ({"people": [{"id": "T1"}], "teachers": [{"classes": []}]}, "without id"),
        ({"people": [{"id": "T1"}, {"id": "T1"}], "teachers": []}, "Duplicate"),
        ({"people": [{"id": "T1"}], "teachers": [{"id": "T9"}]}, "Unknown"),
    ])
    def test_bad_file_logged(self, tmp_path, data, message):
        """Test that malformed files log an error and raise ValueError."""
        path = tmp_path / "bad.json"
        path.write_text(json.dumps(data))
        errors = []
        sink = logger.add(errors.append, level="ERROR")
        try:
            with pytest.raises(ValueError, match=message):
                load_school_graph(path)
        finally:
            logger.remove(sink)

        assert len(errors) == 1

    def test_missing_file(self, tmp_path):
        """Test that a missing file raises FileNotFoundError."""
        with pytest.raises(FileNotFoundError):
            load_school_graph(tmp_path / "nope.json")

    def test_build_from_config_file(self, population_file):
        """Test that a population file overrides generation."""
        config = Config(graph_file=str(population_file))
        graph, metadata = build_from_config(config)

        assert metadata["n_people"] == 6
        assert metadata["graph_file"] == str(population_file)


class TestDiagnostics:
    """Test plain-text dumps."""

    def test_format_classes(self, small_class):
        """Test the class layout."""
        graph, ann, bob, cat = small_class
        dan = Person("Dan", "S3")
        graph.add_class(ann, [dan])

        assert format_classes(graph) == "Ann\n\tBob, Cat, \n\tDan, \n"

    def test_format_connections(self, small_class):
        """Test the connection layout."""
        graph, *_ = small_class

        assert format_connections(graph) == (
            "Ann: Bob, Cat, \n"
            "Bob: Ann, Cat, \n"
            "Cat: Ann, Bob, \n"
        )

    def test_format_versions(self, small_class):
        """Test the version layout."""
        graph, ann, bob, cat = small_class
        bob.infect()

        assert format_versions(graph) == "Ann false\nBob true\nCat false\n"


class TestMetrics:
    """Test metrics."""

    def test_limited_metrics(self, small_class):
        """Test metrics of a limited infection that overshoots."""
        graph, ann, bob, cat = small_class
        engine = InfectionEngine(graph)
        engine.limited_infection(ann, 1)

        metrics = compute_infection_metrics(graph, engine, "limited", target=1)

        assert metrics.infected_count == 3
        assert metrics.population == 3
        assert metrics.attack_rate == 1.0
        assert metrics.target_reached
        assert metrics.overshoot == 2
        assert metrics.classes_infected == 1
        assert metrics.teachers_selected == ["T1"]
        assert metrics.cumulative_infected == [3]

    def test_total_metrics(self, population_file):
        """Test metrics of a total infection."""
        graph = load_school_graph(population_file)
        engine = InfectionEngine(graph)
        engine.total_infection(graph.find("S3"))

        metrics = compute_infection_metrics(graph, engine, "total").to_dict()

        assert metrics["infected_count"] == 3
        assert metrics["attack_rate"] == 0.5
        assert metrics["target"] is None
        assert metrics["teachers_selected"] == []

    def test_component_sizes(self, population_file):
        """Test component sizes of two disjoint classes."""
        graph = load_school_graph(population_file)

        assert component_sizes(graph) == [3, 3]
        assert component_sizes(ClassGraph()) == []

    def test_collector_aggregate(self):
        """Test aggregation over runs."""
        collector = MetricsCollector()
        assert collector.compute_aggregate_metrics() == {}

        collector.add_run({"infected_count": 10, "attack_rate": 0.5, "overshoot": 2,
                           "classes_infected": 1, "target_reached": True})
        collector.add_run({"infected_count": 20, "attack_rate": 1.0, "overshoot": 0,
                           "classes_infected": 3, "target_reached": False})
        aggregate = collector.compute_aggregate_metrics()

        assert aggregate["num_runs"] == 2
        assert aggregate["target_reach_probability"] == 0.5
        assert aggregate["mean_infected"] == 15.0
        assert aggregate["min_infected"] == 10
        assert aggregate["max_infected"] == 20
        assert aggregate["mean_overshoot"] == 1.0

    def test_attack_rate_empty(self):
        """Test attack rate of an empty population."""
        assert MetricsCollector.compute_attack_rate(0, 0) == 0.0


class TestCLI:
    """Test the command-line interface."""

    def test_run_limited(self, tmp_path):
        """Test a limited run writes its outputs."""
        out = tmp_path / "out"
        result = runner.invoke(app, [
            "run", "--mode", "limited", "--target", "10",
            "--n-teachers", "5", "--n-students", "30",
            "--class-size", "5", "--output-dir", str(out),
        ])

        assert result.exit_code == 0, result.output
        for name in ("config.json", "graph_metadata.json", "metrics.json", "progress.png"):
            assert (out / name).exists()
        metrics = json.loads((out / "metrics.json").read_text())
        assert metrics["infected_count"] >= 10
        assert metrics["teachers_selected"][0] == "T0000"

    def test_run_total_from_file(self, tmp_path, population_file):
        """Test a total run over a population file with repeated runs."""
        out = tmp_path / "out"
        result = runner.invoke(app, [
            "run", "--mode", "total", "--graph-file", str(population_file),
            "--start-id", "T2", "--runs", "2", "--show-versions",
            "--output-dir", str(out),
        ])

        assert result.exit_code == 0, result.output
        assert "Dan true" in result.output
        assert "Ann false" in result.output
        aggregate = json.loads((out / "aggregate_metrics.json").read_text())
        assert aggregate["num_runs"] == 2
        assert aggregate["mean_infected"] == 3.0

    def test_show_versions_first_run(self, tmp_path):
        """Test that repeated runs print the versions of the saved first run."""
        out = tmp_path / "out"
        result = runner.invoke(app, [
            "run", "--target", "8", "--n-teachers", "6", "--n-students", "40",
            "--class-size", "5", "--runs", "3", "--show-versions",
            "--output-dir", str(out),
        ])

        assert result.exit_code == 0, result.output
        metrics = json.loads((out / "metrics.json").read_text())
        lines = [line for line in result.output.splitlines() if line.endswith((" true", " false"))]
        assert len(lines) == metrics["population"]
        assert sum(line.endswith(" true") for line in lines) == metrics["infected_count"]

    def test_run_unknown_start(self, tmp_path, population_file):
        """Test that an unknown start id fails."""
        result = runner.invoke(app, [
            "run", "--graph-file", str(population_file), "--start-id", "ZZ",
            "--output-dir", str(tmp_path / "out"),
        ])

        assert result.exit_code != 0
        assert isinstance(result.exception, ValueError)

    def test_show(self, population_file):
        """Test printing a population file."""
        result = runner.invoke(app, ["show", str(population_file)])

        assert result.exit_code == 0
        assert result.output == "Ann\n\tBob, Cat, \nDan\n\tEve, Fay, \n"

    def test_show_versions(self, population_file):
        """Test printing versions of a fresh population."""
        result = runner.invoke(app, ["show", str(population_file), "--view", "versions"])

        assert result.exit_code == 0
        assert result.output.count("false") == 6

    def test_plot_missing_run(self, tmp_path):
        """Test that plotting a missing run fails."""
        result = runner.invoke(app, ["plot", "--run-id", str(tmp_path / "missing")])

        assert result.exit_code != 0
        assert isinstance(result.exception, FileNotFoundError)

    def test_plot_regenerates(self, tmp_path):
        """Test regenerating the progress plot of a finished run."""
        out = tmp_path / "out"
        runner.invoke(app, [
            "run", "--target", "5", "--n-teachers", "4", "--n-students", "20",
            "--class-size", "4", "--output-dir", str(out),
        ])
        result = runner.invoke(app, ["plot", "--run-id", str(out)])

        assert result.exit_code == 0
        assert (out / "progress_regenerated.png").exists()


class TestBenchmarks:
    """Test benchmarking utilities."""

    def test_benchmark_small(self):
        """Test that benchmarks report timings for both policies."""
        from classroom_infection.benchmarks import PerformanceBenchmark

        bench = PerformanceBenchmark()
        gen = bench.benchmark_generation(5, 40, 2, 5)
        total = bench.benchmark_infection(5, 40, 2, 5, mode="total", num_runs=2)
        limited = bench.benchmark_infection(5, 40, 2, 5, mode="limited", target=10)

        assert gen["n_people"] > 5
        assert total["num_runs"] == 2
        assert limited["mean_infected"] >= 10
        assert set(bench.results) == {"generation", "total", "limited"}


class TestViz:
    """Test plot output files."""

    def test_plot_network(self, tmp_path, small_class):
        """Test writing the network plot."""
        from classroom_infection.viz import plot_network

        graph, ann, *_ = small_class
        InfectionEngine(graph).limited_infection(ann, 1)
        path = tmp_path / "network.html"

        plot_network(graph, output_path=path)

        assert path.exists()
