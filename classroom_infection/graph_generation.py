"""Population generation and loading for class graphs."""

import json
import numpy as np
from pathlib import Path
from typing import Dict, Tuple
from loguru import logger

from classroom_infection.config import Config
from classroom_infection.graph import ClassGraph
from classroom_infection.person import Person


def generate_school_graph(
    n_teachers: int,
    n_students: int,
    classes_per_teacher: int,
    class_size: int,
    teacher_student_fraction: float = 0.1,
    seed: int = 42,
) -> Tuple[ClassGraph, dict]:
    """
    Generate a random school population.

    Each class draws class_size distinct members from the student pool. A
    sampled fraction of teachers is added to that pool, so some teachers are
    also students of other teachers.

    Args:
        n_teachers: Number of teachers
        n_students: Number of students
        classes_per_teacher: Classes taught by each teacher
        class_size: Members per class (capped by the pool size)
        teacher_student_fraction: Fraction of teachers enrolled as students
        seed: Random seed

    Returns:
        Tuple of (class_graph, metadata)
    """
    rng = np.random.RandomState(seed)
    logger.info(
        f"Generating school: teachers={n_teachers}, students={n_students}, "
        f"classes_per_teacher={classes_per_teacher}, class_size={class_size}"
    )

    teachers = [Person(f"Teacher {i}", f"T{i:04d}") for i in range(n_teachers)]
    students = [Person(f"Student {i}", f"S{i:05d}") for i in range(n_students)]

    n_enrolled = int(round(teacher_student_fraction * n_teachers))
    enrolled = rng.choice(n_teachers, size=n_enrolled, replace=False) if n_enrolled else []
    pool = students + [teachers[i] for i in sorted(enrolled)]

    graph = ClassGraph()
    for teacher in teachers:
        graph.register_teacher(teacher)

    for teacher in teachers:
        candidates = [p for p in pool if p is not teacher]
        size = min(class_size, len(candidates))
        for _ in range(classes_per_teacher):
            members = rng.choice(len(candidates), size=size, replace=False)
            graph.add_class(teacher, [candidates[i] for i in members])

    degrees = np.array([len(graph.neighbors(p)) for p in graph.people()])
    metadata = {
        "n_teachers": n_teachers,
        "n_students": n_students,
        "n_enrolled_teachers": n_enrolled,
        "n_people": len(graph),
        "n_classes": graph.num_classes(),
        "num_edges": graph.connections.num_edges(),
        "avg_degree": float(degrees.mean()) if len(degrees) else 0.0,
        "seed": seed,
    }
    logger.info(
        f"Generated graph: {metadata['n_people']} people, {metadata['num_edges']} edges, "
        f"avg_degree={metadata['avg_degree']:.2f}"
    )

    return graph, metadata


def load_school_graph(path: Path | str) -> ClassGraph:
    """
    Load a population from a JSON file.

    The file lists people once by id and refers to them by id from the
    teachers' classes, so each id becomes exactly one Person.

    Args:
        path: JSON file with "people" and "teachers" entries

    Returns:
        Populated class graph
    """
    path = Path(path)
    if not path.exists():
        logger.error(f"Population file not found: {path}")
        raise FileNotFoundError(f"Population file not found: {path}")

    with open(path, "r") as f:
        data = json.load(f)

    people: Dict[str, Person] = {}
    for entry in data.get("people", []):
        if "id" not in entry:
            logger.error(f"Person entry without id in {path}: {entry}")
            raise ValueError(f"Person entry without id: {entry}")
        person_id = str(entry["id"])
        if person_id in people:
            logger.error(f"Duplicate person id in {path}: {person_id}")
            raise ValueError(f"Duplicate person id: {person_id}")
        people[person_id] = Person(entry.get("name", person_id), person_id)

    def resolve(person_id) -> Person:
        person_id = str(person_id)
        if person_id not in people:
            logger.error(f"Unknown person id in {path}: {person_id}")
            raise ValueError(f"Unknown person id: {person_id}")
        return people[person_id]

    graph = ClassGraph()
    teacher_entries = data.get("teachers", [])
    for entry in teacher_entries:
        if "id" not in entry:
            logger.error(f"Teacher entry without id in {path}: {entry}")
            raise ValueError(f"Teacher entry without id: {entry}")
        graph.register_teacher(resolve(entry["id"]))
    for entry in teacher_entries:
        teacher = resolve(entry["id"])
        for klass in entry.get("classes", []):
            graph.add_class(teacher, [resolve(i) for i in klass])

    logger.info(f"Loaded {len(graph)} people and {graph.num_classes()} classes from {path}")
    return graph


def save_school_graph(graph: ClassGraph, path: Path | str) -> None:
    """
    Save a class graph in the format read by load_school_graph.

    Raises:
        ValueError: If two distinct persons share an id, since the file
            could not tell them apart
    """
    path = Path(path)

    seen: Dict[str, Person] = {}
    for person in graph.people():
        if seen.setdefault(person.id, person) is not person:
            logger.error(f"Cannot save {path}: two people share id {person.id}")
            raise ValueError(f"Two people share id: {person.id}")

    path.parent.mkdir(parents=True, exist_ok=True)

    data = {
        "people": [{"id": p.id, "name": p.name} for p in graph.people()],
        "teachers": [
            {
                "id": teacher.id,
                "classes": [[s.id for s in klass] for klass in graph.classes_of(teacher)],
            }
            for teacher in graph.teachers()
        ],
    }
    with open(path, "w") as f:
        json.dump(data, f, indent=2)
    logger.info(f"Saved population to {path}")


def build_from_config(config: Config, seed: int | None = None) -> Tuple[ClassGraph, dict]:
    """
    Build the class graph a config describes.

    Args:
        config: Configuration object
        seed: Seed override for repeated runs (default: config.seed)

    Returns:
        Tuple of (class_graph, metadata)
    """
    if config.graph_file:
        graph = load_school_graph(config.graph_file)
        metadata = {
            "graph_file": config.graph_file,
            "n_people": len(graph),
            "n_classes": graph.num_classes(),
            "num_edges": graph.connections.num_edges(),
        }
        return graph, metadata

    pop = config.population
    return generate_school_graph(
        n_teachers=pop.n_teachers,
        n_students=pop.n_students,
        classes_per_teacher=pop.classes_per_teacher,
        class_size=pop.class_size,
        teacher_student_fraction=pop.teacher_student_fraction,
        seed=config.seed if seed is None else seed,
    )
