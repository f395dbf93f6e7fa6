"""Plain-text dumps of a class graph, useful when checking small populations by eye."""

from classroom_infection.graph import ClassGraph


def format_classes(graph: ClassGraph) -> str:
    """
    Render each teacher followed by one tab-indented line per class.

    Format:
        teacher\\n\\tstudent, student, \\n\\tstudent, \\n...
    """
    lines = []
    for teacher in graph.teachers():
        lines.append(teacher.name + "\n")
        for klass in graph.classes_of(teacher):
            lines.append("\t" + "".join(f"{s.name}, " for s in klass) + "\n")
    return "".join(lines)


def format_connections(graph: ClassGraph) -> str:
    """Render every person with the names of their direct connections."""
    lines = []
    for person in graph.people():
        # sorted so the dump is stable across runs
        names = sorted(other.name for other in graph.neighbors(person))
        lines.append(f"{person.name}: " + "".join(f"{n}, " for n in names) + "\n")
    return "".join(lines)


def format_versions(graph: ClassGraph) -> str:
    """Render each person's name and whether they see the new version."""
    return "".join(
        f"{person.name} {str(person.infected).lower()}\n" for person in graph.people()
    )
