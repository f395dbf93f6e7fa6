"""Total and limited infection over a class graph."""

from dataclasses import dataclass, field
from typing import List, Optional
from loguru import logger

from classroom_infection.graph import ClassGraph
from classroom_infection.person import Person


@dataclass
class InfectionStep:
    """One class-set infection performed during a limited infection."""

    step: int
    teacher: Person
    newly_infected: int
    cumulative_infected: int
    remaining: int


class InfectionEngine:
    """Propagates the new-version flag through a ClassGraph."""

    def __init__(self, graph: ClassGraph):
        """
        Initialize the engine.

        Args:
            graph: Populated class graph; must not change while propagating
        """
        self.graph = graph
        self.history: List[InfectionStep] = []

    def total_infection(self, start: Person) -> None:
        """
        Infect everyone reachable from start through any chain of
        teacher-student or classmate connections.

        Args:
            start: Person the infection is launched from
        """
        if start not in self.graph:
            logger.warning(f"Total infection skipped: {start.id} is not in the graph")
            return

        visited = {start}
        frontier = [start]
        while frontier:
            person = frontier.pop()
            person.infect()
            for neighbor in self.graph.neighbors(person):
                if neighbor not in visited:
                    visited.add(neighbor)
                    frontier.append(neighbor)

        logger.info(f"Total infection from {start.id}: reached {len(visited)} people")

    def limited_infection(self, teacher: Person, target: int) -> None:
        """
        Infect whole classes, starting with the given teacher's, until at
        least target people have been newly infected or no teacher is left
        whose classes would infect anyone new.

        Args:
            teacher: Teacher whose classes are infected first
            target: Number of new infections to aim for (may be overshot)
        """
        self.history = []
        if not self.graph.is_teacher(teacher):
            logger.warning(f"Limited infection skipped: {teacher.id} is not a registered teacher")
            return

        remaining = target
        remaining -= self._infect_and_record(teacher, remaining)
        while remaining > 0:
            next_teacher = self.pick_best_teacher()
            if next_teacher is None:
                logger.info(f"No eligible teacher left, {remaining} infections short of target")
                return
            remaining -= self._infect_and_record(next_teacher, remaining)

        logger.info(
            f"Limited infection from {teacher.id}: {len(self.history)} teachers, "
            f"{target - remaining} newly infected (target {target})"
        )

    def _infect_and_record(self, teacher: Person, remaining: int) -> int:
        infected = self.infect_class(teacher)
        self.history.append(
            InfectionStep(
                step=len(self.history),
                teacher=teacher,
                newly_infected=infected,
                cumulative_infected=self.graph.count_infected(),
                remaining=remaining - infected,
            )
        )
        logger.debug(f"Infected classes of {teacher.id}: {infected} new")
        return infected

    def infect_class(self, teacher: Person) -> int:
        """
        Infect a teacher and every student in each of their classes.

        Returns:
            Number of people who were not infected before
        """
        count = 0
        if not teacher.infected:
            teacher.infect()
            count += 1
        for student in self.graph.students_of(teacher):
            if not student.infected:
                student.infect()
                count += 1
        return count

    def pick_best_teacher(self) -> Optional[Person]:
        """
        Choose the teacher whose classes to infect next.

        Prefers the teacher with the most already-infected students, as long
        as infecting them would still reach someone new. When no teacher has
        infected students, falls back to the last teacher (in registration
        order) that still has someone uninfected among teacher and students.

        Returns:
            The chosen teacher, or None if every teacher's classes are done
        """
        best = None
        backup = None
        max_infected = 0
        for teacher in self.graph.teachers():
            students = self.graph.students_of(teacher)
            total_students = len(students)
            infected_students = sum(1 for s in students if s.infected)

            if infected_students > max_infected:
                if not teacher.infected or infected_students < total_students:
                    max_infected = infected_students
                    best = teacher
            elif best is None and not (teacher.infected and infected_students == total_students):
                backup = teacher

        return best if best is not None else backup
