"""Teacher/class graph and the undirected connection index derived from it."""

from typing import Dict, FrozenSet, Iterator, List, Optional, Sequence, Set, Tuple

import networkx as nx
import numpy as np
from scipy import sparse
from loguru import logger

from classroom_infection.person import Person


class ConnectionIndex:
    """Symmetric adjacency between persons.

    Two persons are neighbors when one teaches the other or when they sit in
    the same class. Every edge is stored in both directions.
    """

    def __init__(self):
        self._adj: Dict[Person, Set[Person]] = {}

    def add_person(self, person: Person) -> None:
        """Register a person with no neighbors if not yet known."""
        self._adj.setdefault(person, set())

    def connect(self, a: Person, b: Person) -> None:
        """Add the undirected edge a-b. Self-loops are ignored."""
        self.add_person(a)
        self.add_person(b)
        if a is b:
            return
        self._adj[a].add(b)
        self._adj[b].add(a)

    def connect_class(self, teacher: Person, students: Sequence[Person]) -> None:
        """Add teacher-student and classmate edges for one class."""
        self.add_person(teacher)
        for i, student in enumerate(students):
            self.connect(teacher, student)
            for other in students[i + 1:]:
                self.connect(student, other)

    def neighbors(self, person: Person) -> FrozenSet[Person]:
        return frozenset(self._adj.get(person, ()))

    def people(self) -> List[Person]:
        return list(self._adj)

    def num_edges(self) -> int:
        """Number of undirected edges."""
        return sum(len(nbrs) for nbrs in self._adj.values()) // 2

    def is_symmetric(self) -> bool:
        """Check that b is a neighbor of a iff a is a neighbor of b."""
        return all(a in self._adj.get(b, ()) for a, nbrs in self._adj.items() for b in nbrs)

    def __contains__(self, person: Person) -> bool:
        return person in self._adj

    def __len__(self) -> int:
        return len(self._adj)

    def __iter__(self) -> Iterator[Person]:
        return iter(self._adj)


class ClassGraph:
    """Teachers mapped to the ordered classes they teach.

    Teachers are kept in registration order, which fixes the order in which
    they are considered when picking the next class to infect.
    """

    def __init__(self):
        self._classes: Dict[Person, List[List[Person]]] = {}
        self.connections = ConnectionIndex()

    def register_teacher(self, teacher: Person) -> bool:
        """
        Register a teacher with no classes.

        Returns:
            True if the teacher was newly added, False if already registered
        """
        if teacher in self._classes:
            return False
        self._classes[teacher] = []
        self.connections.add_person(teacher)
        return True

    def add_class(self, teacher: Person, students: Sequence[Person]) -> bool:
        """
        Append a class to a registered teacher and link its members.

        Args:
            teacher: Registered teacher owning the class
            students: Students in class order (duplicates kept as given)

        Returns:
            True if the class was added, False if the teacher is unknown
        """
        if teacher not in self._classes:
            logger.warning(f"Cannot add class: teacher {teacher.id} is not registered")
            return False
        students = list(students)
        self._classes[teacher].append(students)
        self.connections.connect_class(teacher, students)
        return True

    def teachers(self) -> List[Person]:
        return list(self._classes)

    def classes_of(self, teacher: Person) -> List[List[Person]]:
        """Copies of the teacher's classes, in the order they were added."""
        return [list(klass) for klass in self._classes.get(teacher, [])]

    def students_of(self, teacher: Person) -> List[Person]:
        """All students across a teacher's classes, duplicates included."""
        return [student for klass in self._classes.get(teacher, []) for student in klass]

    def is_teacher(self, person: Person) -> bool:
        return person in self._classes

    def people(self) -> List[Person]:
        """Everyone known to the graph, in first-seen order."""
        return self.connections.people()

    def neighbors(self, person: Person) -> FrozenSet[Person]:
        return self.connections.neighbors(person)

    def num_classes(self) -> int:
        return sum(len(classes) for classes in self._classes.values())

    def count_infected(self) -> int:
        """Number of known persons on the new version."""
        return sum(1 for person in self.connections if person.infected)

    def find(self, person_id: str) -> Optional[Person]:
        """Return the first known person with the given id, or None."""
        for person in self.connections:
            if person.id == person_id:
                return person
        return None

    def to_networkx(self) -> nx.Graph:
        """Export the connection index as an undirected networkx graph."""
        G = nx.Graph()
        for person in self.connections:
            G.add_node(person, name=person.name, id=person.id, infected=person.infected)
        for person in self.connections:
            for other in self.connections.neighbors(person):
                G.add_edge(person, other)
        return G

    def to_sparse_adjacency(self) -> Tuple[sparse.csr_matrix, List[Person]]:
        """
        Export the connection index as a CSR adjacency matrix.

        Returns:
            Tuple of (adjacency_matrix_csr, persons in row order)
        """
        order = self.people()
        position = {person: i for i, person in enumerate(order)}
        rows, cols = [], []
        for person in order:
            for other in self.connections.neighbors(person):
                rows.append(position[person])
                cols.append(position[other])
        N = len(order)
        adj = sparse.csr_matrix(
            (np.ones(len(rows), dtype=np.uint8), (rows, cols)), shape=(N, N)
        )
        return adj, order

    def __contains__(self, person: Person) -> bool:
        return person in self.connections

    def __len__(self) -> int:
        return len(self.connections)
