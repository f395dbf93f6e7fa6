"""Person records carried through the class graph."""

from dataclasses import dataclass


@dataclass(eq=False)
class Person:
    """A user of the site: a teacher, a student, or both.

    Persons compare and hash by identity, so two records sharing a name and
    id are still two vertices. Loaders create one record per id.
    """

    name: str
    id: str
    infected: bool = False  # True once the person sees the new version

    def infect(self) -> None:
        """Move the person onto the new version."""
        self.infected = True

    def __repr__(self) -> str:
        return f"Person(name={self.name!r}, id={self.id!r}, infected={self.infected})"
