"""Configuration management for class infection runs."""

from typing import Literal, Optional
from pathlib import Path
from pydantic import BaseModel, Field, field_validator, model_validator
import json


class PopulationConfig(BaseModel):
    """Configuration for generating a synthetic school population."""

    n_teachers: int = Field(default=50, ge=1, description="Number of teachers")
    n_students: int = Field(default=1000, ge=1, description="Number of students")
    classes_per_teacher: int = Field(
        default=2, ge=0, description="Classes taught by each teacher"
    )
    class_size: int = Field(default=25, ge=0, description="Students per class")
    teacher_student_fraction: float = Field(
        default=0.1,
        ge=0.0,
        le=1.0,
        description="Fraction of teachers also enrolled in other teachers' classes",
    )

    @field_validator("n_teachers")
    @classmethod
    def validate_n_teachers(cls, v: int) -> int:
        """Validate n_teachers is reasonable."""
        if v > 100_000:
            raise ValueError("n_teachers should be <= 100,000")
        return v

    @model_validator(mode="after")
    def validate_class_size(self) -> "PopulationConfig":
        """A class cannot hold more members than the student pool."""
        if self.class_size > self.n_students + self.n_teachers:
            raise ValueError("class_size cannot exceed n_students + n_teachers")
        return self


class InfectionConfig(BaseModel):
    """Configuration for the propagation policy."""

    mode: Literal["total", "limited"] = Field(
        default="limited", description="Infection policy: 'total' or 'limited'"
    )
    target: int = Field(
        default=100, ge=0, description="New infections to aim for (limited mode)"
    )
    start_id: Optional[str] = Field(
        default=None, description="Id of the start person (default: first teacher)"
    )


class Config(BaseModel):
    """Main configuration for class infection runs."""

    # Random seed
    seed: int = Field(default=42, description="Random seed for reproducibility")

    # Population
    population: PopulationConfig = Field(
        default_factory=PopulationConfig, description="Synthetic population config"
    )
    graph_file: Optional[str] = Field(
        default=None, description="JSON population file (overrides generation)"
    )

    # Infection
    infection: InfectionConfig = Field(
        default_factory=InfectionConfig, description="Infection policy config"
    )

    # Output
    output_dir: str = Field(
        default="runs/exp001", description="Output directory for results"
    )

    # Repeated runs
    runs: int = Field(
        default=1, ge=1, description="Number of runs (seeds seed..seed+runs-1)"
    )

    def to_dict(self) -> dict:
        """Convert config to dictionary."""
        return self.model_dump()

    def to_json(self) -> str:
        """Convert config to JSON string."""
        return self.model_dump_json(indent=2)

    def save(self, path: Path | str) -> None:
        """Save config to JSON file."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w") as f:
            f.write(self.to_json())

    @classmethod
    def load(cls, path: Path | str) -> "Config":
        """Load config from JSON file."""
        path = Path(path)
        with open(path, "r") as f:
            data = json.load(f)
        return cls(**data)

    @classmethod
    def default_total(cls) -> "Config":
        """Create default total-infection config."""
        return cls(infection=InfectionConfig(mode="total"))

    @classmethod
    def default_limited(cls) -> "Config":
        """Create default limited-infection config."""
        return cls(infection=InfectionConfig(mode="limited", target=100))

    @classmethod
    def toy_two_classes(cls) -> "Config":
        """Create toy config: two teachers with one small class each."""
        return cls(
            seed=42,
            population=PopulationConfig(
                n_teachers=2,
                n_students=4,
                classes_per_teacher=1,
                class_size=2,
                teacher_student_fraction=0.0,
            ),
            infection=InfectionConfig(mode="limited", target=1),
        )
