"""
Class Infection Package

Rolls a new site version out through a population of teachers and students.
Supports total infection (everyone connected to a user) and limited
infection (whole classes, greedily, until a target count is reached).
"""

__version__ = "0.1.0"
__author__ = "Author"

from classroom_infection.config import Config
from classroom_infection.person import Person
from classroom_infection.graph import ClassGraph, ConnectionIndex
from classroom_infection.infection import InfectionEngine, InfectionStep
from classroom_infection.graph_generation import generate_school_graph, load_school_graph
from classroom_infection.metrics import MetricsCollector

__all__ = [
    "Config",
    "Person",
    "ClassGraph",
    "ConnectionIndex",
    "InfectionEngine",
    "InfectionStep",
    "generate_school_graph",
    "load_school_graph",
    "MetricsCollector",
]
