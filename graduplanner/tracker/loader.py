"""
CurriculumLoader - Load the static curriculum from a YAML file.

Provides read-only access to:
- The validated Curriculum model
- The prerequisite graph (networkx DiGraph, edge prerequisite -> dependent)
- External entry requirements that are not subjects
"""

import logging
from pathlib import Path
from typing import Optional

import networkx as nx
import yaml
from pydantic import ValidationError

from graduplanner.schemas import Curriculum, ExternalCondition


logger = logging.getLogger(__name__)

DEFAULT_CURRICULUM_PATH = Path(__file__).parent.parent / "data" / "curriculum.yaml"


def build_prerequisite_graph(curriculum: Curriculum) -> nx.DiGraph:
    """
    Build the directed prerequisite graph.

    Every subject is a node (with its period index as `period`); an edge
    A -> B means A must be completed before B unlocks. External conditions
    are not part of the graph.
    """
    G = nx.DiGraph()
    for period_index, period in enumerate(curriculum.periods):
        for subject in period.subjects:
            G.add_node(subject.name, period=period_index)
    for subject in curriculum.subjects:
        for prereq in subject.subject_prerequisites:
            G.add_edge(prereq, subject.name)
    return G


def validate_prerequisite_graph(G: nx.DiGraph):
    """Raise ValueError if the prerequisite graph contains a cycle."""
    try:
        cycle = nx.find_cycle(G)
    except nx.NetworkXNoCycle:
        return
    path = " -> ".join([u for u, _ in cycle] + [cycle[0][0]])
    raise ValueError(f"Circular prerequisite chain: {path}")


def parse_curriculum(raw: dict) -> Curriculum:
    """Validate raw curriculum data (as read from YAML) into a Curriculum."""
    if not isinstance(raw, dict):
        raise ValueError("Curriculum document root must be a mapping")
    try:
        curriculum = Curriculum.model_validate(raw)
    except ValidationError as e:
        raise ValueError(f"Invalid curriculum: {e}") from e
    validate_prerequisite_graph(build_prerequisite_graph(curriculum))
    return curriculum


class CurriculumLoader:
    """
    Load a curriculum from YAML.

    The document is parsed and validated once, on construction; a broken
    curriculum fails loudly here rather than at query time.
    """

    def __init__(self, path: Optional[str | Path] = None):
        """
        Initialize loader.

        Args:
            path: Path to the curriculum YAML (default: bundled curriculum.yaml)
        """
        self.path = Path(path) if path else DEFAULT_CURRICULUM_PATH
        if not self.path.exists():
            raise FileNotFoundError(f"Curriculum file not found: {self.path}")

        with open(self.path, "r", encoding="utf-8") as f:
            raw = yaml.safe_load(f)
        self.curriculum = parse_curriculum(raw)
        self.graph = build_prerequisite_graph(self.curriculum)

        for name, condition in self.get_external_conditions():
            logger.debug(f"'{name}' has external entry requirement: {condition.description}")
        logger.info(
            f"Loaded curriculum '{self.curriculum.course.name}' from {self.path}: "
            f"{len(self.curriculum.periods)} periods, {self.curriculum.total_subjects} subjects, "
            f"{self.graph.number_of_edges()} prerequisite edges"
        )

    def get_external_conditions(self) -> list[tuple[str, ExternalCondition]]:
        """(subject name, condition) pairs for prerequisites that are not subjects."""
        return [
            (subject.name, prereq)
            for subject in self.curriculum.subjects
            for prereq in subject.prerequisites
            if isinstance(prereq, ExternalCondition)
        ]

    def get_dependents(self, subject_name: str) -> list[str]:
        """Subjects that list `subject_name` as a prerequisite."""
        if subject_name not in self.graph:
            return []
        return list(self.graph.successors(subject_name))
