"""
Curriculum schemas for GraduPlanner.

Defines Pydantic models for the static curriculum structure:
- Course metadata (display only)
- Subjects with tagged prerequisites (subject reference or external condition)
- Periods and the full curriculum
"""

from pydantic import BaseModel, Field, PrivateAttr, model_validator
from typing import Annotated, Literal, Optional, Union


# -----------------------------------------------------------------------------
# Prerequisites (tagged variant)
# -----------------------------------------------------------------------------


class SubjectRef(BaseModel):
    """Prerequisite satisfied by completing another subject of the curriculum."""
    kind: Literal["subject"] = "subject"
    name: str

    @property
    def label(self) -> str:
        return self.name


class ExternalCondition(BaseModel):
    """
    Entry requirement that is not a subject (e.g. "70% of program completed").
    Informational only; it can never be satisfied by the tracked sets.
    """
    kind: Literal["external"] = "external"
    description: str

    @property
    def label(self) -> str:
        return self.description


Prerequisite = Annotated[Union[SubjectRef, ExternalCondition], Field(discriminator="kind")]


# -----------------------------------------------------------------------------
# Curriculum structure
# -----------------------------------------------------------------------------


class CourseInfo(BaseModel):
    """Program metadata shown in the page header."""
    name: str
    institution: str
    campus: Optional[str] = None
    level: Optional[str] = None
    degree: Optional[str] = None
    modality: Optional[str] = None
    established: Optional[str] = None  # e.g. "2014/1"
    shift: Optional[str] = None
    periodicity: Optional[str] = None


class Subject(BaseModel):
    name: str = Field(..., min_length=1)
    prerequisites: list[Prerequisite] = []

    @property
    def subject_prerequisites(self) -> list[str]:
        """Names of the subjects this one depends on."""
        return [p.name for p in self.prerequisites if isinstance(p, SubjectRef)]


class Period(BaseModel):
    label: str
    subjects: list[Subject]


class Curriculum(BaseModel):
    """
    Full curriculum: ordered periods of ordered subjects.

    Plain-string prerequisites in the raw data are resolved here: a string
    naming a subject of the curriculum becomes a SubjectRef, anything else
    becomes an ExternalCondition.
    """
    course: CourseInfo
    periods: list[Period]

    _by_name: dict[str, Subject] = PrivateAttr(default_factory=dict)

    @model_validator(mode="before")
    @classmethod
    def resolve_prerequisites(cls, data):
        if not isinstance(data, dict):
            return data
        periods = data.get("periods") or []
        known = {
            subject.get("name")
            for period in periods if isinstance(period, dict)
            for subject in period.get("subjects") or [] if isinstance(subject, dict)
        }
        resolved_periods = []
        for period in periods:
            if not isinstance(period, dict):
                resolved_periods.append(period)
                continue
            subjects = []
            for subject in period.get("subjects") or []:
                if isinstance(subject, dict):
                    subject = {
                        **subject,
                        "prerequisites": [
                            _resolve_prerequisite(p, known)
                            for p in subject.get("prerequisites") or []
                        ],
                    }
                subjects.append(subject)
            resolved_periods.append({**period, "subjects": subjects})
        return {**data, "periods": resolved_periods}

    @model_validator(mode="after")
    def check_subjects(self):
        seen: set[str] = set()
        for subject in self.subjects:
            if subject.name in seen:
                raise ValueError(f"Duplicate subject name: {subject.name}")
            seen.add(subject.name)
            if subject.name in subject.subject_prerequisites:
                raise ValueError(f"Subject '{subject.name}' lists itself as a prerequisite")
        return self

    def model_post_init(self, __context) -> None:
        self._by_name = {subject.name: subject for subject in self.subjects}

    @property
    def subjects(self) -> list[Subject]:
        """All subjects in curriculum order (period order, then subject order)."""
        return [subject for period in self.periods for subject in period.subjects]

    @property
    def total_subjects(self) -> int:
        return sum(len(period.subjects) for period in self.periods)

    @property
    def subject_names(self) -> frozenset[str]:
        return frozenset(self._by_name)

    def get_subject(self, name: str) -> Optional[Subject]:
        return self._by_name.get(name)


def _resolve_prerequisite(raw, known: set) -> object:
    if isinstance(raw, str):
        if raw in known:
            return {"kind": "subject", "name": raw}
        return {"kind": "external", "description": raw}
    return raw
