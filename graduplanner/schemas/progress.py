"""
Progress tracking schemas for GraduPlanner.

Defines Pydantic models for student progress including:
- Derived subject status
- The student snapshot (three disjoint subject sets + finalized periods)
- The wire payload shared by the snapshot store and share links
- Academic semester tokens
"""

from datetime import date, datetime, timezone
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError, field_validator, model_validator


_DATETIME = TypeAdapter(datetime)

class SubjectStatus(str, Enum):
    COMPLETED = "completed"
    IN_PROGRESS = "in_progress"
    PLANNED = "planned"
    AVAILABLE = "available"     # prerequisites met (or none)
    LOCKED = "locked"           # prerequisites not met


class Snapshot(BaseModel):
    """
    Student-owned progress state.

    Immutable: commands build a new snapshot and swap it in, so no observer
    ever sees a subject in two sets.
    """
    model_config = ConfigDict(frozen=True)

    completed: frozenset[str] = frozenset()
    in_progress: frozenset[str] = frozenset()
    planned: frozenset[str] = frozenset()
    finalized_periods: frozenset[int] = frozenset()

    @model_validator(mode="after")
    def sets_disjoint(self):
        overlap = (
            (self.completed & self.in_progress)
            | (self.completed & self.planned)
            | (self.in_progress & self.planned)
        )
        if overlap:
            raise ValueError(f"Subjects present in more than one state: {sorted(overlap)}")
        return self

    @property
    def is_empty(self) -> bool:
        return not (self.completed or self.in_progress or self.planned or self.finalized_periods)


class SnapshotPayload(BaseModel):
    """
    JSON wire format for snapshots.

    Field names follow the stored format: `current` holds in-progress subjects
    and `finalizedPeriods` is camel-cased. Missing or null fields default to
    empty. The timestamp is informational: an unreadable one becomes None.
    """
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    completed: list[str] = []
    current: list[str] = []
    planned: list[str] = []
    finalized_periods: list[int] = Field(default_factory=list, alias="finalizedPeriods")
    timestamp: Optional[datetime] = None

    @field_validator("completed", "current", "planned", "finalized_periods", mode="before")
    @classmethod
    def null_as_empty(cls, v):
        return [] if v is None else v

    @field_validator("timestamp", mode="before")
    @classmethod
    def lenient_timestamp(cls, v):
        if v is None:
            return None
        try:
            return _DATETIME.validate_python(v)
        except ValidationError:
            return None

    @classmethod
    def from_snapshot(cls, snapshot: Snapshot) -> "SnapshotPayload":
        return cls(
            completed=sorted(snapshot.completed),
            current=sorted(snapshot.in_progress),
            planned=sorted(snapshot.planned),
            finalized_periods=sorted(snapshot.finalized_periods),
            timestamp=datetime.now(timezone.utc),
        )

    def to_snapshot(self) -> Snapshot:
        return Snapshot(
            completed=frozenset(self.completed),
            in_progress=frozenset(self.current),
            planned=frozenset(self.planned),
            finalized_periods=frozenset(self.finalized_periods),
        )

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True)


class Semester(BaseModel):
    """Academic semester token: half 1 is January-June, half 2 is July-December."""
    model_config = ConfigDict(frozen=True)

    year: int
    half: int = Field(..., ge=1, le=2)

    @classmethod
    def current(cls, today: Optional[date] = None) -> "Semester":
        today = today or date.today()
        return cls(year=today.year, half=1 if today.month <= 6 else 2)

    @classmethod
    def parse(cls, text: str) -> "Semester":
        """Parse the "YYYY.H" form, e.g. "2025.2"."""
        year, sep, half = text.strip().partition(".")
        if not sep or not year.isdigit() or not half.isdigit():
            raise ValueError(f"Invalid semester: {text!r} (expected YYYY.H)")
        return cls(year=int(year), half=int(half))

    def next(self) -> "Semester":
        if self.half == 2:
            return Semester(year=self.year + 1, half=1)
        return Semester(year=self.year, half=2)

    def advance(self, count: int) -> "Semester":
        semester = self
        for _ in range(count):
            semester = semester.next()
        return semester

    def __str__(self) -> str:
        return f"{self.year}.{self.half}"
