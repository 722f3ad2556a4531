"""
GraduPlanner Schemas - Pydantic models for the academic progress tracker.

This module exports all schema classes for:
- Curriculum: course metadata, periods, subjects, prerequisites
- Progress: subject status, student snapshot, wire payload, semesters
"""

# Curriculum schemas
from .curriculum import (
    SubjectRef,
    ExternalCondition,
    Prerequisite,
    CourseInfo,
    Subject,
    Period,
    Curriculum,
)

# Progress schemas
from .progress import (
    SubjectStatus,
    Snapshot,
    SnapshotPayload,
    Semester,
)

__all__ = [
    # Curriculum
    'SubjectRef',
    'ExternalCondition',
    'Prerequisite',
    'CourseInfo',
    'Subject',
    'Period',
    'Curriculum',
    # Progress
    'SubjectStatus',
    'Snapshot',
    'SnapshotPayload',
    'Semester',
]
