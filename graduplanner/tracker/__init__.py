"""
GraduPlanner Tracker - Runtime components for tracking curriculum progress.

This module provides:
- CurriculumLoader: Load and validate the curriculum YAML
- ProgressEngine: Status derivation, commands and forecasts
- SnapshotStore: Persist the student snapshot
- ShareChannel: Encode/decode shareable progress links
"""

from .loader import (
    CurriculumLoader,
    DEFAULT_CURRICULUM_PATH,
    build_prerequisite_graph,
    parse_curriculum,
)

from .share import (
    ShareChannel,
    DecodeError,
    SHARE_PARAM,
)

from .store import (
    SnapshotStore,
    DEFAULT_PROGRESS_DIR,
    DEFAULT_PROGRESS_DB,
)

from .engine import (
    ProgressEngine,
    CommandResult,
    RejectReason,
    SnapshotSource,
    ProgressSummary,
    GraduationEstimate,
    Recommendations,
    SubjectView,
    PeriodView,
    SUBJECTS_PER_SEMESTER,
)

__all__ = [
    # Loader
    "CurriculumLoader",
    "DEFAULT_CURRICULUM_PATH",
    "build_prerequisite_graph",
    "parse_curriculum",
    # Share
    "ShareChannel",
    "DecodeError",
    "SHARE_PARAM",
    # Store
    "SnapshotStore",
    "DEFAULT_PROGRESS_DIR",
    "DEFAULT_PROGRESS_DB",
    # Engine
    "ProgressEngine",
    "CommandResult",
    "RejectReason",
    "SnapshotSource",
    "ProgressSummary",
    "GraduationEstimate",
    "Recommendations",
    "SubjectView",
    "PeriodView",
    "SUBJECTS_PER_SEMESTER",
]
