"""
ProgressEngine - Subject status derivation, progress commands and forecasts.

Provides:
- Status derivation from prerequisites (locked/available) and student sets
- Toggle and finalize-period commands with explicit rejection reasons
- Aggregate progress, graduation estimate and recommendations
- Curriculum tree with status indicators
- Snapshot restore from share link, store, or empty
"""

import logging
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from graduplanner.schemas import (
    Curriculum,
    ExternalCondition,
    Period,
    Semester,
    Snapshot,
    Subject,
    SubjectRef,
    SubjectStatus,
)

from .share import DecodeError, ShareChannel
from .store import SnapshotStore


logger = logging.getLogger(__name__)

# Curriculum is designed around a six-subject semester pace.
SUBJECTS_PER_SEMESTER = 6
MAX_PRIORITY_RECOMMENDATIONS = 4
MAX_OTHER_RECOMMENDATIONS = 2


class RejectReason(str, Enum):
    """Why a command was rejected without changing the snapshot."""
    UNKNOWN_SUBJECT = "unknown_subject"
    SUBJECT_LOCKED = "subject_locked"
    UNKNOWN_PERIOD = "unknown_period"
    PERIOD_ALREADY_FINALIZED = "period_already_finalized"
    PERIOD_HAS_LOCKED_SUBJECTS = "period_has_locked_subjects"


class SnapshotSource(str, Enum):
    SHARE = "share"
    STORE = "store"
    EMPTY = "empty"


@dataclass
class CommandResult:
    """Outcome of a mutating command."""
    ok: bool
    reason: Optional[RejectReason] = None
    changed: int = 0                        # subjects transitioned
    status: Optional[SubjectStatus] = None  # new status (toggle only)

    @classmethod
    def rejected(cls, reason: RejectReason) -> "CommandResult":
        return cls(ok=False, reason=reason)


@dataclass
class ProgressSummary:
    total: int
    completed_count: int
    in_progress_count: int
    planned_count: int
    percentage: int


@dataclass
class GraduationEstimate:
    remaining_subjects: int
    remaining_semesters: int
    graduation_semester: Semester
    current_semester: Semester


@dataclass
class Recommendations:
    priority: list[Subject] = field(default_factory=list)  # unlock other subjects
    other: list[Subject] = field(default_factory=list)


@dataclass
class SubjectView:
    """Subject with derived status for display."""
    subject: Subject
    status: SubjectStatus
    missing_prerequisites: list[str]


@dataclass
class PeriodView:
    """Period with subjects and finalize metadata."""
    index: int
    period: Period
    subjects: list[SubjectView]
    completed_count: int
    total_count: int
    finalized: bool
    can_finalize: bool


def round_half_up_percent(part: int, total: int) -> int:
    """round(part / total * 100) with halves rounded up, 0 for an empty total."""
    if total <= 0:
        return 0
    return (200 * part + total) // (2 * total)


class ProgressEngine:
    """
    Own one student's snapshot over a static curriculum.

    Every status is recomputed from the snapshot on each query. Commands build
    a complete new snapshot and swap it in with a single assignment, then
    save it to the store (if any).
    """

    def __init__(
        self,
        curriculum: Curriculum,
        snapshot: Optional[Snapshot] = None,
        store: Optional[SnapshotStore] = None,
    ):
        """
        Initialize engine.

        Args:
            curriculum: Static curriculum
            snapshot: Initial snapshot (default: empty); pruned to the curriculum
            store: Optional store saved after every successful command
        """
        self.curriculum = curriculum
        self.store = store
        # Subjects listed as prerequisite by at least one other subject
        self._unlocking: set[str] = {
            prereq for s in curriculum.subjects for prereq in s.subject_prerequisites
        }
        self._snapshot = self._prune(snapshot or Snapshot())

    @property
    def snapshot(self) -> Snapshot:
        return self._snapshot

    # -------------------------------------------------------------------------
    # Restore
    # -------------------------------------------------------------------------

    @classmethod
    def restore(
        cls,
        curriculum: Curriculum,
        store: Optional[SnapshotStore] = None,
        share: Optional[ShareChannel] = None,
        payload: Optional[str] = None,
        persist: bool = True,
    ) -> tuple["ProgressEngine", SnapshotSource]:
        """
        Build an engine from the first usable snapshot source.

        Order: share payload, then store, then an empty snapshot. Decode
        failures are logged and skipped.

        Args:
            persist: When False the store is only read; the returned engine
                has no store attached and a shared snapshot is not saved.

        Returns:
            Tuple of (engine, source the snapshot came from)
        """
        target = store if persist else None

        if payload:
            channel = share or ShareChannel()
            try:
                snapshot = channel.decode(payload)
            except DecodeError as e:
                logger.warning(f"Ignoring shared progress link: {e}")
            else:
                engine = cls(curriculum, snapshot, target)
                engine._persist()
                logger.info("Restored progress from shared link")
                return engine, SnapshotSource.SHARE

        if store is not None:
            try:
                snapshot = store.load()
            except DecodeError as e:
                logger.warning(f"Ignoring stored progress: {e}")
                snapshot = None
            if snapshot is not None:
                return cls(curriculum, snapshot, target), SnapshotSource.STORE

        return cls(curriculum, Snapshot(), target), SnapshotSource.EMPTY

    def _prune(self, snapshot: Snapshot) -> Snapshot:
        """Drop subject names and period indices the curriculum doesn't have."""
        known = self.curriculum.subject_names
        unknown = (snapshot.completed | snapshot.in_progress | snapshot.planned) - known
        periods = range(len(self.curriculum.periods))
        bad_periods = {p for p in snapshot.finalized_periods if p not in periods}
        if not unknown and not bad_periods:
            return snapshot

        if unknown:
            logger.warning(f"Dropping unknown subjects from snapshot: {sorted(unknown)}")
        if bad_periods:
            logger.warning(f"Dropping invalid finalized periods from snapshot: {sorted(bad_periods)}")
        return Snapshot(
            completed=snapshot.completed & known,
            in_progress=snapshot.in_progress & known,
            planned=snapshot.planned & known,
            finalized_periods=snapshot.finalized_periods - bad_periods,
        )

    def _commit(self, snapshot: Snapshot):
        self._snapshot = snapshot
        self._persist()

    def _persist(self):
        if self.store is not None:
            self.store.save(self._snapshot)

    # -------------------------------------------------------------------------
    # Status Derivation
    # -------------------------------------------------------------------------

    def _require(self, subject_name: str) -> Subject:
        subject = self.curriculum.get_subject(subject_name)
        if subject is None:
            raise KeyError(subject_name)
        return subject

    def _is_satisfied(self, prereq) -> bool:
        if isinstance(prereq, SubjectRef):
            return prereq.name in self._snapshot.completed
        # External conditions are never satisfied by the tracked sets
        return False

    def _derive(self, subject: Subject) -> SubjectStatus:
        snap = self._snapshot
        if subject.name in snap.completed:
            return SubjectStatus.COMPLETED
        if subject.name in snap.in_progress:
            return SubjectStatus.IN_PROGRESS
        if subject.name in snap.planned:
            return SubjectStatus.PLANNED
        if not all(self._is_satisfied(p) for p in subject.prerequisites):
            return SubjectStatus.LOCKED
        return SubjectStatus.AVAILABLE

    def status(self, subject_name: str) -> SubjectStatus:
        """
        Derived status of a subject.

        Raises:
            KeyError: If the subject is not in the curriculum
        """
        return self._derive(self._require(subject_name))

    def missing_prerequisites(self, subject_name: str) -> list[str]:
        """Unsatisfied prerequisite labels, in declared order."""
        subject = self._require(subject_name)
        return [p.label for p in subject.prerequisites if not self._is_satisfied(p)]

    def statuses(self) -> dict[str, SubjectStatus]:
        """Derived status of every subject, in curriculum order."""
        return {s.name: self._derive(s) for s in self.curriculum.subjects}

    # -------------------------------------------------------------------------
    # Commands
    # -------------------------------------------------------------------------

    def toggle(self, subject_name: str) -> CommandResult:
        """
        Advance a subject one step:
        available -> planned -> in_progress -> completed -> (cleared).

        Locked subjects are rejected and nothing changes.
        """
        subject = self.curriculum.get_subject(subject_name)
        if subject is None:
            logger.debug(f"Rejected toggle of unknown subject '{subject_name}'")
            return CommandResult.rejected(RejectReason.UNKNOWN_SUBJECT)

        current = self._derive(subject)
        if current == SubjectStatus.LOCKED:
            logger.debug(f"Rejected toggle of locked subject '{subject_name}'")
            return CommandResult.rejected(RejectReason.SUBJECT_LOCKED)

        snap = self._snapshot
        name = frozenset([subject_name])
        if current == SubjectStatus.AVAILABLE:
            new = snap.model_copy(update={"planned": snap.planned | name})
        elif current == SubjectStatus.PLANNED:
            new = snap.model_copy(update={
                "planned": snap.planned - name,
                "in_progress": snap.in_progress | name,
            })
        elif current == SubjectStatus.IN_PROGRESS:
            new = snap.model_copy(update={
                "in_progress": snap.in_progress - name,
                "completed": snap.completed | name,
            })
        else:
            new = snap.model_copy(update={"completed": snap.completed - name})

        self._commit(new)
        return CommandResult(ok=True, changed=1, status=self._derive(subject))

    def can_finalize_period(self, period_index: int) -> bool:
        return self._check_finalize(period_index) is None

    def _check_finalize(self, period_index: int) -> Optional[RejectReason]:
        if not 0 <= period_index < len(self.curriculum.periods):
            return RejectReason.UNKNOWN_PERIOD
        if period_index in self._snapshot.finalized_periods:
            return RejectReason.PERIOD_ALREADY_FINALIZED
        period = self.curriculum.periods[period_index]
        if any(self._derive(s) == SubjectStatus.LOCKED for s in period.subjects):
            return RejectReason.PERIOD_HAS_LOCKED_SUBJECTS
        return None

    def finalize_period(self, period_index: int) -> CommandResult:
        """
        Mark every unlocked subject of a period as completed, once.

        Returns:
            CommandResult with `changed` = number of subjects marked completed
        """
        reason = self._check_finalize(period_index)
        if reason is not None:
            logger.debug(f"Rejected finalize of period {period_index}: {reason.value}")
            return CommandResult.rejected(reason)

        period = self.curriculum.periods[period_index]
        names = frozenset(
            s.name for s in period.subjects if self._derive(s) != SubjectStatus.LOCKED
        )
        snap = self._snapshot
        self._commit(Snapshot(
            completed=snap.completed | names,
            in_progress=snap.in_progress - names,
            planned=snap.planned - names,
            finalized_periods=snap.finalized_periods | {period_index},
        ))
        logger.info(f"Finalized '{period.label}': {len(names)} subjects completed")
        return CommandResult(ok=True, changed=len(names))

    def load_snapshot(self, snapshot: Snapshot):
        """Replace the whole snapshot (e.g. from an imported link) and save it."""
        self._commit(self._prune(snapshot))

    def reset(self):
        """Clear all progress, including the stored copy."""
        self._snapshot = Snapshot()
        if self.store is not None:
            self.store.clear()

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def aggregate(self) -> ProgressSummary:
        snap = self._snapshot
        total = self.curriculum.total_subjects
        return ProgressSummary(
            total=total,
            completed_count=len(snap.completed),
            in_progress_count=len(snap.in_progress),
            planned_count=len(snap.planned),
            percentage=round_half_up_percent(len(snap.completed), total),
        )

    def estimate_graduation(self, current: Optional[Semester] = None) -> GraduationEstimate:
        """
        Forecast the graduation semester at a fixed six-subject pace.

        Planned subjects fit in the current year while a second half remains;
        in the second half they push the forecast one semester further.
        """
        current = current or Semester.current()
        summary = self.aggregate()
        remaining = (
            summary.total - summary.completed_count
            - summary.in_progress_count - summary.planned_count
        )

        semesters_from_planned = 0
        if summary.planned_count > 0 and current.half == 2:
            semesters_from_planned = 1

        remaining_semesters = math.ceil(remaining / SUBJECTS_PER_SEMESTER) + semesters_from_planned
        return GraduationEstimate(
            remaining_subjects=remaining,
            remaining_semesters=remaining_semesters,
            graduation_semester=current.advance(remaining_semesters),
            current_semester=current,
        )

    def recommendations(self) -> Recommendations:
        """Available subjects, those unlocking others first."""
        available = [
            s for s in self.curriculum.subjects
            if self._derive(s) == SubjectStatus.AVAILABLE
        ]
        priority = [s for s in available if s.name in self._unlocking]
        other = [s for s in available if s.name not in self._unlocking]
        return Recommendations(
            priority=priority[:MAX_PRIORITY_RECOMMENDATIONS],
            other=other[:MAX_OTHER_RECOMMENDATIONS],
        )

    # -------------------------------------------------------------------------
    # Curriculum Tree
    # -------------------------------------------------------------------------

    def period_views(self) -> list[PeriodView]:
        """Full curriculum tree annotated with status and finalize state."""
        views = []
        for index, period in enumerate(self.curriculum.periods):
            subjects = [
                SubjectView(
                    subject=s,
                    status=self._derive(s),
                    missing_prerequisites=self.missing_prerequisites(s.name),
                )
                for s in period.subjects
            ]
            views.append(PeriodView(
                index=index,
                period=period,
                subjects=subjects,
                completed_count=sum(1 for v in subjects if v.status == SubjectStatus.COMPLETED),
                total_count=len(subjects),
                finalized=index in self._snapshot.finalized_periods,
                can_finalize=self.can_finalize_period(index),
            ))
        return views

    def external_conditions(self) -> dict[str, list[str]]:
        """Subject name -> entry requirements that are not subjects."""
        result = {}
        for s in self.curriculum.subjects:
            conditions = [p.description for p in s.prerequisites if isinstance(p, ExternalCondition)]
            if conditions:
                result[s.name] = conditions
        return result
