"""
Progress engine tests for GraduPlanner.

Covers status derivation, toggle/finalize commands, aggregate progress,
graduation forecast, recommendations and snapshot restore.
"""

import random
import sqlite3

import pytest

from conftest import make_curriculum
from graduplanner.schemas import Semester, Snapshot, SubjectStatus
from graduplanner.tracker import (
    ProgressEngine,
    RejectReason,
    ShareChannel,
    SnapshotSource,
    SnapshotStore,
)
from graduplanner.tracker.engine import round_half_up_percent


def assert_disjoint(snapshot: Snapshot):
    assert not snapshot.completed & snapshot.in_progress
    assert not snapshot.completed & snapshot.planned
    assert not snapshot.in_progress & snapshot.planned


class TestStatusDerivation:
    """Test derived subject status."""

    def test_initial_statuses(self, small_curriculum):
        engine = ProgressEngine(small_curriculum)
        assert engine.statuses() == {
            "A": SubjectStatus.AVAILABLE,
            "B": SubjectStatus.AVAILABLE,
            "C": SubjectStatus.AVAILABLE,
            "D": SubjectStatus.LOCKED,
            "E": SubjectStatus.LOCKED,
            "F": SubjectStatus.AVAILABLE,
            "G": SubjectStatus.LOCKED,
            "H": SubjectStatus.LOCKED,
        }

    def test_explicit_sets_take_precedence(self, small_curriculum):
        engine = ProgressEngine(small_curriculum, Snapshot(
            completed={"A"}, in_progress={"D"}, planned={"G"},
        ))
        assert engine.status("A") == SubjectStatus.COMPLETED
        assert engine.status("D") == SubjectStatus.IN_PROGRESS
        # G's prerequisite D is not completed, but an explicit set wins
        assert engine.status("G") == SubjectStatus.PLANNED

    def test_locked_until_all_prerequisites_completed(self, small_curriculum):
        engine = ProgressEngine(small_curriculum, Snapshot(completed={"A"}))
        assert engine.status("D") == SubjectStatus.AVAILABLE
        assert engine.status("E") == SubjectStatus.LOCKED
        assert engine.missing_prerequisites("E") == ["B"]

        engine.load_snapshot(Snapshot(completed={"A", "B"}))
        assert engine.status("E") == SubjectStatus.AVAILABLE
        assert engine.missing_prerequisites("E") == []

    def test_in_progress_prerequisite_does_not_unlock(self, small_curriculum):
        engine = ProgressEngine(small_curriculum, Snapshot(in_progress={"A"}))
        assert engine.status("D") == SubjectStatus.LOCKED

    def test_external_condition_always_locks(self, small_curriculum):
        everything_else = {"A", "B", "C", "D", "E", "F", "G"}
        engine = ProgressEngine(small_curriculum, Snapshot(completed=everything_else))
        assert engine.status("H") == SubjectStatus.LOCKED
        assert engine.missing_prerequisites("H") == ["50% of program completed"]
        assert engine.external_conditions() == {"H": ["50% of program completed"]}

    def test_unknown_subject_raises(self, small_curriculum):
        engine = ProgressEngine(small_curriculum)
        with pytest.raises(KeyError):
            engine.status("Z")


class TestToggle:
    """Test the toggle command."""

    def test_full_cycle(self, small_curriculum):
        engine = ProgressEngine(small_curriculum)
        expected = [
            SubjectStatus.PLANNED,
            SubjectStatus.IN_PROGRESS,
            SubjectStatus.COMPLETED,
            SubjectStatus.AVAILABLE,
        ]
        for status in expected:
            result = engine.toggle("A")
            assert result.ok
            assert result.changed == 1
            assert result.status == status
            assert engine.status("A") == status
        assert engine.snapshot == Snapshot()

    def test_set_membership_moves(self, small_curriculum):
        engine = ProgressEngine(small_curriculum)
        engine.toggle("A")
        assert engine.snapshot.planned == {"A"}
        engine.toggle("A")
        assert engine.snapshot.planned == set()
        assert engine.snapshot.in_progress == {"A"}
        engine.toggle("A")
        assert engine.snapshot.in_progress == set()
        assert engine.snapshot.completed == {"A"}

    def test_locked_subject_rejected(self, small_curriculum):
        engine = ProgressEngine(small_curriculum)
        before = engine.snapshot
        result = engine.toggle("D")
        assert not result.ok
        assert result.reason == RejectReason.SUBJECT_LOCKED
        assert result.changed == 0
        assert engine.snapshot == before

    def test_unknown_subject_rejected(self, small_curriculum):
        engine = ProgressEngine(small_curriculum)
        result = engine.toggle("Z")
        assert not result.ok
        assert result.reason == RejectReason.UNKNOWN_SUBJECT
        assert engine.snapshot == Snapshot()

    def test_clearing_completed_prerequisite_relocks_dependents(self, small_curriculum):
        engine = ProgressEngine(small_curriculum, Snapshot(completed={"A"}))
        assert engine.status("D") == SubjectStatus.AVAILABLE
        engine.toggle("A")
        assert engine.status("A") == SubjectStatus.AVAILABLE
        assert engine.status("D") == SubjectStatus.LOCKED

    def test_sets_stay_disjoint_under_random_commands(self, small_curriculum):
        rng = random.Random(42)
        engine = ProgressEngine(small_curriculum)
        names = [s.name for s in small_curriculum.subjects]
        for _ in range(500):
            if rng.random() < 0.1:
                engine.finalize_period(rng.randrange(-1, 4))
            else:
                engine.toggle(rng.choice(names))
            assert_disjoint(engine.snapshot)


class TestFinalizePeriod:
    """Test the finalize-period command."""

    def test_finalize_moves_all_to_completed(self, small_curriculum):
        engine = ProgressEngine(small_curriculum)
        engine.toggle("A")                      # planned
        engine.toggle("B")
        engine.toggle("B")                      # in progress
        assert engine.can_finalize_period(0)

        result = engine.finalize_period(0)
        assert result.ok
        assert result.changed == 3
        assert engine.snapshot.completed == {"A", "B", "C"}
        assert engine.snapshot.planned == set()
        assert engine.snapshot.in_progress == set()
        assert engine.snapshot.finalized_periods == {0}

    def test_second_finalize_rejected(self, small_curriculum):
        engine = ProgressEngine(small_curriculum)
        assert engine.finalize_period(0).ok
        before = engine.snapshot

        result = engine.finalize_period(0)
        assert not result.ok
        assert result.reason == RejectReason.PERIOD_ALREADY_FINALIZED
        assert engine.snapshot == before
        assert not engine.can_finalize_period(0)

    def test_period_with_locked_subject_rejected(self, small_curriculum):
        engine = ProgressEngine(small_curriculum)
        result = engine.finalize_period(1)
        assert not result.ok
        assert result.reason == RejectReason.PERIOD_HAS_LOCKED_SUBJECTS
        assert engine.snapshot == Snapshot()

    def test_finalize_unlocks_next_period(self, small_curriculum):
        engine = ProgressEngine(small_curriculum)
        engine.finalize_period(0)
        result = engine.finalize_period(1)
        assert result.ok
        assert result.changed == 3
        assert engine.status("G") == SubjectStatus.AVAILABLE

    def test_already_completed_subjects_are_counted(self, small_curriculum):
        engine = ProgressEngine(small_curriculum, Snapshot(completed={"A", "B"}))
        result = engine.finalize_period(0)
        assert result.changed == 3

    @pytest.mark.parametrize("index", [-1, 3, 100])
    def test_unknown_period_rejected(self, small_curriculum, index):
        engine = ProgressEngine(small_curriculum)
        result = engine.finalize_period(index)
        assert not result.ok
        assert result.reason == RejectReason.UNKNOWN_PERIOD


class TestAggregate:
    """Test aggregate progress."""

    def test_example_percentage(self):
        curriculum = make_curriculum([[{"name": f"S{i}"} for i in range(7)]])
        engine = ProgressEngine(curriculum, Snapshot(
            completed={"S0", "S1"}, in_progress={"S2"}, planned={"S3"},
        ))
        summary = engine.aggregate()
        assert summary.total == 7
        assert summary.completed_count == 2
        assert summary.in_progress_count == 1
        assert summary.planned_count == 1
        assert summary.percentage == 29

    def test_half_rounds_up(self):
        assert round_half_up_percent(1, 8) == 13     # 12.5
        assert round_half_up_percent(1, 200) == 1    # 0.5
        assert round_half_up_percent(1, 3) == 33
        assert round_half_up_percent(2, 3) == 67
        assert round_half_up_percent(5, 5) == 100

    def test_empty_curriculum(self):
        engine = ProgressEngine(make_curriculum([]))
        summary = engine.aggregate()
        assert summary.total == 0
        assert summary.percentage == 0


class TestGraduationEstimate:
    """Test graduation forecast."""

    @staticmethod
    def engine_with(total: int, completed: int, planned: int = 0) -> ProgressEngine:
        curriculum = make_curriculum([[{"name": f"S{i}"} for i in range(total)]])
        names = [f"S{i}" for i in range(total)]
        return ProgressEngine(curriculum, Snapshot(
            completed=set(names[:completed]),
            planned=set(names[completed:completed + planned]),
        ))

    def test_example_estimate(self):
        engine = self.engine_with(total=50, completed=44)
        estimate = engine.estimate_graduation(Semester(year=2025, half=1))
        assert estimate.remaining_subjects == 6
        assert estimate.remaining_semesters == 1
        assert estimate.graduation_semester == Semester(year=2025, half=2)
        assert estimate.current_semester == Semester(year=2025, half=1)

    def test_planned_in_first_half_adds_nothing(self):
        engine = self.engine_with(total=50, completed=40, planned=2)
        estimate = engine.estimate_graduation(Semester(year=2025, half=1))
        assert estimate.remaining_subjects == 8
        assert estimate.remaining_semesters == 2
        assert estimate.graduation_semester == Semester(year=2026, half=1)

    def test_planned_in_second_half_adds_one_semester(self):
        engine = self.engine_with(total=50, completed=40, planned=2)
        estimate = engine.estimate_graduation(Semester(year=2025, half=2))
        assert estimate.remaining_semesters == 3
        assert estimate.graduation_semester == Semester(year=2027, half=1)

    def test_nothing_remaining(self):
        engine = self.engine_with(total=12, completed=12)
        estimate = engine.estimate_graduation(Semester(year=2025, half=2))
        assert estimate.remaining_subjects == 0
        assert estimate.remaining_semesters == 0
        assert estimate.graduation_semester == Semester(year=2025, half=2)

    def test_default_current_semester(self):
        engine = self.engine_with(total=6, completed=0)
        estimate = engine.estimate_graduation()
        assert estimate.current_semester == Semester.current()


class TestRecommendations:
    """Test next-semester recommendations."""

    def test_example_recommendation(self):
        curriculum = make_curriculum([
            [{"name": "A"}],
            [{"name": "B", "prerequisites": ["A"]}],
        ])
        recs = ProgressEngine(curriculum).recommendations()
        assert [s.name for s in recs.priority] == ["A"]
        assert recs.other == []

    def test_priority_before_other(self, small_curriculum):
        recs = ProgressEngine(small_curriculum).recommendations()
        assert [s.name for s in recs.priority] == ["A", "B"]
        assert [s.name for s in recs.other] == ["C", "F"]

    def test_lists_are_truncated_in_curriculum_order(self):
        roots = [{"name": f"R{i}"} for i in range(6)]
        leaves = [{"name": f"L{i}"} for i in range(3)]
        dependents = [{"name": f"D{i}", "prerequisites": [f"R{i}"]} for i in range(6)]
        curriculum = make_curriculum([roots + leaves, dependents])
        recs = ProgressEngine(curriculum).recommendations()
        assert [s.name for s in recs.priority] == ["R0", "R1", "R2", "R3"]
        assert [s.name for s in recs.other] == ["L0", "L1"]

    def test_only_available_subjects(self, small_curriculum):
        engine = ProgressEngine(small_curriculum, Snapshot(planned={"A"}, completed={"B"}))
        recs = engine.recommendations()
        names = [s.name for s in recs.priority + recs.other]
        assert "A" not in names
        assert "B" not in names
        assert "D" not in names


class TestPeriodViews:
    """Test curriculum tree annotation."""

    def test_period_views(self, small_curriculum):
        engine = ProgressEngine(small_curriculum, Snapshot(completed={"A"}))
        views = engine.period_views()
        assert [v.period.label for v in views] == ["Period 1", "Period 2", "Period 3"]
        assert views[0].completed_count == 1
        assert views[0].total_count == 3
        assert views[0].can_finalize
        assert not views[1].can_finalize
        assert not views[0].finalized

        e_view = views[1].subjects[1]
        assert e_view.subject.name == "E"
        assert e_view.status == SubjectStatus.LOCKED
        assert e_view.missing_prerequisites == ["B"]


class TestSnapshotLifecycle:
    """Test persistence, pruning, reset and restore."""

    def test_commands_persist_to_store(self, small_curriculum, tmp_path):
        store = SnapshotStore(tmp_path / "progress.db")
        engine = ProgressEngine(small_curriculum, store=store)
        engine.toggle("A")
        assert store.load() == engine.snapshot
        engine.finalize_period(0)
        assert store.load() == engine.snapshot

    def test_rejected_command_does_not_save(self, small_curriculum, tmp_path):
        store = SnapshotStore(tmp_path / "progress.db")
        engine = ProgressEngine(small_curriculum, store=store)
        engine.toggle("D")
        engine.finalize_period(2)
        assert store.load() is None

    def test_reset_clears_snapshot_and_store(self, small_curriculum, tmp_path):
        store = SnapshotStore(tmp_path / "progress.db")
        engine = ProgressEngine(small_curriculum, store=store)
        engine.finalize_period(0)
        engine.reset()
        assert engine.snapshot == Snapshot()
        assert store.load() is None

    def test_unknown_entries_are_pruned(self, small_curriculum):
        engine = ProgressEngine(small_curriculum, Snapshot(
            completed={"A", "Old Subject"},
            planned={"Removed"},
            finalized_periods={0, 7},
        ))
        assert engine.snapshot == Snapshot(completed={"A"}, finalized_periods={0})
        assert engine.aggregate().completed_count == 1

    def test_restore_prefers_share_payload(self, small_curriculum, tmp_path):
        store = SnapshotStore(tmp_path / "progress.db")
        store.save(Snapshot(completed={"C"}))
        share = ShareChannel()
        payload = share.encode(Snapshot(completed={"A"}, planned={"B"}))

        engine, source = ProgressEngine.restore(small_curriculum, store, share, payload)
        assert source == SnapshotSource.SHARE
        assert engine.snapshot == Snapshot(completed={"A"}, planned={"B"})
        # Shared snapshot replaces the stored one
        assert store.load() == engine.snapshot

    def test_restore_read_only_keeps_store(self, small_curriculum, tmp_path):
        store = SnapshotStore(tmp_path / "progress.db")
        store.save(Snapshot(completed={"C"}))
        updated_at = store.get_updated_at()
        share = ShareChannel()
        payload = share.encode(Snapshot(completed={"A"}))

        engine, source = ProgressEngine.restore(small_curriculum, store, share, payload, persist=False)
        assert source == SnapshotSource.SHARE
        assert engine.snapshot == Snapshot(completed={"A"})
        assert engine.store is None
        engine.toggle("B")
        assert store.load() == Snapshot(completed={"C"})
        assert store.get_updated_at() == updated_at

    def test_restore_read_only_from_store(self, small_curriculum, tmp_path):
        store = SnapshotStore(tmp_path / "progress.db")
        store.save(Snapshot(completed={"C"}))

        engine, source = ProgressEngine.restore(small_curriculum, store, persist=False)
        assert source == SnapshotSource.STORE
        assert engine.snapshot == Snapshot(completed={"C"})
        engine.reset()
        assert store.load() == Snapshot(completed={"C"})

    def test_restore_falls_back_to_store_on_bad_payload(self, small_curriculum, tmp_path):
        store = SnapshotStore(tmp_path / "progress.db")
        store.save(Snapshot(completed={"C"}))

        engine, source = ProgressEngine.restore(small_curriculum, store, ShareChannel(), "%7Bnot-json")
        assert source == SnapshotSource.STORE
        assert engine.snapshot == Snapshot(completed={"C"})

    def test_restore_falls_back_to_empty_on_corrupted_store(self, small_curriculum, tmp_path):
        db_path = tmp_path / "progress.db"
        store = SnapshotStore(db_path)
        conn = sqlite3.connect(str(db_path))
        conn.execute(
            "INSERT INTO snapshots (student_id, payload, updated_at) VALUES (?, ?, ?)",
            ("default", "{corrupted", "2025-01-01T00:00:00"),
        )
        conn.commit()
        conn.close()

        engine, source = ProgressEngine.restore(small_curriculum, store, ShareChannel(), "garbage")
        assert source == SnapshotSource.EMPTY
        assert engine.snapshot == Snapshot()

    def test_restore_without_sources(self, small_curriculum):
        engine, source = ProgressEngine.restore(small_curriculum)
        assert source == SnapshotSource.EMPTY
        assert engine.snapshot == Snapshot()
