#!/usr/bin/env python3
"""
progress_report.py - Print a progress report for a curriculum snapshot.

Restores the snapshot the same way the app does (shared link, then local
store, then empty) without writing to the store, and reports aggregate
progress, the graduation forecast, recommendations and a per-period status
table.

Usage:
  python scripts/progress_report.py
  python scripts/progress_report.py --share "http://localhost:8501/?data=%7B...%7D"
  python scripts/progress_report.py --semester 2025.2
  python scripts/progress_report.py --curriculum my_course.yaml --check-only
"""

import argparse
import logging
import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

import pandas as pd

from graduplanner.config import get_settings, setup_logging
from graduplanner.schemas import Semester, SubjectStatus
from graduplanner.tracker import (
    CurriculumLoader,
    ProgressEngine,
    ShareChannel,
    SnapshotSource,
    SnapshotStore,
)

logger = logging.getLogger(__name__)


def build_period_table(engine: ProgressEngine) -> pd.DataFrame:
    """One row per period, one column per status (subject counts)."""
    rows = []
    for view in engine.period_views():
        row = {"period": view.period.label}
        for status in SubjectStatus:
            row[status.value] = sum(1 for s in view.subjects if s.status == status)
        row["total"] = view.total_count
        row["finalized"] = view.finalized
        rows.append(row)
    return pd.DataFrame(rows).set_index("period")


def check_curriculum(loader: CurriculumLoader):
    curriculum = loader.curriculum
    logger.info(f"Course: {curriculum.course.name} ({curriculum.course.institution})")
    logger.info(f"  Periods: {len(curriculum.periods)}")
    logger.info(f"  Subjects: {curriculum.total_subjects}")
    logger.info(f"  Prerequisite edges: {loader.graph.number_of_edges()}")
    external = loader.get_external_conditions()
    if external:
        logger.info("  External entry requirements (always locked):")
        for name, condition in external:
            logger.info(f"    - {name}: {condition.description}")


def report(engine: ProgressEngine, semester: Semester):
    summary = engine.aggregate()
    estimate = engine.estimate_graduation(semester)
    recommendations = engine.recommendations()

    logger.info("=" * 50)
    logger.info(f"PROGRESS: {summary.percentage}% ({summary.completed_count}/{summary.total} subjects)")
    logger.info("=" * 50)
    logger.info(f"In progress: {summary.in_progress_count}")
    logger.info(f"Planned:     {summary.planned_count}")
    logger.info(f"Remaining:   {estimate.remaining_subjects}")
    logger.info(
        f"Graduation forecast: {estimate.graduation_semester} "
        f"({estimate.remaining_semesters} semesters from {estimate.current_semester})"
    )
    if recommendations.priority:
        logger.info("Priority subjects (unlock others):")
        for subject in recommendations.priority:
            logger.info(f"  - {subject.name}")
    if recommendations.other:
        logger.info("Other available options:")
        for subject in recommendations.other:
            logger.info(f"  - {subject.name}")

    print(build_period_table(engine).to_string())


def main():
    settings = get_settings()
    parser = argparse.ArgumentParser(
        description="Report curriculum progress for a stored or shared snapshot.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--curriculum",
        type=Path,
        default=settings.curriculum_path,
        help="Curriculum YAML (default: GRADUPLANNER_CURRICULUM or bundled curriculum)",
    )
    parser.add_argument(
        "--db",
        type=Path,
        default=settings.db_path,
        help=f"Progress database (default: {settings.db_path})",
    )
    parser.add_argument(
        "--student",
        default=settings.student_id,
        help="Student id of the stored snapshot (default: %(default)s)",
    )
    parser.add_argument(
        "--share",
        help="Shared progress link, or its raw data payload",
    )
    parser.add_argument(
        "--semester",
        type=Semester.parse,
        help="Current semester as YYYY.H (default: today)",
    )
    parser.add_argument(
        "--check-only",
        action="store_true",
        help="Only validate the curriculum and report its structure",
    )

    args = parser.parse_args()
    setup_logging(settings.log_level)

    try:
        loader = CurriculumLoader(args.curriculum)
    except (FileNotFoundError, ValueError) as e:
        logger.error(f"Could not load curriculum: {e}")
        sys.exit(1)

    check_curriculum(loader)
    if args.check_only:
        return

    share = ShareChannel()
    payload = args.share
    if payload and "://" in payload:
        payload = share.payload_from_url(payload)
        if payload is None:
            logger.warning(f"No '{share.param}' parameter in the shared link")

    store = SnapshotStore(args.db, student_id=args.student)
    # Reports never write: a shared link must not replace stored progress
    engine, source = ProgressEngine.restore(
        loader.curriculum, store=store, share=share, payload=payload, persist=False
    )
    logger.info(f"Snapshot source: {source.value}")
    if source == SnapshotSource.STORE:
        logger.info(f"Last saved: {store.get_updated_at():%Y-%m-%d %H:%M}")
    report(engine, args.semester or Semester.current())


if __name__ == "__main__":
    main()
