"""
Viewer rendering tests for GraduPlanner.
"""

from graduplanner.schemas import Semester, Snapshot, Subject, SubjectStatus
from graduplanner.tracker import ProgressEngine, Recommendations, SubjectView
from graduplanner.viewer import (
    STATUS_ICONS,
    STATUS_LABELS,
    get_tracker_css,
    render_legend,
    render_progress_bar,
    render_recommendations,
    render_subject_card,
    render_summary_cards,
    status_indicator,
)


class TestStatusDisplay:

    def test_every_status_has_icon_and_label(self):
        for status in SubjectStatus:
            assert status in STATUS_ICONS
            assert status in STATUS_LABELS
            assert f".subject-{status.value}" in get_tracker_css()

    def test_indicator(self):
        assert status_indicator(SubjectStatus.COMPLETED) == "✓"
        assert status_indicator(SubjectStatus.LOCKED) == "◌"

    def test_legend_lists_all_statuses(self):
        legend = render_legend()
        for label in STATUS_LABELS.values():
            assert label in legend


class TestSubjectCard:

    def test_card_escapes_names(self):
        view = SubjectView(
            subject=Subject(name="<script>x</script>"),
            status=SubjectStatus.AVAILABLE,
            missing_prerequisites=[],
        )
        card = render_subject_card(view)
        assert "<script>" not in card
        assert "&lt;script&gt;" in card
        assert "subject-available" in card

    def test_card_shows_prerequisites(self, small_curriculum):
        engine = ProgressEngine(small_curriculum)
        view = engine.period_views()[1].subjects[1]   # E (A, B)
        card = render_subject_card(view)
        assert "Prerequisites: A, B" in card
        assert "subject-locked" in card


class TestSummary:

    def test_summary_cards(self, small_curriculum):
        engine = ProgressEngine(small_curriculum, Snapshot(completed={"A", "B"}, planned={"C"}))
        cards = render_summary_cards(
            engine.aggregate(),
            engine.estimate_graduation(Semester(year=2025, half=1)),
        )
        assert len(cards) == 4
        assert "25%" in cards[0]
        assert "2 of 8 subjects" in cards[0]
        assert "2025.2" in cards[1]
        assert "(2025)" in cards[3]

    def test_progress_bar_width(self, small_curriculum):
        engine = ProgressEngine(small_curriculum, Snapshot(completed={"A", "B"}))
        assert "width: 25%" in render_progress_bar(engine.aggregate())


class TestRecommendationsRender:

    def test_both_lists(self):
        html = render_recommendations(Recommendations(
            priority=[Subject(name="A")], other=[Subject(name="C")],
        ))
        assert "Priority subjects" in html
        assert "Other available options" in html
        assert "<li>A</li>" in html

    def test_other_omitted_when_empty(self):
        html = render_recommendations(Recommendations(priority=[Subject(name="A")]))
        assert "Other available options" not in html

    def test_nothing_available(self):
        assert "No subjects available" in render_recommendations(Recommendations())
