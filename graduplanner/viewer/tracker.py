"""
Tracker renderer - Subject status badges, summary cards and recommendations.

Provides:
- Status icons, labels and colors
- Subject card rendering with prerequisites
- Progress summary cards and progress bar
- Recommendation lists
"""

import html

from graduplanner.schemas import Subject, SubjectStatus
from graduplanner.tracker import (
    GraduationEstimate,
    ProgressSummary,
    Recommendations,
    SubjectView,
)


STATUS_ICONS = {
    SubjectStatus.COMPLETED: "✓",
    SubjectStatus.IN_PROGRESS: "◷",
    SubjectStatus.PLANNED: "◎",
    SubjectStatus.AVAILABLE: "○",
    SubjectStatus.LOCKED: "◌",
}

STATUS_LABELS = {
    SubjectStatus.COMPLETED: "Completed",
    SubjectStatus.IN_PROGRESS: "In progress",
    SubjectStatus.PLANNED: "Planned for this year",
    SubjectStatus.AVAILABLE: "Available",
    SubjectStatus.LOCKED: "Locked (missing prerequisites)",
}

# (background, border, text)
STATUS_COLORS = {
    SubjectStatus.COMPLETED: ("#e8f5e9", "#a5d6a7", "#2e7d32"),
    SubjectStatus.IN_PROGRESS: ("#e3f2fd", "#90caf9", "#1565c0"),
    SubjectStatus.PLANNED: ("#fff3e0", "#ffcc80", "#e65100"),
    SubjectStatus.AVAILABLE: ("#ffffff", "#e0e0e0", "#424242"),
    SubjectStatus.LOCKED: ("#ffebee", "#ef9a9a", "#c62828"),
}


def get_tracker_css() -> str:
    """Get CSS styles for tracker display."""
    rules = []
    for status, (background, border, text) in STATUS_COLORS.items():
        rules.append(
            f".subject-{status.value} {{ background: {background}; "
            f"border-color: {border}; color: {text}; }}"
        )
    return """
    <style>
    .subject-card {
        border: 2px solid;
        border-radius: 8px;
        padding: 0.6em 0.8em;
        margin: 0.4em 0;
    }
    .subject-name {
        font-weight: 500;
        font-size: 0.95em;
    }
    .subject-prereqs {
        font-size: 0.8em;
        color: #757575;
        margin-top: 0.3em;
    }
    .summary-card {
        background: white;
        border-radius: 12px;
        padding: 1.2em;
        text-align: center;
        box-shadow: 0 2px 4px rgba(0,0,0,0.05);
    }
    .summary-value {
        font-size: 2em;
        font-weight: 700;
    }
    .summary-label {
        color: #616161;
    }
    .summary-detail {
        color: #9e9e9e;
        font-size: 0.85em;
    }
    .progress-track {
        background: #eeeeee;
        border-radius: 999px;
        height: 0.75em;
    }
    .progress-fill {
        background: linear-gradient(90deg, #66bb6a, #42a5f5);
        border-radius: 999px;
        height: 0.75em;
    }
    """ + "\n    ".join(rules) + """
    </style>
    """


def status_indicator(status: SubjectStatus) -> str:
    return STATUS_ICONS[status]


def render_subject_card(view: SubjectView) -> str:
    """
    Render one subject with its status.

    Args:
        view: SubjectView from ProgressEngine.period_views()

    Returns:
        HTML string for the card
    """
    status = view.status
    parts = [f'<div class="subject-card subject-{status.value}" title="{STATUS_LABELS[status]}">']
    parts.append(
        f'<div class="subject-name">{STATUS_ICONS[status]} {html.escape(view.subject.name)}</div>'
    )
    if view.subject.prerequisites:
        labels = ", ".join(html.escape(p.label) for p in view.subject.prerequisites)
        parts.append(f'<div class="subject-prereqs">Prerequisites: {labels}</div>')
    parts.append('</div>')
    return ''.join(parts)


def render_legend() -> str:
    items = [
        f'<span class="subject-{status.value}" style="padding: 0 0.4em;">'
        f'{STATUS_ICONS[status]} {STATUS_LABELS[status]}</span>'
        for status in SubjectStatus
    ]
    return '<div>' + ' '.join(items) + '</div>'


def _summary_card(value: str, label: str, detail: str, color: str) -> str:
    return (
        '<div class="summary-card">'
        f'<div class="summary-value" style="color: {color};">{html.escape(value)}</div>'
        f'<div class="summary-label">{html.escape(label)}</div>'
        f'<div class="summary-detail">{html.escape(detail)}</div>'
        '</div>'
    )


def render_summary_cards(summary: ProgressSummary, estimate: GraduationEstimate) -> list[str]:
    """
    Render the four summary cards.

    Returns:
        HTML strings: overall progress, graduation forecast, in progress, planned
    """
    return [
        _summary_card(
            f"{summary.percentage}%", "Overall progress",
            f"{summary.completed_count} of {summary.total} subjects", "#388e3c",
        ),
        _summary_card(
            str(estimate.graduation_semester), "Graduation forecast",
            f"{estimate.remaining_semesters} semesters remaining", "#1976d2",
        ),
        _summary_card(
            str(summary.in_progress_count), "In progress",
            "subjects this semester", "#7b1fa2",
        ),
        _summary_card(
            str(summary.planned_count), "Planned",
            f"for this year ({estimate.current_semester.year})", "#ef6c00",
        ),
    ]


def render_progress_bar(summary: ProgressSummary) -> str:
    percentage = max(0, min(100, summary.percentage))
    return (
        '<div class="progress-track">'
        f'<div class="progress-fill" style="width: {percentage}%;"></div>'
        '</div>'
    )


def _subject_list(subjects: list[Subject]) -> str:
    return '<ul>' + ''.join(f'<li>{html.escape(s.name)}</li>' for s in subjects) + '</ul>'


def render_recommendations(recommendations: Recommendations) -> str:
    """Render recommendation lists; empty lists are omitted."""
    parts = []
    if recommendations.priority:
        parts.append('<h4>Priority subjects (unlock others)</h4>')
        parts.append(_subject_list(recommendations.priority))
    if recommendations.other:
        parts.append('<h4>Other available options</h4>')
        parts.append(_subject_list(recommendations.other))
    if not parts:
        parts.append('<p>No subjects available right now.</p>')
    return ''.join(parts)
