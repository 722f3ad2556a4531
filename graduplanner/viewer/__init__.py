"""
GraduPlanner Viewer - Rendering components for the progress tracker page.
"""

from .tracker import (
    STATUS_ICONS,
    STATUS_LABELS,
    STATUS_COLORS,
    get_tracker_css,
    status_indicator,
    render_subject_card,
    render_legend,
    render_summary_cards,
    render_progress_bar,
    render_recommendations,
)

__all__ = [
    "STATUS_ICONS",
    "STATUS_LABELS",
    "STATUS_COLORS",
    "get_tracker_css",
    "status_indicator",
    "render_subject_card",
    "render_legend",
    "render_summary_cards",
    "render_progress_bar",
    "render_recommendations",
]
