"""
GraduPlanner - Academic Progress Tracker

Streamlit application for tracking progress through a fixed curriculum:
plan, take and complete subjects, see what prerequisites unlock, and get a
graduation forecast. Progress is saved locally and can be shared as a link.

Usage:
    streamlit run app.py
"""

import logging

import streamlit as st

from graduplanner.config import get_settings, setup_logging
from graduplanner.schemas import SubjectStatus
from graduplanner.tracker import (
    CurriculumLoader,
    ProgressEngine,
    RejectReason,
    ShareChannel,
    SnapshotSource,
    SnapshotStore,
)
from graduplanner.viewer import (
    get_tracker_css,
    render_legend,
    render_progress_bar,
    render_recommendations,
    render_subject_card,
    render_summary_cards,
    status_indicator,
)


# -----------------------------------------------------------------------------
# Configuration
# -----------------------------------------------------------------------------

SETTINGS = get_settings()
setup_logging(SETTINGS.log_level)
logger = logging.getLogger(__name__)

st.set_page_config(
    page_title="GraduPlanner",
    page_icon="🎓",
    layout="wide",
    initial_sidebar_state="expanded",
)

REJECT_MESSAGES = {
    RejectReason.SUBJECT_LOCKED: "This subject is locked: complete its prerequisites first.",
    RejectReason.UNKNOWN_SUBJECT: "Unknown subject.",
    RejectReason.UNKNOWN_PERIOD: "Unknown period.",
    RejectReason.PERIOD_ALREADY_FINALIZED: "This period was already finalized.",
    RejectReason.PERIOD_HAS_LOCKED_SUBJECTS: "This period still has locked subjects.",
}


# -----------------------------------------------------------------------------
# Session State Initialization
# -----------------------------------------------------------------------------

def init_session_state():
    """Initialize session state variables."""
    if "loader" not in st.session_state:
        st.session_state.loader = CurriculumLoader(SETTINGS.curriculum_path)

    if "share" not in st.session_state:
        st.session_state.share = ShareChannel()

    if "engine" not in st.session_state:
        store = SnapshotStore(SETTINGS.db_path, student_id=SETTINGS.student_id)
        payload = st.query_params.get(st.session_state.share.param)
        engine, source = ProgressEngine.restore(
            st.session_state.loader.curriculum,
            store=store,
            share=st.session_state.share,
            payload=payload,
        )
        st.session_state.engine = engine
        if payload:
            # Drop the payload from the address bar once consumed
            st.query_params.clear()
            if source == SnapshotSource.SHARE:
                notify("Progress loaded from the shared link.")
            else:
                notify("The shared link could not be read; showing saved progress.")

    if "show_recommendations" not in st.session_state:
        st.session_state.show_recommendations = False


def notify(message: str):
    """Queue a toast shown on the next render (survives st.rerun)."""
    st.session_state.setdefault("toasts", []).append(message)


def flush_notifications():
    for message in st.session_state.pop("toasts", []):
        st.toast(message)


# -----------------------------------------------------------------------------
# Sidebar: Share and Reset
# -----------------------------------------------------------------------------

def render_sidebar():
    """Render the sidebar with share link and reset."""
    engine = st.session_state.engine
    share = st.session_state.share
    summary = engine.aggregate()

    st.sidebar.title("🎓 GraduPlanner")
    st.sidebar.markdown(
        f"**Progress:** {summary.completed_count}/{summary.total} subjects ({summary.percentage}%)"
    )
    st.sidebar.progress(summary.percentage / 100)
    if engine.store is not None:
        updated_at = engine.store.get_updated_at()
        if updated_at:
            st.sidebar.caption(f"Last saved {updated_at:%Y-%m-%d %H:%M}")

    st.sidebar.divider()
    st.sidebar.subheader("Share progress")
    st.sidebar.caption("Anyone opening this link loads your progress.")
    st.sidebar.code(share.share_url(SETTINGS.base_url, engine.snapshot), language=None)

    st.sidebar.divider()
    st.sidebar.subheader("Reset")
    confirm = st.sidebar.checkbox(
        "I understand this permanently removes all my progress",
        key="confirm_reset",
    )
    st.sidebar.button(
        "Clear progress",
        disabled=not confirm,
        use_container_width=True,
        on_click=clear_progress,
    )


def clear_progress():
    # Runs as a widget callback, before widgets are re-created
    st.session_state.engine.reset()
    st.session_state.confirm_reset = False
    notify("Progress cleared.")


# -----------------------------------------------------------------------------
# Main Content
# -----------------------------------------------------------------------------

def render_header():
    """Render course header, legend and summary cards."""
    engine = st.session_state.engine
    course = engine.curriculum.course
    estimate = engine.estimate_graduation()

    st.title("🎓 GraduPlanner")
    location = "/".join(part for part in (course.campus, course.institution) if part)
    st.markdown(f"{course.name} - {location}")
    st.caption(f"Current semester: {estimate.current_semester}")

    st.markdown(get_tracker_css(), unsafe_allow_html=True)
    with st.expander("How to use", expanded=False):
        st.markdown(
            "- **First click** on a subject: planned for this year\n"
            "- **Second click**: in progress\n"
            "- **Third click**: completed\n"
            "- **Fourth click**: clears it again"
        )
        st.markdown(render_legend(), unsafe_allow_html=True)

    summary = engine.aggregate()
    for col, card in zip(st.columns(4), render_summary_cards(summary, estimate)):
        with col:
            st.markdown(card, unsafe_allow_html=True)


def render_recommendations_section():
    """Render the toggleable next-semester recommendations."""
    engine = st.session_state.engine
    label = "Hide" if st.session_state.show_recommendations else "Show"
    if st.button(f"{label} next semester recommendations"):
        st.session_state.show_recommendations = not st.session_state.show_recommendations
        st.rerun()

    if st.session_state.show_recommendations:
        with st.container(border=True):
            st.subheader("Recommendations for next semester")
            st.markdown(render_recommendations(engine.recommendations()), unsafe_allow_html=True)


def render_periods():
    """Render the period grid with subject toggles and finalize buttons."""
    engine = st.session_state.engine
    summary = engine.aggregate()

    st.markdown(f"**Course progress** ({summary.completed_count}/{summary.total} subjects)")
    st.markdown(render_progress_bar(summary), unsafe_allow_html=True)
    st.divider()

    views = engine.period_views()
    for row_start in range(0, len(views), 2):
        for col, view in zip(st.columns(2), views[row_start:row_start + 2]):
            with col, st.container(border=True):
                head, action = st.columns([3, 2])
                with head:
                    st.subheader(f"{view.period.label} ({view.completed_count}/{view.total_count})")
                with action:
                    button_label = "Period finalized" if view.finalized else "Finalize period"
                    if st.button(
                        button_label,
                        key=f"finalize_{view.index}",
                        disabled=not view.can_finalize,
                        use_container_width=True,
                    ):
                        finalize_period(view.index)

                for subject_view in view.subjects:
                    render_subject_row(subject_view)


def render_subject_row(subject_view):
    subject = subject_view.subject
    locked = subject_view.status == SubjectStatus.LOCKED
    col1, col2 = st.columns([1, 9])
    with col1:
        st.markdown(status_indicator(subject_view.status))
    with col2:
        if st.button(
            subject.name,
            key=f"subject_{subject.name}",
            disabled=locked,
            use_container_width=True,
            help=(
                "Missing: " + ", ".join(subject_view.missing_prerequisites)
                if locked else None
            ),
        ):
            toggle_subject(subject.name)
        if subject.prerequisites:
            st.markdown(render_subject_card(subject_view), unsafe_allow_html=True)


def toggle_subject(subject_name: str):
    result = st.session_state.engine.toggle(subject_name)
    if not result.ok:
        notify(REJECT_MESSAGES[result.reason])
    st.rerun()


def finalize_period(period_index: int):
    result = st.session_state.engine.finalize_period(period_index)
    if result.ok:
        notify(f"Period finalized! {result.changed} subjects marked as completed.")
    else:
        notify(REJECT_MESSAGES[result.reason])
    st.rerun()


# -----------------------------------------------------------------------------
# Main App
# -----------------------------------------------------------------------------

def main():
    """Main application entry point."""
    init_session_state()
    flush_notifications()
    render_sidebar()
    render_header()
    render_recommendations_section()
    render_periods()


if __name__ == "__main__":
    main()
