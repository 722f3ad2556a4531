import pytest

from graduplanner.schemas import Curriculum


def make_curriculum(periods: list[list[dict]]) -> Curriculum:
    """Build a curriculum from lists of raw subject dicts, one list per period."""
    return Curriculum.model_validate({
        "course": {"name": "Test Program", "institution": "Test U"},
        "periods": [
            {"label": f"Period {i + 1}", "subjects": subjects}
            for i, subjects in enumerate(periods)
        ],
    })


@pytest.fixture
def small_curriculum() -> Curriculum:
    """
    Period 1: A, B, C (no prerequisites)
    Period 2: D (A), E (A, B), F
    Period 3: G (D), H ("50% of program completed")
    """
    return make_curriculum([
        [{"name": "A"}, {"name": "B"}, {"name": "C"}],
        [
            {"name": "D", "prerequisites": ["A"]},
            {"name": "E", "prerequisites": ["A", "B"]},
            {"name": "F"},
        ],
        [
            {"name": "G", "prerequisites": ["D"]},
            {"name": "H", "prerequisites": ["50% of program completed"]},
        ],
    ])
