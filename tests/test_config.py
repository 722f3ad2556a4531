"""
Settings tests for GraduPlanner.
"""

from pathlib import Path

import pytest

from graduplanner.config import DEFAULT_BASE_URL, get_settings
from graduplanner.tracker import (
    DEFAULT_CURRICULUM_PATH,
    DEFAULT_PROGRESS_DB,
    CurriculumLoader,
)

ENV_VARS = [
    "GRADUPLANNER_DB_PATH",
    "GRADUPLANNER_CURRICULUM",
    "GRADUPLANNER_STUDENT_ID",
    "GRADUPLANNER_BASE_URL",
    "GRADUPLANNER_LOG_LEVEL",
]


@pytest.fixture
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


class TestSettings:

    def test_defaults(self, clean_env):
        settings = get_settings()
        assert settings.db_path == DEFAULT_PROGRESS_DB
        assert settings.curriculum_path == DEFAULT_CURRICULUM_PATH
        assert settings.student_id == "default"
        assert settings.base_url == DEFAULT_BASE_URL
        assert settings.log_level == "INFO"

    def test_defaults_match_components(self, clean_env):
        # Same paths whether a component is built from settings or bare
        settings = get_settings()
        assert CurriculumLoader().path == settings.curriculum_path

    def test_environment_overrides(self, clean_env, tmp_path):
        clean_env.setenv("GRADUPLANNER_DB_PATH", str(tmp_path / "p.db"))
        clean_env.setenv("GRADUPLANNER_CURRICULUM", str(tmp_path / "c.yaml"))
        clean_env.setenv("GRADUPLANNER_STUDENT_ID", "alice")
        clean_env.setenv("GRADUPLANNER_BASE_URL", "https://example.org/")
        clean_env.setenv("GRADUPLANNER_LOG_LEVEL", "debug")

        settings = get_settings()
        assert settings.db_path == tmp_path / "p.db"
        assert settings.curriculum_path == tmp_path / "c.yaml"
        assert settings.student_id == "alice"
        assert settings.base_url == "https://example.org/"
        assert settings.log_level == "DEBUG"

    def test_home_is_expanded(self, clean_env):
        clean_env.setenv("GRADUPLANNER_DB_PATH", "~/tracker.db")
        assert get_settings().db_path == Path.home() / "tracker.db"

    def test_invalid_log_level(self, clean_env):
        clean_env.setenv("GRADUPLANNER_LOG_LEVEL", "LOUD")
        with pytest.raises(ValueError):
            get_settings()
