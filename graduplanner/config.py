"""
Runtime settings for GraduPlanner.

Values come from the environment, with a project-level .env file loaded
first (existing environment variables win).
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

from graduplanner.tracker.loader import DEFAULT_CURRICULUM_PATH
from graduplanner.tracker.store import DEFAULT_PROGRESS_DB

PROJECT_ROOT = Path(__file__).parent.parent
load_dotenv(PROJECT_ROOT / ".env")

DEFAULT_BASE_URL = "http://localhost:8501/"
LOG_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"


@dataclass
class Settings:
    db_path: Path
    curriculum_path: Path
    student_id: str
    base_url: str
    log_level: str


def get_settings() -> Settings:
    """Read settings from GRADUPLANNER_* environment variables."""
    log_level = os.environ.get("GRADUPLANNER_LOG_LEVEL", "INFO").upper()
    if not isinstance(logging.getLevelName(log_level), int):
        raise ValueError(f"Invalid GRADUPLANNER_LOG_LEVEL: {log_level}")

    return Settings(
        db_path=Path(os.environ.get("GRADUPLANNER_DB_PATH") or DEFAULT_PROGRESS_DB).expanduser(),
        curriculum_path=Path(
            os.environ.get("GRADUPLANNER_CURRICULUM") or DEFAULT_CURRICULUM_PATH
        ).expanduser(),
        student_id=os.environ.get("GRADUPLANNER_STUDENT_ID") or "default",
        base_url=os.environ.get("GRADUPLANNER_BASE_URL") or DEFAULT_BASE_URL,
        log_level=log_level,
    )


def setup_logging(level: str = "INFO"):
    """Configure root logging for entry points (app and scripts)."""
    logging.basicConfig(level=level, format=LOG_FORMAT)
