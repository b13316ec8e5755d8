"""Shared fixtures for the progress and badge tests."""

import sys
from datetime import datetime
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent))

from models import UserProgress  # noqa: E402

# A Wednesday around lunch: no time-of-day or weekend badges apply
WEDNESDAY_NOON = datetime(2024, 3, 13, 12, 0)


@pytest.fixture
def now():
    return WEDNESDAY_NOON


@pytest.fixture
def empty_progress():
    return UserProgress()


@pytest.fixture
def data_dir(tmp_path):
    """Provide a temporary directory for JSON progress files."""
    return tmp_path / "progress"
