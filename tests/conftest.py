"""Pytest configuration and shared fixtures.

This module contains pytest configuration and fixtures that are shared
across all test modules.
"""

import itertools
import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Callable, List

import pytest
from unittest.mock import MagicMock

# Add the project root to the Python path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from src.annotation.store import AnnotationStore  # noqa: E402

PALETTE = ["#FCA5A5", "#86EFAC", "#7DD3FC", "#1E3A8A"]

INTERVIEW_TEXT = (
    "Interviewer: Can you tell me about your experience using our new feature?\n"
    "User A: It's been mostly positive. I really like the streamlined design. "
    "However, I found the new export function a bit confusing at first."
)


@pytest.fixture
def project_root() -> Path:
    """Return the project root directory path.

    Returns:
        Path to the project root directory.
    """
    return PROJECT_ROOT


@pytest.fixture
def config_dir(project_root: Path) -> Path:
    """Return the config directory path.

    Args:
        project_root: The project root directory path.

    Returns:
        Path to the config directory.
    """
    return project_root / "config"


@pytest.fixture
def palette() -> List[str]:
    return list(PALETTE)


@pytest.fixture
def id_factory() -> Callable[[str], str]:
    """Deterministic ids: ``doc-1``, ``code-2``, ..."""
    counter = itertools.count(1)
    return lambda prefix: f"{prefix}-{next(counter)}"


@pytest.fixture
def clock() -> Callable[[], datetime]:
    """A clock that advances one second per call."""
    start = datetime(2024, 5, 1, 12, 0, 0, tzinfo=timezone.utc)
    ticks = itertools.count()
    return lambda: start + timedelta(seconds=next(ticks))


@pytest.fixture
def store(palette: List[str], id_factory: Callable[[str], str], clock: Callable[[], datetime]) -> AnnotationStore:
    return AnnotationStore(palette=palette, id_factory=id_factory, clock=clock)


@pytest.fixture
def interview_text() -> str:
    return INTERVIEW_TEXT


@pytest.fixture
def test_settings(palette: List[str]) -> MagicMock:
    """Provide a lightweight mock Settings object for unit tests."""
    settings = MagicMock()
    settings.llm = MagicMock()
    settings.llm.provider = "ollama"
    settings.llm.model = "llama3"
    settings.llm.temperature = 0.2
    settings.llm.max_tokens = 512
    settings.annotation = MagicMock()
    settings.annotation.palette = list(palette)
    settings.annotation.placeholder_color = "#E2E8F0"
    settings.annotation.context_chars = 4000
    return settings
