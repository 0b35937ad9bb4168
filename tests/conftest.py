from __future__ import annotations

import asyncio
import random
import sys
from pathlib import Path

import pytest

TESTS_DIR = Path(__file__).resolve().parent
if str(TESTS_DIR) not in sys.path:
    sys.path.insert(0, str(TESTS_DIR))

# Make src/ importable when the package is not installed.
ROOT = TESTS_DIR.parent
for extra in (ROOT / "src",):
    path_str = str(extra)
    if path_str not in sys.path:
        sys.path.insert(0, path_str)

from fixtures import NoticeRecorder  # noqa: E402

from competency_assessment.assessment.generator import (  # noqa: E402
    QuestionBankGenerator,
)
from competency_assessment.assessment.scheduler import (  # noqa: E402
    ManualScheduler,
)
from competency_assessment.assessment.session import QuizSession  # noqa: E402


@pytest.fixture
def scheduler() -> ManualScheduler:
    return ManualScheduler()


@pytest.fixture
def notices() -> NoticeRecorder:
    return NoticeRecorder()


@pytest.fixture
def offline_generator() -> QuestionBankGenerator:
    """Generator without an AI service, seeded for reproducible banks."""

    return QuestionBankGenerator(None, rng=random.Random(1234))


@pytest.fixture
def make_session(scheduler, notices, offline_generator):
    """Build a session wired to the manual clock and notice recorder."""

    def _make(**kwargs) -> QuizSession:
        kwargs.setdefault("notify", notices)
        generator = kwargs.pop("generator", offline_generator)
        return QuizSession(generator, scheduler, **kwargs)

    return _make


@pytest.fixture
def started_session(make_session):
    """Return a factory that builds a session and runs ``start``."""

    def _start(title: str = "Binary Search Trees", description=None, **kwargs):
        session = make_session(**kwargs)
        assert asyncio.run(session.start(title, description)) is True
        return session

    return _start
