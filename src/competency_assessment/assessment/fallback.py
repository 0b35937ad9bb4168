"""Deterministic template-based question synthesis.

Used whenever the AI generation service is unavailable or returns data that
fails validation. Given the same ``random.Random`` state the output is
identical, which keeps offline question banks reproducible in tests.
"""

from __future__ import annotations

import random
import re
from fractions import Fraction
from typing import List, Mapping, MutableSequence, Optional, Sequence, TypeVar

from .models import (
    DEFAULT_DISTRIBUTION,
    OPTION_COUNT,
    Difficulty,
    QuizQuestion,
)
from .templates import DISTRACTORS, STOP_WORDS, TEMPLATES, render_template

__all__ = [
    "allocate_slots",
    "assemble_options",
    "build_fallback_questions",
    "extract_keywords",
    "fisher_yates",
]

T = TypeVar("T")

# Word characters are ASCII-only while whitespace is not.
_punct_re = re.compile(r"[^A-Za-z0-9_\s]")
_MIN_KEYWORD_LENGTH = 3


def extract_keywords(title: str, description: Optional[str] = None) -> List[str]:
    """Return candidate keywords from ``title`` and ``description``.

    Falls back to ``[title]`` when every token is filtered out.
    """

    combined = f"{title} {description or ''}".lower()
    stripped = _punct_re.sub("", combined)
    keywords = [
        word
        for word in stripped.split()
        if len(word) >= _MIN_KEYWORD_LENGTH and word not in STOP_WORDS
    ]
    return keywords or [title]


def allocate_slots(
    desired_count: int,
    distribution: Optional[Mapping[Difficulty, int]] = None,
) -> List[Difficulty]:
    """Expand a difficulty distribution into an ordered list of slots.

    A distribution whose total matches ``desired_count`` is used verbatim.
    Otherwise its weights (or the default 5/7/3 split) are scaled to
    ``desired_count`` with the largest-remainder method; ties go to the
    easier difficulty.
    """

    if desired_count <= 0:
        return []
    weights = {
        difficulty: max(0, int((distribution or {}).get(difficulty, 0)))
        for difficulty in Difficulty
    }
    if sum(weights.values()) == 0:
        weights = dict(DEFAULT_DISTRIBUTION)

    total = sum(weights.values())
    if total == desired_count:
        counts = weights
    else:
        quotas = {
            difficulty: Fraction(desired_count * weight, total)
            for difficulty, weight in weights.items()
        }
        counts = {d: int(q) for d, q in quotas.items()}
        leftover = desired_count - sum(counts.values())
        order = sorted(
            Difficulty,
            key=lambda d: (-(quotas[d] - counts[d]), list(Difficulty).index(d)),
        )
        for difficulty in order[:leftover]:
            counts[difficulty] += 1

    slots: List[Difficulty] = []
    for difficulty in Difficulty:
        slots.extend([difficulty] * counts[difficulty])
    return slots


def fisher_yates(items: Sequence[T], rng: random.Random) -> List[T]:
    """Return a shuffled copy of ``items`` (Durstenfeld variant)."""

    result = list(items)
    for i in range(len(result) - 1, 0, -1):
        j = rng.randrange(i + 1)
        result[i], result[j] = result[j], result[i]
    return result


def assemble_options(
    distractors: Sequence[str], correct_answer: str, correct_index: int
) -> List[str]:
    """Insert ``correct_answer`` at ``correct_index`` among ``distractors``.

    If the result holds more than four options the one at
    ``(correct_index + 2) % len`` is dropped.
    """

    options: MutableSequence[str] = list(distractors)
    options.insert(correct_index, correct_answer)
    if len(options) > OPTION_COUNT:
        del options[(correct_index + 2) % len(options)]
    return list(options)


def build_fallback_question(
    title: str,
    difficulty: Difficulty,
    keywords: Sequence[str],
    rng: random.Random,
) -> QuizQuestion:
    keyword = keywords[rng.randrange(len(keywords))]
    templates = TEMPLATES[difficulty]
    template = templates[rng.randrange(len(templates))]
    question, correct_answer = render_template(
        template, keyword=keyword, title=title
    )
    distractors = fisher_yates(DISTRACTORS[difficulty], rng)
    correct_index = rng.randrange(OPTION_COUNT)
    options = assemble_options(distractors, correct_answer, correct_index)
    return QuizQuestion.create(question, options, correct_index, difficulty)


def build_fallback_questions(
    title: str,
    description: Optional[str] = None,
    *,
    slots: Sequence[Difficulty],
    rng: Optional[random.Random] = None,
) -> List[QuizQuestion]:
    """Synthesize one question per slot; never raises for non-empty slots."""

    rng = rng or random.Random()
    keywords = extract_keywords(title, description)
    return [
        build_fallback_question(title, difficulty, keywords, rng)
        for difficulty in slots
    ]
