"""Question bank generation with a deterministic offline fallback."""

from __future__ import annotations

import logging
import random
from collections import Counter
from dataclasses import dataclass
from enum import Enum
from typing import Any, List, Mapping, Optional, Sequence

from .errors import (
    GenerationError,
    GenerationSchemaError,
    GenerationTransportError,
)
from .fallback import allocate_slots, build_fallback_questions, fisher_yates
from .models import OPTION_COUNT, Difficulty, QuizQuestion
from .service import GenerationService

__all__ = [
    "BankSource",
    "QuestionBank",
    "QuestionBankGenerator",
    "validate_payload",
    "validate_question",
]

logger = logging.getLogger(__name__)

SERVICE_NOT_CONFIGURED = "AI service not configured"


class BankSource(Enum):
    AI = "ai"
    FALLBACK = "fallback"


@dataclass(frozen=True)
class QuestionBank:
    """Questions plus where they came from.

    ``degraded_reason`` is set whenever the fallback was used so callers can
    show a soft warning without blocking the quiz.
    """

    questions: tuple[QuizQuestion, ...]
    source: BankSource
    degraded_reason: Optional[str] = None

    @property
    def degraded(self) -> bool:
        return self.source is BankSource.FALLBACK


def validate_question(item: Any) -> QuizQuestion:
    """Build a :class:`QuizQuestion` from a wire dict.

    Raises :class:`GenerationSchemaError` describing the first violation.
    Any ``timeLimit`` in the payload is ignored in favour of the fixed
    difficulty mapping.
    """

    if not isinstance(item, Mapping):
        raise GenerationSchemaError("question must be an object")
    text = item.get("question")
    if not isinstance(text, str) or not text.strip():
        raise GenerationSchemaError("question text is required")
    options = item.get("options")
    if not isinstance(options, list) or len(options) != OPTION_COUNT:
        raise GenerationSchemaError(
            f"options must be a list of exactly {OPTION_COUNT} strings"
        )
    if not all(isinstance(opt, str) and opt.strip() for opt in options):
        raise GenerationSchemaError("options must be non-empty strings")
    if len(set(options)) != OPTION_COUNT:
        raise GenerationSchemaError("options must be unique")
    index = item.get("correctAnswerIndex")
    if isinstance(index, bool) or not isinstance(index, int):
        raise GenerationSchemaError("correctAnswerIndex must be an integer")
    if not 0 <= index < OPTION_COUNT:
        raise GenerationSchemaError(
            f"correctAnswerIndex must be in [0, {OPTION_COUNT})"
        )
    try:
        difficulty = Difficulty.from_value(item.get("difficulty"))
    except ValueError as exc:
        raise GenerationSchemaError(str(exc)) from exc
    return QuizQuestion.create(text.strip(), options, index, difficulty)


def validate_payload(
    payload: Any, slots: Sequence[Difficulty]
) -> List[QuizQuestion]:
    """Validate a service payload against the requested difficulty slots.

    The payload must carry a non-empty ``questions`` list whose items are all
    valid and whose difficulty counts equal the slot counts. Questions are
    returned ordered easy, medium, hard, keeping the service's order within a
    difficulty.
    """

    if not isinstance(payload, Mapping):
        raise GenerationSchemaError("payload must be an object")
    raw = payload.get("questions")
    if not isinstance(raw, list) or not raw:
        raise GenerationSchemaError("payload has no questions")
    questions = []
    for position, item in enumerate(raw):
        try:
            questions.append(validate_question(item))
        except GenerationSchemaError as exc:
            raise GenerationSchemaError(
                f"question {position} is invalid: {exc}"
            ) from exc
    expected = Counter(slots)
    actual = Counter(question.difficulty for question in questions)
    if actual != expected:
        raise GenerationSchemaError(
            "difficulty distribution mismatch: expected {0}, got {1}".format(
                _describe_counts(expected), _describe_counts(actual)
            )
        )
    rank = {difficulty: i for i, difficulty in enumerate(Difficulty)}
    return sorted(questions, key=lambda q: rank[q.difficulty])


def _describe_counts(counts: Counter) -> str:
    return ", ".join(f"{d.value}={counts.get(d, 0)}" for d in Difficulty)


class QuestionBankGenerator:
    """Produce question banks, preferring the AI service.

    ``rng`` drives every random choice (fallback keywords, templates,
    shuffles and AI option reshuffles); seed it for reproducible output.
    """

    def __init__(
        self,
        service: Optional[GenerationService] = None,
        *,
        rng: Optional[random.Random] = None,
        reshuffle_probability: float = 0.5,
    ) -> None:
        self.service = service
        self.rng = rng or random.Random()
        self.reshuffle_probability = reshuffle_probability

    async def generate(
        self,
        title: str,
        description: Optional[str] = None,
        desired_count: int = 15,
        distribution: Optional[Mapping[Difficulty, int]] = None,
    ) -> List[QuizQuestion]:
        bank = await self.generate_bank(
            title, description, desired_count, distribution
        )
        return list(bank.questions)

    async def generate_bank(
        self,
        title: str,
        description: Optional[str] = None,
        desired_count: int = 15,
        distribution: Optional[Mapping[Difficulty, int]] = None,
    ) -> QuestionBank:
        """Return a question bank; never raises for ``desired_count >= 1``."""

        slots = allocate_slots(desired_count, distribution)
        if not slots:
            return QuestionBank((), BankSource.FALLBACK, "no questions requested")

        if self.service is None:
            reason = SERVICE_NOT_CONFIGURED
        else:
            try:
                questions = await self._request_ai(
                    title, description, slots
                )
            except GenerationError as exc:
                reason = str(exc)
                logger.warning(
                    "AI question generation failed; using offline questions",
                    extra={
                        "title": title,
                        "error_type": type(exc).__name__,
                        "reason": reason,
                    },
                )
            else:
                logger.info(
                    "Generated question bank with AI service",
                    extra={"title": title, "count": len(questions)},
                )
                return QuestionBank(tuple(questions), BankSource.AI)

        questions = build_fallback_questions(
            title, description, slots=slots, rng=self.rng
        )
        logger.info(
            "Generated offline question bank",
            extra={"title": title, "count": len(questions), "reason": reason},
        )
        return QuestionBank(tuple(questions), BankSource.FALLBACK, reason)

    async def _request_ai(
        self,
        title: str,
        description: Optional[str],
        slots: Sequence[Difficulty],
    ) -> List[QuizQuestion]:
        try:
            payload = await self.service.request(title, description, len(slots))
        except GenerationError:
            raise
        except Exception as exc:
            raise GenerationTransportError(str(exc) or type(exc).__name__) from exc
        questions = validate_payload(payload, slots)
        return [self._maybe_reshuffle(question) for question in questions]

    def _maybe_reshuffle(self, question: QuizQuestion) -> QuizQuestion:
        if self.rng.random() >= self.reshuffle_probability:
            return question
        correct = question.correct_answer
        options = fisher_yates(question.options, self.rng)
        return QuizQuestion.create(
            question.question,
            options,
            options.index(correct),
            question.difficulty,
        )
