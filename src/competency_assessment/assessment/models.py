"""Value types shared by the generator, session and scorer."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping, MutableMapping, Optional

__all__ = [
    "Difficulty",
    "DEFAULT_DISTRIBUTION",
    "OPTION_COUNT",
    "TIME_LIMITS",
    "QuizQuestion",
    "QuizResult",
    "ScoreSummary",
    "SessionStatus",
    "time_limit_for",
]

OPTION_COUNT = 4


class Difficulty(Enum):
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"

    @classmethod
    def from_value(cls, value: object) -> "Difficulty":
        if isinstance(value, cls):
            return value
        normalized = str(value).strip().lower()
        for member in cls:
            if member.value == normalized:
                return member
        expected = ", ".join(member.value for member in cls)
        raise ValueError(
            f"Unknown difficulty '{value}'. Expected one of: {expected}."
        )


TIME_LIMITS: Mapping[Difficulty, int] = {
    Difficulty.EASY: 30,
    Difficulty.MEDIUM: 45,
    Difficulty.HARD: 60,
}

DEFAULT_DISTRIBUTION: Mapping[Difficulty, int] = {
    Difficulty.EASY: 5,
    Difficulty.MEDIUM: 7,
    Difficulty.HARD: 3,
}


def time_limit_for(difficulty: Difficulty) -> int:
    return TIME_LIMITS[difficulty]


class SessionStatus(Enum):
    NOT_STARTED = "not_started"
    GENERATING = "generating"
    ACTIVE = "active"
    ANSWERED = "answered"
    COMPLETED = "completed"


@dataclass(frozen=True)
class QuizQuestion:
    """A multiple-choice question with exactly four options.

    ``time_limit_seconds`` always follows :data:`TIME_LIMITS`; use
    :meth:`create` to build instances so the mapping cannot drift.
    """

    question: str
    options: tuple[str, ...]
    correct_answer_index: int
    difficulty: Difficulty
    time_limit_seconds: int

    @classmethod
    def create(
        cls,
        question: str,
        options: Any,
        correct_answer_index: int,
        difficulty: Difficulty,
    ) -> "QuizQuestion":
        return cls(
            question=question,
            options=tuple(options),
            correct_answer_index=correct_answer_index,
            difficulty=difficulty,
            time_limit_seconds=time_limit_for(difficulty),
        )

    @property
    def correct_answer(self) -> str:
        return self.options[self.correct_answer_index]

    def to_dict(self) -> MutableMapping[str, Any]:
        """Return the camelCase wire representation."""

        return {
            "question": self.question,
            "options": list(self.options),
            "correctAnswerIndex": self.correct_answer_index,
            "difficulty": self.difficulty.value,
            "timeLimit": self.time_limit_seconds,
        }


@dataclass(frozen=True)
class QuizResult:
    """Outcome of one question; ``selected_answer_index`` is None on timeout."""

    question_index: int
    selected_answer_index: Optional[int]
    is_correct: bool
    time_spent_seconds: float

    @property
    def timed_out(self) -> bool:
        return self.selected_answer_index is None

    def to_dict(self) -> MutableMapping[str, Any]:
        return {
            "questionIndex": self.question_index,
            "selectedAnswerIndex": self.selected_answer_index,
            "isCorrect": self.is_correct,
            "timeSpent": self.time_spent_seconds,
        }


@dataclass(frozen=True)
class ScoreSummary:
    correct_count: int
    incorrect_count: int
    score_percent: int
    passed: bool

    @property
    def total(self) -> int:
        return self.correct_count + self.incorrect_count

    def to_dict(self) -> MutableMapping[str, Any]:
        return {
            "correctCount": self.correct_count,
            "incorrectCount": self.incorrect_count,
            "scorePercent": self.score_percent,
            "passed": self.passed,
        }
