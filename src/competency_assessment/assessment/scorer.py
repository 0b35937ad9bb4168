"""Pure score aggregation for finished quiz sessions."""

from __future__ import annotations

from typing import Iterable

from .models import QuizResult, ScoreSummary

__all__ = ["PASS_THRESHOLD", "round_half_up_percent", "score"]

PASS_THRESHOLD = 70


def round_half_up_percent(part: int, total: int) -> int:
    """Return ``round(100 * part / total)`` rounding halves up, exactly."""

    if total <= 0:
        return 0
    return (200 * part + total) // (2 * total)


def score(
    results: Iterable[QuizResult], pass_threshold: int = PASS_THRESHOLD
) -> ScoreSummary:
    results = list(results)
    correct = sum(1 for result in results if result.is_correct)
    total = len(results)
    if total == 0:
        return ScoreSummary(0, 0, 0, False)
    percent = round_half_up_percent(correct, total)
    return ScoreSummary(
        correct_count=correct,
        incorrect_count=total - correct,
        score_percent=percent,
        passed=percent >= pass_threshold,
    )
