"""Completion reporting towards the external progress tracker."""

from __future__ import annotations

import logging
from typing import Callable, Dict, Hashable, Iterable, List, Optional

from .models import QuizResult, ScoreSummary
from .scorer import PASS_THRESHOLD, score

__all__ = ["CompletionCallback", "CompletionReporter", "ProgressTracker"]

logger = logging.getLogger(__name__)

CompletionCallback = Callable[[bool], None]


class CompletionReporter:
    """One-shot adapter from finished results to ``on_complete(passed)``.

    The first :meth:`report` scores the results and invokes the callback;
    later calls return the cached summary without invoking it again.
    """

    def __init__(
        self,
        on_complete: Optional[CompletionCallback] = None,
        *,
        pass_threshold: int = PASS_THRESHOLD,
    ) -> None:
        self._on_complete = on_complete
        self._pass_threshold = pass_threshold
        self._summary: Optional[ScoreSummary] = None

    @property
    def reported(self) -> bool:
        return self._summary is not None

    @property
    def summary(self) -> Optional[ScoreSummary]:
        return self._summary

    def report(self, results: Iterable[QuizResult]) -> ScoreSummary:
        if self._summary is not None:
            return self._summary
        summary = score(results, self._pass_threshold)
        self._summary = summary
        logger.info(
            "Assessment completed",
            extra={
                "score_percent": summary.score_percent,
                "passed": summary.passed,
                "correct": summary.correct_count,
                "total": summary.total,
            },
        )
        if self._on_complete is not None:
            self._on_complete(summary.passed)
        return summary


class ProgressTracker:
    """In-memory progress tracker with one-way completion latches.

    A failed attempt never clears a completion recorded by an earlier pass.
    """

    def __init__(self) -> None:
        self._completed: Dict[Hashable, bool] = {}
        self._history: Dict[Hashable, List[bool]] = {}

    def record(self, subtask_ref: Hashable, passed: bool) -> bool:
        """Apply an attempt outcome and return the resulting completion flag."""

        self._history.setdefault(subtask_ref, []).append(bool(passed))
        if passed and not self._completed.get(subtask_ref, False):
            self._completed[subtask_ref] = True
            logger.info(
                "Subtask marked complete",
                extra={"subtask": str(subtask_ref)},
            )
        return self.is_completed(subtask_ref)

    def is_completed(self, subtask_ref: Hashable) -> bool:
        return self._completed.get(subtask_ref, False)

    def history(self, subtask_ref: Hashable) -> List[bool]:
        return list(self._history.get(subtask_ref, ()))

    def completion_callback(self, subtask_ref: Hashable) -> CompletionCallback:
        """Return an ``on_complete`` callback bound to ``subtask_ref``."""

        def on_complete(passed: bool) -> None:
            self.record(subtask_ref, passed)

        return on_complete
