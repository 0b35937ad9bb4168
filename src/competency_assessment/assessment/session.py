"""Timed, single-pass quiz session state machine.

A session moves through ``NOT_STARTED -> GENERATING -> ACTIVE <-> ANSWERED
-> COMPLETED``. Each question is answered exactly once, either through
:meth:`QuizSession.select_answer` or by its countdown reaching zero, and the
caller moves on with :meth:`QuizSession.advance`. Out-of-sequence calls are
ignored rather than raised so duplicate UI events are harmless.

The generation call is the only suspension point. :meth:`QuizSession.abort`
bumps the generation id so a response that arrives afterwards is dropped, and
every countdown tick carries the epoch it was armed in so a stale tick can
never touch a later question.
"""

from __future__ import annotations

import logging
from typing import Callable, Hashable, List, Mapping, Optional

from .errors import GenerationExhaustedError
from .generator import QuestionBankGenerator
from .models import (
    Difficulty,
    QuizQuestion,
    QuizResult,
    ScoreSummary,
    SessionStatus,
)
from .notices import Notice, NoticeKind, NoticeLevel, NoticeSink, log_notice
from .reporter import CompletionCallback, CompletionReporter
from .scheduler import Scheduler, TimerHandle
from .scorer import PASS_THRESHOLD

__all__ = ["QuizSession", "TICK_SECONDS"]

logger = logging.getLogger(__name__)

TICK_SECONDS = 1

MSG_GENERATING = "Generating assessment questions..."
MSG_DEGRADED = "AI service unavailable. Using offline question set."
MSG_UNAVAILABLE = "Assessment unavailable, try again."
MSG_CORRECT = "Correct answer!"
MSG_INCORRECT = "Incorrect answer."
MSG_TIMEOUT = "Time's up! Moving to the next question."
MSG_PASSED = "Congratulations! You passed the assessment!"
MSG_FAILED = (
    "You didn't reach the minimum score required to pass. Try again!"
)


class QuizSession:
    """Drive one assessment attempt for a single subtask."""

    def __init__(
        self,
        generator: QuestionBankGenerator,
        scheduler: Scheduler,
        *,
        on_complete: Optional[CompletionCallback] = None,
        notify: Optional[NoticeSink] = None,
        on_tick: Optional[Callable[[int], None]] = None,
        subtask_ref: Optional[Hashable] = None,
        desired_count: int = 15,
        distribution: Optional[Mapping[Difficulty, int]] = None,
        pass_threshold: int = PASS_THRESHOLD,
    ) -> None:
        self._generator = generator
        self._scheduler = scheduler
        self._on_complete = on_complete
        self._notify = notify or log_notice
        self._on_tick = on_tick
        self.subtask_ref = subtask_ref
        self.desired_count = desired_count
        self.distribution = distribution
        self.pass_threshold = pass_threshold

        self._status = SessionStatus.NOT_STARTED
        self._generation_id = 0
        self._timer: Optional[TimerHandle] = None
        self._timer_epoch = 0
        self._questions: tuple[QuizQuestion, ...] = ()
        self._results: List[QuizResult] = []
        self._index = 0
        self._remaining = 0
        self._reporter: Optional[CompletionReporter] = None
        self._degraded_reason: Optional[str] = None

    # -- read-only views -------------------------------------------------

    @property
    def status(self) -> SessionStatus:
        return self._status

    @property
    def questions(self) -> tuple[QuizQuestion, ...]:
        return self._questions

    @property
    def results(self) -> tuple[QuizResult, ...]:
        return tuple(self._results)

    @property
    def current_index(self) -> int:
        return self._index

    @property
    def current_question(self) -> Optional[QuizQuestion]:
        if self._status in (SessionStatus.ACTIVE, SessionStatus.ANSWERED):
            return self._questions[self._index]
        return None

    @property
    def last_result(self) -> Optional[QuizResult]:
        return self._results[-1] if self._results else None

    @property
    def remaining_seconds(self) -> int:
        return self._remaining

    @property
    def progress_percent(self) -> float:
        if not self._questions:
            return 0.0
        return self._index / len(self._questions) * 100

    @property
    def time_percent(self) -> float:
        question = self.current_question
        if question is None:
            return 0.0
        return self._remaining / question.time_limit_seconds * 100

    @property
    def degraded_reason(self) -> Optional[str]:
        return self._degraded_reason

    @property
    def summary(self) -> Optional[ScoreSummary]:
        if self._status is not SessionStatus.COMPLETED or not self._reporter:
            return None
        return self._reporter.summary

    # -- transitions -----------------------------------------------------

    async def start(self, title: str, description: Optional[str] = None) -> bool:
        """Generate questions and activate the first one.

        Returns False when the call is out of sequence or the session was
        aborted (or restarted) while generation was in flight. Raises
        :class:`GenerationExhaustedError` when no questions were produced.
        """

        if self._status not in (
            SessionStatus.NOT_STARTED,
            SessionStatus.COMPLETED,
        ):
            logger.debug(
                "Ignoring start()", extra={"status": self._status.value}
            )
            return False

        self._reset()
        self._status = SessionStatus.GENERATING
        self._generation_id += 1
        token = self._generation_id
        self._emit(NoticeKind.GENERATING, NoticeLevel.INFO, MSG_GENERATING)

        try:
            bank = await self._generator.generate_bank(
                title,
                description,
                self.desired_count,
                self.distribution,
            )
        except Exception as exc:
            if token != self._generation_id:
                return False
            self._fail_generation(title)
            raise GenerationExhaustedError(
                f"Question generation failed for '{title}'"
            ) from exc

        if token != self._generation_id:
            logger.info(
                "Discarding stale question bank",
                extra={"title": title, "generation_id": token},
            )
            return False

        if not bank.questions:
            self._fail_generation(title)
            raise GenerationExhaustedError(
                f"No questions could be generated for '{title}'"
            )

        self._questions = tuple(bank.questions)
        self._degraded_reason = bank.degraded_reason
        self._reporter = CompletionReporter(
            self._on_complete, pass_threshold=self.pass_threshold
        )
        if bank.degraded:
            self._emit(NoticeKind.DEGRADED, NoticeLevel.WARNING, MSG_DEGRADED)
        logger.info(
            "Assessment started",
            extra={
                "title": title,
                "subtask": str(self.subtask_ref),
                "questions": len(self._questions),
                "source": bank.source.value,
            },
        )
        self._activate(0)
        return True

    def select_answer(self, index: int) -> bool:
        """Lock in ``index`` for the current question."""

        if self._status is not SessionStatus.ACTIVE:
            logger.debug(
                "Ignoring select_answer()",
                extra={"status": self._status.value, "index": index},
            )
            return False
        question = self._questions[self._index]
        if (
            isinstance(index, bool)
            or not isinstance(index, int)
            or not 0 <= index < len(question.options)
        ):
            logger.debug("Ignoring out-of-range answer", extra={"index": index})
            return False

        self._cancel_timer()
        is_correct = index == question.correct_answer_index
        self._record(
            QuizResult(
                question_index=self._index,
                selected_answer_index=index,
                is_correct=is_correct,
                time_spent_seconds=question.time_limit_seconds
                - self._remaining,
            )
        )
        if is_correct:
            self._emit(NoticeKind.CORRECT, NoticeLevel.SUCCESS, MSG_CORRECT)
        else:
            self._emit(NoticeKind.INCORRECT, NoticeLevel.ERROR, MSG_INCORRECT)
        return True

    def advance(self) -> bool:
        """Move past an answered question, completing after the last one."""

        if self._status is not SessionStatus.ANSWERED:
            logger.debug(
                "Ignoring advance()", extra={"status": self._status.value}
            )
            return False
        if self._index + 1 < len(self._questions):
            self._activate(self._index + 1)
            return True
        self._complete()
        return True

    def abort(self) -> None:
        """Reset to NOT_STARTED, dropping results and any in-flight bank."""

        if self._status is not SessionStatus.NOT_STARTED:
            logger.info(
                "Assessment aborted",
                extra={
                    "status": self._status.value,
                    "answered": len(self._results),
                },
            )
        self._generation_id += 1
        self._reset()

    # -- internals -------------------------------------------------------

    def _reset(self) -> None:
        self._cancel_timer()
        self._status = SessionStatus.NOT_STARTED
        self._questions = ()
        self._results = []
        self._index = 0
        self._remaining = 0
        self._reporter = None
        self._degraded_reason = None

    def _fail_generation(self, title: str) -> None:
        logger.error(
            "Cannot start assessment: no questions",
            extra={"title": title, "subtask": str(self.subtask_ref)},
        )
        self._reset()
        self._emit(NoticeKind.UNAVAILABLE, NoticeLevel.ERROR, MSG_UNAVAILABLE)

    def _activate(self, index: int) -> None:
        self._index = index
        self._remaining = self._questions[index].time_limit_seconds
        self._status = SessionStatus.ACTIVE
        self._arm_tick()

    def _arm_tick(self) -> None:
        self._cancel_timer()
        epoch = self._timer_epoch
        self._timer = self._scheduler.call_later(
            TICK_SECONDS, lambda: self._on_timer(epoch)
        )

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        self._timer_epoch += 1

    def _on_timer(self, epoch: int) -> None:
        if epoch != self._timer_epoch or self._status is not SessionStatus.ACTIVE:
            return
        self._timer = None
        self._remaining = max(0, self._remaining - TICK_SECONDS)
        if self._on_tick is not None:
            self._on_tick(self._remaining)
            # The hook may have re-entered the session.
            if (
                epoch != self._timer_epoch
                or self._status is not SessionStatus.ACTIVE
            ):
                return
        if self._remaining > 0:
            self._arm_tick()
            return
        self._expire()

    def _expire(self) -> None:
        question = self._questions[self._index]
        self._cancel_timer()
        self._record(
            QuizResult(
                question_index=self._index,
                selected_answer_index=None,
                is_correct=False,
                time_spent_seconds=question.time_limit_seconds,
            )
        )
        self._emit(NoticeKind.TIMEOUT, NoticeLevel.ERROR, MSG_TIMEOUT)

    def _record(self, result: QuizResult) -> None:
        self._results.append(result)
        self._status = SessionStatus.ANSWERED
        logger.debug(
            "Recorded answer",
            extra={
                "question_index": result.question_index,
                "selected": result.selected_answer_index,
                "correct": result.is_correct,
                "time_spent": result.time_spent_seconds,
            },
        )

    def _complete(self) -> None:
        self._cancel_timer()
        self._status = SessionStatus.COMPLETED
        self._index = len(self._questions)
        summary = self._reporter.report(self._results)
        if summary.passed:
            self._emit(NoticeKind.PASSED, NoticeLevel.SUCCESS, MSG_PASSED)
        else:
            self._emit(NoticeKind.FAILED, NoticeLevel.ERROR, MSG_FAILED)

    def _emit(self, kind: NoticeKind, level: NoticeLevel, message: str) -> None:
        self._notify(Notice(kind, level, message))
