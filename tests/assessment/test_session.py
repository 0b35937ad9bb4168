from __future__ import annotations

import asyncio
import random

import pytest

from fixtures import PendingService, StaticService, make_ai_payload

from competency_assessment.assessment.errors import GenerationExhaustedError
from competency_assessment.assessment.generator import (
    SERVICE_NOT_CONFIGURED,
    QuestionBankGenerator,
)
from competency_assessment.assessment.models import SessionStatus
from competency_assessment.assessment.notices import NoticeKind, NoticeLevel
from competency_assessment.assessment.scheduler import ManualScheduler
from competency_assessment.assessment.session import (
    MSG_DEGRADED,
    MSG_UNAVAILABLE,
    QuizSession,
)


def answer_all_correct(session: QuizSession) -> None:
    while session.status is not SessionStatus.COMPLETED:
        question = session.current_question
        assert session.select_answer(question.correct_answer_index)
        assert session.advance()


def wrong_index(question) -> int:
    return (question.correct_answer_index + 1) % len(question.options)


def test_start_activates_first_question(started_session, notices) -> None:
    session = started_session()

    assert session.status is SessionStatus.ACTIVE
    assert len(session.questions) == 15
    assert session.current_index == 0
    assert session.remaining_seconds == 30
    assert session.time_percent == 100.0
    assert session.progress_percent == 0.0
    assert session.degraded_reason == SERVICE_NOT_CONFIGURED
    assert notices.kinds == [NoticeKind.GENERATING, NoticeKind.DEGRADED]
    degraded = notices.notices[1]
    assert degraded.level is NoticeLevel.WARNING
    assert degraded.message == MSG_DEGRADED


def test_start_with_ai_bank_has_no_degraded_notice(
    make_session, notices
) -> None:
    generator = QuestionBankGenerator(
        StaticService(make_ai_payload()), reshuffle_probability=0.0
    )
    session = make_session(generator=generator)

    assert asyncio.run(session.start("Graphs")) is True
    assert notices.kinds == [NoticeKind.GENERATING]
    assert session.degraded_reason is None


def test_select_answer_records_once(started_session, scheduler, notices) -> None:
    session = started_session()
    question = session.current_question
    scheduler.advance(3)

    assert session.select_answer(question.correct_answer_index) is True
    assert session.select_answer(wrong_index(question)) is False

    assert session.status is SessionStatus.ANSWERED
    assert len(session.results) == 1
    result = session.last_result
    assert result.is_correct
    assert result.selected_answer_index == question.correct_answer_index
    assert result.time_spent_seconds == 3
    assert notices.kinds[-1] is NoticeKind.CORRECT
    assert scheduler.pending == 0


def test_select_wrong_answer(started_session, notices) -> None:
    session = started_session()
    question = session.current_question

    assert session.select_answer(wrong_index(question))

    assert session.last_result.is_correct is False
    assert notices.kinds[-1] is NoticeKind.INCORRECT


@pytest.mark.parametrize("index", [-1, 4, True, "A", None])
def test_select_answer_rejects_invalid_index(started_session, index) -> None:
    session = started_session()

    assert session.select_answer(index) is False
    assert session.status is SessionStatus.ACTIVE
    assert session.results == ()


def test_advance_requires_answer(started_session) -> None:
    session = started_session()

    assert session.advance() is False
    assert session.current_index == 0


def test_countdown_ticks_and_times_out(make_session, scheduler, notices) -> None:
    ticks: list[int] = []
    session = make_session(on_tick=ticks.append)
    asyncio.run(session.start("Binary Search Trees"))

    scheduler.advance(15)
    assert session.remaining_seconds == 15
    assert session.time_percent == 50.0

    scheduler.advance(15)
    assert ticks == list(range(29, -1, -1))
    assert session.status is SessionStatus.ANSWERED
    result = session.last_result
    assert result.timed_out
    assert result.is_correct is False
    assert result.time_spent_seconds == 30
    assert notices.kinds[-1] is NoticeKind.TIMEOUT

    # No further ticks and no late answer after a timeout.
    assert scheduler.pending == 0
    scheduler.advance(100)
    assert len(session.results) == 1
    assert session.select_answer(0) is False


def test_answer_just_before_timeout_wins(started_session, scheduler) -> None:
    session = started_session()
    question = session.current_question
    scheduler.advance(29)

    assert session.select_answer(question.correct_answer_index)
    scheduler.advance(5)

    assert session.last_result.time_spent_seconds == 29
    assert session.last_result.is_correct
    assert len(session.results) == 1


def test_next_question_gets_fresh_timer(started_session, scheduler) -> None:
    session = started_session()
    scheduler.advance(10)
    session.select_answer(0)
    session.advance()

    assert session.current_index == 1
    assert session.status is SessionStatus.ACTIVE
    assert session.remaining_seconds == 30
    scheduler.advance(1)
    assert session.remaining_seconds == 29


class _IgnoredCancel:
    def __init__(self, handle) -> None:
        self._handle = handle

    def cancel(self) -> None:
        pass

    def cancelled(self) -> bool:
        return False


class StubbornScheduler(ManualScheduler):
    """Scheduler whose handles ignore cancel(), leaving stale ticks queued."""

    def call_later(self, delay, callback):
        return _IgnoredCancel(super().call_later(delay, callback))


def test_stale_tick_does_not_touch_next_question(notices) -> None:
    scheduler = StubbornScheduler()
    session = QuizSession(
        QuestionBankGenerator(None, rng=random.Random(8)),
        scheduler,
        notify=notices,
    )
    asyncio.run(session.start("Binary Search Trees"))

    scheduler.advance(0.5)
    session.select_answer(0)
    session.advance()
    scheduler.advance(0.5)  # first question's tick comes due here
    assert session.current_index == 1
    assert session.remaining_seconds == 30

    scheduler.advance(0.5)
    assert session.remaining_seconds == 29


def test_tick_hook_abort_stops_countdown(make_session, scheduler) -> None:
    holder: dict[str, QuizSession] = {}

    def on_tick(remaining: int) -> None:
        if remaining == 10:
            holder["session"].abort()

    session = make_session(on_tick=on_tick)
    holder["session"] = session
    asyncio.run(session.start("Binary Search Trees"))

    scheduler.advance(30)

    assert session.status is SessionStatus.NOT_STARTED
    assert session.results == ()
    assert scheduler.pending == 0


def test_tick_hook_answer_on_last_tick_records_once(
    make_session, scheduler, notices
) -> None:
    holder: dict[str, QuizSession] = {}

    def on_tick(remaining: int) -> None:
        if remaining == 0:
            session = holder["session"]
            session.select_answer(session.current_question.correct_answer_index)

    session = make_session(on_tick=on_tick)
    holder["session"] = session
    asyncio.run(session.start("Binary Search Trees"))

    scheduler.advance(30)

    assert session.status is SessionStatus.ANSWERED
    assert len(session.results) == 1
    result = session.last_result
    assert not result.timed_out
    assert result.is_correct
    assert result.time_spent_seconds == 30
    assert NoticeKind.TIMEOUT not in notices.kinds
    assert scheduler.pending == 0


def test_tick_hook_answer_mid_countdown_disarms_timer(
    make_session, scheduler
) -> None:
    holder: dict[str, QuizSession] = {}

    def on_tick(remaining: int) -> None:
        if remaining == 25:
            holder["session"].select_answer(0)

    session = make_session(on_tick=on_tick)
    holder["session"] = session
    asyncio.run(session.start("Binary Search Trees"))

    scheduler.advance(5)

    assert scheduler.pending == 0
    scheduler.advance(60)
    assert len(session.results) == 1
    assert session.last_result.time_spent_seconds == 5


def test_completion_reports_once(make_session, notices) -> None:
    outcomes: list[bool] = []
    session = make_session(on_complete=outcomes.append)
    asyncio.run(session.start("Binary Search Trees"))

    answer_all_correct(session)

    assert session.status is SessionStatus.COMPLETED
    assert session.current_index == 15
    assert session.current_question is None
    assert session.progress_percent == 100.0
    assert session.summary.score_percent == 100
    assert session.summary.passed
    assert outcomes == [True]
    assert notices.kinds[-1] is NoticeKind.PASSED

    assert session.advance() is False
    assert session.select_answer(0) is False
    assert outcomes == [True]


def test_failed_attempt_reports_failure(make_session, scheduler, notices) -> None:
    outcomes: list[bool] = []
    session = make_session(on_complete=outcomes.append)
    asyncio.run(session.start("Binary Search Trees"))

    while session.status is not SessionStatus.COMPLETED:
        session.select_answer(wrong_index(session.current_question))
        session.advance()

    assert session.summary.score_percent == 0
    assert outcomes == [False]
    assert notices.kinds[-1] is NoticeKind.FAILED
    assert notices.notices[-1].level is NoticeLevel.ERROR


def test_summary_hidden_until_completed(started_session) -> None:
    session = started_session()
    session.select_answer(0)
    assert session.summary is None


def test_abort_discards_progress(make_session, scheduler) -> None:
    outcomes: list[bool] = []
    session = make_session(on_complete=outcomes.append)
    asyncio.run(session.start("Binary Search Trees"))
    session.select_answer(0)
    session.advance()
    session.select_answer(0)

    session.abort()

    assert session.status is SessionStatus.NOT_STARTED
    assert session.results == ()
    assert session.questions == ()
    assert session.current_question is None
    assert session.advance() is False
    assert session.select_answer(0) is False
    scheduler.advance(100)
    assert session.results == ()
    assert outcomes == []


def test_start_is_ignored_while_active(started_session) -> None:
    session = started_session()
    session.select_answer(0)

    assert asyncio.run(session.start("Other")) is False
    assert session.status is SessionStatus.ANSWERED
    assert len(session.results) == 1


def test_retake_after_completion(make_session) -> None:
    outcomes: list[bool] = []
    session = make_session(on_complete=outcomes.append)
    asyncio.run(session.start("Binary Search Trees"))
    answer_all_correct(session)

    assert asyncio.run(session.start("Binary Search Trees")) is True
    assert session.status is SessionStatus.ACTIVE
    assert session.results == ()
    assert session.summary is None

    answer_all_correct(session)
    assert outcomes == [True, True]


def test_abort_during_generation_drops_late_bank(make_session) -> None:
    service = PendingService()
    generator = QuestionBankGenerator(service, reshuffle_probability=0.0)
    session = make_session(generator=generator)

    async def scenario() -> bool:
        task = asyncio.create_task(session.start("Graphs"))
        await asyncio.sleep(0)
        assert session.status is SessionStatus.GENERATING
        assert await session.start("Graphs") is False
        session.abort()
        service.futures[0].set_result(make_ai_payload())
        return await task

    assert asyncio.run(scenario()) is False
    assert session.status is SessionStatus.NOT_STARTED
    assert session.questions == ()


def _retitled_payload(prefix: str):
    payload = make_ai_payload()
    for item in payload["questions"]:
        item["question"] = f"{prefix}: {item['question']}"
    return payload


def test_late_bank_cannot_replace_newer_attempt(
    make_session, scheduler
) -> None:
    service = PendingService()
    generator = QuestionBankGenerator(service, reshuffle_probability=0.0)
    session = make_session(generator=generator)

    async def scenario() -> tuple[bool, bool]:
        first = asyncio.create_task(session.start("Graphs"))
        await asyncio.sleep(0)
        session.abort()
        second = asyncio.create_task(session.start("Trees"))
        await asyncio.sleep(0)
        assert len(service.futures) == 2

        service.futures[1].set_result(_retitled_payload("Trees"))
        second_started = await second
        service.futures[0].set_result(_retitled_payload("Graphs"))
        first_started = await first
        return first_started, second_started

    first_started, second_started = asyncio.run(scenario())

    assert first_started is False
    assert second_started is True
    assert session.status is SessionStatus.ACTIVE
    assert session.current_index == 0
    assert session.remaining_seconds == 30
    assert all(q.question.startswith("Trees: ") for q in session.questions)
    assert scheduler.pending == 1


def test_no_questions_raises_exhausted(make_session, notices) -> None:
    session = make_session(desired_count=0)

    with pytest.raises(GenerationExhaustedError):
        asyncio.run(session.start("Anything"))

    assert session.status is SessionStatus.NOT_STARTED
    assert notices.kinds == [NoticeKind.GENERATING, NoticeKind.UNAVAILABLE]
    assert notices.notices[-1].message == MSG_UNAVAILABLE


def test_generator_crash_raises_exhausted(make_session, notices) -> None:
    class _BrokenGenerator:
        async def generate_bank(self, *args, **kwargs):
            raise ValueError("boom")

    session = make_session(generator=_BrokenGenerator())

    with pytest.raises(GenerationExhaustedError) as excinfo:
        asyncio.run(session.start("Anything"))

    assert isinstance(excinfo.value.__cause__, ValueError)
    assert session.status is SessionStatus.NOT_STARTED
    assert notices.kinds[-1] is NoticeKind.UNAVAILABLE
