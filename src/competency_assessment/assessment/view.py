"""Rich terminal front-end for assessment sessions.

The interactive loop is synchronous: it drives the session with a
:class:`~competency_assessment.assessment.scheduler.ManualScheduler` and
advances that clock by the time the user spent typing. An answer typed after
the countdown ran out therefore arrives after the timeout was recorded and is
ignored by the session.
"""

from __future__ import annotations

import time
from typing import Callable, Iterable, Literal, Optional

from rich import box
from rich.console import Console
from rich.table import Table
from rich.text import Text

from .models import Difficulty, QuizQuestion, QuizResult, SessionStatus
from .notices import Notice, NoticeLevel, NoticeSink
from .scheduler import ManualScheduler
from .session import QuizSession

__all__ = [
    "console_notice_sink",
    "parse_answer",
    "render_question",
    "render_question_bank",
    "render_summary",
    "run_terminal_assessment",
]

InputProvider = Callable[[], str]
Clock = Callable[[], float]
ExitAction = Literal["completed", "quit"]

_LETTERS = "ABCD"
_DIFFICULTY_STYLES = {
    Difficulty.EASY: "green",
    Difficulty.MEDIUM: "yellow",
    Difficulty.HARD: "red",
}
_NOTICE_STYLES = {
    NoticeLevel.INFO: "cyan",
    NoticeLevel.SUCCESS: "bold green",
    NoticeLevel.WARNING: "bold yellow",
    NoticeLevel.ERROR: "bold red",
}


def console_notice_sink(console: Console) -> NoticeSink:
    def _sink(notice: Notice) -> None:
        console.print(Text(notice.message, style=_NOTICE_STYLES[notice.level]))

    return _sink


def parse_answer(raw: Optional[str]) -> Optional[int]:
    """Map ``a``-``d`` or ``1``-``4`` to an option index."""

    if raw is None:
        return None
    text = raw.strip().upper()
    if len(text) != 1:
        return None
    if text in _LETTERS:
        return _LETTERS.index(text)
    if text.isdigit() and 1 <= int(text) <= len(_LETTERS):
        return int(text) - 1
    return None


def _difficulty_label(difficulty: Difficulty) -> Text:
    return Text(
        difficulty.value.capitalize(), style=_DIFFICULTY_STYLES[difficulty]
    )


def render_question(
    console: Console,
    question: QuizQuestion,
    *,
    number: int,
    total: int,
    remaining: Optional[int] = None,
    result: Optional[QuizResult] = None,
) -> None:
    header = Text.assemble(
        (f"Question {number}", "bold cyan"),
        (f" / {total}  ", "dim"),
        _difficulty_label(question.difficulty),
        (f"  {question.time_limit_seconds}s", "dim"),
    )
    console.print()
    console.rule(header)
    console.print(Text(question.question, style="bold"))

    table = Table(show_header=False, box=box.SIMPLE, expand=True)
    table.add_column("Key", justify="center", style="cyan")
    table.add_column("Option")
    for idx, option in enumerate(question.options):
        text = Text(option)
        if result is not None:
            if idx == question.correct_answer_index:
                text.stylize("bold green")
            elif idx == result.selected_answer_index:
                text.stylize("bold red")
        table.add_row(_LETTERS[idx], text)
    console.print(table)

    if remaining is not None:
        console.print(
            Text(
                f"{remaining}s remaining | answer A-D (or 1-4), q to quit",
                style="dim",
            )
        )


def render_question_bank(
    console: Console, questions: Iterable[QuizQuestion], *, title: str
) -> None:
    table = Table(title=title, box=box.SIMPLE, expand=True)
    table.add_column("#", justify="right")
    table.add_column("Difficulty")
    table.add_column("Question", overflow="fold")
    table.add_column("Answer", overflow="fold")
    for idx, question in enumerate(questions, start=1):
        table.add_row(
            str(idx),
            _difficulty_label(question.difficulty),
            question.question,
            f"{_LETTERS[question.correct_answer_index]}. "
            f"{question.correct_answer}",
        )
    console.print(table)


def render_summary(console: Console, session: QuizSession) -> None:
    summary = session.summary
    if summary is None:
        return
    console.print()
    console.rule(Text("Assessment Summary", style="bold magenta"))

    overview = Table(show_header=False, box=box.MINIMAL_DOUBLE_HEAD)
    overview.add_column("Metric", style="bold")
    overview.add_column("Value", justify="right")
    overview.add_row("Total questions", str(summary.total))
    overview.add_row("Correct", str(summary.correct_count))
    overview.add_row("Incorrect", str(summary.incorrect_count))
    overview.add_row("Score", f"{summary.score_percent}%")
    overview.add_row(
        "Result",
        Text("PASSED", style="bold green")
        if summary.passed
        else Text("FAILED", style="bold red"),
    )
    console.print(overview)

    responses = Table(title="Responses", box=box.SIMPLE, expand=True)
    responses.add_column("#", justify="right")
    responses.add_column("Question", overflow="fold")
    responses.add_column("Your answer")
    responses.add_column("Correct")
    responses.add_column("Time", justify="right")
    responses.add_column("Result", justify="center")
    for result in session.results:
        question = session.questions[result.question_index]
        selected = (
            "timed out"
            if result.timed_out
            else _LETTERS[result.selected_answer_index]
        )
        responses.add_row(
            str(result.question_index + 1),
            question.question,
            selected,
            _LETTERS[question.correct_answer_index],
            f"{result.time_spent_seconds:g}s",
            "✅" if result.is_correct else "❌",
        )
    console.print(responses)


def run_terminal_assessment(
    session: QuizSession,
    scheduler: ManualScheduler,
    console: Console,
    input_provider: InputProvider,
    *,
    clock: Clock = time.monotonic,
) -> ExitAction:
    """Run a started session to completion or until the user quits.

    ``session`` must already be ACTIVE and wired to ``scheduler``.
    """

    while session.status is not SessionStatus.COMPLETED:
        question = session.current_question
        if question is None:
            return "quit"
        total = len(session.questions)
        number = session.current_index + 1

        if session.status is SessionStatus.ACTIVE:
            render_question(
                console,
                question,
                number=number,
                total=total,
                remaining=session.remaining_seconds,
            )
            started = clock()
            try:
                raw = input_provider()
            except (EOFError, KeyboardInterrupt, StopIteration):
                console.print("\n[bold yellow]Assessment interrupted.[/]")
                session.abort()
                return "quit"
            scheduler.advance(clock() - started)
            if raw.strip().lower() in {"q", "quit", "exit"}:
                console.print("[bold yellow]Assessment abandoned.[/]")
                session.abort()
                return "quit"
            if session.status is not SessionStatus.ACTIVE:
                continue
            index = parse_answer(raw)
            if index is None:
                console.print("[red]Answer with A-D or 1-4.[/]")
                continue
            session.select_answer(index)
            continue

        render_question(
            console,
            question,
            number=number,
            total=total,
            result=session.last_result,
        )
        console.print(Text("Press Enter to continue.", style="dim"))
        try:
            input_provider()
        except (EOFError, KeyboardInterrupt, StopIteration):
            session.abort()
            return "quit"
        session.advance()

    render_summary(console, session)
    return "completed"
