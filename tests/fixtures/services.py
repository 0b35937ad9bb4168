"""Fake generation services and AI clients for the test suite.

Production code talks to the generation service through
``GenerationService.request`` and to OpenAI through
``client.chat.completions.create``. The fakes below implement those seams
directly so tests never touch the network.
"""

from __future__ import annotations

import asyncio
import json
from types import SimpleNamespace
from typing import Any, Dict, List, Mapping, Optional, Sequence


def make_ai_question(
    number: int,
    difficulty: str,
    *,
    correct_index: Optional[int] = None,
    time_limit: int = 30,
) -> Dict[str, Any]:
    return {
        "question": f"Question {number} about search trees?",
        "options": [f"Option {number}-{letter}" for letter in "ABCD"],
        "correctAnswerIndex": number % 4 if correct_index is None else correct_index,
        "difficulty": difficulty,
        "timeLimit": time_limit,
    }


def make_ai_payload(
    counts: Sequence[int] = (5, 7, 3),
) -> Dict[str, List[Dict[str, Any]]]:
    """Build a valid ``{"questions": [...]}`` payload easy-first."""

    questions: List[Dict[str, Any]] = []
    for difficulty, count in zip(("easy", "medium", "hard"), counts):
        for _ in range(count):
            questions.append(make_ai_question(len(questions), difficulty))
    return {"questions": questions}


class StaticService:
    """Return a fixed payload or raise a fixed error."""

    def __init__(
        self,
        payload: Any = None,
        *,
        error: Optional[BaseException] = None,
    ) -> None:
        self.payload = payload
        self.error = error
        self.calls: List[Dict[str, Any]] = []

    async def request(
        self,
        title: str,
        description: Optional[str],
        number_of_questions: int,
    ) -> Mapping[str, Any]:
        self.calls.append(
            {
                "title": title,
                "description": description,
                "number_of_questions": number_of_questions,
            }
        )
        if self.error is not None:
            raise self.error
        return self.payload


class PendingService:
    """Block each request on a future the test resolves by hand."""

    def __init__(self) -> None:
        self.futures: List[asyncio.Future] = []

    async def request(
        self,
        title: str,
        description: Optional[str],
        number_of_questions: int,
    ) -> Mapping[str, Any]:
        future = asyncio.get_running_loop().create_future()
        self.futures.append(future)
        return await future


class FakeCompletions:
    def __init__(self, owner: "FakeAsyncClient") -> None:
        self._owner = owner

    async def create(self, **kwargs: Any) -> SimpleNamespace:
        self._owner.calls.append(kwargs)
        if self._owner.error is not None:
            raise self._owner.error
        content = self._owner.responses.pop(0) if self._owner.responses else ""
        message = SimpleNamespace(content=content)
        return SimpleNamespace(choices=[SimpleNamespace(message=message)])


class FakeAsyncClient:
    """Minimal stand-in for ``openai.AsyncOpenAI``."""

    def __init__(self, *, error: Optional[BaseException] = None) -> None:
        self.error = error
        self.calls: List[Dict[str, Any]] = []
        self.responses: List[str] = []
        self.chat = SimpleNamespace(completions=FakeCompletions(self))

    def queue_response(self, content: Any) -> None:
        if not isinstance(content, str):
            content = json.dumps(content)
        self.responses.append(content)


class NoticeRecorder:
    def __init__(self) -> None:
        self.notices: List[Any] = []

    def __call__(self, notice: Any) -> None:
        self.notices.append(notice)

    @property
    def kinds(self) -> List[Any]:
        return [notice.kind for notice in self.notices]
