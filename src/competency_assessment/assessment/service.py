"""Adapters for the external question generation service."""

from __future__ import annotations

import json
import logging
import re
from collections import Counter
from typing import Any, Mapping, Optional, Protocol, Tuple

from .errors import GenerationSchemaError, GenerationTransportError
from .fallback import allocate_slots
from .models import TIME_LIMITS, Difficulty

__all__ = [
    "GenerationService",
    "OpenAIGenerationService",
    "build_prompts",
    "parse_payload",
]

logger = logging.getLogger(__name__)

_fence_re = re.compile(r"```(?:json)?\s*(.+?)```", re.DOTALL)


class GenerationService(Protocol):
    """Anything that can answer a question-bank request.

    Implementations return the decoded ``{"questions": [...]}`` payload and
    raise :class:`GenerationTransportError` or :class:`GenerationSchemaError`
    on failure. Other exceptions are treated as transport failures.
    """

    async def request(
        self,
        title: str,
        description: Optional[str],
        number_of_questions: int,
    ) -> Mapping[str, Any]: ...


def build_prompts(
    title: str, description: Optional[str], number_of_questions: int
) -> Tuple[str, str]:
    detail = (
        f' with the following detailed description: "{description}"'
        if description
        else ""
    )
    counts = Counter(allocate_slots(number_of_questions))
    distribution = "".join(
        f"- {counts[difficulty]} {difficulty.value} questions "
        f"({TIME_LIMITS[difficulty]} seconds to answer)\n"
        for difficulty in Difficulty
        if counts[difficulty]
    )
    system_prompt = (
        "You are an expert tutor and quiz creator. Your task is to create a "
        f'quiz about "{title}"{detail}.\n\n'
        f"Generate {number_of_questions} questions about this topic with the "
        f"following distribution:\n{distribution}\n"
        "For each question provide the question text, 4 possible answers "
        "(one correct, three incorrect but plausible), the index (0-3) of the "
        "correct answer and the difficulty level (easy, medium, or hard).\n"
        "Questions should test understanding, not memorization. Vary the "
        "position of the correct answer.\n\n"
        "Return valid JSON with this exact structure:\n"
        '{"questions": [{"question": "...", "options": ["A", "B", "C", "D"], '
        '"correctAnswerIndex": 0, "difficulty": "easy", "timeLimit": 30}]}'
    )
    based_on = f" based on this description: {description}" if description else ""
    user_prompt = (
        f"Generate a quiz about {title}{based_on}. Make sure to vary the "
        "position of the correct answer (correctAnswerIndex) for each "
        "question! Don't always use index 0."
    )
    return system_prompt, user_prompt


def parse_payload(content: Optional[str]) -> Mapping[str, Any]:
    """Decode a chat completion body into a JSON object."""

    text = (content or "").strip()
    if not text:
        raise GenerationSchemaError("Generation service returned no content")
    fenced = _fence_re.search(text)
    if fenced:
        text = fenced.group(1)
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise GenerationSchemaError(
            f"Generation service returned invalid JSON: {exc}"
        ) from exc
    if not isinstance(data, dict):
        raise GenerationSchemaError(
            "Generation service returned a non-object payload"
        )
    return data


class OpenAIGenerationService:
    """Generate question banks with OpenAI chat completions in JSON mode."""

    def __init__(
        self,
        client: Any,
        *,
        model: str = "gpt-4-turbo",
        temperature: float = 0.7,
        max_tokens: int = 4000,
    ) -> None:
        self._client = client
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens

    async def request(
        self,
        title: str,
        description: Optional[str],
        number_of_questions: int,
    ) -> Mapping[str, Any]:
        system_prompt, user_prompt = build_prompts(
            title, description, number_of_questions
        )
        logger.debug(
            "Requesting question bank",
            extra={"model": self.model, "count": number_of_questions},
        )
        try:
            response = await self._client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": user_prompt},
                ],
                temperature=self.temperature,
                max_tokens=self.max_tokens,
                response_format={"type": "json_object"},
            )
        except Exception as exc:
            raise GenerationTransportError(
                f"Generation request failed: {exc}"
            ) from exc
        try:
            content = response.choices[0].message.content
        except (AttributeError, IndexError, TypeError) as exc:
            raise GenerationSchemaError(
                "Generation response has no message content"
            ) from exc
        return parse_payload(content)
