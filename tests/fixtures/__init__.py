"""Shared testing fixtures for the assessment test suite."""

from .services import (  # noqa: F401
    FakeAsyncClient,
    NoticeRecorder,
    PendingService,
    StaticService,
    make_ai_payload,
    make_ai_question,
)

__all__ = [
    "FakeAsyncClient",
    "NoticeRecorder",
    "PendingService",
    "StaticService",
    "make_ai_payload",
    "make_ai_question",
]
