"""User-facing, non-blocking notifications emitted by quiz sessions."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable

__all__ = [
    "Notice",
    "NoticeKind",
    "NoticeLevel",
    "NoticeSink",
    "log_notice",
]

logger = logging.getLogger(__name__)


class NoticeLevel(Enum):
    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"


class NoticeKind(Enum):
    GENERATING = "generating"
    DEGRADED = "degraded"
    UNAVAILABLE = "unavailable"
    CORRECT = "correct"
    INCORRECT = "incorrect"
    TIMEOUT = "timeout"
    PASSED = "passed"
    FAILED = "failed"


@dataclass(frozen=True)
class Notice:
    kind: NoticeKind
    level: NoticeLevel
    message: str


NoticeSink = Callable[[Notice], None]

_LOG_LEVELS = {
    NoticeLevel.INFO: logging.INFO,
    NoticeLevel.SUCCESS: logging.INFO,
    NoticeLevel.WARNING: logging.WARNING,
    NoticeLevel.ERROR: logging.ERROR,
}


def log_notice(notice: Notice) -> None:
    """Default sink: route notices to the module logger."""

    logger.log(
        _LOG_LEVELS[notice.level],
        notice.message,
        extra={"notice": notice.kind.value},
    )
