from .errors import (
    GenerationError,
    GenerationExhaustedError,
    GenerationSchemaError,
    GenerationTransportError,
)
from .fallback import (
    allocate_slots,
    build_fallback_questions,
    extract_keywords,
)
from .generator import (
    BankSource,
    QuestionBank,
    QuestionBankGenerator,
    validate_payload,
    validate_question,
)
from .models import (
    DEFAULT_DISTRIBUTION,
    TIME_LIMITS,
    Difficulty,
    QuizQuestion,
    QuizResult,
    ScoreSummary,
    SessionStatus,
)
from .notices import Notice, NoticeKind, NoticeLevel
from .reporter import CompletionReporter, ProgressTracker
from .scheduler import AsyncioScheduler, ManualScheduler
from .scorer import PASS_THRESHOLD, score
from .service import GenerationService, OpenAIGenerationService
from .session import QuizSession

__all__ = [
    "GenerationError",
    "GenerationExhaustedError",
    "GenerationSchemaError",
    "GenerationTransportError",
    "allocate_slots",
    "build_fallback_questions",
    "extract_keywords",
    "BankSource",
    "QuestionBank",
    "QuestionBankGenerator",
    "validate_payload",
    "validate_question",
    "DEFAULT_DISTRIBUTION",
    "TIME_LIMITS",
    "Difficulty",
    "QuizQuestion",
    "QuizResult",
    "ScoreSummary",
    "SessionStatus",
    "Notice",
    "NoticeKind",
    "NoticeLevel",
    "CompletionReporter",
    "ProgressTracker",
    "AsyncioScheduler",
    "ManualScheduler",
    "PASS_THRESHOLD",
    "score",
    "GenerationService",
    "OpenAIGenerationService",
    "QuizSession",
]
