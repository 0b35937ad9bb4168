"""Question templates and distractors used by offline generation.

Each template is a ``(question, correct_answer)`` pair of format strings that
receive ``keyword``, ``Keyword`` (first letter upper-cased) and ``title``.
The wording is fixed: changing it changes every offline question bank.
"""

from __future__ import annotations

from typing import Mapping, Sequence

from .models import Difficulty

__all__ = [
    "DISTRACTORS",
    "STOP_WORDS",
    "TEMPLATES",
    "render_template",
]

Template = tuple[str, str]

STOP_WORDS = frozenset(
    {"and", "the", "is", "in", "to", "of", "a", "for", "with", "on", "as"}
)

TEMPLATES: Mapping[Difficulty, Sequence[Template]] = {
    Difficulty.EASY: (
        (
            "Which of the following best describes the concept of {keyword} "
            "in {title}?",
            "A systematic approach to handling {keyword} in software "
            "development",
        ),
        (
            "What is the primary purpose of using {keyword} in {title}?",
            "To improve code maintainability and reduce errors",
        ),
        (
            "In {title}, which statement about {keyword} is correct?",
            "{Keyword} helps organize code into reusable components",
        ),
        (
            "Which tool is commonly used for {keyword} in {title}?",
            "The standard library functions specific to {keyword}",
        ),
        (
            "What basic principle applies to {keyword} when working with "
            "{title}?",
            "Separation of concerns and modularity",
        ),
    ),
    Difficulty.MEDIUM: (
        (
            "How does {keyword} implementation differ between different "
            "frameworks in {title}?",
            "Frameworks may use different design patterns while maintaining "
            "the same core principles",
        ),
        (
            "What challenge might you face when applying {keyword} in a "
            "complex {title} project?",
            "Balancing flexibility with performance considerations",
        ),
        (
            "In what scenario would you avoid using {keyword} when working "
            "with {title}?",
            "When the overhead would significantly impact performance in "
            "time-critical operations",
        ),
        (
            "How would you optimize a {keyword} implementation in {title}?",
            "By profiling performance and identifying bottlenecks specific to "
            "the implementation",
        ),
        (
            "What design pattern works well with {keyword} in {title}?",
            "The Observer pattern for handling state changes",
        ),
    ),
    Difficulty.HARD: (
        (
            "What are the architectural implications of scaling a system "
            "heavily dependent on {keyword} in {title}?",
            "Requires careful consideration of state management and potential "
            "distributed system challenges",
        ),
        (
            "How would you implement a fault-tolerant {keyword} system in "
            "{title}?",
            "By combining redundancy, circuit breakers, and graceful "
            "degradation patterns",
        ),
        (
            "When refactoring legacy code to incorporate modern {keyword} "
            "practices in {title}, what approach is most effective?",
            "Incremental changes with comprehensive testing at each step",
        ),
        (
            "What advanced technique could address performance bottlenecks in "
            "{keyword} when applied to {title}?",
            "Implementing custom caching strategies specific to the domain "
            "model",
        ),
        (
            "How would you evaluate the trade-offs between different "
            "{keyword} implementations in enterprise-scale {title} "
            "applications?",
            "By benchmarking against specific use cases and measuring both "
            "performance and maintainability metrics",
        ),
    ),
}

_MISCONCEPTION = (
    "A common misconception, but actually not relevant to this specific "
    "context"
)
_SPECIALIZED = "Only applicable in specialized cases, not as a general principle"
_OUTDATED = "An outdated approach that has been replaced by newer methodologies"

DISTRACTORS: Mapping[Difficulty, tuple[str, str, str]] = {
    Difficulty.EASY: (
        _MISCONCEPTION,
        _SPECIALIZED,
        "The opposite of what's generally recommended in best practices",
    ),
    Difficulty.MEDIUM: (
        _MISCONCEPTION,
        _OUTDATED,
        "A theoretical approach that works in academic settings but rarely "
        "in production",
    ),
    Difficulty.HARD: (
        _SPECIALIZED,
        _OUTDATED,
        "A technique that introduces unnecessary complexity without "
        "proportional benefits",
    ),
}


def render_template(template: Template, *, keyword: str, title: str) -> Template:
    """Interpolate ``keyword`` and ``title`` into a template pair."""

    values = {
        "keyword": keyword,
        "Keyword": keyword[:1].upper() + keyword[1:],
        "title": title,
    }
    question, answer = template
    return question.format(**values), answer.format(**values)
