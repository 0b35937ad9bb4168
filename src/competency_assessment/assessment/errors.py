"""Exceptions raised by question generation."""

from __future__ import annotations

__all__ = [
    "GenerationError",
    "GenerationExhaustedError",
    "GenerationSchemaError",
    "GenerationTransportError",
]


class GenerationError(RuntimeError):
    """Base class for question generation failures."""


class GenerationTransportError(GenerationError):
    """The generation service could not be reached or answered with an error."""


class GenerationSchemaError(GenerationError):
    """The generation service answered with missing or invalid questions."""


class GenerationExhaustedError(GenerationError):
    """No questions could be produced, so the assessment cannot start."""
