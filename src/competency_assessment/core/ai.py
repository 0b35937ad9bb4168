"""Shared AI client helpers."""

from __future__ import annotations

import os
from typing import Any

from dotenv import load_dotenv
from openai import AsyncOpenAI

__all__ = ["API_KEY_ENV", "load_async_client"]

API_KEY_ENV = "OPENAI_API_KEY"


def load_async_client(**kwargs: Any) -> AsyncOpenAI:
    """Initialize an async OpenAI client using environment credentials."""
    load_dotenv()
    api_key = os.getenv(API_KEY_ENV)
    if not api_key:
        raise RuntimeError(
            f"{API_KEY_ENV} not found in environment. Set it or add to .env"
        )
    return AsyncOpenAI(api_key=api_key, **kwargs)
