"""Core shared helpers for the assessment engine."""

from __future__ import annotations

from .ai import API_KEY_ENV, load_async_client
from .config import (
    TomlConfigError,
    load_toml,
    merge_defaults,
    merge_toml_file,
    write_toml_template,
)
from .config_templates import (
    ConfigTemplate,
    ConfigTemplateError,
    get_template,
    iter_templates,
)
from .logging import JsonLogFormatter, configure_logger

__all__ = [
    "API_KEY_ENV",
    "load_async_client",
    "TomlConfigError",
    "load_toml",
    "merge_defaults",
    "merge_toml_file",
    "write_toml_template",
    "ConfigTemplate",
    "ConfigTemplateError",
    "get_template",
    "iter_templates",
    "configure_logger",
    "JsonLogFormatter",
]
