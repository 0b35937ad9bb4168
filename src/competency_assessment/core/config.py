"""TOML configuration helpers shared by the assessment commands."""

from __future__ import annotations

import tomllib
from pathlib import Path
from typing import Any, Mapping, MutableMapping

__all__ = [
    "TomlConfigError",
    "load_toml",
    "merge_defaults",
    "merge_toml_file",
    "write_toml_template",
]


class TomlConfigError(RuntimeError):
    """Raised when TOML config IO or validation fails."""


def load_toml(path: Path) -> Mapping[str, Any]:
    """Load a TOML document from ``path``.

    IO and parse failures surface as :class:`TomlConfigError` so callers can
    re-raise them as their own configuration errors.
    """

    try:
        with path.open("rb") as handle:
            return tomllib.load(handle)
    except FileNotFoundError as exc:
        raise TomlConfigError(f"Config file not found: {path}") from exc
    except tomllib.TOMLDecodeError as exc:
        raise TomlConfigError(f"Failed to parse config TOML: {exc}") from exc


def merge_defaults(
    base: MutableMapping[str, Any],
    override: Mapping[str, Any],
    *,
    path: str = "",
) -> None:
    """Merge ``override`` into ``base`` in place.

    Keys missing from ``base`` are rejected, and a table may only replace a
    table (and a value only a value), so typos surface with their dotted path.
    """

    for key, value in override.items():
        dotted = f"{path}{key}"
        if key not in base:
            raise TomlConfigError(f"Unknown configuration key '{dotted}'.")
        is_table = isinstance(base[key], MutableMapping)
        if is_table != isinstance(value, Mapping):
            expected = "table" if is_table else "value"
            raise TomlConfigError(
                f"Expected {expected} for '{dotted}', "
                f"found {type(value).__name__}."
            )
        if is_table:
            merge_defaults(base[key], value, path=f"{dotted}.")
        else:
            base[key] = value


def merge_toml_file(base: MutableMapping[str, Any], path: Path) -> None:
    """Load ``path`` and merge it over ``base``."""

    merge_defaults(base, load_toml(path))


def write_toml_template(
    path: Path,
    *,
    template: str,
    overwrite: bool = False,
) -> Path:
    """Write ``template`` to ``path`` unless it exists and ``overwrite`` is off."""

    if path.exists() and not overwrite:
        raise TomlConfigError(f"Config already exists: {path}")
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(template, encoding="utf-8")
    return path
