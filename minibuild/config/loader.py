"""Helpers for loading the declarative build file from TOML/JSON sources.

This module provides a single entry point `load_build_file` that accepts
various configuration sources:

* dict -> validated directly
* Path / path-like string -> load .toml/.json from filesystem
* Inline JSON/TOML strings
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Union
import json
import logging

from pydantic import ValidationError

from minibuild.config.schema import BuildFileSpec
from minibuild.errors import ConfigError

logger = logging.getLogger("minibuild.config.loader")

ConfigSource = Union[str, Path, Dict[str, Any]]

_KNOWN_SUFFIXES = {".toml", ".tml", ".json"}


def _parse_toml(text: str) -> Dict[str, Any]:
    """Parse TOML text into a dict.

    Uses stdlib tomllib on Python 3.11+ and the `tomli` package on older
    interpreters.
    """
    try:
        import tomllib  # type: ignore[attr-defined]
    except ImportError:  # pragma: no cover - Python <3.11 path
        import tomli as tomllib  # type: ignore[import-not-found,no-redef]

    try:
        return tomllib.loads(text)
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"Invalid TOML build file: {e}") from e


def _is_file(path: Path) -> bool:
    try:
        return path.is_file()
    except OSError:
        # Inline content longer than the platform path limit.
        return False


def _detect_format(text: str) -> str:
    # A TOML document may also open with "[", only JSON opens with "{".
    return "json" if text.lstrip().startswith("{") else "toml"


def load_build_file(source: ConfigSource) -> BuildFileSpec:
    """Load and validate a build file.

    Args:
        source: One of:
            * dict: treated as already-parsed build file mapping
            * str/Path: either a filesystem path to a .toml/.json file,
              or an inline TOML/JSON string (auto-detected)

    Returns:
        BuildFileSpec instance.

    Raises:
        ConfigError: If the source cannot be read, parsed or validated.
    """
    if isinstance(source, dict):
        logger.debug("Loading build file from provided dict")
        return _validate(source)

    if not isinstance(source, (str, Path)):
        raise TypeError(f"Unsupported build file source type: {type(source)!r}")

    path = Path(source)
    looks_like_path = "\n" not in str(source) and path.suffix.lower() in _KNOWN_SUFFIXES

    if isinstance(source, Path) or looks_like_path or _is_file(path):
        # Treat as filesystem path
        try:
            text = path.read_text(encoding="utf-8")
        except OSError as e:
            raise ConfigError(f"Could not read build file {path}: {e}") from e
        suffix = path.suffix.lower()
        if suffix in {".toml", ".tml"}:
            fmt = "toml"
        elif suffix == ".json":
            fmt = "json"
        else:
            fmt = _detect_format(text)
        logger.debug("Loading build file %s (fmt=%s)", path, fmt)
    else:
        text = str(source)
        fmt = _detect_format(text)
        logger.debug("Loading build file from inline %s string", fmt)

    if fmt == "json":
        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            raise ConfigError(f"Invalid JSON build file: {e}") from e
    else:
        data = _parse_toml(text)

    if not isinstance(data, dict):
        raise ConfigError("Top-level build file content must be a mapping")

    return _validate(data)


def _validate(data: Dict[str, Any]) -> BuildFileSpec:
    try:
        return BuildFileSpec.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid build file: {e}") from e


__all__ = ["load_build_file"]
