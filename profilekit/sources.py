"""Readers for declarative profile sources and the consolidated cache file."""

from __future__ import annotations

import configparser
import json
import logging
import re
from pathlib import Path
from typing import Any, Mapping

import tomllib

from .errors import SourceError

LOG = logging.getLogger(__name__)

_INT_RE = re.compile(r"^[+-]?\d+$")
_TRUE = {"true", "on", "yes"}
_FALSE = {"false", "off", "no", "none"}


def load_source(path: Path | str) -> dict[str, Any]:
    """Parse a profiles file into a mapping of section key to parameters.

    ``.toml`` files are read with :mod:`tomllib`; section names containing a
    colon must be quoted (``["db:main"]``). ``.ini`` files are read with
    :mod:`configparser` and their values coerced to bool, int or ``None``.
    """

    source = Path(path)
    suffix = source.suffix.lower()
    if suffix == ".toml":
        return _load_toml(source)
    if suffix in {".ini", ".cfg"}:
        return _load_ini(source)
    raise SourceError(f"Unsupported profiles file format: {source.suffix or source.name}")


def read_cache(path: Path | str) -> dict[str, dict[str, Any]]:
    """Load a consolidated mapping written by :func:`write_cache`."""

    cache = Path(path)
    try:
        with cache.open("r", encoding="utf-8") as handle:
            data = json.load(handle)
    except (OSError, json.JSONDecodeError) as exc:
        raise SourceError(f"Failed to read profiles cache {cache}: {exc}") from exc
    if not isinstance(data, dict):
        raise SourceError(f"Profiles cache {cache} does not hold a mapping")
    return data


def write_cache(path: Path | str, profiles: Mapping[str, Mapping[str, Any]]) -> None:
    """Persist a consolidated mapping as JSON."""

    cache = Path(path)
    try:
        cache.parent.mkdir(parents=True, exist_ok=True)
        cache.write_text(json.dumps(profiles, indent=2, sort_keys=True) + "\n", encoding="utf-8")
    except (OSError, TypeError, ValueError) as exc:
        raise SourceError(f"Failed to write profiles cache {cache}: {exc}") from exc
    LOG.debug("Wrote profiles cache", extra={"path": str(cache)})


def _load_toml(source: Path) -> dict[str, Any]:
    try:
        with source.open("rb") as handle:
            return tomllib.load(handle)
    except (OSError, tomllib.TOMLDecodeError) as exc:
        raise SourceError(f"Failed to read profiles file {source}: {exc}") from exc


def _load_ini(source: Path) -> dict[str, Any]:
    parser = configparser.ConfigParser(interpolation=None)
    parser.optionxform = str  # type: ignore[assignment, method-assign]
    try:
        with source.open("r", encoding="utf-8") as handle:
            parser.read_file(handle)
    except (OSError, configparser.Error) as exc:
        raise SourceError(f"Failed to read profiles file {source}: {exc}") from exc
    return {
        section: {key: _coerce(value) for key, value in parser.items(section)}
        for section in parser.sections()
    }


def _coerce(value: str) -> Any:
    text = value.strip()
    if len(text) >= 2 and text[0] == text[-1] and text[0] in "\"'":
        return text[1:-1]
    lowered = text.lower()
    if lowered == "null":
        return None
    if lowered in _TRUE:
        return True
    if lowered in _FALSE:
        return False
    if _INT_RE.match(text):
        return int(text)
    return text


__all__ = ["load_source", "read_cache", "write_cache"]
