"""Configuration file loading utilities: JSONC parsing and env substitution."""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Any, Dict

import commentjson

from .errors import ConfigError
from ..util.log import Log

log = Log.create({"service": "config.loader"})


def substitute_env_vars(text: str) -> str:
    """Replace ``{env:VAR}`` patterns with environment variable values."""
    def replacer(match: re.Match[str]) -> str:
        return os.environ.get(match.group(1), "")

    return re.sub(r'\{env:([^}]+)\}', replacer, text)


def load_json_text(text: str, source: str = "<inline>") -> Dict[str, Any]:
    """Parse a JSON or JSONC document into a mapping.

    Raises:
        ConfigError: if the text is not valid JSONC or not an object.
    """
    try:
        data = commentjson.loads(substitute_env_vars(text))
    except Exception as e:
        # commentjson surfaces lark parse failures under several exception types
        raise ConfigError(source, f"invalid JSON: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(source, "expected a JSON object")
    return data


def load_json_file(filepath: str) -> Dict[str, Any]:
    """Load a JSON or JSONC file.

    Unlike lookups of optional config locations, an explicitly named file that
    cannot be read is an error.
    """
    path = Path(filepath)
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        log.error("failed to load config file", {"path": filepath, "error": str(e)})
        raise ConfigError(filepath, str(e)) from e
    return load_json_text(text, source=filepath)
