"""Error formatting utilities.

Turns bootstrap failures into the one-line messages shown to the user by the
host editor.
"""

import traceback
from typing import Any

from ..core.errors import (
    ConfigError,
    ExtractionError,
    FetchError,
    UnsupportedPlatformError,
    UriError,
)


def format_error(error: Any) -> str | None:
    """Format known bootstrap errors into user-friendly messages.

    Returns None if the error type is not recognized, allowing
    fallback to format_unknown_error.
    """
    if isinstance(error, UnsupportedPlatformError):
        return f"Unsupported {error.axis}: {error.value}"
    if isinstance(error, FetchError):
        return f"Could not download the language server from {error.url}. Check your network connection."
    if isinstance(error, ExtractionError):
        return f"Downloaded language server archive is unreadable: {error.archive}"
    if isinstance(error, (ConfigError, UriError)):
        return str(error)
    return None


def format_unknown_error(error: BaseException, *, detailed: bool = False) -> str:
    """Summarize an unexpected failure as ``Type: message``.

    With ``detailed`` the full traceback is returned instead, for log files.
    """
    if detailed and error.__traceback__:
        return "".join(traceback.format_exception(type(error), error, error.__traceback__))
    text = str(error)
    return f"{type(error).__name__}: {text}" if text else type(error).__name__
