"""Bootstrap error taxonomy.

Every fatal failure of the initialize flow derives from ``BootstrapError`` so
the plugin entry point can surface it to the user in one place.
``CleanupWarning`` is only ever logged.
"""

from __future__ import annotations

from typing import Literal


class BootstrapError(Exception):
    """Base class for fatal bootstrap failures."""


class ConfigError(BootstrapError):
    """Configuration payload or profile is malformed."""

    def __init__(self, key: str, message: str) -> None:
        self.key = key
        super().__init__(f"Config error in {key}: {message}")


class UnsupportedPlatformError(BootstrapError):
    """Host reported an OS or architecture outside the supported set."""

    def __init__(self, axis: Literal["OS", "ARCH"], value: str) -> None:
        self.axis = axis
        self.value = value
        super().__init__(f"Unsupported {axis}: {value}")


class FetchError(BootstrapError):
    """Transport-level failure while downloading an artifact."""

    def __init__(self, url: str, message: str) -> None:
        self.url = url
        super().__init__(f"Failed to download {url}: {message}")


class ExtractionError(BootstrapError):
    """Downloaded archive could not be opened or read."""

    def __init__(self, archive: str, message: str) -> None:
        self.archive = archive
        super().__init__(f"Failed to extract {archive}: {message}")


class UriError(BootstrapError):
    """A URI could not be parsed or joined."""

    def __init__(self, value: str, message: str = "Failed to parse URL") -> None:
        self.value = value
        super().__init__(f"{message}: {value!r}")


class CleanupWarning(UserWarning):
    """Temporary archive could not be removed. Logged, never raised."""
