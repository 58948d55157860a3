"""Environment variable access.

All lsboot switches are read live from ``os.environ`` so a test or a host can
flip them between two initializations.
"""

import os
from typing import Optional

DISABLE_DOWNLOAD = "LSBOOT_DISABLE_DOWNLOAD"
RELEASE_BASE_URL = "LSBOOT_RELEASE_BASE_URL"
LOG_LEVEL = "LSBOOT_LOG_LEVEL"
LOG_FORMAT = "LSBOOT_LOG_FORMAT"


def get(key: str) -> Optional[str]:
    """Get an environment variable, treating blank values as unset."""
    value = os.environ.get(key)
    if value is None or not value.strip():
        return None
    return value.strip()


def truthy(key: str) -> bool:
    value = os.environ.get(key, "").strip().lower()
    return value in {"1", "true"}


def download_disabled() -> bool:
    """Return whether automatic language-server downloads are disabled."""
    return truthy(DISABLE_DOWNLOAD)


def release_base_url() -> Optional[str]:
    return get(RELEASE_BASE_URL)


def log_format() -> Optional[str]:
    """Log layout for the CLI: kv, json or pretty."""
    return get(LOG_FORMAT)


def log_level() -> Optional[str]:
    return get(LOG_LEVEL)


class Env:
    """Namespace class for environment variable operations."""

    get = staticmethod(get)
    truthy = staticmethod(truthy)
    download_disabled = staticmethod(download_disabled)
    release_base_url = staticmethod(release_base_url)
    log_level = staticmethod(log_level)
    log_format = staticmethod(log_format)
