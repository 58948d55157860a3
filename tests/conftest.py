from collections.abc import Iterator

import pytest

from lsboot.core import env
from lsboot.util.log import Log, LogFormat, LogLevel


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    for key in (env.DISABLE_DOWNLOAD, env.RELEASE_BASE_URL, env.LOG_LEVEL, env.LOG_FORMAT):
        monkeypatch.delenv(key, raising=False)
    yield


@pytest.fixture(autouse=True)
def _quiet_logs() -> Iterator[None]:
    yield
    Log.configure(level=LogLevel.INFO, format=LogFormat.KV, console=False, file=False)
