"""Host capabilities used by the bootstrap flow.

The editor owns configuration delivery, HTTP, logging and process wiring.
``Host`` is the capability set the bootstrap consumes; ``LocalHost`` is the
stand-alone implementation used by the CLI.
"""

from __future__ import annotations

import os
import platform
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional, Protocol, Sequence
from urllib.parse import urlsplit
from urllib.request import url2pathname

import httpx
from rich.console import Console

from ..core.config_schema import DocumentFilter
from ..core.errors import FetchError, UriError
from ..util.log import Log, LogLevel

log = Log.create({"service": "bootstrap.host"})


@dataclass(frozen=True)
class HttpResponse:
    status_code: int
    body: bytes

    @property
    def is_success(self) -> bool:
        return 200 <= self.status_code < 300


class Host(Protocol):
    """Capabilities the editor exposes to the bootstrap."""

    def architecture(self) -> str: ...

    def operating_system(self) -> str: ...

    def working_directory(self) -> Path: ...

    def working_directory_uri(self) -> str: ...

    async def http_get(self, url: str) -> HttpResponse: ...

    def log_message(self, level: LogLevel, text: str) -> None: ...

    def show_message(self, level: LogLevel, text: str) -> None: ...

    async def start_language_server(
        self,
        uri: str,
        args: Sequence[str],
        document_selector: Sequence[DocumentFilter],
        options: Any,
    ) -> None: ...


_OS_ALIASES = {
    "darwin": "macos",
    "macos": "macos",
    "linux": "linux",
    "windows": "windows",
    "openbsd": "openbsd",
    "freebsd": "freebsd",
}

_ARCH_ALIASES = {
    "x86_64": "x86_64",
    "amd64": "x86_64",
    "aarch64": "aarch64",
    "arm64": "aarch64",
    "x86": "x86",
    "i386": "x86",
    "i686": "x86",
}


def normalize_os(value: str) -> str:
    """Map ``platform.system()`` output onto the bootstrap vocabulary."""
    text = value.strip().lower()
    return _OS_ALIASES.get(text, text)


def normalize_arch(value: str) -> str:
    """Map ``platform.machine()`` output onto the bootstrap vocabulary."""
    text = value.strip().lower()
    return _ARCH_ALIASES.get(text, text)


def uri_to_path(uri: str) -> Path:
    """Turn a ``file:`` or ``urn:`` launch URI back into a local path."""
    if uri.startswith("urn:"):
        return Path(uri[len("urn:"):])
    parts = urlsplit(uri)
    if parts.scheme != "file":
        raise UriError(uri, "Cannot launch non-file URI")
    return Path(url2pathname(parts.path))


class LocalHost:
    """Host implementation backed by the local machine.

    Args:
        directory: Working directory where binaries are provisioned.
        os_name: Override the reported operating system.
        arch: Override the reported architecture.
        transport: Optional httpx transport, used by tests.
        launch: When False, the launch directive is only logged.
        inherit_stdio: Connect the server to this process's stdio instead of pipes.
    """

    def __init__(
        self,
        directory: Path,
        *,
        os_name: Optional[str] = None,
        arch: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: float = 180.0,
        user_agent: str = "lsboot",
        launch: bool = True,
        inherit_stdio: bool = False,
        console: Optional[Console] = None,
    ) -> None:
        self.directory = Path(directory)
        self._os_name = os_name
        self._arch = arch
        self._transport = transport
        self._timeout = timeout
        self._user_agent = user_agent
        self._launch = launch
        self._inherit_stdio = inherit_stdio
        self.console = console or Console(stderr=True)
        self.process: Optional[subprocess.Popen] = None

    def architecture(self) -> str:
        return normalize_arch(self._arch or platform.machine())

    def operating_system(self) -> str:
        return normalize_os(self._os_name or platform.system())

    def working_directory(self) -> Path:
        return self.directory

    def working_directory_uri(self) -> str:
        return self.directory.resolve().as_uri() + "/"

    async def http_get(self, url: str) -> HttpResponse:
        try:
            async with httpx.AsyncClient(
                transport=self._transport,
                timeout=self._timeout,
                follow_redirects=True,
                headers={"User-Agent": self._user_agent},
            ) as client:
                response = await client.get(url)
        except httpx.HTTPError as error:
            raise FetchError(url, str(error)) from error
        return HttpResponse(status_code=response.status_code, body=response.content)

    def log_message(self, level: LogLevel, text: str) -> None:
        log.log(level, text)

    def show_message(self, level: LogLevel, text: str) -> None:
        style = {LogLevel.ERROR: "bold red", LogLevel.WARN: "yellow"}.get(level, "")
        self.console.print(f"[{level.value.lower()}] {text}", style=style, markup=False, highlight=False)

    async def start_language_server(
        self,
        uri: str,
        args: Sequence[str],
        document_selector: Sequence[DocumentFilter],
        options: Any,
    ) -> None:
        executable = uri_to_path(uri)
        cmd = [str(executable), *args]
        log.info(
            "launch directive",
            {
                "cmd": cmd,
                "selector": [f.pattern for f in document_selector],
                "options": options,
            },
        )
        if not self._launch:
            return

        stdio = None if self._inherit_stdio else subprocess.PIPE
        try:
            self.process = subprocess.Popen(
                cmd,
                stdin=stdio,
                stdout=stdio,
                stderr=None if self._inherit_stdio else subprocess.PIPE,
                cwd=str(self.directory),
                env=dict(os.environ),
            )
        except OSError as error:
            log.error("failed to spawn language server", {"cmd": cmd, "error": str(error)})
            self.process = None
