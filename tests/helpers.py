"""Shared test helpers."""

from __future__ import annotations

import io
import zipfile
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Sequence

from lsboot.bootstrap.host import HttpResponse
from lsboot.core.config_schema import BootstrapProfile, DocumentFilter
from lsboot.util.log import LogLevel

BASE_URL = "https://releases.example.test/tool"

TOOL = BootstrapProfile(
    name="tool",
    binary_name="tool",
    release_base_url=BASE_URL,
    default_version="0.32.7",
    language="terraform",
    patterns=["**/*.tf", "**/*.tfvars"],
    options_key="terraform-ls",
)


def make_zip(entries: Dict[str, Optional[bytes]]) -> bytes:
    """Build a zip in memory; a ``None`` value makes a directory entry."""
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w") as zf:
        for name, data in entries.items():
            if data is None:
                zf.writestr(zipfile.ZipInfo(name if name.endswith("/") else f"{name}/"), b"")
            else:
                zf.writestr(zipfile.ZipInfo(name), data)
    return buffer.getvalue()


def make_corrupt_deflated_zip(name: str, data: bytes) -> bytes:
    """Build a deflated single-entry zip whose first deflate block has an invalid type."""
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w", compression=zipfile.ZIP_DEFLATED) as zf:
        zf.writestr(name, data)
    body = bytearray(buffer.getvalue())
    # local header is 30 bytes plus the name; writestr adds no extra field
    body[30 + len(name.encode())] |= 0x06
    return bytes(body)


class FakeHost:
    """In-memory host recording every capability call."""

    def __init__(
        self,
        directory: Path,
        *,
        os_name: str = "linux",
        arch: str = "x86_64",
        uri: Optional[str] = None,
        handler: Optional[Callable[[str], HttpResponse]] = None,
    ) -> None:
        self.directory = directory
        self.os_name = os_name
        self.arch = arch
        self.uri = uri or directory.resolve().as_uri() + "/"
        self.handler = handler or (lambda url: HttpResponse(404, b""))
        self.os_reads = 0
        self.arch_reads = 0
        self.http_calls: List[str] = []
        self.launches: List[Dict[str, Any]] = []
        self.logs: List[tuple[LogLevel, str]] = []
        self.messages: List[tuple[LogLevel, str]] = []

    def architecture(self) -> str:
        self.arch_reads += 1
        return self.arch

    def operating_system(self) -> str:
        self.os_reads += 1
        return self.os_name

    def working_directory(self) -> Path:
        return self.directory

    def working_directory_uri(self) -> str:
        return self.uri

    async def http_get(self, url: str) -> HttpResponse:
        self.http_calls.append(url)
        return self.handler(url)

    def log_message(self, level: LogLevel, text: str) -> None:
        self.logs.append((level, text))

    def show_message(self, level: LogLevel, text: str) -> None:
        self.messages.append((level, text))

    async def start_language_server(
        self,
        uri: str,
        args: Sequence[str],
        document_selector: Sequence[DocumentFilter],
        options: Any,
    ) -> None:
        self.launches.append(
            {"uri": uri, "args": list(args), "selector": list(document_selector), "options": options}
        )


def serve_zip(entries: Dict[str, Optional[bytes]]) -> Callable[[str], HttpResponse]:
    body = make_zip(entries)
    return lambda url: HttpResponse(200, body)
