from pathlib import Path

import pytest

from lsboot.bootstrap.fetcher import ArtifactFetcher, extract_zip, safe_join
from lsboot.bootstrap.host import HttpResponse
from lsboot.bootstrap.platform import PlatformResolver
from lsboot.core import env
from lsboot.core.errors import ExtractionError, FetchError
from lsboot.util.log import LogLevel
from tests.helpers import BASE_URL, TOOL, FakeHost, make_corrupt_deflated_zip, make_zip, serve_zip

LINUX = PlatformResolver.resolve("linux", "x86_64")


@pytest.mark.anyio
async def test_fetch_downloads_and_extracts(tmp_path: Path) -> None:
    host = FakeHost(tmp_path, handler=serve_zip({"tool": b"#!/bin/sh\n", "LICENSE.txt": b"MPL"}))

    result = await ArtifactFetcher(host, TOOL).fetch("0.32.7", LINUX)

    assert host.http_calls == [f"{BASE_URL}/0.32.7/tool_0.32.7_linux_amd64.zip"]
    assert result.status_code == 200
    assert result.extracted
    assert sorted(result.extraction.written) == ["LICENSE.txt", "tool"]
    assert (tmp_path / "tool").read_bytes() == b"#!/bin/sh\n"
    assert not (tmp_path / "tool_0.32.7_linux_amd64.zip").exists()


@pytest.mark.anyio
async def test_fetch_marks_binary_executable(tmp_path: Path) -> None:
    host = FakeHost(tmp_path, handler=serve_zip({"tool": b"bin"}))

    await ArtifactFetcher(host, TOOL).fetch("0.32.7", LINUX)

    assert (tmp_path / "tool").stat().st_mode & 0o111


@pytest.mark.anyio
async def test_non_success_status_skips_extraction(tmp_path: Path) -> None:
    host = FakeHost(tmp_path, handler=lambda url: HttpResponse(404, b"not found"))

    result = await ArtifactFetcher(host, TOOL).fetch("9.9.9", LINUX)

    assert result.status_code == 404
    assert not result.extracted
    assert list(tmp_path.iterdir()) == []


@pytest.mark.anyio
async def test_transport_failure_raises_fetch_error(tmp_path: Path) -> None:
    def fail(url: str) -> HttpResponse:
        raise ConnectionError("network unreachable")

    host = FakeHost(tmp_path, handler=fail)

    with pytest.raises(FetchError) as info:
        await ArtifactFetcher(host, TOOL).fetch("0.32.7", LINUX)
    assert info.value.url.endswith("tool_0.32.7_linux_amd64.zip")


@pytest.mark.anyio
async def test_stale_archive_is_removed_before_download(tmp_path: Path) -> None:
    stale = tmp_path / "tool_0.32.7_linux_amd64.zip"
    stale.write_bytes(b"partial download")
    seen: list[bool] = []

    def handler(url: str) -> HttpResponse:
        seen.append(stale.exists())
        return HttpResponse(500, b"")

    host = FakeHost(tmp_path, handler=handler)
    await ArtifactFetcher(host, TOOL).fetch("0.32.7", LINUX)

    assert seen == [False]
    assert not stale.exists()


@pytest.mark.anyio
async def test_corrupt_archive_raises_and_cleans_up(tmp_path: Path) -> None:
    host = FakeHost(tmp_path, handler=lambda url: HttpResponse(200, b"this is not a zip"))

    with pytest.raises(ExtractionError):
        await ArtifactFetcher(host, TOOL).fetch("0.32.7", LINUX)
    assert not (tmp_path / "tool_0.32.7_linux_amd64.zip").exists()


@pytest.mark.anyio
async def test_corrupt_deflate_stream_raises_extraction_error(tmp_path: Path) -> None:
    body = make_corrupt_deflated_zip("tool", b"terraform-ls " * 512)
    host = FakeHost(tmp_path, handler=lambda url: HttpResponse(200, body))

    with pytest.raises(ExtractionError) as info:
        await ArtifactFetcher(host, TOOL).fetch("0.32.7", LINUX)
    assert ": tool: " in str(info.value)
    assert not (tmp_path / "tool_0.32.7_linux_amd64.zip").exists()


@pytest.mark.anyio
async def test_cleanup_failure_is_logged_not_raised(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    host = FakeHost(tmp_path, handler=serve_zip({"tool": b"bin"}))
    original_unlink = Path.unlink

    def unlink(self: Path, missing_ok: bool = False) -> None:
        if self.suffix == ".zip" and self.exists():
            raise PermissionError("file is locked")
        original_unlink(self, missing_ok=missing_ok)

    monkeypatch.setattr(Path, "unlink", unlink)

    result = await ArtifactFetcher(host, TOOL).fetch("0.32.7", LINUX)

    assert result.extracted
    assert any(level is LogLevel.ERROR and "Failed to remove download artifact" in text for level, text in host.logs)


def test_release_base_url_env_override(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv(env.RELEASE_BASE_URL, "https://mirror.example.test/tool/")
    fetcher = ArtifactFetcher(FakeHost(tmp_path), TOOL)
    assert fetcher.download_url("1.0.0", "a.zip") == "https://mirror.example.test/tool/1.0.0/a.zip"


def test_zip_slip_entries_are_skipped(tmp_path: Path) -> None:
    archive = tmp_path / "evil.zip"
    archive.write_bytes(
        make_zip({"../../evil": b"pwned", "/abs/evil": b"pwned", "bin/": None, "bin/tool": b"ok", "tool": b"ok"})
    )
    destination = tmp_path / "dest"

    report = extract_zip(archive, destination)

    assert sorted(report.skipped) == ["../../evil", "/abs/evil"]
    assert (destination / "bin" / "tool").read_bytes() == b"ok"
    assert (destination / "tool").read_bytes() == b"ok"
    assert not (tmp_path.parent / "evil").exists()
    assert not (tmp_path / "evil").exists()


def test_nested_file_without_directory_entry(tmp_path: Path) -> None:
    archive = tmp_path / "nested.zip"
    archive.write_bytes(make_zip({"a/b/c.txt": b"deep"}))

    extract_zip(archive, tmp_path / "out")

    assert (tmp_path / "out" / "a" / "b" / "c.txt").read_bytes() == b"deep"


def test_extract_missing_archive_raises(tmp_path: Path) -> None:
    with pytest.raises(ExtractionError):
        extract_zip(tmp_path / "missing.zip", tmp_path)


def test_safe_join(tmp_path: Path) -> None:
    assert safe_join(tmp_path, "a/b") == (tmp_path / "a" / "b").resolve()
    assert safe_join(tmp_path, "a/../b") == (tmp_path / "b").resolve()
    assert safe_join(tmp_path, "../x") is None
    assert safe_join(tmp_path, "..\\x") is None
    assert safe_join(tmp_path, "") is None
    assert safe_join(tmp_path, "bad\x00name") is None
