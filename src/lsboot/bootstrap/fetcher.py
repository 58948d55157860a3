"""Artifact download and extraction."""

from __future__ import annotations

import asyncio
import shutil
import stat
import zipfile
import zlib
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from ..core.config_schema import BootstrapProfile
from ..core.env import Env
from ..core.errors import BootstrapError, CleanupWarning, ExtractionError, FetchError
from ..util.log import Log, LogLevel
from .host import Host, HttpResponse
from .platform import ArtifactName, OperatingSystem, PlatformTarget, artifact_name

log = Log.create({"service": "bootstrap.fetch"})

# zipfile surfaces corrupt, encrypted, truncated or unsupported members through
# these types in addition to BadZipFile.
_ARCHIVE_READ_ERRORS = (
    zipfile.BadZipFile,
    zlib.error,
    RuntimeError,
    NotImplementedError,
    EOFError,
    OSError,
)


@dataclass
class ExtractionReport:
    written: List[str] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)


@dataclass
class FetchResult:
    url: str
    status_code: int
    artifact: ArtifactName
    extraction: Optional[ExtractionReport] = None

    @property
    def extracted(self) -> bool:
        return self.extraction is not None


def safe_join(base: Path, name: str) -> Optional[Path]:
    """Resolve an archive entry name under ``base``.

    Returns None for entries that would land outside ``base``.
    """
    if not name or "\x00" in name:
        return None
    relative = Path(name.replace("\\", "/"))
    if relative.is_absolute() or relative.drive:
        return None
    try:
        target = (base / relative).resolve()
        base_resolved = base.resolve()
    except (OSError, RuntimeError):
        return None
    if target == base_resolved or base_resolved in target.parents:
        return target
    return None


def extract_zip(archive: Path, destination: Path) -> ExtractionReport:
    """Extract every safe entry of ``archive`` into ``destination``.

    Directory entries create directories; file entries get their parent
    created first. Entries escaping ``destination`` are skipped.

    Raises:
        ExtractionError: if the archive cannot be opened or an entry cannot be read.
    """
    report = ExtractionReport()
    destination.mkdir(parents=True, exist_ok=True)
    try:
        zf = zipfile.ZipFile(archive, "r")
    except _ARCHIVE_READ_ERRORS as error:
        raise ExtractionError(str(archive), str(error)) from error

    with zf:
        for info in zf.infolist():
            target = safe_join(destination, info.filename)
            if target is None:
                log.warn("skipping unsafe archive entry", {"entry": info.filename})
                report.skipped.append(info.filename)
                continue

            try:
                if info.is_dir():
                    target.mkdir(parents=True, exist_ok=True)
                    continue
                if target == destination.resolve():
                    report.skipped.append(info.filename)
                    continue
                target.parent.mkdir(parents=True, exist_ok=True)
                with zf.open(info, "r") as src, open(target, "wb") as dst:
                    shutil.copyfileobj(src, dst)
            except _ARCHIVE_READ_ERRORS as error:
                raise ExtractionError(str(archive), f"{info.filename}: {error}") from error
            report.written.append(info.filename)

    return report


def set_executable(path: Path) -> None:
    if not path.is_file():
        return
    try:
        mode = path.stat().st_mode
        path.chmod(mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    except OSError as error:
        log.warn("failed to mark binary executable", {"path": str(path), "error": str(error)})


class ArtifactFetcher:
    """Download a release archive into the working directory and unpack it."""

    def __init__(self, host: Host, profile: BootstrapProfile):
        self.host = host
        self.profile = profile

    def download_url(self, version: str, archive: str) -> str:
        base = Env.release_base_url() or self.profile.release_base_url
        return f"{base.rstrip('/')}/{version}/{archive}"

    def _remove_archive(self, archive: Path) -> None:
        try:
            archive.unlink(missing_ok=True)
        except OSError as error:
            warning = CleanupWarning(f"Failed to remove download artifact {archive}: {error}")
            log.warn(str(warning), {"archive": str(archive)})
            self.host.log_message(LogLevel.ERROR, str(warning))

    async def _get(self, url: str) -> HttpResponse:
        try:
            return await self.host.http_get(url)
        except BootstrapError:
            raise
        except Exception as error:
            raise FetchError(url, str(error)) from error

    async def fetch(self, version: str, target: PlatformTarget) -> FetchResult:
        """Fetch and extract the artifact for ``version`` on ``target``.

        A non-success status is not an error: extraction is skipped and the
        caller proceeds to launch whatever binary may already be present.

        Raises:
            FetchError: if the transport fails.
            ExtractionError: if the archive cannot be written, opened or read.
        """
        directory = Path(self.host.working_directory())
        artifact = artifact_name(self.profile, version, target)
        archive = directory / artifact.archive
        url = self.download_url(version, artifact.archive)
        log.debug("artifact selected", {"archive": artifact.archive, "url": url})

        if archive.exists():
            try:
                archive.unlink()
            except OSError as error:
                raise ExtractionError(str(archive), f"cannot remove stale archive: {error}") from error

        with log.time("downloading language server", {"url": url}):
            response = await self._get(url)
        log.debug("download finished", {"status_code": response.status_code})

        result = FetchResult(url=url, status_code=response.status_code, artifact=artifact)
        try:
            if not response.is_success:
                log.warn("download returned non-success status; skipping extraction", {
                    "url": url,
                    "status_code": response.status_code,
                })
                return result

            try:
                directory.mkdir(parents=True, exist_ok=True)
                await asyncio.to_thread(archive.write_bytes, response.body)
            except OSError as error:
                raise ExtractionError(str(archive), f"cannot write archive: {error}") from error

            result.extraction = await asyncio.to_thread(extract_zip, archive, directory)
            log.info("archive extracted", {
                "archive": artifact.archive,
                "written": len(result.extraction.written),
                "skipped": len(result.extraction.skipped),
            })

            if target.os is not OperatingSystem.WINDOWS:
                await asyncio.to_thread(set_executable, directory / artifact.binary)
            return result
        finally:
            self._remove_archive(archive)
