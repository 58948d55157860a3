"""Launch decision: reuse, fetch, then start the language server."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional, Tuple
from urllib.parse import quote, urlsplit, urlunsplit

from ..core.config_schema import BootstrapProfile, DocumentFilter, ResolvedConfig
from ..core.env import Env
from ..core.errors import UriError
from ..util.log import Log, LogLevel
from .fetcher import ArtifactFetcher, FetchResult
from .host import Host
from .platform import PlatformResolver, artifact_name

log = Log.create({"service": "bootstrap.launch"})


def _has_control_chars(text: str) -> bool:
    return any(ord(ch) < 0x20 or ord(ch) == 0x7F for ch in text)


def explicit_server_uri(server_path: str) -> str:
    """Build the ``urn:<path>`` identifier for a user-supplied server path."""
    uri = f"urn:{server_path}"
    if not server_path or _has_control_chars(server_path):
        raise UriError(uri)
    try:
        parts = urlsplit(uri)
    except ValueError as error:
        raise UriError(uri) from error
    if parts.scheme != "urn":
        raise UriError(uri)
    return uri


def join_uri(base: str, relative: str) -> str:
    """Join a relative file name onto a hierarchical base URI.

    As with URL resolution, the last segment of a base without a trailing
    slash is replaced.
    """
    if _has_control_chars(base) or _has_control_chars(relative):
        raise UriError(base, "Failed to parse URL!")
    try:
        parts = urlsplit(base)
    except ValueError as error:
        raise UriError(base, "Failed to parse URL!") from error
    if not parts.scheme:
        raise UriError(base, "Failed to parse URL!")
    if not parts.netloc and not parts.path.startswith("/"):
        raise UriError(base, "URI cannot be a base")

    directory = parts.path.rsplit("/", 1)[0] + "/"
    path = directory + quote(relative.replace("\\", "/"))
    return urlunsplit((parts.scheme, parts.netloc, path, "", ""))


@dataclass(frozen=True)
class LaunchResult:
    uri: str
    args: Tuple[str, ...]
    document_selector: Tuple[DocumentFilter, ...]
    options: Any = None
    fetch: Optional[FetchResult] = None

    @property
    def fetched(self) -> bool:
        return self.fetch is not None


class LaunchCoordinator:
    """Decide which executable to launch and issue the launch directive."""

    def __init__(self, host: Host, profile: BootstrapProfile, fetcher: Optional[ArtifactFetcher] = None):
        self.host = host
        self.profile = profile
        self.fetcher = fetcher or ArtifactFetcher(host, profile)

    async def _start(self, uri: str, config: ResolvedConfig, fetch: Optional[FetchResult]) -> LaunchResult:
        result = LaunchResult(
            uri=uri,
            args=tuple(config.server_args),
            document_selector=config.document_selector,
            options=config.passthrough_options,
            fetch=fetch,
        )
        self.host.log_message(LogLevel.INFO, f"Starting LSP server with URI: {uri}")
        await self.host.start_language_server(
            result.uri,
            list(result.args),
            list(result.document_selector),
            result.options,
        )
        return result

    async def launch(self, config: ResolvedConfig) -> LaunchResult:
        """Launch the server described by ``config``.

        An explicit server path never touches the filesystem or network.
        Otherwise an existing binary is reused and only a missing one is fetched.
        """
        if config.has_explicit_path:
            uri = explicit_server_uri(config.explicit_server_path)
            log.info("using explicit server path", {"uri": uri})
            return await self._start(uri, config, None)

        target = PlatformResolver.from_host(self.host)
        artifact = artifact_name(self.profile, config.version, target)
        binary = Path(self.host.working_directory()) / artifact.binary

        fetch: Optional[FetchResult] = None
        if binary.exists():
            log.debug("reusing existing binary", {"path": str(binary)})
        elif Env.download_disabled():
            log.info("binary missing and downloads are disabled", {"path": str(binary)})
        else:
            fetch = await self.fetcher.fetch(config.version, target)
            if not binary.exists():
                log.warn("binary still missing after fetch", {
                    "path": str(binary),
                    "status_code": fetch.status_code,
                })

        uri = join_uri(self.host.working_directory_uri(), artifact.binary)
        return await self._start(uri, config, fetch)
