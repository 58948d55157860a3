"""Language-server bootstrap: resolve, acquire and launch.

Example:
    from pathlib import Path
    from lsboot.bootstrap import LocalHost, Plugin

    host = LocalHost(Path("/tmp/servers"))
    result = await Plugin(host).handle_request("initialize", {"lsp": {}})
"""

from .fetcher import ArtifactFetcher, ExtractionReport, FetchResult, extract_zip
from .host import Host, HttpResponse, LocalHost
from .launcher import LaunchCoordinator, LaunchResult
from .platform import (
    Architecture,
    ArtifactName,
    OperatingSystem,
    PlatformResolver,
    PlatformTarget,
    artifact_name,
)
from .plugin import Bootstrap, Plugin

__all__ = [
    "Architecture",
    "ArtifactFetcher",
    "ArtifactName",
    "Bootstrap",
    "ExtractionReport",
    "FetchResult",
    "Host",
    "HttpResponse",
    "LaunchCoordinator",
    "LaunchResult",
    "LocalHost",
    "OperatingSystem",
    "PlatformResolver",
    "PlatformTarget",
    "Plugin",
    "artifact_name",
    "extract_zip",
]
