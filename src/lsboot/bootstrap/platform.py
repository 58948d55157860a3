"""Host platform to release artifact mapping."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from ..core.config_schema import BootstrapProfile
from ..core.errors import UnsupportedPlatformError
from .host import Host


class OperatingSystem(str, Enum):
    MACOS = "macos"
    LINUX = "linux"
    WINDOWS = "windows"
    OPENBSD = "openbsd"
    FREEBSD = "freebsd"

    @property
    def family(self) -> str:
        """Vendor OS family used in archive names."""
        return _OS_FAMILY[self]


class Architecture(str, Enum):
    X86 = "x86"
    X86_64 = "x86_64"
    AARCH64 = "aarch64"

    @property
    def token(self) -> str:
        """Vendor architecture token used in archive names."""
        return _ARCH_TOKEN[self]


_OS_FAMILY = {
    OperatingSystem.MACOS: "darwin",
    OperatingSystem.LINUX: "linux",
    OperatingSystem.WINDOWS: "windows",
    OperatingSystem.OPENBSD: "openbsd",
    OperatingSystem.FREEBSD: "freebsd",
}

_ARCH_TOKEN = {
    Architecture.X86: "386",
    Architecture.X86_64: "amd64",
    Architecture.AARCH64: "arm64",
}


@dataclass(frozen=True)
class PlatformTarget:
    os: OperatingSystem
    arch: Architecture


@dataclass(frozen=True)
class ArtifactName:
    """Archive file name and the executable it unpacks to."""

    archive: str
    binary: str


class PlatformResolver:
    """Map host-reported OS/architecture strings to a ``PlatformTarget``."""

    @staticmethod
    def resolve(os_name: str, arch: str) -> PlatformTarget:
        """Resolve reported strings; values must match the table exactly.

        Raises:
            UnsupportedPlatformError: for any unknown OS or architecture.
        """
        try:
            architecture = Architecture(arch)
        except ValueError:
            raise UnsupportedPlatformError("ARCH", arch) from None
        try:
            operating_system = OperatingSystem(os_name)
        except ValueError:
            raise UnsupportedPlatformError("OS", os_name) from None
        return PlatformTarget(os=operating_system, arch=architecture)

    @classmethod
    def from_host(cls, host: Host) -> PlatformTarget:
        """Read the host platform once; the result feeds every name computation."""
        return cls.resolve(host.operating_system(), host.architecture())


def binary_name(profile: BootstrapProfile, target: PlatformTarget) -> str:
    if target.os is OperatingSystem.WINDOWS:
        return f"{profile.binary_name}.exe"
    return profile.binary_name


def artifact_name(profile: BootstrapProfile, version: str, target: PlatformTarget) -> ArtifactName:
    archive = profile.archive_template.format(
        binary=profile.binary_name,
        version=version,
        os=target.os.family,
        arch=target.arch.token,
    )
    return ArtifactName(archive=archive, binary=binary_name(profile, target))
