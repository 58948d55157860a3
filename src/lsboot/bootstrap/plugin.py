"""Plugin entry point: the host delivers an ``initialize`` request here."""

from __future__ import annotations

from typing import Any, Mapping, Optional

from ..core.config import ConfigResolver
from ..core.config_schema import BootstrapProfile
from ..core.errors import BootstrapError
from ..core.profiles import TERRAFORM_LS
from ..util.error import format_error, format_unknown_error
from ..util.log import Log, LogLevel
from .host import Host
from .launcher import LaunchCoordinator, LaunchResult

log = Log.create({"service": "bootstrap.plugin"})

INITIALIZE = "initialize"


class Bootstrap:
    """One pass of the acquire-and-launch flow.

    ``Start -> ConfigResolved -> (explicit launch | PlatformResolved ->
    binary present | fetched or skipped) -> Launch``. Nothing is retried.
    """

    def __init__(self, host: Host, profile: BootstrapProfile = TERRAFORM_LS):
        self.host = host
        self.profile = profile
        self.resolver = ConfigResolver(profile)
        self.coordinator = LaunchCoordinator(host, profile)

    async def initialize(self, payload: Any) -> LaunchResult:
        config = self.resolver.resolve(payload)
        return await self.coordinator.launch(config)


def initialization_options(params: Any) -> Any:
    """Accept either the bare options or an LSP ``InitializeParams`` envelope."""
    if isinstance(params, Mapping) and "initializationOptions" in params:
        return params["initializationOptions"]
    return params


class Plugin:
    """Request dispatcher. Failures are reported to the user, never raised."""

    def __init__(self, host: Host, profile: BootstrapProfile = TERRAFORM_LS):
        self.host = host
        self.profile = profile

    async def handle_request(self, method: str, params: Any = None) -> Optional[LaunchResult]:
        if method != INITIALIZE:
            log.debug("ignoring request", {"method": method})
            return None

        try:
            return await Bootstrap(self.host, self.profile).initialize(initialization_options(params))
        except BootstrapError as error:
            message = format_error(error) or str(error)
            log.error("initialize failed", {"profile": self.profile.name, "error": error})
        except Exception as error:
            message = f"Language server bootstrap failed unexpectedly: {format_unknown_error(error)}"
            log.error("initialize failed unexpectedly", {
                "profile": self.profile.name,
                "error": format_unknown_error(error, detailed=True),
            })
        self.host.log_message(LogLevel.ERROR, message)
        self.host.show_message(LogLevel.ERROR, message)
        return None
