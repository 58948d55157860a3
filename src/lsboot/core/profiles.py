"""Built-in bootstrap profiles and profile file loading."""

from __future__ import annotations

from pathlib import Path
from typing import Dict

from pydantic import ValidationError

from .config_loader import load_json_file
from .config_schema import BootstrapProfile
from .errors import ConfigError
from .global_paths import GlobalPath
from ..util.log import Log

log = Log.create({"service": "config.profiles"})

TERRAFORM_LS_VERSION = "0.32.7"

TERRAFORM_LS = BootstrapProfile(
    name="terraform-ls",
    binary_name="terraform-ls",
    release_base_url="https://releases.hashicorp.com/terraform-ls",
    default_version=TERRAFORM_LS_VERSION,
    default_server_args=["serve"],
    language="terraform",
    patterns=["**/*.tf", "**/*.tfvars"],
    options_key="terraform-ls",
)

PROFILES: Dict[str, BootstrapProfile] = {
    TERRAFORM_LS.name: TERRAFORM_LS,
}


def load_profile(path: str) -> BootstrapProfile:
    """Load and validate a JSON/JSONC profile file."""
    data = load_json_file(path)
    try:
        return BootstrapProfile.model_validate(data)
    except ValidationError as e:
        raise ConfigError(path, str(e)) from e


def get_profile(name_or_path: str) -> BootstrapProfile:
    """Resolve a profile by built-in name, user config file, or explicit path.

    ``<name>.json`` under ``GlobalPath.config()`` is consulted before the
    built-in table so users can pin a different default version.
    """
    candidate = Path(name_or_path)
    if candidate.suffix in {".json", ".jsonc"} or candidate.is_file():
        return load_profile(str(candidate))

    user_file = Path(GlobalPath.config()) / f"{name_or_path}.json"
    if user_file.is_file():
        log.debug("using user profile", {"path": str(user_file)})
        return load_profile(str(user_file))

    profile = PROFILES.get(name_or_path)
    if profile is None:
        raise ConfigError("profile", f"unknown profile {name_or_path!r}")
    return profile
