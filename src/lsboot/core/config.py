"""Initialization payload resolution.

Editors have delivered the bootstrap settings under several layouts over
time. Each layout is a ``ConfigSchema``; the first whose section key holds a
mapping is used, and its values override the profile defaults.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, List, Mapping, Optional, Tuple

from .config_schema import BootstrapProfile, ResolvedConfig
from .errors import ConfigError
from ..util.log import Log

log = Log.create({"service": "config"})


@dataclass(frozen=True)
class ConfigSchema:
    """One recognized layout of the initialization payload."""

    name: str
    section: str
    version_keys: Tuple[str, ...]


SCHEMAS: Tuple[ConfigSchema, ...] = (
    ConfigSchema("volt", "volt", ("terraformlsVersion", "terraformVersion")),
    ConfigSchema("lsp", "lsp", ("terraformVersion", "terraformlsVersion")),
    ConfigSchema("terraform-ls", "terraform-ls", ("terraformlsVersion", "terraformVersion")),
)

DEFAULT_SCHEMA = SCHEMAS[1]


def _optional_str(container: Mapping[str, Any], key: str, where: str) -> Optional[str]:
    """Return a trimmed string value, or None when absent or blank."""
    value = container.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise ConfigError(f"{where}.{key}", f"expected a string, got {type(value).__name__}")
    value = value.strip()
    return value or None


def _check_version(value: str, where: str) -> str:
    # the version becomes a URL path segment and part of the archive file name
    if "/" in value or "\\" in value or ".." in value:
        raise ConfigError(where, f"invalid version {value!r}")
    return value


class ConfigResolver:
    """Merge profile defaults with editor-supplied overrides."""

    def __init__(self, profile: BootstrapProfile):
        self.profile = profile

    def detect_schema(self, payload: Mapping[str, Any]) -> Tuple[ConfigSchema, Mapping[str, Any]]:
        for schema in SCHEMAS:
            section = payload.get(schema.section)
            if isinstance(section, Mapping):
                return schema, section
        return DEFAULT_SCHEMA, {}

    def _server_args(self, section: Mapping[str, Any], where: str) -> List[str]:
        raw = section.get("serverArgs")
        if raw is None:
            return list(self.profile.default_server_args)
        if not isinstance(raw, list):
            raise ConfigError(f"{where}.serverArgs", f"expected a list, got {type(raw).__name__}")

        args: List[str] = []
        for item in raw:
            if isinstance(item, str):
                args.append(item)
            else:
                log.debug("ignoring non-string server argument", {"value": item})

        # A non-empty override replaces the defaults; it never appends.
        if args:
            return args
        return list(self.profile.default_server_args)

    def _version(self, schema: ConfigSchema, payload: Mapping[str, Any], section: Mapping[str, Any]) -> str:
        for container, where in ((section, schema.section), (payload, "initializationOptions")):
            for key in schema.version_keys:
                value = _optional_str(container, key, where)
                if value is not None:
                    return _check_version(value, f"{where}.{key}")
        return self.profile.default_version

    def resolve(self, payload: Any) -> ResolvedConfig:
        """Resolve a raw initialization payload.

        Raises:
            ConfigError: if the payload or one of the recognized keys has the
                wrong type. Blank strings are treated as unset.
        """
        if payload is None:
            payload = {}
        if not isinstance(payload, Mapping):
            raise ConfigError("initializationOptions", f"expected an object, got {type(payload).__name__}")

        schema, section = self.detect_schema(payload)

        options = None
        if self.profile.options_key:
            options = payload.get(self.profile.options_key)

        config = ResolvedConfig(
            version=self._version(schema, payload, section),
            server_args=self._server_args(section, schema.section),
            explicit_server_path=_optional_str(section, "serverPath", schema.section),
            passthrough_options=options,
            document_selector=self.profile.document_selector(),
            schema_name=schema.name,
        )
        log.debug(
            "resolved configuration",
            {
                "schema": config.schema_name,
                "version": config.version,
                "args": config.server_args,
                "server_path": config.explicit_server_path,
            },
        )
        return config
