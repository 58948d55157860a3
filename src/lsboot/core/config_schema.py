"""Configuration schema: Pydantic models for profiles and resolved settings."""

from __future__ import annotations

from typing import Any, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator


class DocumentFilter(BaseModel):
    """One language-tag/glob-pattern pair of a document selector."""
    language: str
    pattern: str
    scheme: Optional[str] = None

    model_config = ConfigDict(frozen=True)


class BootstrapProfile(BaseModel):
    """Everything needed to provision and launch one language server.

    The archive template may reference ``{binary}``, ``{version}``, ``{os}``
    and ``{arch}``; ``{os}`` is the vendor OS family (``darwin`` for macOS)
    and ``{arch}`` the vendor architecture token (``amd64``, ``arm64``, ``386``).
    """
    name: str
    binary_name: str = Field(alias="binaryName")
    release_base_url: str = Field(alias="releaseBaseUrl")
    archive_template: str = Field(default="{binary}_{version}_{os}_{arch}.zip", alias="archiveTemplate")
    default_version: str = Field(alias="defaultVersion")
    default_server_args: List[str] = Field(default_factory=lambda: ["serve"], alias="defaultServerArgs")
    language: str
    patterns: List[str]
    options_key: Optional[str] = Field(default=None, alias="optionsKey")
    user_agent: str = Field(default="lsboot", alias="userAgent")

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    @field_validator("name", "binary_name", "release_base_url", "default_version", "language")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must not be empty")
        return value

    @field_validator("archive_template")
    @classmethod
    def _template_fields(cls, value: str) -> str:
        if "{version}" not in value:
            raise ValueError("archive template must contain '{version}'")
        try:
            value.format(binary="", version="", os="", arch="")
        except (KeyError, IndexError, ValueError) as e:
            raise ValueError(f"invalid archive template placeholder: {e}") from e
        return value

    @field_validator("patterns")
    @classmethod
    def _has_patterns(cls, value: List[str]) -> List[str]:
        if not value:
            raise ValueError("at least one document pattern is required")
        return value

    def document_selector(self) -> Tuple[DocumentFilter, ...]:
        return tuple(DocumentFilter(language=self.language, pattern=p) for p in self.patterns)


class ResolvedConfig(BaseModel):
    """Result of merging profile defaults with editor-supplied overrides.

    When ``explicit_server_path`` is set, ``version`` is irrelevant: the
    acquisition step is skipped entirely.
    """
    version: str
    server_args: List[str] = Field(default_factory=lambda: ["serve"])
    explicit_server_path: Optional[str] = None
    passthrough_options: Any = None
    document_selector: Tuple[DocumentFilter, ...] = ()
    schema_name: str = "lsp"

    model_config = ConfigDict(frozen=True)

    @property
    def has_explicit_path(self) -> bool:
        return bool(self.explicit_server_path)
