"""Environment-driven settings for registry-auth.

Settings are read from environment variables with the ``REGISTRY_AUTH_``
prefix. ``DOCKER_CONFIG`` is honoured under its usual Docker name.

Example:
    >>> settings = RegistryAuthSettings()
    >>> settings.config_path
    PosixPath('/home/jdoe/.docker/config.json')
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from registry_auth.config.document import CONFIG_JSON, DOCKER_DIR

DEFAULT_HELPER_PREFIX = "docker-credential-"


class RegistryAuthSettings(BaseSettings):
    """Settings for credential lookup."""

    model_config = SettingsConfigDict(
        env_prefix="REGISTRY_AUTH_",
        case_sensitive=False,
        populate_by_name=True,
    )

    docker_config: Path | None = Field(
        default=None,
        validation_alias=AliasChoices("docker_config", "DOCKER_CONFIG"),
        description="Directory holding config.json",
    )
    config_file: Path | None = Field(
        default=None,
        description="Explicit path to config.json (overrides docker_config)",
    )
    helper_prefix: str = Field(
        default=DEFAULT_HELPER_PREFIX,
        min_length=1,
        description="Prefix prepended to credential helper names",
    )
    helper_timeout: float | None = Field(
        default=None,
        gt=0,
        description="Seconds to wait for a credential helper (None waits indefinitely)",
    )

    @field_validator("docker_config", "config_file", mode="before")
    @classmethod
    def _empty_path_is_unset(cls, value: Any) -> Any:
        return None if value == "" else value

    @property
    def config_path(self) -> Path:
        """Get the effective config.json path."""
        if self.config_file is not None:
            return self.config_file
        if self.docker_config is not None:
            return self.docker_config / CONFIG_JSON
        return Path.home() / DOCKER_DIR / CONFIG_JSON
