"""Docker credential configuration document (``config.json``).

Only the three sections relevant to credential lookup are decoded:

    {
        "auths": {
            "https://myregistry.example.com": {"auth": "am9objpzM2NyZXQ="},
            "localhost:5000": {"username": "jdoe", "password": "s3cret"}
        },
        "credHelpers": {"gcr.io": "gcloud"},
        "credsStore": "desktop"
    }

Absent sections decode to an empty mapping or ``None``. The document is
decoded fresh from disk on every lookup so that edits made by ``docker
login`` or other tools are always observed.
"""

from __future__ import annotations

import base64
import binascii
import json
import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from registry_auth.exceptions import ConfigurationError
from registry_auth.models import AuthConfig

DOCKER_CONFIG_ENV = "DOCKER_CONFIG"
DOCKER_DIR = ".docker"
CONFIG_JSON = "config.json"


class AuthEntry(BaseModel):
    """One value of the ``auths`` section.

    Unknown keys are kept so that an entry holding only fields this model
    does not know about still counts as non-empty.
    """

    model_config = ConfigDict(extra="allow", frozen=True)

    username: str | None = None
    password: str | None = None
    auth: str | None = None
    email: str | None = None
    identitytoken: str | None = None
    registrytoken: str | None = None
    serveraddress: str | None = None

    @property
    def is_empty(self) -> bool:
        """True when the JSON object had no keys at all."""
        return not self.model_fields_set and not self.model_extra

    def to_auth_config(self, registry_address: str) -> AuthConfig:
        """Build credentials for the matched ``auths`` key.

        A bare ``auth`` token is decoded into username and password the way
        the Docker CLI does. A token that does not decode is passed through
        untouched in ``AuthConfig.auth``.
        """
        username = self.username or ""
        password = self.password or ""

        if self.auth and not (username or password):
            decoded = _decode_auth_token(self.auth)
            if decoded is not None:
                username, password = decoded

        return AuthConfig(
            registry_address=registry_address,
            username=username,
            password=password,
            email=self.email,
            auth=self.auth,
            identity_token=self.identitytoken,
            registry_token=self.registrytoken,
        )


class ConfigDocument(BaseModel):
    """Typed view of the sections used for credential lookup.

    ``auths`` values are kept as raw JSON and decoded one at a time with
    :meth:`auth_entry`, so a malformed entry for one registry never affects
    lookups for another.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore", frozen=True)

    auths: dict[str, Any] = Field(default_factory=dict)
    cred_helpers: dict[str, str] = Field(default_factory=dict, alias="credHelpers")
    creds_store: str | None = Field(default=None, alias="credsStore")

    @field_validator("auths", mode="before")
    @classmethod
    def _non_object_auths_is_empty(cls, value: Any) -> Any:
        return value if isinstance(value, dict) else {}

    @field_validator("cred_helpers", mode="before")
    @classmethod
    def _keep_string_helpers(cls, value: Any) -> dict[str, str]:
        # Only string values name a helper; anything else is a miss
        if not isinstance(value, dict):
            return {}
        return {key: helper for key, helper in value.items() if isinstance(helper, str)}

    @field_validator("creds_store", mode="before")
    @classmethod
    def _keep_string_store(cls, value: Any) -> str | None:
        return value if isinstance(value, str) else None

    def auth_entry(self, key: str) -> AuthEntry:
        """Decode the ``auths`` entry stored under ``key``.

        A null entry decodes to an empty one.

        Raises:
            KeyError: If ``key`` is not in ``auths``
            ConfigurationError: If the entry is not an object or has a
                field of the wrong type
        """
        raw = self.auths[key]
        try:
            return AuthEntry.model_validate({} if raw is None else raw)
        except ValidationError as e:
            raise ConfigurationError(
                f"Unexpected auths entry: {e}",
                reference=key,
            ) from e


def default_config_path(environ: Mapping[str, str] | None = None) -> Path:
    """Locate config.json.

    Args:
        environ: Environment to consult (defaults to ``os.environ``)

    Returns:
        ``$DOCKER_CONFIG/config.json`` when ``DOCKER_CONFIG`` is set,
        otherwise ``~/.docker/config.json``
    """
    env = os.environ if environ is None else environ
    config_dir = env.get(DOCKER_CONFIG_ENV)
    if config_dir:
        return Path(config_dir) / CONFIG_JSON
    return Path.home() / DOCKER_DIR / CONFIG_JSON


def load_config_document(path: Path | str) -> ConfigDocument:
    """Read and decode a credential configuration file.

    Args:
        path: Path to config.json

    Returns:
        Decoded document

    Raises:
        ConfigurationError: If the file cannot be read or decoded
    """
    config_file = Path(path)

    try:
        with open(config_file, encoding="utf-8") as f:
            raw = json.load(f)
    except FileNotFoundError as e:
        raise ConfigurationError(
            "Configuration file not found",
            reference=str(config_file),
            suggestion=f"Run 'docker login' or set {DOCKER_CONFIG_ENV}",
        ) from e
    except OSError as e:
        raise ConfigurationError(
            f"Cannot read configuration file: {e}",
            reference=str(config_file),
        ) from e
    except ValueError as e:
        # json.JSONDecodeError and UnicodeDecodeError
        raise ConfigurationError(
            f"Invalid JSON in configuration file: {e}",
            reference=str(config_file),
        ) from e

    if not isinstance(raw, dict):
        raise ConfigurationError(
            "Configuration must be a JSON object, not a list or scalar",
            reference=str(config_file),
        )

    return ConfigDocument.model_validate(raw)


def _decode_auth_token(token: str) -> tuple[str, str] | None:
    try:
        decoded = base64.b64decode(token, validate=True).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError, ValueError):
        return None

    username, sep, password = decoded.partition(":")
    if not sep:
        return None
    return username, password
