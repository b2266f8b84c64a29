"""Credential data models.

``AuthConfig`` is the value handed back to callers by every resolution
path. ``HelperResponse`` is the wire shape a docker-credential helper writes
to stdout for the ``get`` action.

Example:
    >>> auth = AuthConfig(
    ...     registry_address="https://myregistry.example.com",
    ...     username="jdoe",
    ...     password="s3cret",
    ... )
    >>> auth.to_dict()["password"]
    '***'
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

SECRET_FIELDS = ("password", "auth", "identity_token", "registry_token")
MASK = "***"


class HelperResponse(BaseModel):
    """Output of ``docker-credential-<name> get``.

    Missing and null fields decode to empty strings; unknown fields are
    ignored.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore", frozen=True)

    server_url: str = Field(default="", alias="ServerURL")
    username: str = Field(default="", alias="Username")
    secret: str = Field(default="", alias="Secret")

    @field_validator("server_url", "username", "secret", mode="before")
    @classmethod
    def _null_is_empty(cls, value: Any) -> Any:
        return "" if value is None else value


@dataclass(frozen=True)
class AuthConfig:
    """Resolved registry credentials.

    Attributes:
        registry_address: Registry the credentials belong to. For ``auths``
            entries this is the configured key (scheme and port preserved).
        username: Registry user name
        password: Registry password or helper secret
        email: Optional e-mail stored alongside an ``auths`` entry
        auth: Optional base64 ``username:password`` token
        identity_token: Optional OAuth identity token
        registry_token: Optional bearer token for the registry
    """

    registry_address: str = ""
    username: str = ""
    password: str = ""
    email: str | None = None
    auth: str | None = None
    identity_token: str | None = None
    registry_token: str | None = None

    @classmethod
    def from_helper_response(cls, response: HelperResponse) -> AuthConfig:
        return cls(
            registry_address=response.server_url,
            username=response.username,
            password=response.secret,
        )

    def to_dict(self, mask_secrets: bool = True) -> dict[str, Any]:
        """Render as a JSON-friendly dict, dropping unset optional fields.

        Args:
            mask_secrets: Replace non-empty secret values with ``***``

        Returns:
            Dictionary keyed by field name
        """
        data = {key: value for key, value in asdict(self).items() if value is not None}
        if mask_secrets:
            for key in SECRET_FIELDS:
                if data.get(key):
                    data[key] = MASK
        return data
