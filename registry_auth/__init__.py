"""Docker registry credential resolution.

This package provides:
- Registry host extraction from image references
- Lookup of credentials in Docker's config.json (``auths``,
  ``credHelpers``, ``credsStore``)
- Invocation of ``docker-credential-*`` helper processes
- A resolver that never raises and falls back to caller-supplied defaults

Example usage:

    from registry_auth import AuthConfig, RegistryAuthLocator

    locator = RegistryAuthLocator(AuthConfig())
    auth = locator.lookup_auth_config("gcr.io/my-project/app:1.0")

    # or, in one call
    from registry_auth import resolve
    auth = resolve("myregistry.example.com:5000/app", AuthConfig())
"""

from .config import ConfigDocument, RegistryAuthSettings, default_config_path, load_config_document
from .exceptions import (
    ConfigurationError,
    CredentialHelperError,
    HelperNotFoundError,
    HelperResponseError,
    HelperTimeoutError,
    RegistryAuthError,
)
from .helpers import CredentialHelperInvoker
from .locator import RegistryAuthLocator, resolve
from .lookup import find_existing_auth_config
from .models import AuthConfig, HelperResponse
from .repository import get_repository

__all__ = [
    # Models
    "AuthConfig",
    "HelperResponse",
    "ConfigDocument",
    # Resolution
    "RegistryAuthLocator",
    "resolve",
    "get_repository",
    "find_existing_auth_config",
    "CredentialHelperInvoker",
    # Configuration
    "RegistryAuthSettings",
    "default_config_path",
    "load_config_document",
    # Exceptions
    "RegistryAuthError",
    "ConfigurationError",
    "CredentialHelperError",
    "HelperNotFoundError",
    "HelperTimeoutError",
    "HelperResponseError",
]
