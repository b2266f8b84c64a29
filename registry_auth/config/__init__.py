"""Credential configuration handling.

Key Components:
    - ConfigDocument: Typed view of Docker's config.json
    - load_config_document: Read and decode config.json from disk
    - default_config_path: Locate config.json via DOCKER_CONFIG or ~/.docker
    - RegistryAuthSettings: Environment-driven settings

Example:
    >>> from registry_auth.config import load_config_document, default_config_path
    >>> document = load_config_document(default_config_path())
    >>> document.creds_store
    'desktop'
"""

from registry_auth.config.document import (
    AuthEntry,
    ConfigDocument,
    default_config_path,
    load_config_document,
)
from registry_auth.config.settings import DEFAULT_HELPER_PREFIX, RegistryAuthSettings

__all__ = [
    "AuthEntry",
    "ConfigDocument",
    "DEFAULT_HELPER_PREFIX",
    "RegistryAuthSettings",
    "default_config_path",
    "load_config_document",
]
