"""Registry credential resolution.

``RegistryAuthLocator`` looks up credentials for an image in Docker's
config.json, trying in order:

1. ``auths``: credentials stored directly by ``docker login``
2. ``credHelpers``: a helper registered for this registry host
3. ``credsStore``: the helper used for every other registry

The first strategy that produces credentials wins. When none does, or
anything goes wrong along the way (unreadable or malformed file, helper
missing or returning garbage), the caller-supplied default is returned.
Lookup never raises.

Example:
    >>> default = AuthConfig()
    >>> locator = RegistryAuthLocator(default)
    >>> auth = locator.lookup_auth_config("myregistry.example.com:5000/app:1.0")
    >>> auth.registry_address
    'https://myregistry.example.com:5000'

Only POSIX hosts are supported; on Windows the default is returned without
reading any configuration.
"""

from __future__ import annotations

import sys
from collections.abc import Iterator
from pathlib import Path

import structlog

from registry_auth.config.document import ConfigDocument, default_config_path, load_config_document
from registry_auth.config.settings import DEFAULT_HELPER_PREFIX, RegistryAuthSettings
from registry_auth.exceptions import CredentialHelperError
from registry_auth.helpers import CredentialHelperInvoker
from registry_auth.lookup import find_existing_auth_config
from registry_auth.models import AuthConfig
from registry_auth.repository import get_repository

log = structlog.get_logger(__name__)

HELPERS_SECTION = "credHelpers"
CREDS_STORE_SECTION = "credsStore"
UNSUPPORTED_PLATFORMS = ("win32", "cygwin")


class RegistryAuthLocator:
    """Resolve registry credentials from config.json and credential helpers.

    The locator holds no mutable state. The configuration file is read anew
    on every lookup, so one instance can be shared freely and always sees
    the current file.

    Args:
        default_auth_config: Returned whenever no credentials are found
        config_file: Path to config.json (defaults to DOCKER_CONFIG or
            ~/.docker/config.json)
        helper_prefix: Prefix for credential helper executables
        invoker: Helper invoker to use instead of one built from
            ``helper_prefix``
        platform: Platform identifier (defaults to ``sys.platform``)
    """

    def __init__(
        self,
        default_auth_config: AuthConfig,
        config_file: Path | str | None = None,
        helper_prefix: str = DEFAULT_HELPER_PREFIX,
        *,
        invoker: CredentialHelperInvoker | None = None,
        platform: str | None = None,
    ) -> None:
        self.default_auth_config = default_auth_config
        self.config_file = Path(config_file) if config_file is not None else default_config_path()
        self.invoker = invoker or CredentialHelperInvoker(helper_prefix)
        self.platform = platform or sys.platform

    @classmethod
    def from_settings(
        cls,
        default_auth_config: AuthConfig,
        settings: RegistryAuthSettings | None = None,
    ) -> RegistryAuthLocator:
        """Build a locator from environment settings."""
        settings = settings or RegistryAuthSettings()
        invoker = CredentialHelperInvoker(settings.helper_prefix, timeout=settings.helper_timeout)
        return cls(default_auth_config, settings.config_path, invoker=invoker)

    @property
    def is_supported_platform(self) -> bool:
        return not self.platform.startswith(UNSUPPORTED_PLATFORMS)

    def lookup_auth_config(self, image: str) -> AuthConfig:
        """Get credentials for the registry an image lives in.

        Helpers are run through a private event loop; inside a coroutine
        use :meth:`lookup_auth_config_async` instead.

        Args:
            image: Image reference, e.g. ``gcr.io/project/app:1.0``

        Returns:
            Resolved credentials, or the default when none are found
        """
        if not self.is_supported_platform:
            log.debug("auth_lookup_unsupported_platform", platform=self.platform)
            return self.default_auth_config

        repository = ""
        try:
            repository = get_repository(image)
            document = self._load_document(repository)

            found = find_existing_auth_config(document, repository)
            if found is None:
                for section, helper in _helper_sources(document, repository):
                    try:
                        found = self.invoker.get(repository, helper)
                        break
                    except CredentialHelperError as e:
                        if section != HELPERS_SECTION:
                            raise
                        self._log_helper_miss(repository, helper, e)
        except Exception:
            self._log_failure(repository)
            return self.default_auth_config

        return self._found_or_default(found, repository)

    async def lookup_auth_config_async(self, image: str) -> AuthConfig:
        """Async variant of :meth:`lookup_auth_config`."""
        if not self.is_supported_platform:
            log.debug("auth_lookup_unsupported_platform", platform=self.platform)
            return self.default_auth_config

        repository = ""
        try:
            repository = get_repository(image)
            document = self._load_document(repository)

            found = find_existing_auth_config(document, repository)
            if found is None:
                for section, helper in _helper_sources(document, repository):
                    try:
                        found = await self.invoker.get_async(repository, helper)
                        break
                    except CredentialHelperError as e:
                        if section != HELPERS_SECTION:
                            raise
                        self._log_helper_miss(repository, helper, e)
        except Exception:
            self._log_failure(repository)
            return self.default_auth_config

        return self._found_or_default(found, repository)

    def _load_document(self, repository: str) -> ConfigDocument:
        log.debug(
            "auth_lookup_started",
            repository=repository,
            config_file=str(self.config_file),
            config_exists=self.config_file.exists(),
            helper_prefix=self.invoker.helper_prefix,
        )
        return load_config_document(self.config_file)

    def _found_or_default(self, found: AuthConfig | None, repository: str) -> AuthConfig:
        if found is None:
            log.debug("auth_lookup_using_default", repository=repository)
            return self.default_auth_config
        log.debug("auth_lookup_resolved", repository=repository, registry_address=found.registry_address)
        return found

    def _log_helper_miss(self, repository: str, helper: str, error: CredentialHelperError) -> None:
        log.warning(
            "credential_helper_failed",
            repository=repository,
            helper=helper,
            section=HELPERS_SECTION,
            error=error.message,
        )

    def _log_failure(self, repository: str) -> None:
        log.error(
            "auth_lookup_failed",
            repository=repository,
            config_file=str(self.config_file),
            helper_prefix=self.invoker.helper_prefix,
            exc_info=True,
        )


def _helper_sources(document: ConfigDocument, repository: str) -> Iterator[tuple[str, str]]:
    """Yield helpers to try, per-registry helper first, then the global store."""
    helper = document.cred_helpers.get(repository)
    if helper is not None:
        yield HELPERS_SECTION, helper
    else:
        log.debug("credential_helper_not_configured", repository=repository, section=HELPERS_SECTION)

    if document.creds_store is not None:
        yield CREDS_STORE_SECTION, document.creds_store
    else:
        log.debug("credential_helper_not_configured", repository=repository, section=CREDS_STORE_SECTION)


def resolve(
    image_reference: str,
    default_auth_config: AuthConfig,
    config_file: Path | str | None = None,
    helper_prefix: str = DEFAULT_HELPER_PREFIX,
) -> AuthConfig:
    """Resolve credentials for an image in one call.

    Args:
        image_reference: Image reference to authorize
        default_auth_config: Returned when nothing else is found
        config_file: Optional path to config.json
        helper_prefix: Prefix for credential helper executables

    Returns:
        Resolved credentials or ``default_auth_config``
    """
    try:
        locator = RegistryAuthLocator(default_auth_config, config_file, helper_prefix)
    except Exception:
        # Path.home() fails when no home directory can be determined
        log.error("auth_locator_init_failed", config_file=config_file, exc_info=True)
        return default_auth_config
    return locator.lookup_auth_config(image_reference)
