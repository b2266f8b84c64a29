"""Lookup of direct credentials in the ``auths`` section."""

from __future__ import annotations

import structlog

from registry_auth.config.document import AuthEntry, ConfigDocument
from registry_auth.models import AuthConfig

log = structlog.get_logger(__name__)


def find_auth_entry(document: ConfigDocument, repository: str) -> tuple[str, AuthEntry] | None:
    """Find the ``auths`` entry for a registry host.

    An entry matches when its key equals the repository or ends with
    ``"://" + repository`` (``https://myregistry.example.com`` matches
    ``myregistry.example.com``). Entries are tried in document order and the
    first match wins.

    Args:
        document: Decoded configuration
        repository: Registry host, ``""`` for the default registry

    Returns:
        ``(key, entry)`` of the first match, or None

    Raises:
        ConfigurationError: If the matched entry cannot be decoded. Entries
            for other registries are never decoded.
    """
    scheme_suffix = "://" + repository
    for key in document.auths:
        if key == repository or key.endswith(scheme_suffix):
            return key, document.auth_entry(key)
    return None


def find_existing_auth_config(document: ConfigDocument, repository: str) -> AuthConfig | None:
    """Return credentials stored directly in ``auths``.

    The returned ``registry_address`` is the matched key, not the bare
    repository, so a configured scheme or port is preserved. A matched
    entry with no fields counts as no match.
    """
    match = find_auth_entry(document, repository)
    if match is None:
        log.debug("auth_entry_not_found", repository=repository)
        return None

    key, entry = match
    if entry.is_empty:
        log.debug("auth_entry_empty", repository=repository, key=key)
        return None

    log.debug("auth_entry_found", repository=repository, key=key)
    return entry.to_auth_config(registry_address=key)
