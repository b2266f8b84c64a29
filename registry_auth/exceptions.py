"""Custom exception hierarchy for registry-auth.

Exceptions in this module describe the failures that can happen while
resolving registry credentials. None of them escape
``RegistryAuthLocator.lookup_auth_config``; the locator converts every
failure into the caller-supplied default credentials. They are raised by the
lower-level components (document loading, helper invocation) so that those
components can be used and tested on their own.

Exception Hierarchy:
    RegistryAuthError (base)
    ├── ConfigurationError
    └── CredentialHelperError
        ├── HelperNotFoundError
        ├── HelperTimeoutError
        └── HelperResponseError

Example Usage:
    >>> from registry_auth.exceptions import ConfigurationError
    >>> try:
    ...     document = load_config_document(path)
    ... except ConfigurationError as e:
    ...     print(e.reference)
"""


class RegistryAuthError(Exception):
    """Base exception for all registry-auth errors.

    Attributes:
        message: Human-readable error description
        reference: The file path or command that failed
        suggestion: Optional suggestion for resolution
    """

    def __init__(
        self,
        message: str,
        reference: str | None = None,
        suggestion: str | None = None,
    ) -> None:
        """Initialize exception.

        Args:
            message: Error message
            reference: The file path or helper command that failed
            suggestion: Optional suggestion for resolution
        """
        self.reference = reference
        self.suggestion = suggestion

        full_message = message
        if reference:
            full_message = f"{message} (reference: {reference})"
        if suggestion:
            full_message = f"{full_message}\nSuggestion: {suggestion}"

        super().__init__(full_message)
        # Preserve original message (str(self) carries the decorated form)
        self.message = message


class ConfigurationError(RegistryAuthError):
    """The credential configuration document could not be loaded.

    Examples:
        - config.json does not exist or cannot be read
        - Invalid JSON syntax
        - Top-level value is not an object
        - The ``auths`` entry for the requested registry has an
          unexpected shape (e.g. it is not an object)
    """

    pass


class CredentialHelperError(RegistryAuthError):
    """A docker-credential helper could not produce credentials.

    This is the base class for helper-specific errors. Subclasses:
    - HelperNotFoundError: The helper executable could not be started
    - HelperTimeoutError: The helper did not finish within the deadline
    - HelperResponseError: The helper output is not a JSON object
    """

    pass


class HelperNotFoundError(CredentialHelperError):
    """Helper process could not be spawned."""

    pass


class HelperTimeoutError(CredentialHelperError):
    """Helper process exceeded the configured timeout and was killed."""

    pass


class HelperResponseError(CredentialHelperError):
    """Helper wrote something other than a JSON object to stdout."""

    pass
