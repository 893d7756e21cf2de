"""Custom exceptions for Podtracks."""


class PodtracksError(Exception):
    """Base exception for all Podtracks errors."""

    pass


class ConfigError(PodtracksError):
    """Configuration-related errors."""

    pass


class InvalidConfigError(ConfigError):
    """Invalid configuration data."""

    pass


class EncryptionError(ConfigError):
    """Encryption/decryption errors."""

    pass


class ResolutionError(PodtracksError):
    """A single reference or feed could not be resolved."""

    pass


class NotFoundError(ResolutionError):
    """Feed or episode is absent from the source that was asked.

    Expected during normal operation: it triggers the next fallback or
    leaves the catalog entry as a placeholder.
    """

    pass


class MalformedInputError(ResolutionError):
    """Unparseable XML, markup or API payload."""

    pass


class NetworkError(PodtracksError):
    """Network-related errors that may succeed when tried again."""

    pass


class RateLimitedError(NetworkError):
    """Directory API answered HTTP 429."""

    def __init__(self, message: str, retry_after: float | None = None) -> None:
        super().__init__(message)
        self.retry_after = retry_after


class TransientNetworkError(NetworkError):
    """Timeout, connection failure or server-side error."""

    pass


class AuthError(PodtracksError):
    """Directory credentials rejected or missing.

    Fatal for a run: every subsequent call would fail the same way.
    """

    pass


class CatalogError(PodtracksError):
    """Catalog file read/write errors."""

    pass


class CatalogCorruptError(CatalogError):
    """Catalog file exists but cannot be parsed."""

    pass
