"""Provider error taxonomy.

Provider clients translate their transport errors into these classes. The
tree engine only distinguishes cancellation (asyncio.CancelledError, never
wrapped) from everything else.
"""


class ProviderError(Exception):
    """Base class for failures reported by a provider client."""

    pass


class AuthenticationError(ProviderError):
    """Credentials are missing or expired."""

    pass


class PermissionDeniedError(ProviderError):
    """Permission denied error."""

    pass


class QuotaExceededError(ProviderError):
    """API quota exceeded error."""

    pass


class NetworkError(ProviderError):
    """Network or connectivity error."""

    pass


class LoadTimeoutError(NetworkError):
    """A load did not finish within the configured timeout."""

    pass


class ResourceNotFoundError(ProviderError):
    """Resource not found error."""

    pass
