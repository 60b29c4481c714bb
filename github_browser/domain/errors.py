"""Exception hierarchy shared by all layers."""
from typing import Optional


class GitHubBrowserError(Exception):
    """Base exception for all application errors."""
    pass


class FeedError(GitHubBrowserError):
    """A fetch failed in a way the user should see."""
    pass


class TransportError(FeedError):
    """Connectivity, timeout or HTTP status failure."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(message)


class RateLimitException(TransportError):
    """Exception raised when rate limit is hit."""
    pass


class NotFoundError(TransportError):
    """The requested resource does not exist."""

    def __init__(self, message: str):
        super().__init__(message, status_code=404)


class DecodeError(FeedError):
    """The response body did not have the expected shape."""
    pass


class AuthError(GitHubBrowserError):
    pass


class InvalidCredentialsError(AuthError):
    pass


class NotAuthenticatedError(AuthError):
    pass


class BiometricUnavailableError(AuthError):
    pass


class BiometricAuthenticationError(AuthError):
    pass


class RegistrationError(AuthError):
    """Registration rejected. ``reason`` is a stable code for the UI."""

    USERNAME_EMPTY = "username_empty"
    PASSWORD_EMPTY = "password_empty"
    PASSWORD_TOO_SHORT = "password_too_short"
    CONFIRM_PASSWORD_EMPTY = "confirm_password_empty"
    PASSWORD_MISMATCH = "password_mismatch"
    USERNAME_EXISTS = "username_exists"
    FAILED = "failed"

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"Registration failed: {reason}")


class StorageError(GitHubBrowserError):
    pass
