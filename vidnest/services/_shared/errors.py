"""
Domain-level exceptions used within the service layer.

These exceptions are **framework-agnostic** and should never import or depend
on Flask or HTTP directly. They serve as stable contracts between the token
infrastructure, the user store and the application services.

The translation to HTTP responses (RFC 7807) is handled by
``vidnest/core/errors.py`` via ``BaseService.translate_exceptions()``.
"""

from __future__ import annotations

# --------------------------------------------------------------------------- #
# Base types
# --------------------------------------------------------------------------- #


class ServiceError(Exception):
    """
    Base class for all service-level errors.

    Notes
    -----
    - These are *not* HTTP errors.
    - The API layer translates them to ``APIError`` through ``BaseService``.
    """

    pass


# --------------------------------------------------------------------------- #
# Specific domain-level errors
# --------------------------------------------------------------------------- #


class ConfigError(ServiceError):
    """
    Raised when the deployment lacks configuration required to operate safely.

    The canonical case is a missing token signing secret: the service must
    fail closed instead of issuing unsigned tokens.
    """

    def __init__(self, message: str = "Token signing secret is not configured") -> None:
        super().__init__(message)


class InvalidCredentials(ServiceError):
    """
    Raised by login when the credentials are rejected.

    The client-facing message is always the same; ``reason`` is kept for server-side logs
    only (``unknown_user``, ``bad_password``, ``banned``...).

    :param reason: Internal classification of the failure.
    :type reason: str
    """

    def __init__(self, reason: str = "bad_password") -> None:
        super().__init__("Invalid username or password")
        self.reason = reason


class InvalidToken(ServiceError):
    """
    Raised when a refresh token cannot be honored.

    Registry misses and signature failures share the same outward message;
    ``reason`` (``registry_miss`` or ``signature``) is only logged.

    :param reason: Internal classification of the failure.
    :type reason: str
    """

    def __init__(self, reason: str = "registry_miss") -> None:
        super().__init__("Refresh token is invalid or expired")
        self.reason = reason


class MalformedRequest(ServiceError):
    """Raised when required input fields are missing or have the wrong type."""

    def __init__(self, message: str = "Malformed request") -> None:
        super().__init__(message)


class ForbiddenError(ServiceError):
    """Raised when an authenticated identity may not perform an operation."""

    def __init__(self, message: str = "Forbidden") -> None:
        super().__init__(message)
