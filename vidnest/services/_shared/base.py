# vidnest/services/_shared/base.py
from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime

from vidnest.core import errors as api_errors
from vidnest.services._shared.dto import IdentityClaim
from vidnest.services._shared.errors import (
    ConfigError,
    ForbiddenError,
    InvalidCredentials,
    InvalidToken,
    MalformedRequest,
    ServiceError,
)


@dataclass(slots=True)
class ServiceContext:
    """
    Carry cross-cutting request-scoped data (auth, request ids, etc.).

    :param identity: Verified identity of the caller, when authenticated.
    :param request_id: Correlation id for logging/tracing.
    """

    identity: IdentityClaim | None = None
    request_id: str | None = None


class BaseService:
    """
    Base class for application services.

    Responsibilities
    ----------------
    * Centralize error translation.
    * Provide a single UTC clock so time can be frozen in tests.
    * Keep services thin, orchestration-only, no web leakage.
    """

    def __init__(self, *, ctx: ServiceContext | None = None) -> None:
        """
        Initialize the base service.

        :param ctx: Optional request-scoped context (auth, tracing).
        :type ctx: ServiceContext | None
        """
        self.ctx = ctx or ServiceContext()

    @staticmethod
    def now_utc() -> datetime:
        return datetime.now(UTC)

    # -------------------------- Error handling ------------------------------

    @staticmethod
    def translate_exceptions(exc: Exception) -> Exception:
        """
        Map domain/service-level errors to API-level (HTTP) errors.

        :param exc: Exception raised within the service.
        :type exc: Exception
        :returns: Translated exception ready to be re-raised.
        :rtype: Exception
        """
        if isinstance(exc, InvalidCredentials | InvalidToken):
            # → 401, same outward shape whatever check failed
            return api_errors.Unauthorized(str(exc))

        if isinstance(exc, MalformedRequest):
            return api_errors.MalformedRequestError(str(exc))

        if isinstance(exc, ForbiddenError):
            return api_errors.Forbidden(str(exc))

        if isinstance(exc, ConfigError):
            return api_errors.APIError(
                message=str(exc),
                status_code=500,
                code="config_error",
            )

        # Any other ServiceError subclass → 400 Bad Request
        if isinstance(exc, ServiceError):
            return api_errors.APIError(
                message=str(exc),
                status_code=400,
                code="bad_request",
            )

        # Fallback: return untouched (will bubble up to Flask handler)
        return exc
