"""Shared API helpers for request parsing and cross-cutting concerns."""

from __future__ import annotations

import functools
import time
from collections.abc import Callable, Mapping
from typing import Any, TypeVar

from flask import Response, current_app, g, jsonify, request

from vidnest.core.errors import Unauthorized
from vidnest.core.extensions import get_refresh_registry, get_token_codec, get_user_store
from vidnest.core.logger import ensure_request_id
from vidnest.services import AuthService, AuthTokenConfig, ServiceContext
from vidnest.services._shared.dto import IdentityClaim

F = TypeVar("F", bound=Callable[..., Any])


def token_config(config: Mapping[str, Any]) -> AuthTokenConfig:
    """Build the service-level token configuration from Flask config."""

    return AuthTokenConfig(
        access_expires=config["ACCESS_TOKEN_TTL"],
        refresh_expires=config["REFRESH_TOKEN_TTL"],
        rotation_threshold=config["REFRESH_ROTATION_THRESHOLD"],
        storage_type=str(config.get("STORAGE_TYPE", "localstorage")),
        owner_username=config.get("OWNER_USERNAME"),
        owner_password=config.get("OWNER_PASSWORD"),
    )


def build_auth_service() -> AuthService:
    """Return an :class:`AuthService` wired to the current application."""

    return AuthService(
        token_codec=get_token_codec(),
        registry=get_refresh_registry(),
        user_store=get_user_store(),
        token_cfg=token_config(current_app.config),
        ctx=ServiceContext(identity=g.get("identity"), request_id=ensure_request_id()),
    )


def current_identity() -> IdentityClaim:
    """Return the claim verified by the request gate.

    :raises Unauthorized: When the request carries no verified identity.
    """

    identity = g.get("identity")
    if identity is None:
        raise Unauthorized()
    return identity


def require_auth(func: F) -> F:
    """Ensure the request gate attached a verified identity."""

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any):
        current_identity()
        return func(*args, **kwargs)

    return wrapper  # type: ignore[return-value]


def json_body() -> Any:
    """Return the parsed JSON body, or an empty dict for missing/invalid JSON."""

    payload = request.get_json(silent=True)
    return {} if payload is None else payload


def json_response(payload: Any, *, status: int = 200) -> Response:
    """Return a JSON response enforcing a consistent MIME type."""

    response = jsonify(payload)
    response.status_code = status
    return response


def timing(func: F) -> F:
    """Decorator capturing handler execution time in milliseconds."""

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any):
        start = time.perf_counter()
        try:
            return func(*args, **kwargs)
        finally:
            elapsed_ms = (time.perf_counter() - start) * 1000
            request_endpoint = getattr(request, "endpoint", None)
            current_app.logger.debug(
                "request.elapsed",
                extra={"endpoint": request_endpoint, "elapsed_ms": round(elapsed_ms, 2)},
            )

    return wrapper  # type: ignore[return-value]
