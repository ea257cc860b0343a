"""Request gate: classify every incoming path and enforce bearer auth.

Runs as a ``before_request`` hook ahead of every route. Public paths pass
untouched; API paths require a verified access token; page paths get no
server-side enforcement (the UI redirects on its own). A deployment without a
signing secret sends every non-public path to the warning page.
"""

from __future__ import annotations

import enum
import logging

from flask import Flask, current_app, g, redirect, request
from werkzeug.wrappers import Response

from vidnest.core.errors import Unauthorized
from vidnest.core.extensions import get_token_codec
from vidnest.services._shared.ports import ACCESS_TOKEN_TYPE

log = logging.getLogger(__name__)

WARNING_PATH = "/warning"

PUBLIC_PAGE_PATHS = (
    "/login",
    WARNING_PATH,
    "/docs",
    "/static",
    "/favicon.ico",
    "/robots.txt",
    "/manifest.json",
    "/icons",
    "/logo.png",
    "/screenshot.png",
)

# Relative to API_BASE_PREFIX
PUBLIC_API_PATHS = (
    "/login",
    "/register",
    "/logout",
    "/refresh",
    "/cron",
    "/server-config",
    "/health",
    "/docs",
    "/image-proxy",
)

PROXY_API_PATH = "/proxy"


class Access(enum.Enum):
    """How the gate treats a path."""

    PUBLIC = "public"
    PROXY = "proxy"
    API = "api"
    PAGE = "page"


def _under(path: str, prefix: str) -> bool:
    prefix = prefix.rstrip("/")
    return path == prefix or path.startswith(prefix + "/")


def _mount_point(api_base: str) -> str:
    """Normalise ``API_BASE_PREFIX`` to ``/name`` form, or ``""`` for the root."""
    stripped = api_base.strip("/")
    return "/" + stripped if stripped else ""


def classify(path: str, api_base: str = "/api") -> Access:
    """Return the access class of ``path``.

    When the API is mounted at the root it owns the whole namespace: only
    ``/`` and the public page paths are pages, everything else is API.

    :param path: Request path, always starting with ``/``.
    :param api_base: Mount point of the JSON API.
    """
    base = _mount_point(api_base)
    if any(_under(path, p) for p in PUBLIC_PAGE_PATHS):
        return Access.PUBLIC
    if any(_under(path, base + p) for p in PUBLIC_API_PATHS):
        return Access.PUBLIC
    if _under(path, base + PROXY_API_PATH):
        return Access.PROXY
    if not base:
        return Access.PAGE if path == "/" else Access.API
    return Access.API if _under(path, base) else Access.PAGE


def bearer_token(header: str | None) -> str | None:
    """Extract the token from an ``Authorization: Bearer <token>`` header."""
    if not header:
        return None
    scheme, _, token = header.partition(" ")
    if scheme != "Bearer" or not token.strip():
        return None
    return token.strip()


def enforce() -> Response | None:
    """Gate the current request; return a response to short-circuit it.

    :raises Unauthorized: For API paths without a valid access token.
    """
    g.identity = None
    # CORS preflights never carry credentials.
    if request.method == "OPTIONS":
        return None

    access = classify(request.path, current_app.config.get("API_BASE_PREFIX", "/api"))
    if access is Access.PUBLIC:
        return None

    if not current_app.config.get("JWT_SECRET_KEY"):
        return redirect(WARNING_PATH, code=302)

    if access is Access.PAGE:
        return None

    token = bearer_token(request.headers.get("Authorization"))
    if token is None and access is Access.PROXY:
        token = request.args.get("token") or None

    claim = get_token_codec().verify(token, token_type=ACCESS_TOKEN_TYPE) if token else None
    if claim is None:
        log.info("gate.denied path=%s reason=%s", request.path, "missing" if token is None else "invalid")
        raise Unauthorized()

    g.identity = claim
    return None


def init_app(app: Flask) -> None:
    """Register the gate as a ``before_request`` hook."""

    app.before_request(enforce)


__all__ = ["Access", "bearer_token", "classify", "enforce", "init_app"]
