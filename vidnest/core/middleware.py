"""WSGI proxy and CORS configuration helpers."""

from __future__ import annotations

from flask import Flask
from flask_cors import CORS
from werkzeug.middleware.proxy_fix import ProxyFix


def init_app(app: Flask) -> None:
    """Apply ``ProxyFix`` (when ``USE_PROXYFIX``) and the API CORS policy.

    Parameters
    ----------
    app: flask.Flask
        Application to configure. ``ProxyFix`` trusts a single hop for
        ``X-Forwarded-*`` headers. CORS covers ``{API_BASE_PREFIX}/*``; bearer
        tokens travel in the ``Authorization`` header, never in cookies, so
        credentials support stays off and a wildcard origin is safe.
    """
    if app.config.get("USE_PROXYFIX", True):
        app.wsgi_app = ProxyFix(app.wsgi_app, x_for=1, x_proto=1, x_host=1, x_prefix=1)

    raw_origins = app.config.get("CORS_ORIGINS", "") or ""
    origins = [o.strip() for o in raw_origins.split(",") if o.strip()]
    api_base = app.config.get("API_BASE_PREFIX", "/api").rstrip("/")

    CORS(
        app,
        resources={rf"{api_base}/*": {"origins": origins if origins and origins != ["*"] else "*"}},
        allow_headers=["Authorization", "Content-Type", "X-Request-ID"],
        expose_headers=["X-Request-ID"],
        supports_credentials=False,
        max_age=app.config.get("CORS_MAX_AGE", 600),
    )
