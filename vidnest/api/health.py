"""Public operational endpoints."""

from __future__ import annotations

from flask import Blueprint, current_app

from vidnest.api.deps import json_response, timing
from vidnest.core.extensions import get_refresh_registry, get_user_store

bp = Blueprint("health", __name__)


@bp.get("/health")
@timing
def health():
    """Report liveness plus user store connectivity."""

    store_ok = get_user_store().ping()
    body = {
        "status": "ok" if store_ok else "degraded",
        "version": current_app.config.get("APP_VERSION"),
        "checks": {
            "user_store": "ok" if store_ok else "unreachable",
            "signing_secret": bool(current_app.config.get("JWT_SECRET_KEY")),
            "active_refresh_tokens": get_refresh_registry().count(),
        },
    }
    return json_response(body, status=200 if store_ok else 503)


@bp.get("/server-config")
@timing
def server_config():
    """Expose the settings the UI needs before login."""

    return json_response(
        {
            "SiteName": current_app.config.get("SITE_NAME"),
            "StorageType": current_app.config.get("STORAGE_TYPE"),
            "Version": current_app.config.get("APP_VERSION"),
        }
    )
