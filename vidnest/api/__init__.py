"""API blueprint package and request gate registration."""

from __future__ import annotations

from collections.abc import Iterable

from flask import Blueprint, Flask


def register_blueprint_group(
    app: Flask,
    *,
    base_prefix: str,
    entries: Iterable[Blueprint],
) -> None:
    """Register related blueprints beneath a common prefix.

    Parameters
    ----------
    app:
        Application instance receiving the blueprints.
    base_prefix:
        Mount point shared by all entries, such as ``"/api"``. An empty or
        ``"/"`` prefix mounts at the root.
    entries:
        Blueprints to register.
    """

    prefix = "/" + base_prefix.strip("/") if base_prefix.strip("/") else None
    for bp in entries:
        app.register_blueprint(bp, url_prefix=prefix)


def init_app(app: Flask) -> None:
    """Install the request gate, then the JSON API and page blueprints."""

    from vidnest.api import auth, gate, health, pages

    gate.init_app(app)

    api_base = app.config.get("API_BASE_PREFIX", "/api")
    register_blueprint_group(app, base_prefix=api_base, entries=(auth.bp, health.bp))
    register_blueprint_group(app, base_prefix="", entries=(pages.bp,))


__all__ = ["init_app", "register_blueprint_group"]
