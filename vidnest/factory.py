"""Application factory wiring Flask extensions, the request gate and blueprints."""

from __future__ import annotations

import logging

from flask import Flask

from vidnest.core.config import BaseConfig, get_config
from vidnest.core.logger import configure_logging, init_app as init_logging

log = logging.getLogger(__name__)


def create_app(
    config: str | type[BaseConfig] | object | None = None,
    *,
    instance_relative_config: bool = True,
    instance_config_filename: str = "config.py",
) -> Flask:
    """Build and configure the Flask application."""

    app = Flask(__name__, instance_relative_config=instance_relative_config)

    app.config.from_object(get_config() if config is None else config)
    if instance_relative_config and instance_config_filename:
        app.config.from_pyfile(instance_config_filename, silent=True)

    configure_logging(app.config.get("LOG_LEVEL", "INFO"))

    if not app.config.get("JWT_SECRET_KEY"):
        log.error(
            "No token signing secret configured (set PASSWORD or JWT_SECRET_KEY); "
            "protected routes redirect to /warning and logins fail."
        )

    # ProxyFix + CORS
    from vidnest.core import middleware

    middleware.init_app(app)

    from vidnest.core import extensions

    extensions.init_app(app)

    init_logging(app)

    # Gate first, so it runs before any route
    from vidnest.api import init_app as init_api

    init_api(app)

    from vidnest.core import errors

    errors.init_app(app)

    from vidnest import cli as app_cli

    app_cli.init_app(app)

    return app
