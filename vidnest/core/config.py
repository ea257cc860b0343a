"""Application settings with environment-based simple classes."""

from __future__ import annotations

import os
from collections.abc import Mapping
from datetime import timedelta
from typing import Final

from dotenv import load_dotenv

# Public selector env var (keep neutral name to avoid collisions)
ENV_VAR: Final[str] = "APP_ENV"  # 'development' | 'testing' | 'production'

# Load .env in development (no-op when absent)
load_dotenv()


def env_bool(name: str, default: bool = False) -> bool:
    """Parse a boolean flag from an environment variable.

    Parameters
    ----------
    name: str
        Environment variable to inspect.
    default: bool, optional
        Value returned when the variable is unset. Defaults to ``False``.

    Returns
    -------
    bool
        ``True`` if the value resembles ``{"1", "true", "yes", "y", "on"}``
        ignoring case; otherwise ``False`` or ``default`` when missing.
    """
    val = os.getenv(name)
    if val is None:
        return default
    return str(val).strip().lower() in {"1", "true", "yes", "y", "on"}


def env_seconds(name: str, default: int) -> int:
    """Parse a positive integer number of seconds, falling back to ``default``."""
    val = os.getenv(name)
    if val is None or not val.strip().isdigit():
        return default
    return max(1, int(val))


class BaseConfig:
    """Base configuration shared across environments.

    Attributes
    ----------
    API_BASE_PREFIX: str
        Root path for registering API blueprints.
    STORAGE_TYPE: str
        ``"localstorage"`` for single-password mode, ``"redis"`` for accounts.
    OWNER_USERNAME: str | None
        Site owner account (``OWNER_USERNAME``, falling back to ``USERNAME``).
    OWNER_PASSWORD: str | None
        Site password in local mode, owner password in account mode.
    JWT_SECRET_KEY: str | None
        Token signing secret (``JWT_SECRET_KEY``, falling back to ``PASSWORD``).
        ``None`` means the deployment is insecure: protected routes redirect
        to the warning page and no token is ever signed.
    ACCESS_TOKEN_TTL / REFRESH_TOKEN_TTL: timedelta
        Token lifetimes (1 hour / 30 days).
    REFRESH_ROTATION_THRESHOLD: timedelta
        Refresh tokens with less remaining lifetime are rotated (7 days).
    REFRESH_SWEEP_INTERVAL: int
        Seconds between two sweeps of expired refresh tokens.
    REDIS_URL: str | None
        Redis connection string for the account store.
    LOG_LEVEL: str
        Root logging verbosity (``INFO`` by default).
    CORS_ORIGINS: str
        Comma-separated list of allowed origins for CORS.

    Notes
    -----
    Values are primarily sourced from environment variables, enabling
    configuration without code changes.
    """

    API_BASE_PREFIX = "/api"
    APP_VERSION = os.getenv("APP_VERSION", "dev")
    SITE_NAME = os.getenv("SITE_NAME", "VidNest")

    # Secrets / credentials
    SECRET_KEY = os.getenv("SECRET_KEY") or os.getenv("PASSWORD")
    OWNER_USERNAME = os.getenv("OWNER_USERNAME") or os.getenv("USERNAME")
    OWNER_PASSWORD = os.getenv("PASSWORD")
    JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY") or os.getenv("PASSWORD")
    JWT_ALGORITHM = "HS256"
    JWT_TOKEN_LOCATION = ["headers"]

    # Token lifecycle
    ACCESS_TOKEN_TTL = timedelta(hours=1)
    REFRESH_TOKEN_TTL = timedelta(days=30)
    REFRESH_ROTATION_THRESHOLD = timedelta(days=7)
    REFRESH_SWEEP_INTERVAL = env_seconds("REFRESH_SWEEP_INTERVAL", 60 * 60)

    # Storage
    STORAGE_TYPE = os.getenv("STORAGE_TYPE", "localstorage").strip().lower()
    REDIS_URL = os.getenv("REDIS_URL")

    # Flask & JSON
    JSON_SORT_KEYS = False
    PROPAGATE_EXCEPTIONS = False

    # Logging & CORS
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
    CORS_ORIGINS = os.getenv("CORS_ORIGINS", "*")
    USE_PROXYFIX = env_bool("USE_PROXYFIX", True)

    # Flask built-ins
    DEBUG = False
    TESTING = False


class DevelopmentConfig(BaseConfig):
    """Configuration tailored for local development."""

    DEBUG = env_bool("FLASK_DEBUG", True)
    CORS_MAX_AGE = 600  # 10 minutes


class TestingConfig(BaseConfig):
    """Configuration for automated test runs.

    Notes
    -----
    - Forces ``TESTING`` mode and disables debug logs.
    - Uses fixed credentials so tests never depend on the host environment.
    - Propagates exceptions so pytest can surface tracebacks directly.
    """

    TESTING = True
    DEBUG = False
    SECRET_KEY = "testing-secret"
    JWT_SECRET_KEY = "testing-jwt-secret-with-32-plus-bytes"
    OWNER_USERNAME = "owner"
    OWNER_PASSWORD = "owner-pass"
    STORAGE_TYPE = "localstorage"
    REDIS_URL = None
    PROPAGATE_EXCEPTIONS = True
    USE_PROXYFIX = False


class ProductionConfig(BaseConfig):
    """Configuration defaults for production deployments.

    Notes
    -----
    Keeps debug disabled while relying on WSGI-level log configuration for
    noise control.
    """

    DEBUG = False
    PROPAGATE_EXCEPTIONS = False


# Map names -> classes (simple, explicit)
CONFIG_MAP: Mapping[str, type[BaseConfig]] = {
    "development": DevelopmentConfig,
    "testing": TestingConfig,
    "production": ProductionConfig,
}


def get_config() -> type[BaseConfig]:
    """Return the configuration class inferred from ``APP_ENV``.

    Returns
    -------
    type[BaseConfig]
        Class to pass to :meth:`flask.Config.from_object`.

    Notes
    -----
    Falls back to :class:`DevelopmentConfig` when ``APP_ENV`` is unset or
    unknown.
    """
    name = os.getenv(ENV_VAR, "development").strip().lower()
    return CONFIG_MAP.get(name, DevelopmentConfig)
