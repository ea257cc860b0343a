"""Service layer public API.

Re-exports
----------
- Base primitives (from ``vidnest.services._shared.base``)
    * :class:`BaseService`
    * :class:`ServiceContext`

- Auth service (from ``vidnest.services.auth``)
    * :class:`AuthService`
    * DTOs: :class:`LoginIn`, :class:`RefreshIn`, :class:`LogoutIn`,
      :class:`ChangePasswordIn`, :class:`SessionOut`, :class:`AuthTokenConfig`
"""

from __future__ import annotations

from vidnest.services._shared.base import BaseService, ServiceContext
from vidnest.services.auth.dto import (
    AuthTokenConfig,
    ChangePasswordIn,
    LoginIn,
    LogoutIn,
    RefreshIn,
    SessionOut,
)
from vidnest.services.auth.service import AuthService

__all__ = [
    "BaseService",
    "ServiceContext",
    "AuthService",
    "AuthTokenConfig",
    "ChangePasswordIn",
    "LoginIn",
    "LogoutIn",
    "RefreshIn",
    "SessionOut",
]
