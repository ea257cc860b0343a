"""Convenience exports for application schemas."""

from __future__ import annotations

from .auth import (
    ChangePasswordSchema,
    IdentitySchema,
    LocalLoginSchema,
    LoginSchema,
    RefreshSchema,
    SessionResponseSchema,
)

__all__ = [
    "ChangePasswordSchema",
    "IdentitySchema",
    "LocalLoginSchema",
    "LoginSchema",
    "RefreshSchema",
    "SessionResponseSchema",
]
