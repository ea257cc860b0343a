"""Authentication-related Marshmallow schemas.

Keys are camelCase on the wire; Python attributes stay snake_case through
``data_key``.
"""

from __future__ import annotations

from typing import Any

from marshmallow import EXCLUDE, Schema, fields, post_dump, validate


class _InputSchema(Schema):
    """Base for request bodies; unknown keys are ignored rather than rejected."""

    class Meta:
        unknown = EXCLUDE


class LocalLoginSchema(_InputSchema):
    """Input payload for single-password (local) mode."""

    password = fields.String(required=True, validate=validate.Length(min=1))


class LoginSchema(_InputSchema):
    """Input payload for account mode."""

    username = fields.String(required=True, validate=validate.Length(min=1, max=64))
    password = fields.String(required=True, validate=validate.Length(min=1))


class RefreshSchema(_InputSchema):
    """Input payload for minting a new access token."""

    refresh_token = fields.String(
        required=True,
        data_key="refreshToken",
        validate=validate.Length(min=1),
    )


class ChangePasswordSchema(_InputSchema):
    """Input payload for changing the caller's own password."""

    new_password = fields.String(
        required=True,
        data_key="newPassword",
        validate=validate.Length(min=1, max=128),
    )


class SessionResponseSchema(Schema):
    """Response payload for login and refresh."""

    ok = fields.Constant(True)
    access_token = fields.String(data_key="accessToken")
    refresh_token = fields.String(data_key="refreshToken", allow_none=True)
    expires_at = fields.Integer(data_key="expires_in")
    role = fields.String()
    username = fields.String(allow_none=True)

    @post_dump
    def drop_absent(self, data: dict[str, Any], **_: Any) -> dict[str, Any]:
        # An unrotated refresh and local-mode sessions omit the key entirely.
        return {key: value for key, value in data.items() if value is not None}


class IdentitySchema(Schema):
    """Response payload describing the verified caller."""

    role = fields.String(required=True)
    kind = fields.String(required=True)
    username = fields.String(allow_none=True)
