# vidnest/infra/jwt/flask_jwt_token_codec.py
from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta
from typing import Any, cast

import jwt
from flask import current_app
from flask_jwt_extended.exceptions import JWTExtendedException

from vidnest.infra.jwt.unverified import decode_unverified
from vidnest.services._shared.dto import IdentityClaim
from vidnest.services._shared.errors import ConfigError
from vidnest.services._shared.ports import ACCESS_TOKEN_TYPE, REFRESH_TOKEN_TYPE, TokenCodec


@dataclass(slots=True)
class JWTTokenCodec(TokenCodec):
    """
    Token codec backed by Flask-JWT-Extended (HS256).

    .. note::
       ``sign`` and ``verify`` require an active Flask app context with the
       ``JWTManager`` initialized. ``decode_unverified`` does not.
    """

    def _ensure_secret(self) -> None:
        # Flask-JWT-Extended silently falls back to SECRET_KEY; refuse instead.
        if not current_app.config.get("JWT_SECRET_KEY"):
            raise ConfigError()

    def sign(
        self,
        claim: IdentityClaim,
        ttl: timedelta,
        *,
        token_type: str = ACCESS_TOKEN_TYPE,
    ) -> str:
        """
        Encode ``claim`` with issued-at, expiry and a random ``jti``.

        :param claim: Identity to embed.
        :param ttl: Lifetime of the token.
        :param token_type: ``"access"`` or ``"refresh"``.
        :returns: Encoded JWT.
        :raises ConfigError: If no signing secret is configured.
        """
        from flask_jwt_extended import create_access_token, create_refresh_token

        self._ensure_secret()
        if token_type == ACCESS_TOKEN_TYPE:
            token = create_access_token(
                identity=claim.subject,
                additional_claims=claim.to_claims(),
                expires_delta=ttl,
            )
        elif token_type == REFRESH_TOKEN_TYPE:
            token = create_refresh_token(
                identity=claim.subject,
                additional_claims=claim.to_claims(),
                expires_delta=ttl,
            )
        else:
            raise ValueError(f"Unknown token type: {token_type!r}")
        return cast(str, token)

    def verify(self, token: str, *, token_type: str | None = None) -> IdentityClaim | None:
        """
        Check signature and expiry and return the embedded claim.

        :param token: Encoded JWT.
        :param token_type: When given, tokens of another type are rejected.
        :returns: The claim, or ``None`` for any invalid token.
        :raises ConfigError: If no signing secret is configured.
        """
        from flask_jwt_extended import decode_token

        self._ensure_secret()
        if not isinstance(token, str) or not token:
            return None
        try:
            decoded = cast(dict[str, Any], decode_token(token))
        except (jwt.PyJWTError, JWTExtendedException):
            return None
        if token_type is not None and decoded.get("type") != token_type:
            return None
        return IdentityClaim.from_claims(decoded)

    @staticmethod
    def decode_unverified(token: str) -> IdentityClaim | None:
        """Read the claim without checking the signature (display only)."""
        return decode_unverified(token)
