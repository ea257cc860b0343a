# vidnest/infra/jwt/unverified.py
"""Signature-less claim decoding, free of Flask so the async client can use it."""

from __future__ import annotations

import jwt

from vidnest.services._shared.dto import IdentityClaim


def decode_unverified(token: str | None) -> IdentityClaim | None:
    """
    Read the claim without checking the signature.

    For display only ("logged in as ..."); never use the result to grant access.
    """
    if not isinstance(token, str) or not token:
        return None
    try:
        decoded = jwt.decode(token, options={"verify_signature": False})
    except jwt.PyJWTError:
        return None
    if not isinstance(decoded, dict):
        return None
    return IdentityClaim.from_claims(decoded)
