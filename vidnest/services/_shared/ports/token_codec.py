from __future__ import annotations

from datetime import timedelta
from typing import Protocol

from vidnest.services._shared.dto import IdentityClaim

ACCESS_TOKEN_TYPE = "access"
REFRESH_TOKEN_TYPE = "refresh"


class TokenCodec(Protocol):
    """
    Port for signing and verifying identity tokens.

    ``verify`` and ``decode_unverified`` return ``None`` for every expected
    invalid input (malformed, bad signature, expired); only infrastructure
    faults such as a missing signing secret raise.
    """

    def sign(
        self,
        claim: IdentityClaim,
        ttl: timedelta,
        *,
        token_type: str = ACCESS_TOKEN_TYPE,
    ) -> str: ...

    def verify(self, token: str, *, token_type: str | None = None) -> IdentityClaim | None: ...

    def decode_unverified(self, token: str) -> IdentityClaim | None: ...
