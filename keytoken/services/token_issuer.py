"""Access/refresh token pair issuance."""

from __future__ import annotations

from typing import Any
from uuid import uuid4

from keytoken.clock import SystemClock
from keytoken.config import AuthConfig
from keytoken.interfaces.clock import Clock
from keytoken.records import KeyPair, TokenPair
from keytoken.security import CredentialSigner

ACCESS_TOKEN_TYPE = "access"
REFRESH_TOKEN_TYPE = "refresh"


class TokenIssuer:
    def __init__(
        self,
        signer: CredentialSigner,
        clock: Clock | None = None,
        access_ttl_seconds: int | None = None,
        refresh_ttl_seconds: int | None = None,
    ) -> None:
        self._signer = signer
        self._clock = clock or SystemClock()
        if access_ttl_seconds is None:
            access_ttl_seconds = AuthConfig.ACCESS_TOKEN_EXPIRE_MINUTES * 60
        if refresh_ttl_seconds is None:
            refresh_ttl_seconds = AuthConfig.REFRESH_TOKEN_EXPIRE_DAYS * 86400
        self._access_ttl = access_ttl_seconds
        self._refresh_ttl = refresh_ttl_seconds

    def create_token_pair(self, claims: dict[str, Any], key_pair: KeyPair) -> TokenPair:
        """Sign an access and a refresh token for ``claims`` (``sub`` and ``email``)."""
        now = self._clock.now()
        access_token, access_exp = self._sign(claims, key_pair, ACCESS_TOKEN_TYPE, now, self._access_ttl)
        refresh_token, refresh_exp = self._sign(
            claims, key_pair, REFRESH_TOKEN_TYPE, now, self._refresh_ttl
        )
        return TokenPair(
            access_token=access_token,
            refresh_token=refresh_token,
            access_expires_at=access_exp,
            refresh_expires_at=refresh_exp,
        )

    def _sign(
        self,
        claims: dict[str, Any],
        key_pair: KeyPair,
        token_type: str,
        now: int,
        ttl: int,
    ) -> tuple[str, int]:
        expire = now + ttl
        payload: dict[str, Any] = {
            "sub": str(claims["sub"]),
            "email": claims.get("email"),
            "type": token_type,
            "iat": now,
            "exp": expire,
            "jti": uuid4().hex,
        }
        return self._signer.sign(payload, key_pair.private_key), expire
