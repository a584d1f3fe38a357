"""
Refresh token rotation with reuse detection.

Every refresh token can be exchanged exactly once. Presenting a token that
was already rotated out, or losing the race to rotate the same token, is
treated as theft: the owner's sessions are revoked and the caller must sign
in again.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from keytoken.config import AuthConfig
from keytoken.exceptions import InvalidToken, ReuseDetected, RotationConflict, TokenVerificationError
from keytoken.interfaces.account_store import AccountStore
from keytoken.interfaces.key_token_store import KeyTokenStore
from keytoken.records import SessionRecord
from keytoken.security import CredentialSigner
from keytoken.services.token_issuer import REFRESH_TOKEN_TYPE, TokenIssuer

logger = logging.getLogger(__name__)


def public_account(account: dict[str, Any]) -> dict[str, Any]:
    return {"id": account["id"], "name": account.get("name"), "email": account["email"]}


class RefreshTokenRotation:
    def __init__(
        self,
        key_token_store: KeyTokenStore,
        account_store: AccountStore,
        issuer: TokenIssuer,
        signer: CredentialSigner,
        revoke_all_on_reuse: bool | None = None,
    ) -> None:
        self._key_tokens = key_token_store
        self._accounts = account_store
        self._issuer = issuer
        self._signer = signer
        self._revoke_all_on_reuse = (
            AuthConfig.REVOKE_ALL_ON_REUSE if revoke_all_on_reuse is None else revoke_all_on_reuse
        )

    async def rotate(self, refresh_token: str) -> dict[str, Any]:
        used_by = await self._key_tokens.find_by_used_token(refresh_token)
        if used_by is not None:
            await self._revoke(used_by, reason="rotated-out token presented")
            raise ReuseDetected()

        record = await self._key_tokens.find_by_current_token(refresh_token)
        if record is None:
            logger.info("Refresh rejected: token does not belong to any session")
            raise InvalidToken("Invalid refresh token")

        try:
            claims = await asyncio.to_thread(self._signer.verify, refresh_token, record.public_key)
        except TokenVerificationError as exc:
            logger.info("Refresh rejected for session %s: %s", record.id, type(exc).__name__)
            raise InvalidToken("Invalid refresh token") from exc

        if claims.get("type") != REFRESH_TOKEN_TYPE or claims.get("sub") != record.owner_id:
            logger.info("Refresh rejected for session %s: unexpected claims", record.id)
            raise InvalidToken("Invalid refresh token")

        account = await self._accounts.get_by_id(record.owner_id)
        if account is None:
            await self._key_tokens.delete_by_id(record.id)
            logger.info("Refresh rejected: owner of session %s no longer exists", record.id)
            raise InvalidToken("Invalid refresh token")

        tokens = await asyncio.to_thread(
            self._issuer.create_token_pair,
            {"sub": account["id"], "email": account["email"]},
            record.key_pair,
        )

        try:
            await self._key_tokens.rotate(record.id, refresh_token, tokens.refresh_token)
        except RotationConflict:
            await self._revoke(record, reason="concurrent rotation of the same token")
            raise ReuseDetected()

        logger.debug("Rotated refresh token for session %s", record.id)
        return {"user": public_account(account), "tokens": tokens, "session_id": record.id}

    async def _revoke(self, record: SessionRecord, reason: str) -> None:
        if self._revoke_all_on_reuse:
            revoked = await self._key_tokens.delete_by_owner(record.owner_id)
        else:
            revoked = int(await self._key_tokens.delete_by_id(record.id))
        logger.warning(
            "Refresh token reuse detected for owner %s (%s); revoked %d session(s)",
            record.owner_id,
            reason,
            revoked,
        )
