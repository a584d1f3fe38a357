"""Core auth service: sign-up, sign-in, refresh and logout."""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from keytoken.clock import SystemClock
from keytoken.config import AuthConfig
from keytoken.exceptions import DuplicateAccount, InvalidCredentials, InvalidToken, TokenVerificationError
from keytoken.interfaces.account_store import AccountStore
from keytoken.interfaces.api_key_store import ApiKeyStore
from keytoken.interfaces.clock import Clock
from keytoken.interfaces.key_token_store import KeyTokenStore
from keytoken.interfaces.password_hasher import PasswordHasher
from keytoken.security import CredentialSigner, generate_api_key
from keytoken.services.rotation import RefreshTokenRotation, public_account
from keytoken.services.token_issuer import ACCESS_TOKEN_TYPE, TokenIssuer

logger = logging.getLogger(__name__)


class AuthService:
    """
    Session lifecycle for principals.

    Holds only its collaborators; all session state lives in the key token store.
    """

    def __init__(
        self,
        account_store: AccountStore,
        key_token_store: KeyTokenStore,
        api_key_store: ApiKeyStore,
        password_hasher: PasswordHasher,
        signer: CredentialSigner,
        clock: Clock | None = None,
        access_ttl_seconds: int | None = None,
        refresh_ttl_seconds: int | None = None,
        revoke_all_on_reuse: bool | None = None,
    ) -> None:
        self._accounts = account_store
        self._key_tokens = key_token_store
        self._api_keys = api_key_store
        self._passwords = password_hasher
        self._signer = signer
        self._issuer = TokenIssuer(
            signer,
            clock=clock or SystemClock(),
            access_ttl_seconds=access_ttl_seconds,
            refresh_ttl_seconds=refresh_ttl_seconds,
        )
        self._rotation = RefreshTokenRotation(
            key_token_store,
            account_store,
            self._issuer,
            signer,
            revoke_all_on_reuse=revoke_all_on_reuse,
        )

    async def sign_up(self, name: str, email: str, password: str) -> dict[str, Any]:
        existing = await self._accounts.get_by_email(email)
        if existing:
            raise DuplicateAccount()

        hashed_password = await asyncio.to_thread(self._passwords.hash, password)
        account = await self._accounts.create_account(
            {
                "name": name,
                "email": email,
                "hashed_password": hashed_password,
                "roles": list(AuthConfig.DEFAULT_ROLES),
                "status": "active",
            }
        )
        session = await self._open_session(account)

        api_key = await self._api_keys.create(
            generate_api_key(), list(AuthConfig.DEFAULT_API_KEY_PERMISSIONS)
        )
        logger.info("Registered account %s", account["id"])
        return {
            **session,
            "api_key": {
                "key": api_key["key"],
                "permissions": api_key["permissions"],
                "status": api_key["status"],
            },
        }

    async def sign_in(self, email: str, password: str) -> dict[str, Any]:
        account = await self._accounts.get_by_email(email)
        if not account:
            logger.debug("Sign-in failed: no account for the given email")
            raise InvalidCredentials()

        matches = await asyncio.to_thread(
            self._passwords.compare, password, account.get("hashed_password") or ""
        )
        if not matches:
            logger.debug("Sign-in failed for account %s: wrong password", account["id"])
            raise InvalidCredentials()

        if account.get("status", "active") != "active":
            logger.debug("Sign-in failed for account %s: status %s", account["id"], account["status"])
            raise InvalidCredentials()

        return await self._open_session(account)

    async def refresh_token(self, refresh_token: str) -> dict[str, Any]:
        return await self._rotation.rotate(refresh_token)

    async def logout(self, session_id: str) -> None:
        deleted = await self._key_tokens.delete_by_id(session_id)
        if deleted:
            logger.info("Session %s logged out", session_id)

    async def authenticate(self, session_id: str, access_token: str) -> dict[str, Any]:
        """Check an access token against the key pair of the session it claims."""
        record = await self._key_tokens.find_by_id(session_id)
        if record is None:
            raise InvalidToken("Unknown session")
        try:
            claims = await asyncio.to_thread(self._signer.verify, access_token, record.public_key)
        except TokenVerificationError as exc:
            raise InvalidToken("Invalid access token") from exc
        if claims.get("type") != ACCESS_TOKEN_TYPE or claims.get("sub") != record.owner_id:
            raise InvalidToken("Invalid access token")
        return {"user_id": record.owner_id, "email": claims.get("email"), "session_id": record.id}

    async def _open_session(self, account: dict[str, Any]) -> dict[str, Any]:
        key_pair = await asyncio.to_thread(self._signer.generate_key_pair)
        tokens = await asyncio.to_thread(
            self._issuer.create_token_pair,
            {"sub": account["id"], "email": account["email"]},
            key_pair,
        )
        record = await self._key_tokens.create(account["id"], key_pair, tokens.refresh_token)
        return {"user": public_account(account), "tokens": tokens, "session_id": record.id}
