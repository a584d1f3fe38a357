"""Auth dependency helpers."""

from __future__ import annotations

from functools import lru_cache
from typing import Any

from fastapi import Depends, Header, HTTPException

from keytoken.config import AuthConfig
from keytoken.exceptions import AuthException
from keytoken.security import BcryptPasswordHasher, CredentialSigner
from keytoken.services.auth_service import AuthService
from keytoken.stores.memory_store import MemoryAccountStore, MemoryApiKeyStore, MemoryKeyTokenStore
from keytoken.stores.sql_store import SqlAccountStore, SqlApiKeyStore, SqlKeyTokenStore


@lru_cache(maxsize=None)
def _get_stores(store_kind: str) -> tuple[Any, Any, Any]:
    """Account, key token and api key stores for the configured backend."""
    if store_kind == "sql":
        return SqlAccountStore(), SqlKeyTokenStore(), SqlApiKeyStore()
    # Fallback to memory store for development/testing
    return MemoryAccountStore(), MemoryKeyTokenStore(), MemoryApiKeyStore()


def get_auth_service() -> AuthService:
    accounts, key_tokens, api_keys = _get_stores(AuthConfig.AUTH_STORE)
    return AuthService(
        account_store=accounts,
        key_token_store=key_tokens,
        api_key_store=api_keys,
        password_hasher=BcryptPasswordHasher(),
        signer=CredentialSigner(),
    )


def _bearer_token(authorization: str | None) -> str | None:
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token:
        return None
    return token.strip()


async def get_current_session(
    client_id: str | None = Header(default=None, alias=AuthConfig.CLIENT_ID_HEADER),
    authorization: str | None = Header(default=None),
    auth_service: AuthService = Depends(get_auth_service),
) -> dict:
    access_token = _bearer_token(authorization)
    if not client_id or not access_token:
        raise HTTPException(status_code=401, detail="Not authenticated")
    try:
        return await auth_service.authenticate(client_id, access_token)
    except AuthException as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.message) from exc
