"""In-memory auth stores."""

from __future__ import annotations

import asyncio
from dataclasses import replace
from typing import Any
from uuid import uuid4

from keytoken.clock import SystemClock
from keytoken.config import AuthConfig
from keytoken.exceptions import DuplicateAccount, PersistenceError, RotationConflict
from keytoken.interfaces.clock import Clock
from keytoken.records import KeyPair, SessionRecord


class MemoryAccountStore:
    def __init__(self, clock: Clock | None = None) -> None:
        self._lock = asyncio.Lock()
        self._clock = clock or SystemClock()
        self._accounts_by_email: dict[str, dict[str, Any]] = {}
        self._accounts_by_id: dict[str, dict[str, Any]] = {}

    async def get_by_email(self, email: str) -> dict | None:
        async with self._lock:
            account = self._accounts_by_email.get(email.lower())
            return dict(account) if account else None

    async def get_by_id(self, account_id: str) -> dict | None:
        async with self._lock:
            account = self._accounts_by_id.get(account_id)
            return dict(account) if account else None

    async def create_account(self, data: dict) -> dict:
        async with self._lock:
            email = data["email"].lower()
            if email in self._accounts_by_email:
                raise DuplicateAccount()
            payload = dict(data)
            payload["id"] = uuid4().hex
            payload["email"] = email
            payload["roles"] = list(payload.get("roles") or [])
            payload.setdefault("status", "active")
            payload["created_at"] = payload.get("created_at", self._clock.now())
            payload["updated_at"] = payload.get("updated_at", payload["created_at"])
            self._accounts_by_email[email] = payload
            self._accounts_by_id[payload["id"]] = payload
            return dict(payload)

    async def delete_account(self, account_id: str) -> None:
        async with self._lock:
            account = self._accounts_by_id.pop(account_id, None)
            if account:
                self._accounts_by_email.pop(account["email"], None)


class MemoryApiKeyStore:
    def __init__(self, clock: Clock | None = None) -> None:
        self._lock = asyncio.Lock()
        self._clock = clock or SystemClock()
        self._keys: dict[str, dict[str, Any]] = {}

    async def create(self, key: str, permissions: list[str]) -> dict:
        async with self._lock:
            record = {
                "id": uuid4().hex,
                "key": key,
                "permissions": list(permissions),
                "status": True,
                "created_at": self._clock.now(),
            }
            self._keys[key] = record
            return dict(record)

    async def find_by_key(self, key: str) -> dict | None:
        async with self._lock:
            record = self._keys.get(key)
            return dict(record) if record else None


class MemoryKeyTokenStore:
    """
    Session records indexed by id, by current refresh token and by used token.

    Every method runs entirely under one lock without awaiting anything else,
    so ``rotate`` is an atomic check-and-set.
    """

    def __init__(self, history_limit: int | None = None, clock: Clock | None = None) -> None:
        if history_limit is None:
            history_limit = AuthConfig.USED_TOKEN_HISTORY_LIMIT
        if history_limit < 1:
            raise ValueError("history_limit must be at least 1")
        self._lock = asyncio.Lock()
        self._clock = clock or SystemClock()
        self._history_limit = history_limit
        self._records: dict[str, SessionRecord] = {}
        self._by_current: dict[str, str] = {}
        self._by_used: dict[str, str] = {}

    async def create(self, owner_id: str, key_pair: KeyPair, refresh_token: str) -> SessionRecord:
        async with self._lock:
            if refresh_token in self._by_current or refresh_token in self._by_used:
                raise PersistenceError("Refresh token already registered")
            now = self._clock.now()
            record = SessionRecord(
                id=uuid4().hex,
                owner_id=owner_id,
                public_key=key_pair.public_key,
                private_key=key_pair.private_key,
                refresh_token=refresh_token,
                created_at=now,
                updated_at=now,
            )
            self._records[record.id] = record
            self._by_current[refresh_token] = record.id
            return record

    async def find_by_id(self, record_id: str) -> SessionRecord | None:
        async with self._lock:
            return self._records.get(record_id)

    async def find_by_owner(self, owner_id: str) -> list[SessionRecord]:
        async with self._lock:
            return [record for record in self._records.values() if record.owner_id == owner_id]

    async def find_by_current_token(self, token: str) -> SessionRecord | None:
        async with self._lock:
            record_id = self._by_current.get(token)
            return self._records.get(record_id) if record_id else None

    async def find_by_used_token(self, token: str) -> SessionRecord | None:
        async with self._lock:
            record_id = self._by_used.get(token)
            return self._records.get(record_id) if record_id else None

    async def rotate(self, record_id: str, expected_token: str, new_token: str) -> SessionRecord:
        async with self._lock:
            record = self._records.get(record_id)
            if record is None or record.refresh_token != expected_token:
                raise RotationConflict(record_id)
            if new_token in self._by_current or new_token in self._by_used:
                raise RotationConflict(record_id)

            used = record.refresh_tokens_used + (expected_token,)
            evicted, used = used[: -self._history_limit], used[-self._history_limit :]
            for token in evicted:
                self._by_used.pop(token, None)

            updated = replace(
                record,
                refresh_token=new_token,
                refresh_tokens_used=used,
                updated_at=self._clock.now(),
            )
            self._records[record_id] = updated
            del self._by_current[expected_token]
            self._by_current[new_token] = record_id
            self._by_used[expected_token] = record_id
            return updated

    async def delete_by_id(self, record_id: str) -> bool:
        async with self._lock:
            return self._drop(record_id)

    async def delete_by_owner(self, owner_id: str) -> int:
        async with self._lock:
            record_ids = [
                record.id for record in self._records.values() if record.owner_id == owner_id
            ]
            for record_id in record_ids:
                self._drop(record_id)
            return len(record_ids)

    def _drop(self, record_id: str) -> bool:
        record = self._records.pop(record_id, None)
        if record is None:
            return False
        self._by_current.pop(record.refresh_token, None)
        for token in record.refresh_tokens_used:
            self._by_used.pop(token, None)
        return True
