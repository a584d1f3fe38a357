"""API key store interface."""

from __future__ import annotations

from typing import Protocol


class ApiKeyStore(Protocol):
    async def create(self, key: str, permissions: list[str]) -> dict:
        ...

    async def find_by_key(self, key: str) -> dict | None:
        ...
