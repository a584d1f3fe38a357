"""Key token store interface: one record per signed-in session."""

from __future__ import annotations

from typing import Protocol

from keytoken.records import KeyPair, SessionRecord


class KeyTokenStore(Protocol):
    async def create(self, owner_id: str, key_pair: KeyPair, refresh_token: str) -> SessionRecord:
        ...

    async def find_by_id(self, record_id: str) -> SessionRecord | None:
        ...

    async def find_by_owner(self, owner_id: str) -> list[SessionRecord]:
        ...

    async def find_by_current_token(self, token: str) -> SessionRecord | None:
        ...

    async def find_by_used_token(self, token: str) -> SessionRecord | None:
        ...

    async def rotate(self, record_id: str, expected_token: str, new_token: str) -> SessionRecord:
        """Swap the current token atomically; raises RotationConflict if it moved."""
        ...

    async def delete_by_id(self, record_id: str) -> bool:
        ...

    async def delete_by_owner(self, owner_id: str) -> int:
        ...
