"""Password hasher interface."""

from __future__ import annotations

from typing import Protocol


class PasswordHasher(Protocol):
    def hash(self, plaintext: str) -> str:
        ...

    def compare(self, plaintext: str, hashed: str) -> bool:
        ...
