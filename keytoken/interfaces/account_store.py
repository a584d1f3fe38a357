"""Account store interface."""

from __future__ import annotations

from typing import Protocol


class AccountStore(Protocol):
    async def get_by_email(self, email: str) -> dict | None:
        ...

    async def get_by_id(self, account_id: str) -> dict | None:
        ...

    async def create_account(self, data: dict) -> dict:
        """Insert an account; raises DuplicateAccount when the email is taken."""
        ...
