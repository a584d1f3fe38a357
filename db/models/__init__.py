"""
SQLAlchemy models for the auth database.

All models inherit from db.engine.Base for Alembic migrations.
"""

from db.models.account import Account, ApiKey
from db.models.key_token import KeyToken, UsedRefreshToken

__all__ = [
    # Accounts
    "Account",
    "ApiKey",
    # Sessions
    "KeyToken",
    "UsedRefreshToken",
]
