"""Auth configuration management."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

# Load .env file before reading config
try:
    from dotenv import load_dotenv

    env_path = Path(__file__).parent.parent / ".env"
    if env_path.exists():
        load_dotenv(env_path, override=True)
    else:
        load_dotenv(override=True)
except ImportError:
    pass


def _parse_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _parse_list(value: str | None, default: tuple[str, ...]) -> tuple[str, ...]:
    if not value:
        return default
    return tuple(item.strip() for item in value.split(",") if item.strip())


@dataclass(frozen=True)
class AuthConfig:
    """Configuration values for auth flows."""

    ACCESS_TOKEN_EXPIRE_MINUTES: int = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "15"))
    REFRESH_TOKEN_EXPIRE_DAYS: int = int(os.getenv("REFRESH_TOKEN_EXPIRE_DAYS", "7"))
    JWT_ALGORITHM: str = os.getenv("AUTH_JWT_ALGORITHM", "RS256")
    RSA_KEY_SIZE: int = int(os.getenv("AUTH_RSA_KEY_SIZE", "4096"))

    BCRYPT_ROUNDS: int = int(os.getenv("AUTH_BCRYPT_ROUNDS", "10"))

    # Rotated-out refresh tokens kept per session for reuse detection
    USED_TOKEN_HISTORY_LIMIT: int = int(os.getenv("AUTH_USED_TOKEN_HISTORY_LIMIT", "100"))
    REVOKE_ALL_ON_REUSE: bool = _parse_bool(os.getenv("AUTH_REVOKE_ALL_ON_REUSE"), True)

    DEFAULT_ROLES: tuple[str, ...] = _parse_list(os.getenv("AUTH_DEFAULT_ROLES"), ("SHOP",))
    DEFAULT_API_KEY_PERMISSIONS: tuple[str, ...] = _parse_list(
        os.getenv("AUTH_DEFAULT_API_KEY_PERMISSIONS"), ("0000",)
    )

    CLIENT_ID_HEADER: str = os.getenv("CLIENT_ID_HEADER", "x-client-id")

    # Auth store: "sql" (production) or "memory" (testing)
    AUTH_STORE: str = os.getenv("AUTH_STORE", "sql")
