"""Value types shared by the signer, issuer and key token stores."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class KeyPair:
    public_key: str
    private_key: str = field(repr=False)


@dataclass(frozen=True)
class TokenPair:
    access_token: str
    refresh_token: str
    access_expires_at: int
    refresh_expires_at: int

    def as_dict(self) -> dict[str, str | int]:
        return {
            "access_token": self.access_token,
            "refresh_token": self.refresh_token,
            "access_expires_at": self.access_expires_at,
            "refresh_expires_at": self.refresh_expires_at,
        }


@dataclass(frozen=True)
class SessionRecord:
    """
    Persisted state of one signed-in session.

    ``refresh_token`` is the only token accepted for rotation;
    ``refresh_tokens_used`` holds the most recent rotated-out tokens, oldest first.
    """

    id: str
    owner_id: str
    public_key: str
    private_key: str = field(repr=False)
    refresh_token: str = field(repr=False)
    refresh_tokens_used: tuple[str, ...] = field(default=(), repr=False)
    created_at: int = 0
    updated_at: int = 0

    @property
    def key_pair(self) -> KeyPair:
        return KeyPair(public_key=self.public_key, private_key=self.private_key)
