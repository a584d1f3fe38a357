"""
Key token models for session credentials.

KeyToken: one row per signed-in session (key pair and current refresh token)
UsedRefreshToken: rotated-out refresh tokens, kept for reuse detection

Tokens are looked up through their SHA-256 digest; the signed tokens are too
long to index directly on every backend.
"""

from datetime import datetime
from uuid import uuid4

from sqlalchemy import (
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import relationship

from db.engine import Base


class KeyToken(Base):
    """
    Session record: key pair plus the single refresh token valid for rotation.
    """
    __tablename__ = "key_tokens"

    id = Column(String(32), primary_key=True, default=lambda: uuid4().hex)
    owner_id = Column(String(32), ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False, index=True)
    public_key = Column(Text, nullable=False)
    private_key = Column(Text, nullable=False)
    refresh_token = Column(Text, nullable=False)
    refresh_token_digest = Column(String(64), unique=True, nullable=False, index=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    owner = relationship("Account", back_populates="key_tokens")
    used_refresh_tokens = relationship(
        "UsedRefreshToken",
        back_populates="key_token",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="UsedRefreshToken.id",
    )

    def __repr__(self):
        return f"<KeyToken(id={self.id}, owner_id={self.owner_id})>"


class UsedRefreshToken(Base):
    __tablename__ = "key_token_used_refresh_tokens"

    id = Column(Integer, primary_key=True, autoincrement=True)
    key_token_id = Column(
        String(32), ForeignKey("key_tokens.id", ondelete="CASCADE"), nullable=False, index=True
    )
    token = Column(Text, nullable=False)
    token_digest = Column(String(64), unique=True, nullable=False, index=True)
    used_at = Column(DateTime, default=datetime.utcnow)

    key_token = relationship("KeyToken", back_populates="used_refresh_tokens")

    def __repr__(self):
        return f"<UsedRefreshToken(key_token_id={self.key_token_id}, digest={self.token_digest[:8]}...)>"
