"""
Account and API key models.

Account: principal identity and password hash
ApiKey: keys handed out at sign-up for API-key protected routes
"""

from datetime import datetime
from uuid import uuid4

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    JSON,
    String,
    Text,
)
from sqlalchemy.orm import relationship

from db.engine import Base


def _new_id() -> str:
    return uuid4().hex


class Account(Base):
    """
    Principal that can sign in and hold sessions.
    """
    __tablename__ = "accounts"

    id = Column(String(32), primary_key=True, default=_new_id)
    email = Column(String(255), unique=True, nullable=False, index=True)
    name = Column(String(255), nullable=False)
    hashed_password = Column(Text, nullable=False)
    roles = Column(JSON, nullable=False, default=list)
    status = Column(String(20), nullable=False, default="active")
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    key_tokens = relationship("KeyToken", back_populates="owner", cascade="all, delete-orphan")

    def __repr__(self):
        return f"<Account(id={self.id}, email={self.email})>"


class ApiKey(Base):
    __tablename__ = "api_keys"

    id = Column(String(32), primary_key=True, default=_new_id)
    key = Column(String(128), unique=True, nullable=False, index=True)
    status = Column(Boolean, nullable=False, default=True)
    permissions = Column(JSON, nullable=False, default=list)
    created_at = Column(DateTime, default=datetime.utcnow)

    def __repr__(self):
        return f"<ApiKey(id={self.id}, key={self.key[:8]}...)>"
