"""
SQLAlchemy engine and session factory.

Usage:
    from db.engine import SessionLocal

    with SessionLocal() as db:
        account = db.get(Account, account_id)
"""

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base

from config import Config


def _engine_options() -> dict:
    if Config.is_sqlite():
        return {"connect_args": {"check_same_thread": False}}
    return {
        "pool_pre_ping": True,  # Verify connections before use
        "pool_size": Config.DB_POOL_SIZE,
        "max_overflow": 20,
    }


engine = create_engine(
    Config.DATABASE_URL,
    echo=Config.DB_ECHO,
    **_engine_options(),
)

# Session factory
SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
)

# Base class for all models
Base = declarative_base()


def init_db(bind=None) -> None:
    """Create all tables directly, for development and tests (production uses Alembic)."""
    import db.models  # noqa: F401  registers the mappers

    Base.metadata.create_all(bind=bind or engine)
