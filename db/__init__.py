"""
Database module for the auth service.

Provides SQLAlchemy models, engine, and session factory.
"""

from db.engine import init_db, SessionLocal, Base

__all__ = ["init_db", "SessionLocal", "Base"]
