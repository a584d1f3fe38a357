"""Shared fixtures for the auth tests."""

from __future__ import annotations

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from db.engine import init_db
from keytoken.security import BcryptPasswordHasher, CredentialSigner
from keytoken.services.auth_service import AuthService
from keytoken.stores.memory_store import MemoryAccountStore, MemoryApiKeyStore, MemoryKeyTokenStore
from keytoken.stores.sql_store import SqlAccountStore, SqlApiKeyStore, SqlKeyTokenStore

TEST_KEY_SIZE = 2048
TEST_BCRYPT_ROUNDS = 4
START_TIME = 1_700_000_000


class ManualClock:
    def __init__(self, now: int = START_TIME) -> None:
        self._now = now

    def now(self) -> int:
        return self._now

    def advance(self, seconds: int) -> None:
        self._now += seconds


def make_signer(clock: ManualClock | None = None) -> CredentialSigner:
    return CredentialSigner(key_size=TEST_KEY_SIZE, algorithm="RS256", clock=clock or ManualClock())


def make_memory_service(clock: ManualClock | None = None, **kwargs):
    """AuthService over memory stores; returns (service, accounts, key_tokens, api_keys)."""
    clock = clock or ManualClock()
    accounts = MemoryAccountStore(clock=clock)
    key_tokens = MemoryKeyTokenStore(history_limit=kwargs.pop("history_limit", None), clock=clock)
    api_keys = MemoryApiKeyStore(clock=clock)
    service = AuthService(
        account_store=accounts,
        key_token_store=key_tokens,
        api_key_store=api_keys,
        password_hasher=BcryptPasswordHasher(rounds=TEST_BCRYPT_ROUNDS),
        signer=make_signer(clock),
        clock=clock,
        **kwargs,
    )
    return service, accounts, key_tokens, api_keys


def make_sqlite_session_factory():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(bind=engine)
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


def make_sql_service(clock: ManualClock | None = None, **kwargs):
    """AuthService over SQL stores on in-memory SQLite; same tuple as ``make_memory_service``."""
    clock = clock or ManualClock()
    session_factory = make_sqlite_session_factory()
    accounts = SqlAccountStore(session_factory)
    key_tokens = SqlKeyTokenStore(session_factory, history_limit=kwargs.pop("history_limit", None))
    api_keys = SqlApiKeyStore(session_factory)
    service = AuthService(
        account_store=accounts,
        key_token_store=key_tokens,
        api_key_store=api_keys,
        password_hasher=BcryptPasswordHasher(rounds=TEST_BCRYPT_ROUNDS),
        signer=make_signer(clock),
        clock=clock,
        **kwargs,
    )
    return service, accounts, key_tokens, api_keys
