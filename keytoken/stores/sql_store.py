"""SQL auth stores using SQLAlchemy."""

from __future__ import annotations

import hashlib
import logging
from collections.abc import Callable
from datetime import datetime

from sqlalchemy import delete, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from db.engine import SessionLocal
from db.models.account import Account, ApiKey
from db.models.key_token import KeyToken, UsedRefreshToken
from keytoken.config import AuthConfig
from keytoken.exceptions import DuplicateAccount, PersistenceError, RotationConflict
from keytoken.records import KeyPair, SessionRecord

logger = logging.getLogger(__name__)


def _digest(token: str) -> str:
    # Lookup key only; the token itself is still verified by signature.
    # Client input may carry lone surrogates
    return hashlib.sha256(token.encode("utf-8", errors="surrogatepass")).hexdigest()


def _timestamp(value: datetime | None) -> int | None:
    return int(value.timestamp()) if value else None


class SqlStoreBase:
    def __init__(self, session_factory: Callable[[], Session] | None = None) -> None:
        self._session_factory = session_factory or SessionLocal

    def _get_session(self) -> Session:
        return self._session_factory()


class SqlAccountStore(SqlStoreBase):
    """Account store backed by SQLAlchemy."""

    @staticmethod
    def _to_dict(account: Account) -> dict:
        return {
            "id": account.id,
            "email": account.email,
            "name": account.name,
            "hashed_password": account.hashed_password,
            "roles": list(account.roles or []),
            "status": account.status,
            "created_at": _timestamp(account.created_at),
            "updated_at": _timestamp(account.updated_at),
        }

    async def get_by_email(self, email: str) -> dict | None:
        try:
            with self._get_session() as db:
                account = db.execute(
                    select(Account).where(Account.email == email.lower())
                ).scalar_one_or_none()
                return self._to_dict(account) if account else None
        except SQLAlchemyError as exc:
            raise PersistenceError("Failed to load account") from exc

    async def get_by_id(self, account_id: str) -> dict | None:
        try:
            with self._get_session() as db:
                account = db.get(Account, account_id)
                return self._to_dict(account) if account else None
        except SQLAlchemyError as exc:
            raise PersistenceError("Failed to load account") from exc

    async def create_account(self, data: dict) -> dict:
        with self._get_session() as db:
            account = Account(
                email=data["email"].lower(),
                name=data["name"],
                hashed_password=data["hashed_password"],
                roles=list(data.get("roles") or []),
                status=data.get("status", "active"),
            )
            db.add(account)
            try:
                db.commit()
            except IntegrityError as exc:
                db.rollback()
                raise DuplicateAccount() from exc
            except SQLAlchemyError as exc:
                db.rollback()
                raise PersistenceError("Failed to create account") from exc
            db.refresh(account)
            return self._to_dict(account)


class SqlApiKeyStore(SqlStoreBase):
    """API key store backed by SQLAlchemy."""

    @staticmethod
    def _to_dict(api_key: ApiKey) -> dict:
        return {
            "id": api_key.id,
            "key": api_key.key,
            "permissions": list(api_key.permissions or []),
            "status": api_key.status,
            "created_at": _timestamp(api_key.created_at),
        }

    async def create(self, key: str, permissions: list[str]) -> dict:
        with self._get_session() as db:
            api_key = ApiKey(key=key, permissions=list(permissions), status=True)
            db.add(api_key)
            try:
                db.commit()
            except SQLAlchemyError as exc:
                db.rollback()
                raise PersistenceError("Failed to create api key") from exc
            db.refresh(api_key)
            return self._to_dict(api_key)

    async def find_by_key(self, key: str) -> dict | None:
        try:
            with self._get_session() as db:
                api_key = db.execute(
                    select(ApiKey).where(ApiKey.key == key, ApiKey.status == True)  # noqa: E712
                ).scalar_one_or_none()
                return self._to_dict(api_key) if api_key else None
        except SQLAlchemyError as exc:
            raise PersistenceError("Failed to load api key") from exc


class SqlKeyTokenStore(SqlStoreBase):
    """
    Session records backed by SQLAlchemy.

    ``rotate`` is a conditional UPDATE on the stored refresh token digest; the
    used-token insert and history eviction share its transaction.
    """

    def __init__(
        self,
        session_factory: Callable[[], Session] | None = None,
        history_limit: int | None = None,
    ) -> None:
        super().__init__(session_factory)
        if history_limit is None:
            history_limit = AuthConfig.USED_TOKEN_HISTORY_LIMIT
        if history_limit < 1:
            raise ValueError("history_limit must be at least 1")
        self._history_limit = history_limit

    @staticmethod
    def _to_record(key_token: KeyToken) -> SessionRecord:
        return SessionRecord(
            id=key_token.id,
            owner_id=key_token.owner_id,
            public_key=key_token.public_key,
            private_key=key_token.private_key,
            refresh_token=key_token.refresh_token,
            refresh_tokens_used=tuple(used.token for used in key_token.used_refresh_tokens),
            created_at=_timestamp(key_token.created_at) or 0,
            updated_at=_timestamp(key_token.updated_at) or 0,
        )

    async def create(self, owner_id: str, key_pair: KeyPair, refresh_token: str) -> SessionRecord:
        with self._get_session() as db:
            key_token = KeyToken(
                owner_id=owner_id,
                public_key=key_pair.public_key,
                private_key=key_pair.private_key,
                refresh_token=refresh_token,
                refresh_token_digest=_digest(refresh_token),
            )
            db.add(key_token)
            try:
                db.commit()
            except SQLAlchemyError as exc:
                db.rollback()
                raise PersistenceError("Failed to create key token") from exc
            db.refresh(key_token)
            return self._to_record(key_token)

    async def find_by_id(self, record_id: str) -> SessionRecord | None:
        try:
            with self._get_session() as db:
                key_token = db.get(KeyToken, record_id)
                return self._to_record(key_token) if key_token else None
        except SQLAlchemyError as exc:
            raise PersistenceError("Failed to load key token") from exc

    async def find_by_owner(self, owner_id: str) -> list[SessionRecord]:
        try:
            with self._get_session() as db:
                key_tokens = db.execute(
                    select(KeyToken).where(KeyToken.owner_id == owner_id).order_by(KeyToken.created_at)
                ).scalars().all()
                return [self._to_record(key_token) for key_token in key_tokens]
        except SQLAlchemyError as exc:
            raise PersistenceError("Failed to load key tokens") from exc

    async def find_by_current_token(self, token: str) -> SessionRecord | None:
        try:
            with self._get_session() as db:
                key_token = db.execute(
                    select(KeyToken).where(KeyToken.refresh_token_digest == _digest(token))
                ).scalar_one_or_none()
                return self._to_record(key_token) if key_token else None
        except SQLAlchemyError as exc:
            raise PersistenceError("Failed to load key token") from exc

    async def find_by_used_token(self, token: str) -> SessionRecord | None:
        try:
            with self._get_session() as db:
                key_token = db.execute(
                    select(KeyToken)
                    .join(UsedRefreshToken, UsedRefreshToken.key_token_id == KeyToken.id)
                    .where(UsedRefreshToken.token_digest == _digest(token))
                ).scalar_one_or_none()
                return self._to_record(key_token) if key_token else None
        except SQLAlchemyError as exc:
            raise PersistenceError("Failed to load key token") from exc

    async def rotate(self, record_id: str, expected_token: str, new_token: str) -> SessionRecord:
        expected_digest = _digest(expected_token)
        with self._get_session() as db:
            try:
                result = db.execute(
                    update(KeyToken)
                    .where(
                        KeyToken.id == record_id,
                        KeyToken.refresh_token_digest == expected_digest,
                    )
                    .values(
                        refresh_token=new_token,
                        refresh_token_digest=_digest(new_token),
                        updated_at=datetime.utcnow(),
                    )
                    .execution_options(synchronize_session=False)
                )
                if result.rowcount != 1:
                    db.rollback()
                    raise RotationConflict(record_id)

                db.add(
                    UsedRefreshToken(
                        key_token_id=record_id,
                        token=expected_token,
                        token_digest=expected_digest,
                    )
                )
                db.flush()
                stale_ids = db.execute(
                    select(UsedRefreshToken.id)
                    .where(UsedRefreshToken.key_token_id == record_id)
                    .order_by(UsedRefreshToken.id.desc())
                    .offset(self._history_limit)
                ).scalars().all()
                if stale_ids:
                    db.execute(delete(UsedRefreshToken).where(UsedRefreshToken.id.in_(stale_ids)))
                db.commit()
            except IntegrityError as exc:
                # New token digest collided with a live or used token
                db.rollback()
                raise RotationConflict(record_id) from exc
            except SQLAlchemyError as exc:
                db.rollback()
                raise PersistenceError("Failed to rotate key token") from exc

            key_token = db.get(KeyToken, record_id)
            if key_token is None:
                raise RotationConflict(record_id)
            return self._to_record(key_token)

    async def delete_by_id(self, record_id: str) -> bool:
        return await self._delete(KeyToken.id == record_id) > 0

    async def delete_by_owner(self, owner_id: str) -> int:
        return await self._delete(KeyToken.owner_id == owner_id)

    async def _delete(self, condition) -> int:
        with self._get_session() as db:
            try:
                record_ids = db.execute(select(KeyToken.id).where(condition)).scalars().all()
                if not record_ids:
                    return 0
                db.execute(
                    delete(UsedRefreshToken).where(UsedRefreshToken.key_token_id.in_(record_ids))
                )
                db.execute(delete(KeyToken).where(KeyToken.id.in_(record_ids)))
                db.commit()
            except SQLAlchemyError as exc:
                db.rollback()
                raise PersistenceError("Failed to delete key tokens") from exc
            logger.debug("Deleted %d key token(s)", len(record_ids))
            return len(record_ids)
