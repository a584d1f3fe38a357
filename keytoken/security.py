"""Security utilities for auth."""

from __future__ import annotations

import secrets
from typing import Any

import bcrypt
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from jose import JWTError, jwt
from jose.exceptions import JOSEError, JWKError

from keytoken.clock import SystemClock
from keytoken.config import AuthConfig
from keytoken.exceptions import (
    InvalidSignature,
    KeyMaterialError,
    MalformedToken,
    TokenExpired,
)
from keytoken.interfaces.clock import Clock
from keytoken.records import KeyPair

API_KEY_BYTES = 64


def hash_password(password: str, rounds: int | None = None) -> str:
    """Hash a password using bcrypt."""
    password_bytes = password.encode("utf-8")
    salt = bcrypt.gensalt(rounds or AuthConfig.BCRYPT_ROUNDS)
    hashed = bcrypt.hashpw(password_bytes, salt)
    return hashed.decode("utf-8")


def verify_password(password: str, hashed_password: str) -> bool:
    """Verify a password against a hash."""
    try:
        password_bytes = password.encode("utf-8")
        hashed_bytes = hashed_password.encode("utf-8")
        return bcrypt.checkpw(password_bytes, hashed_bytes)
    except ValueError:
        # Not a bcrypt hash
        return False


class BcryptPasswordHasher:
    def __init__(self, rounds: int | None = None) -> None:
        self._rounds = rounds or AuthConfig.BCRYPT_ROUNDS

    def hash(self, plaintext: str) -> str:
        return hash_password(plaintext, rounds=self._rounds)

    def compare(self, plaintext: str, hashed: str) -> bool:
        return verify_password(plaintext, hashed)


def generate_api_key() -> str:
    """Random API key value, 64 bytes rendered as 128 hex characters."""
    return secrets.token_hex(API_KEY_BYTES)


class CredentialSigner:
    """
    RSA key pair generation and JWS signing.

    Tokens are always signed with the private key and verified with the
    public key. Expiry is evaluated against the injected clock rather than
    the library's wall clock so that it is a plain verification outcome.
    """

    def __init__(
        self,
        key_size: int | None = None,
        algorithm: str | None = None,
        clock: Clock | None = None,
    ) -> None:
        self._key_size = key_size or AuthConfig.RSA_KEY_SIZE
        self._algorithm = algorithm or AuthConfig.JWT_ALGORITHM
        self._clock = clock or SystemClock()

    def generate_key_pair(self) -> KeyPair:
        private_key = rsa.generate_private_key(public_exponent=65537, key_size=self._key_size)
        private_pem = private_key.private_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PrivateFormat.PKCS8,
            encryption_algorithm=serialization.NoEncryption(),
        )
        public_pem = private_key.public_key().public_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PublicFormat.SubjectPublicKeyInfo,
        )
        return KeyPair(public_key=public_pem.decode("utf-8"), private_key=private_pem.decode("utf-8"))

    def sign(self, claims: dict[str, Any], private_key: str) -> str:
        try:
            return jwt.encode(claims, private_key, algorithm=self._algorithm)
        except JOSEError as exc:
            raise KeyMaterialError("Cannot sign with the given private key") from exc

    def verify(self, token: str, public_key: str) -> dict[str, Any]:
        try:
            jwt.get_unverified_header(token)
            jwt.get_unverified_claims(token)
        except JWTError as exc:
            raise MalformedToken("Token cannot be parsed") from exc

        try:
            claims = jwt.decode(
                token,
                public_key,
                algorithms=[self._algorithm],
                options={"verify_exp": False},
            )
        except JWKError as exc:
            raise KeyMaterialError("Cannot verify with the given public key") from exc
        except JWTError as exc:
            raise InvalidSignature(str(exc)) from exc

        expires_at = claims.get("exp")
        if not isinstance(expires_at, int):
            raise MalformedToken("Token has no expiry")
        if expires_at <= self._clock.now():
            raise TokenExpired("Token expired")
        return claims
