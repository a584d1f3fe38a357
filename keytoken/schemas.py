"""Auth request/response schemas."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, EmailStr, Field


class ApiResponse(BaseModel):
    success: bool
    message: str
    data: dict[str, Any] | None = None


class SignUpRequest(BaseModel):
    name: str = Field(min_length=2, max_length=100)
    email: EmailStr
    password: str = Field(min_length=6, max_length=128)


class SignInRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=1, max_length=128)


class RefreshRequest(BaseModel):
    refresh_token: str = Field(min_length=1)


class AuthUser(BaseModel):
    id: str
    email: EmailStr
    name: str | None = None


class Tokens(BaseModel):
    access_token: str
    refresh_token: str
    access_expires_at: int
    refresh_expires_at: int


class ApiKeyOut(BaseModel):
    key: str
    permissions: list[str]
    status: bool = True


class SessionResponse(BaseModel):
    user: AuthUser
    tokens: Tokens
    session_id: str
    api_key: ApiKeyOut | None = None

    @classmethod
    def from_result(cls, result: dict[str, Any]) -> "SessionResponse":
        return cls(
            user=AuthUser(**result["user"]),
            tokens=Tokens(**result["tokens"].as_dict()),
            session_id=result["session_id"],
            api_key=ApiKeyOut(**result["api_key"]) if result.get("api_key") else None,
        )
