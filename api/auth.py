"""Auth API routes."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status

from keytoken.dependencies import get_auth_service, get_current_session
from keytoken.exceptions import AuthException
from keytoken.schemas import ApiResponse, RefreshRequest, SessionResponse, SignInRequest, SignUpRequest
from keytoken.services.auth_service import AuthService

router = APIRouter()


@router.post("/signup", response_model=ApiResponse, status_code=status.HTTP_201_CREATED)
async def signup(
    payload: SignUpRequest,
    auth_service: AuthService = Depends(get_auth_service),
) -> ApiResponse:
    try:
        result = await auth_service.sign_up(payload.name, payload.email, payload.password)
    except AuthException as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.message) from exc

    return ApiResponse(
        success=True,
        message="Registration successful",
        data=SessionResponse.from_result(result).model_dump(),
    )


@router.post("/login", response_model=ApiResponse, status_code=status.HTTP_200_OK)
async def login(
    payload: SignInRequest,
    auth_service: AuthService = Depends(get_auth_service),
) -> ApiResponse:
    try:
        result = await auth_service.sign_in(payload.email, payload.password)
    except AuthException as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.message) from exc

    return ApiResponse(
        success=True,
        message="Login successful",
        data=SessionResponse.from_result(result).model_dump(exclude={"api_key"}),
    )


@router.post("/refresh", response_model=ApiResponse, status_code=status.HTTP_200_OK)
async def refresh(
    payload: RefreshRequest,
    auth_service: AuthService = Depends(get_auth_service),
) -> ApiResponse:
    try:
        result = await auth_service.refresh_token(payload.refresh_token)
    except AuthException as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.message) from exc

    return ApiResponse(
        success=True,
        message="Token refreshed",
        data=SessionResponse.from_result(result).model_dump(exclude={"api_key"}),
    )


@router.post("/logout", response_model=ApiResponse, status_code=status.HTTP_200_OK)
async def logout(
    current_session: dict = Depends(get_current_session),
    auth_service: AuthService = Depends(get_auth_service),
) -> ApiResponse:
    try:
        await auth_service.logout(current_session["session_id"])
    except AuthException as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.message) from exc

    return ApiResponse(success=True, message="Logged out", data={})


@router.get("/me", response_model=ApiResponse, status_code=status.HTTP_200_OK)
async def me(current_session: dict = Depends(get_current_session)) -> ApiResponse:
    return ApiResponse(
        success=True,
        message="Session retrieved",
        data={
            "user": {"id": current_session["user_id"], "email": current_session["email"]},
            "session_id": current_session["session_id"],
        },
    )
