from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, status

from app.api.dependencies import get_auth_service
from app.core.auth import CurrentUser, get_current_user
from app.core.config import settings
from app.schemas.auth import (
    ChangePasswordRequest,
    DeleteAccountRequest,
    EmailRequest,
    LoginRequest,
    LoginResponse,
    PasswordResetResponse,
    RegisterRequest,
    RegisterResponse,
    ResetPasswordRequest,
    UpdateProfileRequest,
)
from app.schemas.common import MessageResponse
from app.schemas.user import UserResponse
from app.services.auth_service import AuthService

router = APIRouter(prefix="/auth", tags=["Auth"])

AuthServiceDep = Annotated[AuthService, Depends(get_auth_service)]
CurrentUserDep = Annotated[CurrentUser, Depends(get_current_user)]

RESET_REQUESTED_MESSAGE = "If your email is registered, you will receive a password reset link"


@router.post("/register", response_model=RegisterResponse, status_code=status.HTTP_201_CREATED)
def register(payload: RegisterRequest, service: AuthServiceDep) -> RegisterResponse:
    """Create an account and send its verification email."""
    user_id = service.register(
        name=payload.name,
        email=payload.email,
        password=payload.password,
        role=payload.role,
    )
    return RegisterResponse(
        message="User registered successfully. Please check your email to verify your account.",
        user_id=user_id,
    )


@router.get("/verify-email/{token}", response_model=MessageResponse)
def verify_email(token: str, service: AuthServiceDep) -> MessageResponse:
    service.verify_email(token)
    return MessageResponse(message="Email verified successfully")


@router.post("/resend-verification", response_model=MessageResponse)
def resend_verification(payload: EmailRequest, service: AuthServiceDep) -> MessageResponse:
    service.resend_verification(payload.email)
    return MessageResponse(message="Verification email sent")


@router.post("/login", response_model=LoginResponse)
def login(payload: LoginRequest, service: AuthServiceDep) -> LoginResponse:
    """Exchange email and password for a bearer token.

    Unverified accounts are rejected with ``email_not_verified`` and
    ``details.needs_verification = true``.
    """
    user, token = service.login(payload.email, payload.password)
    return LoginResponse(message="Login successful", user=user, token=token)


@router.post("/logout", response_model=MessageResponse)
def logout() -> MessageResponse:
    """Tokens are stateless; clients discard theirs."""
    return MessageResponse(message="Logout successful")


@router.get("/me", response_model=UserResponse)
def me(user: CurrentUserDep, service: AuthServiceDep) -> UserResponse:
    return UserResponse(user=service.get_profile(user.id))


@router.post("/change-password", response_model=MessageResponse)
def change_password(
    payload: ChangePasswordRequest,
    user: CurrentUserDep,
    service: AuthServiceDep,
) -> MessageResponse:
    service.change_password(user.id, payload.current_password, payload.new_password)
    return MessageResponse(message="Password changed successfully")


@router.post(
    "/request-password-reset",
    response_model=PasswordResetResponse,
    response_model_exclude_none=True,
)
def request_password_reset(payload: EmailRequest, service: AuthServiceDep) -> PasswordResetResponse:
    """Email a reset link; the response is identical whether or not the account exists."""
    token = service.request_password_reset(payload.email)
    return PasswordResetResponse(
        message=RESET_REQUESTED_MESSAGE,
        reset_token=token if settings.app.expose_reset_token else None,
    )


@router.post("/reset-password", response_model=MessageResponse)
def reset_password(payload: ResetPasswordRequest, service: AuthServiceDep) -> MessageResponse:
    service.reset_password(payload.token, payload.new_password)
    return MessageResponse(message="Password has been reset successfully")


@router.put("/update-profile", response_model=UserResponse)
def update_profile(
    payload: UpdateProfileRequest,
    user: CurrentUserDep,
    service: AuthServiceDep,
) -> UserResponse:
    updated = service.update_profile(user.id, payload.name)
    return UserResponse(message="Profile updated successfully", user=updated)


@router.delete("/delete-account", response_model=MessageResponse)
def delete_account(
    payload: DeleteAccountRequest,
    user: CurrentUserDep,
    service: AuthServiceDep,
) -> MessageResponse:
    service.delete_account(user.id, payload.password)
    return MessageResponse(message="Account deleted successfully")
