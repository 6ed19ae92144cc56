"""Request/response schemas for the /api/auth endpoints."""

from pydantic import Field

from app.schemas.common import APIModel
from app.schemas.user import UserPublic


class RegisterRequest(APIModel):
    name: str | None = None
    email: str | None = None
    password: str | None = None
    role: str | None = Field(None, description="USER (default) or ADMIN.")


class RegisterResponse(APIModel):
    message: str
    user_id: int = Field(..., alias="userId")


class LoginRequest(APIModel):
    email: str | None = None
    password: str | None = None


class LoginResponse(APIModel):
    message: str
    user: UserPublic
    token: str = Field(..., description="Bearer token for the Authorization header.")


class EmailRequest(APIModel):
    email: str | None = None


class ChangePasswordRequest(APIModel):
    current_password: str | None = Field(None, alias="currentPassword")
    new_password: str | None = Field(None, alias="newPassword")


class PasswordResetResponse(APIModel):
    message: str
    reset_token: str | None = Field(
        None,
        alias="resetToken",
        description="Only present when APP_EXPOSE_RESET_TOKEN is enabled.",
    )


class ResetPasswordRequest(APIModel):
    token: str | None = None
    new_password: str | None = Field(None, alias="newPassword")


class UpdateProfileRequest(APIModel):
    name: str | None = None


class DeleteAccountRequest(APIModel):
    password: str | None = None
