"""User-facing account schemas (never include password hashes)."""

from pydantic import Field

from app.schemas.book import Book
from app.schemas.common import APIModel


class UserPublic(APIModel):
    id: int
    name: str
    email: str
    role: str = Field("USER", description="USER or ADMIN.")
    email_verified: bool = False
    created_at: str | None = Field(None, alias="createdAt")
    updated_at: str | None = Field(None, alias="updatedAt")


class UserWithBooks(UserPublic):
    books: list[Book] = Field(default_factory=list, description="Books in the user's collection.")


class UserResponse(APIModel):
    message: str | None = None
    user: UserPublic


class UserDetailResponse(APIModel):
    user: UserWithBooks


class UserListResponse(APIModel):
    users: list[UserPublic]


class AdminUserCreate(APIModel):
    name: str | None = None
    email: str | None = None
    password: str | None = None
    role: str | None = None
    email_verified: bool = True
    send_verification_email: bool = Field(False, alias="sendVerificationEmail")


class AdminUserUpdate(APIModel):
    name: str | None = None
    email: str | None = None
    role: str | None = None
    email_verified: bool | None = None


class AdminPasswordChange(APIModel):
    new_password: str | None = Field(None, alias="newPassword")
