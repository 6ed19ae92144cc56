from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, status

from app.api.dependencies import get_user_admin_service
from app.schemas.common import MessageResponse
from app.schemas.user import (
    AdminPasswordChange,
    AdminUserCreate,
    AdminUserUpdate,
    UserDetailResponse,
    UserListResponse,
    UserResponse,
)
from app.services.user_admin_service import UserAdminService

router = APIRouter(prefix="/users")

ServiceDep = Annotated[UserAdminService, Depends(get_user_admin_service)]


@router.get("", response_model=UserListResponse)
def list_users(service: ServiceDep) -> UserListResponse:
    return UserListResponse(users=service.list_users())


@router.get("/{user_id}", response_model=UserDetailResponse)
def get_user(user_id: int, service: ServiceDep) -> UserDetailResponse:
    """User profile with the books in their collection."""
    return UserDetailResponse(user=service.get_user(user_id))


@router.post("", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
def create_user(payload: AdminUserCreate, service: ServiceDep) -> UserResponse:
    """Create an account (verified by default, unless a verification email is requested)."""
    return UserResponse(message="User created successfully", user=service.create_user(payload))


@router.put("/{user_id}", response_model=UserResponse)
def update_user(user_id: int, payload: AdminUserUpdate, service: ServiceDep) -> UserResponse:
    return UserResponse(message="User updated successfully", user=service.update_user(user_id, payload))


@router.delete("/{user_id}", response_model=MessageResponse)
def delete_user(user_id: int, service: ServiceDep) -> MessageResponse:
    service.delete_user(user_id)
    return MessageResponse(message="User deleted successfully")


@router.post("/{user_id}/change-password", response_model=MessageResponse)
def change_user_password(user_id: int, payload: AdminPasswordChange, service: ServiceDep) -> MessageResponse:
    service.change_password(user_id, payload.new_password)
    return MessageResponse(message="Password changed successfully")
