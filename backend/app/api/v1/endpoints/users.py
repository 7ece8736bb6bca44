"""User management and login endpoints."""

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from app.core.dependencies import require_admin
from app.db.session import get_db
from app.models.user import User
from app.schemas.user import (
    LoginRequest,
    LoginResponse,
    UserCreate,
    UserDeleteResponse,
    UserResponse,
    UserUpdate,
)
from app.services import users as user_service

router = APIRouter(prefix="/users", tags=["Users"])


@router.post(
    "/login",
    response_model=LoginResponse,
    summary="Login",
    description="Check email and password. Session handling is left to the caller.",
)
async def login(credentials: LoginRequest, db: Session = Depends(get_db)) -> LoginResponse:
    user = user_service.authenticate(db, credentials.email, credentials.password)
    return LoginResponse(message="Login successful", user=UserResponse.model_validate(user))


@router.post(
    "",
    response_model=UserResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create user",
)
async def create_user(
    user_data: UserCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
) -> UserResponse:
    return UserResponse.model_validate(user_service.create_user(db, user_data))


@router.get(
    "",
    response_model=list[UserResponse],
    summary="List users",
)
async def list_users(
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
) -> list[UserResponse]:
    return [UserResponse.model_validate(u) for u in user_service.list_users(db)]


@router.get("/{user_id}", response_model=UserResponse, summary="Get user")
async def get_user(
    user_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
) -> UserResponse:
    return UserResponse.model_validate(user_service.get_user(db, user_id))


@router.put("/{user_id}", response_model=UserResponse, summary="Update user")
async def update_user(
    user_id: str,
    user_data: UserUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
) -> UserResponse:
    return UserResponse.model_validate(user_service.update_user(db, user_id, user_data))


@router.delete("/{user_id}", response_model=UserDeleteResponse, summary="Delete user")
async def delete_user(
    user_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
) -> UserDeleteResponse:
    user = user_service.delete_user(db, user_id)
    return UserDeleteResponse(message="User deleted successfully", user=UserResponse.model_validate(user))
