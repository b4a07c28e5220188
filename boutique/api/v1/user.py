from fastapi import APIRouter, Depends, Query, status
from typing import Optional

from boutique.core.dependencies import get_current_active_user, get_storage, require_admin
from boutique.logger_config import logger
from boutique.models.user import User, UserRole
from boutique.schemas.user import (
    PasswordChange,
    UserCreate,
    UserDeleteResponse,
    UserListResponse,
    UserResponse,
    UserUpdate,
)
from boutique.services.user_service import (
    change_password,
    create_user,
    delete_user,
    get_all_users,
    get_user_by_id,
    update_user,
)
from boutique.storage import LedgerStorage

router = APIRouter()


@router.get("/me", response_model=UserResponse)
def get_current_user_info(current_user: User = Depends(get_current_active_user)):
    """
    Get current authenticated user's information.
    """
    return UserResponse.model_validate(current_user)


@router.put("/me/password", response_model=UserDeleteResponse)
def change_own_password(
    data: PasswordChange,
    current_user: User = Depends(get_current_active_user),
    storage: LedgerStorage = Depends(get_storage),
):
    change_password(storage, current_user.id, data.old_password, data.new_password)
    return UserDeleteResponse(message="Password changed")


@router.get("", response_model=UserListResponse)
def get_users(
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=100),
    role: Optional[UserRole] = Query(None),
    search: Optional[str] = Query(None),
    current_user: User = Depends(require_admin),
    storage: LedgerStorage = Depends(get_storage),
):
    """
    Get all users with optional filtering. Admin only.
    """
    users, total = get_all_users(storage, skip=skip, limit=limit, role=role, search=search)
    return UserListResponse(
        total=total,
        users=[UserResponse.model_validate(user) for user in users],
    )


@router.get("/{user_id}", response_model=UserResponse)
def get_user(
    user_id: int,
    current_user: User = Depends(require_admin),
    storage: LedgerStorage = Depends(get_storage),
):
    return UserResponse.model_validate(get_user_by_id(storage, user_id))


@router.post("", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
def create_user_route(
    user_data: UserCreate,
    current_user: User = Depends(require_admin),
    storage: LedgerStorage = Depends(get_storage),
):
    """
    Create a new user. Admin only.
    """
    user = create_user(storage, user_data.username, user_data.password, role=user_data.role)
    logger.info(f"User {user.username} created by {current_user.username}")
    return UserResponse.model_validate(user)


@router.patch("/{user_id}", response_model=UserResponse)
def update_user_route(
    user_id: int,
    user_data: UserUpdate,
    current_user: User = Depends(require_admin),
    storage: LedgerStorage = Depends(get_storage),
):
    user = update_user(
        storage,
        user_id,
        username=user_data.username,
        role=user_data.role,
        password=user_data.password,
    )
    logger.info(f"User {user_id} updated by {current_user.username}")
    return UserResponse.model_validate(user)


@router.delete("/{user_id}", response_model=UserDeleteResponse)
def delete_user_route(
    user_id: int,
    current_user: User = Depends(require_admin),
    storage: LedgerStorage = Depends(get_storage),
):
    delete_user(storage, user_id, acting_user_id=current_user.id)
    logger.info(f"User {user_id} deleted by {current_user.username}")
    return UserDeleteResponse(message="User deleted successfully")
