from datetime import timedelta

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import OAuth2PasswordRequestForm

from boutique.core.config import settings
from boutique.core.dependencies import get_storage
from boutique.core.security import create_access_token
from boutique.logger_config import logger
from boutique.models.user import User, UserRole
from boutique.schemas.auth import LoginRequest, LoginResponse, Logout, RegisterRequest, Token
from boutique.schemas.user import UserResponse
from boutique.services.user_service import authenticate_user, count_users, create_user
from boutique.storage import LedgerStorage

router = APIRouter()


def _token_for(user: User) -> str:
    access_token_expires = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    return create_access_token(
        data={"sub": user.username, "user_id": user.id, "role": user.role.value},
        expires_delta=access_token_expires,
    )


@router.post("/register", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
def register(register_data: RegisterRequest, storage: LedgerStorage = Depends(get_storage)):
    """
    Register the first user (only works if no users exist yet).
    The first account is always an admin; everyone else is added through /users.
    """
    if count_users(storage) > 0:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Registration is only allowed when no users exist. Ask an admin to create your account.",
        )

    user = create_user(storage, register_data.username, register_data.password, role=UserRole.admin)
    logger.info(f"First user {user.username} registered as admin")
    return UserResponse.model_validate(user)


@router.post("/login", response_model=LoginResponse)
def login(login_data: LoginRequest, storage: LedgerStorage = Depends(get_storage)):
    """
    Login endpoint - Authenticate user and return JWT token.
    """
    logger.info(f"Login attempt for {login_data.username}")

    user = authenticate_user(storage, login_data.username, login_data.password)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect username or password",
        )

    logger.info(f"User {user.username} logged in successfully")
    return LoginResponse(
        access_token=_token_for(user),
        token_type="bearer",
        user=UserResponse.model_validate(user),
    )


@router.get("/logout", response_model=Logout)
def logout():
    """
    Tokens are stateless; the client just drops its copy.
    """
    logger.info("User logged out")
    return Logout(message="Logged out Successfully")


@router.post("/token", response_model=Token)
def login_for_access_token(
    form_data: OAuth2PasswordRequestForm = Depends(),
    storage: LedgerStorage = Depends(get_storage),
):
    """
    OAuth2 compatible token endpoint (for Swagger UI authentication).
    """
    user = authenticate_user(storage, form_data.username, form_data.password)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect username or password",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return {"access_token": _token_for(user), "token_type": "bearer"}
