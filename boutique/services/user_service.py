from typing import List, Optional, Tuple

from boutique.core.exceptions import ConflictError, NotFoundError, ValidationError
from boutique.core.security import get_password_hash, verify_password
from boutique.logger_config import logger
from boutique.models import User, UserRole
from boutique.models.common import utcnow
from boutique.storage import LedgerStorage

MIN_PASSWORD_LENGTH = 4
# bcrypt only accepts up to 72 bytes
MAX_PASSWORD_BYTES = 72


def _check_password(password: str) -> None:
    if not password or len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")
    if len(password.encode("utf-8")) > MAX_PASSWORD_BYTES:
        raise ValidationError(f"Password must be at most {MAX_PASSWORD_BYTES} bytes long")


def get_user_by_id(storage: LedgerStorage, user_id: int) -> User:
    """Get user by database ID."""
    user = storage.get_user(user_id)
    if not user:
        logger.warning(f"User {user_id} not found")
        raise NotFoundError(f"User {user_id} not found")
    return user

def get_user_by_username(storage: LedgerStorage, username: str) -> Optional[User]:
    return storage.get_user_by_username(username)

def get_all_users(
    storage: LedgerStorage,
    skip: int = 0,
    limit: int = 100,
    role: Optional[UserRole] = None,
    search: Optional[str] = None,
) -> Tuple[List[User], int]:
    """Get all users with optional filtering."""
    return storage.list_users(role=role, search=search, skip=skip, limit=limit)

def count_users(storage: LedgerStorage) -> int:
    _, total = storage.list_users(limit=0)
    return total

def create_user(storage: LedgerStorage, username: str, password: str, role: UserRole = UserRole.staff) -> User:
    """Create a new user."""
    username = (username or "").strip()
    if not username:
        raise ValidationError("Username is required")
    _check_password(password)

    if storage.get_user_by_username(username):
        raise ConflictError(f"User {username} already exists")

    with storage.atomic():
        now = utcnow()
        user = User(
            username=username,
            password_hash=get_password_hash(password),
            role=role,
            created_at=now,
            updated_at=now,
        )
        storage.add(user)

    logger.info(f"User {username} created with role {role.value}")
    return user

def update_user(
    storage: LedgerStorage,
    user_id: int,
    username: Optional[str] = None,
    role: Optional[UserRole] = None,
    password: Optional[str] = None,
) -> User:
    """Update user information."""
    user = get_user_by_id(storage, user_id)

    if username is not None:
        username = username.strip()
        if not username:
            raise ValidationError("Username is required")
        existing = storage.get_user_by_username(username)
        if existing and existing.id != user.id:
            raise ConflictError(f"Username {username} is already taken")
    if password is not None:
        _check_password(password)

    with storage.atomic():
        if username is not None:
            user.username = username
        if role is not None:
            user.role = role
        if password is not None:
            user.password_hash = get_password_hash(password)
        user.updated_at = utcnow()

    logger.info(f"User {user.username} updated")
    return user

def change_password(storage: LedgerStorage, user_id: int, old_password: str, new_password: str) -> None:
    user = get_user_by_id(storage, user_id)

    if not verify_password(old_password, user.password_hash):
        raise ValidationError("Invalid old password")
    _check_password(new_password)

    with storage.atomic():
        user.password_hash = get_password_hash(new_password)
        user.updated_at = utcnow()

    logger.info(f"Password changed for {user.username}")

def delete_user(storage: LedgerStorage, user_id: int, acting_user_id: Optional[int] = None) -> None:
    """Delete a user. Admins cannot delete their own account."""
    user = get_user_by_id(storage, user_id)
    if acting_user_id is not None and user.id == acting_user_id:
        raise ValidationError("You cannot delete your own account")

    username = user.username
    with storage.atomic():
        storage.delete(user)

    logger.info(f"User {username} deleted")

def authenticate_user(storage: LedgerStorage, username: str, password: str) -> Optional[User]:
    """Authenticate a user by username and password."""
    user = storage.get_user_by_username(username)
    if not user:
        return None

    if not verify_password(password, user.password_hash):
        return None

    return user
