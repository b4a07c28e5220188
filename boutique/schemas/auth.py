from pydantic import BaseModel, Field
from boutique.schemas.user import UserResponse


class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"


class LoginRequest(BaseModel):
    username: str = Field(..., min_length=1)
    password: str = Field(..., min_length=4)


class LoginResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: UserResponse


class RegisterRequest(BaseModel):
    """The first account; it always becomes the admin."""
    username: str = Field(..., min_length=1, max_length=100)
    password: str = Field(..., min_length=4, max_length=100)


class Logout(BaseModel):
    message: str
