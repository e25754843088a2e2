from datetime import datetime
from pydantic import BaseModel
from app.models.user import UserRole


class UserResponse(BaseModel):
    id: str
    username: str
    email: str
    role: str
    first_name: str | None = None
    last_name: str | None = None
    profile_image: str | None = None
    phone: str | None = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class ProfileUpdate(BaseModel):
    """Fields a user may change on their own profile (all optional)."""
    username: str | None = None
    email: str | None = None
    password: str | None = None
    first_name: str | None = None
    last_name: str | None = None
    profile_image: str | None = None
    phone: str | None = None


class UserUpdate(BaseModel):
    """Schema for admin update (fields optional)."""
    username: str | None = None
    email: str | None = None
    role: UserRole | None = None


class TokenPayload(BaseModel):
    sub: str  # user id
    email: str
    exp: int
    type: str = "access"


class RegisterRequest(BaseModel):
    username: str | None = None
    email: str | None = None
    password: str | None = None


class LoginRequest(BaseModel):
    email: str | None = None
    password: str | None = None


class AuthData(BaseModel):
    id: str
    username: str
    email: str
    role: str
    token: str


class AuthResponse(BaseModel):
    success: bool = True
    data: AuthData


class UserEnvelope(BaseModel):
    success: bool = True
    data: UserResponse


class UserListEnvelope(BaseModel):
    success: bool = True
    count: int
    data: list[UserResponse]
