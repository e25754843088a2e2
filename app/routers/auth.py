import re
from fastapi import APIRouter, Depends, status
from sqlalchemy import func, or_
from sqlalchemy.orm import Session
from app.core.errors import ApiError, ValidationError
from app.database import get_db
from app.models.user import User, UserRole
from app.auth import create_access_token, get_current_user, hash_password, verify_password
from app.schemas.user import AuthData, AuthResponse, LoginRequest, RegisterRequest, UserEnvelope, UserResponse

router = APIRouter(prefix="/api/auth", tags=["auth"])

EMAIL_RE = re.compile(r"^\S+@\S+\.\S+$")
MIN_USERNAME_LENGTH = 3
MIN_PASSWORD_LENGTH = 6


def validate_registration(username: str | None, email: str | None, password: str | None) -> None:
    errors = {}
    if not username or len(username.strip()) < MIN_USERNAME_LENGTH:
        errors["username"] = f"Username must be at least {MIN_USERNAME_LENGTH} characters long"
    if not email or not EMAIL_RE.match(email):
        errors["email"] = "Please provide a valid email address"
    if not password or len(password) < MIN_PASSWORD_LENGTH:
        errors["password"] = f"Password must be at least {MIN_PASSWORD_LENGTH} characters long"
    if errors:
        raise ValidationError("Validation failed", errors)


def _auth_response(user: User) -> AuthResponse:
    return AuthResponse(
        data=AuthData(
            id=user.id,
            username=user.username,
            email=user.email,
            role=user.role,
            token=create_access_token(user.id, user.email),
        )
    )


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
def register(body: RegisterRequest, db: Session = Depends(get_db)):
    """Register a new user and return a token."""
    validate_registration(body.username, body.email, body.password)
    username = body.username.strip()
    email = body.email.strip().lower()

    existing = db.query(User).filter(
        or_(func.lower(User.email) == email, User.username == username)
    ).first()
    if existing:
        if existing.email.lower() == email:
            raise ApiError("User with this email already exists", status.HTTP_400_BAD_REQUEST)
        raise ApiError("Username already taken", status.HTTP_400_BAD_REQUEST)

    user = User(
        username=username,
        email=email,
        password=hash_password(body.password),
        role=UserRole.USER.value,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return _auth_response(user)


@router.post("/login", response_model=AuthResponse)
def login(body: LoginRequest, db: Session = Depends(get_db)):
    """Login with email and password."""
    if not body.email or not body.password:
        raise ApiError("Please provide email and password", status.HTTP_400_BAD_REQUEST)
    email = body.email.strip().lower()
    user = db.query(User).filter(func.lower(User.email) == email).first()
    if not user or not verify_password(body.password, user.password):
        raise ApiError("Invalid credentials", status.HTTP_401_UNAUTHORIZED)
    return _auth_response(user)


@router.get("/me", response_model=UserEnvelope)
def get_me(user: User = Depends(get_current_user)):
    return UserEnvelope(data=UserResponse.model_validate(user))
