from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from app.core.errors import ApiError, NotFound
from app.database import get_db
from app.models.user import User
from app.auth import get_current_user, get_current_user_admin, hash_password
from app.routers.auth import EMAIL_RE, MIN_PASSWORD_LENGTH, MIN_USERNAME_LENGTH
from app.schemas.user import ProfileUpdate, UserEnvelope, UserListEnvelope, UserResponse, UserUpdate

router = APIRouter(prefix="/api/users", tags=["users"])


def _get_user_or_404(db: Session, user_id: str) -> User:
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise NotFound("User not found")
    return user


def _apply_identity_change(db: Session, user: User, username: str | None, email: str | None) -> None:
    """Set username/email after checking no other account holds them."""
    if username:
        username = username.strip()
        if len(username) < MIN_USERNAME_LENGTH:
            raise ApiError(f"Username must be at least {MIN_USERNAME_LENGTH} characters long", status.HTTP_400_BAD_REQUEST)
        other = db.query(User).filter(User.username == username, User.id != user.id).first()
        if other:
            raise ApiError("Username already taken", status.HTTP_400_BAD_REQUEST)
        user.username = username
    if email:
        email = email.strip().lower()
        if not EMAIL_RE.match(email):
            raise ApiError("Please provide a valid email address", status.HTTP_400_BAD_REQUEST)
        other = db.query(User).filter(User.email == email, User.id != user.id).first()
        if other:
            raise ApiError("Email already in use", status.HTTP_400_BAD_REQUEST)
        user.email = email


# ---------- Own profile ----------


@router.get("/profile", response_model=UserEnvelope)
def get_profile(user: User = Depends(get_current_user)):
    return UserEnvelope(data=UserResponse.model_validate(user))


@router.put("/profile", response_model=UserEnvelope)
def update_profile(
    body: ProfileUpdate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Update own username, email, password or contact details."""
    _apply_identity_change(db, user, body.username, body.email)
    if body.password:
        if len(body.password) < MIN_PASSWORD_LENGTH:
            raise ApiError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters long", status.HTTP_400_BAD_REQUEST)
        user.password = hash_password(body.password)
    for field in ("first_name", "last_name", "profile_image", "phone"):
        value = getattr(body, field)
        if value is not None:
            setattr(user, field, value)
    db.commit()
    db.refresh(user)
    return UserEnvelope(data=UserResponse.model_validate(user))


# ---------- Users CRUD (admin) ----------


@router.get("", response_model=UserListEnvelope)
def get_all_users(
    _admin: User = Depends(get_current_user_admin),
    db: Session = Depends(get_db),
):
    """List all users (admin only)."""
    users = db.query(User).order_by(User.created_at.desc()).all()
    return UserListEnvelope(count=len(users), data=[UserResponse.model_validate(u) for u in users])


@router.get("/{user_id}", response_model=UserEnvelope)
def get_user(
    user_id: str,
    _admin: User = Depends(get_current_user_admin),
    db: Session = Depends(get_db),
):
    """Get one user by id (admin only)."""
    return UserEnvelope(data=UserResponse.model_validate(_get_user_or_404(db, user_id)))


@router.put("/{user_id}", response_model=UserEnvelope)
def update_user(
    user_id: str,
    body: UserUpdate,
    _admin: User = Depends(get_current_user_admin),
    db: Session = Depends(get_db),
):
    """Update username, email or role (admin only)."""
    user = _get_user_or_404(db, user_id)
    _apply_identity_change(db, user, body.username, body.email)
    if body.role is not None:
        user.role = body.role.value
    db.commit()
    db.refresh(user)
    return UserEnvelope(data=UserResponse.model_validate(user))


@router.delete("/{user_id}")
def delete_user(
    user_id: str,
    _admin: User = Depends(get_current_user_admin),
    db: Session = Depends(get_db),
):
    """Delete a user (admin only). Their cached analyses and interviews stay until cleaned up separately."""
    user = _get_user_or_404(db, user_id)
    db.delete(user)
    db.commit()
    return {"success": True, "message": "User deleted successfully"}
